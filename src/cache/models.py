# src/cache/models.py — v3
"""Cache domain models: CacheEntry (in-process tier), DurableRecord
(durable key/value tier).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """Value stored in a KeyValueCache, stamped with its insertion time.

    Never mutated after insertion; replacing a key creates a new entry.
    """

    value: V
    inserted_at: float


class DurableRecord(BaseModel):
    """JSON document stored by the durable tier: ``{data, timestamp}``.

    ``timestamp`` is wall-clock epoch seconds so records survive restarts.
    """

    data: Any
    timestamp: float

    def is_expired(self, now: float, ttl_s: float) -> bool:
        return now - self.timestamp > ttl_s
