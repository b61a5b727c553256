# src/cache/tiered_cache.py — v2
"""Two-tier result cache: in-process KeyValueCache in front of a durable store.

Lookup order is memory then durable; a durable hit is promoted to memory.
Callers always receive their own deep copy, so editing a returned value
never changes what later lookups see.
Durable-tier failures never fail a lookup or a write: they are logged and
treated as a miss.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from careerlens.cache.base_cache_store import BaseCacheStore
from careerlens.cache.fingerprint import storage_key
from careerlens.cache.memory_cache import KeyValueCache
from careerlens.cache.models import DurableRecord

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class TieredCache(Generic[M]):
    """Namespaced cache of pydantic models keyed by request fingerprint.

    Args:
        namespace: Durable key prefix (``<namespace>_<base64(fingerprint)>``).
        model: Model class used to rebuild values read from the durable tier.
        memory: In-process tier.
        durable: Durable tier, or None for memory only.
        ttl_s: Durable-tier lifetime in seconds.
        wall_clock: Epoch time source for durable timestamps.
    """

    def __init__(
        self,
        namespace: str,
        model: type[M],
        memory: KeyValueCache[str, M],
        durable: BaseCacheStore | None = None,
        ttl_s: float = 60 * 30,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self._namespace = namespace
        self._model = model
        self._memory = memory
        self._durable = durable
        self._ttl_s = ttl_s
        self._wall_clock = wall_clock

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def memory(self) -> KeyValueCache[str, M]:
        return self._memory

    async def get(self, fingerprint: str) -> M | None:
        """Return the cached value, or None on a miss in both tiers."""
        value = self._memory.get(fingerprint)
        if value is not None:
            logger.debug("Memory cache hit: %s/%s", self._namespace, fingerprint[:12])
            return value.model_copy(deep=True)
        if self._durable is None:
            return None

        key = storage_key(self._namespace, fingerprint)
        try:
            record = await self._durable.get(key)
        except Exception as e:
            logger.warning("Durable cache read failed for %s: %s", key, e)
            return None
        if record is None:
            return None

        if record.is_expired(self._wall_clock(), self._ttl_s):
            logger.debug("Durable cache entry expired: %s", key)
            await self._safe_delete(key)
            return None

        try:
            value = self._model.model_validate(record.data)
        except ValidationError as e:
            logger.warning("Discarding durable cache entry %s: %s", key, e)
            await self._safe_delete(key)
            return None

        # Promotion is synchronous: no await between read and insert.
        self._memory.set(fingerprint, value)
        logger.debug("Durable cache hit promoted: %s", key)
        return value.model_copy(deep=True)

    async def set(self, fingerprint: str, value: M) -> None:
        """Write to both tiers. Durable failures are logged, not raised."""
        self._memory.set(fingerprint, value.model_copy(deep=True))
        if self._durable is None:
            return
        key = storage_key(self._namespace, fingerprint)
        record = DurableRecord(
            data=value.model_dump(mode="json"), timestamp=self._wall_clock()
        )
        try:
            await self._durable.put(key, record)
        except Exception as e:
            logger.warning("Durable cache write failed for %s: %s", key, e)

    async def delete(self, fingerprint: str) -> None:
        self._memory.delete(fingerprint)
        if self._durable is not None:
            await self._safe_delete(storage_key(self._namespace, fingerprint))

    async def clear(self) -> int:
        """Drop every entry of this namespace. Returns durable entries removed."""
        self._memory.clear()
        if self._durable is None:
            return 0
        try:
            return await self._durable.clear(prefix=f"{self._namespace}_")
        except Exception as e:
            logger.warning("Durable cache clear failed for %s: %s", self._namespace, e)
            return 0

    async def _safe_delete(self, key: str) -> None:
        try:
            await self._durable.delete(key)  # type: ignore[union-attr]
        except Exception as e:
            logger.warning("Durable cache delete failed for %s: %s", key, e)

    def __repr__(self) -> str:
        backend: Any = type(self._durable).__name__ if self._durable else None
        return f"TieredCache(namespace={self._namespace!r}, durable={backend})"
