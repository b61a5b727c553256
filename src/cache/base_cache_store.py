# src/cache/base_cache_store.py — v2
"""Abstract durable key/value store backing the second cache tier."""

from __future__ import annotations

from abc import ABC, abstractmethod

from careerlens.cache.models import DurableRecord


class BaseCacheStore(ABC):
    """Unified interface for durable cache backends.

    Keys have the form ``<namespace>_<base64(fingerprint)>``. Backends do not
    interpret TTLs; expiry is decided by the tiered cache on read.
    """

    @abstractmethod
    async def get(self, key: str) -> DurableRecord | None:
        """Retrieve a record, or None if absent or unreadable."""

    @abstractmethod
    async def put(self, key: str, record: DurableRecord) -> None:
        """Store (or replace) a record."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a record. Missing keys are ignored."""

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``."""

    async def clear(self, prefix: str = "") -> int:
        """Remove every record whose key starts with ``prefix``."""
        removed = 0
        for key in await self.keys(prefix):
            await self.delete(key)
            removed += 1
        return removed

    def close(self) -> None:
        """Release backend resources. No-op by default."""
