# src/cache/memory_cache.py — v2
"""Bounded, time-expiring in-process cache over cachetools.TTLCache.

TTLCache evicts the least-recently-used live entry when full and drops
entries whose TTL has elapsed. Every operation is synchronous, so
evict-then-insert can never be split by an ``await`` on the event loop.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Generic, Hashable, Iterator, TypeVar

from cachetools import Cache, TTLCache

from careerlens.cache.models import CacheEntry

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_TTL_S = 60 * 30

_MISSING = object()


class _EntryCache(TTLCache):
    """TTLCache that logs LRU evictions and can read without touching recency."""

    def popitem(self) -> tuple[Any, Any]:
        key, entry = super().popitem()
        logger.debug("Evicted LRU cache key %r", key)
        return key, entry

    def peek(self, key: Any) -> Any:
        return Cache.__getitem__(self, key)


class KeyValueCache(Generic[K, V]):
    """LRU cache with per-entry TTL.

    Args:
        max_size: Maximum number of entries kept.
        ttl_s: Seconds after insertion an entry is considered expired.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        max_size: int = 100,
        ttl_s: float = DEFAULT_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._clock = clock
        self._entries = _EntryCache(maxsize=max_size, ttl=ttl_s, timer=clock)

    @property
    def max_size(self) -> int:
        return int(self._entries.maxsize)

    @property
    def ttl_s(self) -> float:
        return self._entries.ttl

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the cached value, or ``default`` if absent or expired.

        A hit moves the key to the most-recently-used position.
        """
        self._entries.expire()
        entry = self._entries.get(key, _MISSING)
        if entry is _MISSING:
            return default
        return entry.value

    def set(self, key: K, value: V) -> None:
        """Insert or replace ``key``, evicting the LRU entry when full."""
        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())

    def delete(self, key: K) -> bool:
        """Remove ``key``. Returns True if it was present."""
        self._entries.expire()
        return self._entries.pop(key, _MISSING) is not _MISSING

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        return len(self._entries.expire())

    def snapshot(self) -> dict[K, CacheEntry[V]]:
        """Copy of the live entries, oldest insertion first."""
        return {key: self._entries.peek(key) for key in list(self._entries)}

    def keys(self) -> Iterator[K]:
        return iter(list(self._entries))

    def __contains__(self, key: object) -> bool:
        # Membership check only: does not refresh recency.
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
