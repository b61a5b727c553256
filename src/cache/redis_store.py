# src/cache/redis_store.py — v2
"""Redis-based durable cache (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments sharing one cache.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from careerlens.cache.base_cache_store import BaseCacheStore
from careerlens.cache.models import DurableRecord

logger = logging.getLogger(__name__)

_KEY_PREFIX = "careerlens:cache:"
_INDEX_KEY = "careerlens:cache:__index__"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed durable cache store."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> DurableRecord | None:
        data = self._client.get(f"{_KEY_PREFIX}{key}")
        if data is None:
            return None
        try:
            return DurableRecord.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            await self.delete(key)
            return None

    async def put(self, key: str, record: DurableRecord) -> None:
        self._client.set(f"{_KEY_PREFIX}{key}", record.model_dump_json())
        # Index set backs keys()/clear() without a SCAN
        self._client.sadd(_INDEX_KEY, key)

    async def delete(self, key: str) -> None:
        self._client.delete(f"{_KEY_PREFIX}{key}")
        self._client.srem(_INDEX_KEY, key)

    async def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._client.smembers(_INDEX_KEY) if k.startswith(prefix))

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
