# src/cache/cache_factory.py — v3
"""Factory for the durable cache store."""

from __future__ import annotations

from careerlens.cache.base_cache_store import BaseCacheStore
from careerlens.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore | None:
    """Instantiate the configured durable cache backend.

    Args:
        settings: Application settings. Defaults to JSON backend.

    Returns:
        Configured BaseCacheStore, or None when CACHE_ENABLED is false
        (the in-process tier then works alone).
    """
    if settings is not None and not settings.cache_enabled:
        return None

    backend = "json" if settings is None else settings.cache_backend
    cache_root = "~/.careerlens/cache" if settings is None else str(settings.cache_root)

    if backend == "json":
        from careerlens.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=cache_root)

    if backend == "sqlite":
        from careerlens.cache.sqlite_store import SqliteCacheStore
        return SqliteCacheStore(db_path=f"{cache_root}/careerlens_cache.db")

    if backend == "redis":
        from careerlens.cache.redis_store import RedisCacheStore
        if settings is None or not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(redis_url=settings.cache_redis_url)

    raise ValueError(f"Unsupported cache backend: {backend!r}")
