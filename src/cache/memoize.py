# src/cache/memoize.py — v1
"""KeyValueCache-backed memoization for sync and async callables.

Keys are the canonical JSON of the bound arguments, so two calls hit the
same entry when their arguments are equal by value, not by identity.
"""

from __future__ import annotations

import copy
import functools
import inspect
import logging
from typing import Any, Callable, Iterable, TypeVar

from careerlens.cache.fingerprint import canonical_json
from careerlens.cache.memory_cache import KeyValueCache

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_MISSING = object()


def memoize(
    fn: F | None = None,
    *,
    max_size: int = 100,
    ttl_s: float = 60 * 5,
    ignore: Iterable[str] = (),
    cache: KeyValueCache[str, Any] | None = None,
) -> Any:
    """Memoize ``fn``. Usable as ``@memoize`` or ``@memoize(ttl_s=60)``.

    Args:
        fn: Function or coroutine function to wrap.
        max_size: Capacity of the private cache (ignored if ``cache`` given).
        ttl_s: Entry lifetime in seconds (ignored if ``cache`` given).
        ignore: Parameter names excluded from the key (e.g. ``"token"``).
        cache: Pre-built cache to share or inspect.

    Returns:
        Wrapper with ``cache`` and ``cache_clear()`` attributes.

    Arguments that cannot be serialized skip the cache. Results that cannot
    be deep-copied are returned but not stored. Exceptions are never cached.
    """
    if fn is None:
        return functools.partial(
            memoize, max_size=max_size, ttl_s=ttl_s, ignore=ignore, cache=cache
        )

    store: KeyValueCache[str, Any] = cache or KeyValueCache(max_size=max_size, ttl_s=ttl_s)
    ignored = frozenset(ignore)
    signature = inspect.signature(fn)
    name = getattr(fn, "__qualname__", repr(fn))

    def make_key(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str | None:
        bound = signature.bind(*args, **kwargs)
        bound.apply_defaults()
        items = [
            [param, value]
            for param, value in bound.arguments.items()
            if param not in ignored
        ]
        try:
            return canonical_json(items)
        except (TypeError, ValueError) as e:
            logger.warning("Not memoizing %s: arguments not serializable (%s)", name, e)
            return None

    def remember(key: str | None, value: Any) -> None:
        if key is None:
            return
        try:
            store.set(key, copy.deepcopy(value))
        except Exception as e:
            logger.warning("Unable to cache non-copyable result of %s: %s", name, e)

    def lookup(key: str | None) -> Any:
        if key is None:
            return _MISSING
        cached = store.get(key, _MISSING)
        if cached is _MISSING:
            return _MISSING
        return copy.deepcopy(cached)

    if inspect.iscoroutinefunction(fn):

        @functools.wraps(fn)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            key = make_key(args, kwargs)
            cached = lookup(key)
            if cached is not _MISSING:
                return cached
            result = await fn(*args, **kwargs)
            remember(key, result)
            return result

        wrapper: Any = async_wrapper
    else:

        @functools.wraps(fn)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            key = make_key(args, kwargs)
            cached = lookup(key)
            if cached is not _MISSING:
                return cached
            result = fn(*args, **kwargs)
            remember(key, result)
            return result

        wrapper = sync_wrapper

    wrapper.cache = store
    wrapper.cache_clear = store.clear
    return wrapper
