"""
Read-through cache for social graph lookups.

TTLs live in one table keyed by the key prefix ("user:123" -> "user").
In development every TTL is 0, which means lookups are not cached.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from ghost.storage.base import CacheStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR

CACHE_POLICY: dict[str, int] = {
    "channel": DAY,
    "user": HOUR,
    "reactions": 5 * MINUTE,
    "followers": 5 * MINUTE,
}


def cache_key(kind: str, identifier: Any) -> str:
    if kind not in CACHE_POLICY:
        raise KeyError(f"No cache policy for {kind!r}")
    return f"{kind}:{identifier}"


def ttl_for(key: str, environment: str = "production") -> int:
    """TTL in seconds for a cache key, by prefix."""
    if environment == "development":
        return 0
    prefix = key.split(":", 1)[0]
    try:
        return CACHE_POLICY[prefix]
    except KeyError:
        raise KeyError(f"No cache policy for key {key!r}") from None


async def get_set_cache(
    cache: CacheStorage,
    key: str,
    get: Callable[[], Awaitable[T]],
    ttl: int | None = None,
    environment: str = "production",
) -> T:
    """
    Return the cached value for `key`, or load it with `get` and cache it.
    
    Concurrent misses on the same key both load and both set; the last
    write wins. Nothing is stored when the TTL is 0.
    """
    cached = await cache.get(key)
    if cached:
        return cached
    
    fresh = await get()
    ttl_seconds = ttl if ttl is not None else ttl_for(key, environment)
    if ttl_seconds > 0:
        await cache.set(key, fresh, ttl_seconds)
    else:
        logger.debug(f"Not caching {key} (ttl=0)")
    return fresh
