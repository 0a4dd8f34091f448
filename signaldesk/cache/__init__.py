"""Process-local TTL cache module."""

from .cache import (
    CATEGORY_TTLS,
    CacheCategory,
    CacheEntry,
    TTLCache,
    cache_key,
    get_cache,
)


__all__ = [
    "CATEGORY_TTLS",
    "CacheCategory",
    "CacheEntry",
    "TTLCache",
    "cache_key",
    "get_cache",
]
