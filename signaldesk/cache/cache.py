"""Process-local TTL cache with category-namespaced keys."""

from __future__ import annotations

import inspect
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from signaldesk.core.logging import get_logger


logger = get_logger("cache")


class CacheCategory(str, Enum):
    """Cached data categories, one TTL per volatility class."""

    FINANCIAL = "financial"
    TECHNICAL = "technical"
    MACRO = "macro"


# Seconds
CATEGORY_TTLS: dict[CacheCategory, int] = {
    CacheCategory.FINANCIAL: 24 * 60 * 60,
    CacheCategory.TECHNICAL: 5 * 60,
    CacheCategory.MACRO: 7 * 24 * 60 * 60,
}


def cache_key(category: Union[CacheCategory, str], *parts: Union[str, int]) -> str:
    """
    Build a namespaced cache key.

    Usage:
        cache_key(CacheCategory.FINANCIAL, "005930") -> "financial:005930"
        cache_key(CacheCategory.MACRO, "global") -> "macro:global"
    """
    prefix = category.value if isinstance(category, CacheCategory) else str(category)
    sanitized = [str(part).replace(":", "_") for part in parts]
    return ":".join([prefix, *sanitized])


@dataclass
class CacheEntry:
    key: str
    payload: Any
    expires_at: float


class TTLCache:
    """
    In-memory key/value store with per-entry expiry.

    The clock is injectable so expiry can be tested deterministically.
    Reads past ``expires_at`` evict the entry and report a miss.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss: {key}")
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                logger.debug(f"Cache expired: {key}")
                return None
            logger.debug(f"Cache hit: {key}")
            return entry.payload

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        with self._lock:
            self._entries[key] = CacheEntry(
                key=key,
                payload=value,
                expires_at=self._clock() + ttl,
            )
        logger.debug(f"Cache set: {key}, TTL: {ttl}s")

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any],
        ttl: float,
    ) -> tuple[Any, bool]:
        """
        Cache-aside lookup.

        Returns (value, from_cache). ``factory`` may be sync or async; a None
        result is returned but not cached.
        """
        value = self.get(key)
        if value is not None:
            return value, True

        value = factory()
        if inspect.isawaitable(value):
            value = await value

        if value is not None:
            self.set(key, value, ttl)

        return value, False


# Shared process-local cache
_cache: Optional[TTLCache] = None


def get_cache() -> TTLCache:
    """Get the process-wide cache instance."""
    global _cache
    if _cache is None:
        _cache = TTLCache()
    return _cache
