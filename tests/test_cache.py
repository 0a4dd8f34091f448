"""Tests for the TTL cache."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from signaldesk.cache import CATEGORY_TTLS, CacheCategory, cache_key


class TestCacheKey:
    def test_category_prefix(self):
        assert cache_key(CacheCategory.FINANCIAL, "005930") == "financial:005930"
        assert cache_key(CacheCategory.MACRO, "global") == "macro:global"

    def test_parts_are_sanitized(self):
        assert cache_key("custom", "a:b", 1) == "custom:a_b:1"

    def test_category_ttls(self):
        assert CATEGORY_TTLS[CacheCategory.FINANCIAL] == 86400
        assert CATEGORY_TTLS[CacheCategory.TECHNICAL] == 300
        assert CATEGORY_TTLS[CacheCategory.MACRO] == 604800


class TestTTLCache:
    def test_hit_before_expiry(self, cache, clock):
        cache.set("technical:005930", {"price": 1}, ttl=300)
        clock.advance(300)

        assert cache.get("technical:005930") == {"price": 1}

    def test_miss_and_evict_after_expiry(self, cache, clock):
        cache.set("technical:005930", {"price": 1}, ttl=300)
        clock.advance(300.001)

        assert cache.get("technical:005930") is None
        assert len(cache) == 0

    def test_missing_key(self, cache):
        assert cache.get("nope") is None
        assert "nope" not in cache

    def test_delete_and_clear(self, cache):
        cache.set("a", 1, ttl=10)
        cache.set("b", 2, ttl=10)

        assert cache.delete("a") is True
        assert cache.delete("a") is False
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_get_or_set_with_async_factory(self, cache):
        factory = AsyncMock(return_value={"per": 12.0})

        first = await cache.get_or_set("financial:005930", factory, ttl=60)
        second = await cache.get_or_set("financial:005930", factory, ttl=60)

        assert first == ({"per": 12.0}, False)
        assert second == ({"per": 12.0}, True)
        factory.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_or_set_with_sync_factory(self, cache):
        factory = MagicMock(return_value=42)

        assert await cache.get_or_set("k", factory, ttl=60) == (42, False)
        assert await cache.get_or_set("k", factory, ttl=60) == (42, True)
        factory.assert_called_once()

    @pytest.mark.asyncio
    async def test_none_is_not_cached(self, cache):
        factory = MagicMock(return_value=None)

        await cache.get_or_set("k", factory, ttl=60)
        await cache.get_or_set("k", factory, ttl=60)

        assert factory.call_count == 2

    @pytest.mark.asyncio
    async def test_refetch_after_expiry(self, cache, clock):
        factory = AsyncMock(side_effect=[1, 2])

        await cache.get_or_set("k", factory, ttl=10)
        clock.advance(11)
        value, from_cache = await cache.get_or_set("k", factory, ttl=10)

        assert (value, from_cache) == (2, False)
