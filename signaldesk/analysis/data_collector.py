"""
Smart data collector for the opinion agents.

Slow-moving data is cached per category (financial 24h, technical 5min,
macro 7d). News and risk data are read fresh on every run.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, Sequence

from signaldesk.analysis.market_data import MarketDataProvider, get_market_data_provider
from signaldesk.analysis.schemas import (
    FinancialData,
    MacroData,
    NewsData,
    NewsDigest,
    RiskData,
    TechnicalData,
)
from signaldesk.cache import CATEGORY_TTLS, CacheCategory, TTLCache, cache_key, get_cache
from signaldesk.core.logging import get_logger
from signaldesk.news.schemas import Impact, Market, NewsItem, Sentiment


logger = get_logger("analysis.data_collector")

NewsReader = Callable[[str, int], Awaitable[Sequence[NewsItem]]]

DEFAULT_NEWS_LIMIT = 20


def summarize_news(items: Sequence[NewsItem]) -> NewsData:
    """Build the news agent's view: digests plus a sentiment tally."""
    trend = {s.value: 0 for s in (Sentiment.POSITIVE, Sentiment.NEGATIVE, Sentiment.NEUTRAL)}
    digests = []
    for item in items:
        if item.sentiment is None:
            continue
        trend[item.sentiment.value] += 1
        digests.append(
            NewsDigest(
                title=item.title,
                sentiment=item.sentiment,
                sentiment_score=item.sentiment_score or 0.0,
                impact=item.impact or Impact.MEDIUM,
                published_at=item.published_at,
            )
        )
    return NewsData(recent_news=digests, sentiment_trend=trend)


async def _read_recent_news(instrument_id: str, limit: int) -> Sequence[NewsItem]:
    from signaldesk.repositories import news_orm

    return await news_orm.get_recent_analyzed(instrument_id, limit=limit)


class SmartDataCollector:
    """
    Per-category data access with TTL caching.

    ``used_cache`` reports whether any category in the current run was
    served from cache; ``begin_run()`` resets it.
    """

    def __init__(
        self,
        provider: Optional[MarketDataProvider] = None,
        cache: Optional[TTLCache] = None,
        news_reader: Optional[NewsReader] = None,
    ):
        self.provider = provider or get_market_data_provider()
        self.cache = cache if cache is not None else get_cache()
        self.news_reader = news_reader or _read_recent_news
        self.used_cache = False

    def begin_run(self) -> None:
        self.used_cache = False

    async def _cached(self, category: CacheCategory, part: str, factory):
        value, from_cache = await self.cache.get_or_set(
            cache_key(category, part), factory, CATEGORY_TTLS[category]
        )
        if from_cache:
            self.used_cache = True
        return value

    async def collect_financial_data(
        self, code: str, market: Market | str = Market.KOSPI
    ) -> FinancialData:
        async def fetch():
            return await self.provider.get_financial_data(code, market)

        return await self._cached(CacheCategory.FINANCIAL, code, fetch)

    async def collect_technical_data(
        self, code: str, market: Market | str = Market.KOSPI
    ) -> TechnicalData:
        async def fetch():
            return await self.provider.get_technical_data(code, market)

        return await self._cached(CacheCategory.TECHNICAL, code, fetch)

    async def collect_macro_data(self) -> MacroData:
        return await self._cached(CacheCategory.MACRO, "global", self.provider.get_macro_data)

    async def collect_news_data(
        self, instrument_id: str, limit: int = DEFAULT_NEWS_LIMIT
    ) -> NewsData:
        items = await self.news_reader(instrument_id, limit)
        return summarize_news(items)

    async def collect_risk_data(
        self, code: str, market: Market | str = Market.KOSPI
    ) -> RiskData:
        return await self.provider.get_risk_data(code, market)
