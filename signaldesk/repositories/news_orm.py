"""News article repository using SQLAlchemy ORM.

Articles move through the pipeline by column state:

- unfiltered: ``filter_score IS NULL``
- passed filtering: ``filter_score > 0`` (rejected items are scored 0.0)
- enrichment candidate: passed, ``importance IS NULL``, no full content
- sentiment candidate: passed, ``analyzed = false``
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from signaldesk.core.logging import get_logger
from signaldesk.database.connection import get_session
from signaldesk.database.orm import NewsArticle
from signaldesk.news.schemas import ImportanceLabel, NewsItem


logger = get_logger("repositories.news_orm")

ANALYSIS_VERSION = "1.0"


def _to_item(row: NewsArticle) -> NewsItem:
    return NewsItem(
        id=str(row.id),
        instrument_id=str(row.instrument_id),
        title=row.title,
        description=row.description,
        source=row.source,
        url=row.url,
        published_at=row.published_at,
        collected_at=row.collected_at,
        filter_score=row.filter_score,
        source_tier=row.source_tier,
        importance=row.importance,
        has_full_content=row.has_full_content,
        full_content_summary=row.full_content_summary,
        financial_numbers=row.financial_numbers,
        key_facts=row.key_facts,
        future_outlook=row.future_outlook,
        analyzed=row.analyzed,
        sentiment=row.sentiment,
        sentiment_score=row.sentiment_score,
        impact=row.impact,
        key_topics=row.key_topics,
    )


async def _select_items(session: AsyncSession, stmt) -> list[NewsItem]:
    result = await session.execute(stmt)
    return [_to_item(row) for row in result.scalars().all()]


# =============================================================================
# Ingestion
# =============================================================================


async def existing_urls(instrument_id: str, urls: Sequence[str]) -> set[str]:
    """URLs among ``urls`` already stored for this instrument."""
    if not urls:
        return set()
    async with get_session() as session:
        result = await session.execute(
            select(NewsArticle.url).where(
                NewsArticle.instrument_id == instrument_id,
                NewsArticle.url.in_(list(urls)),
            )
        )
        return {url for url in result.scalars().all() if url}


async def insert_articles(items: Sequence[NewsItem]) -> int:
    """Insert articles, skipping links already stored. Returns rows inserted."""
    if not items:
        return 0
    stmt = (
        insert(NewsArticle)
        .values(
            [
                {
                    "instrument_id": item.instrument_id,
                    "title": item.title,
                    "description": item.description,
                    "source": item.source,
                    "url": item.url,
                    "published_at": item.published_at,
                    "collected_at": item.collected_at,
                }
                for item in items
            ]
        )
        .on_conflict_do_nothing(index_elements=["instrument_id", "url"])
        .returning(NewsArticle.id)
    )
    async with get_session() as session:
        result = await session.execute(stmt)
        inserted = len(result.scalars().all())
        await session.commit()
    if inserted < len(items):
        logger.debug(f"Skipped {len(items) - inserted} articles already stored")
    return inserted


# =============================================================================
# Filtering
# =============================================================================


async def list_unfiltered(instrument_id: str, limit: int = 1000) -> list[NewsItem]:
    async with get_session() as session:
        return await _select_items(
            session,
            select(NewsArticle)
            .where(
                NewsArticle.instrument_id == instrument_id,
                NewsArticle.filter_score.is_(None),
            )
            .order_by(NewsArticle.collected_at.desc())
            .limit(limit),
        )


async def save_filter_results(items: Sequence[NewsItem]) -> None:
    """Persist filter_score and source_tier for scored items."""
    async with get_session() as session:
        for item in items:
            if item.id is None or item.filter_score is None:
                continue
            await session.execute(
                update(NewsArticle)
                .where(NewsArticle.id == item.id)
                .values(
                    filter_score=item.filter_score,
                    source_tier=item.source_tier.value if item.source_tier else None,
                )
            )
        await session.commit()


# =============================================================================
# Enrichment
# =============================================================================


async def list_enrichment_candidates(instrument_id: str, limit: int = 100) -> list[NewsItem]:
    async with get_session() as session:
        return await _select_items(
            session,
            select(NewsArticle)
            .where(
                NewsArticle.instrument_id == instrument_id,
                NewsArticle.filter_score > 0,
                NewsArticle.has_full_content == False,  # noqa: E712
                NewsArticle.importance.is_(None),
            )
            .order_by(NewsArticle.collected_at.desc())
            .limit(limit),
        )


async def save_importance(labels: dict[str, ImportanceLabel]) -> None:
    """Persist importance labels keyed by article id."""
    if not labels:
        return
    async with get_session() as session:
        for article_id, label in labels.items():
            await session.execute(
                update(NewsArticle)
                .where(NewsArticle.id == article_id)
                .values(importance=label.value)
            )
        await session.commit()


async def save_enrichment(item: NewsItem) -> None:
    async with get_session() as session:
        await session.execute(
            update(NewsArticle)
            .where(NewsArticle.id == item.id)
            .values(
                importance=item.importance.value if item.importance else None,
                has_full_content=item.has_full_content,
                full_content_summary=item.full_content_summary,
                financial_numbers=item.financial_numbers,
                key_facts=item.key_facts,
                future_outlook=item.future_outlook,
            )
        )
        await session.commit()


# =============================================================================
# Sentiment
# =============================================================================


async def list_unanalyzed(limit: int = 500) -> list[NewsItem]:
    """Filtered, not yet analysed articles across all instruments."""
    async with get_session() as session:
        return await _select_items(
            session,
            select(NewsArticle)
            .where(
                NewsArticle.analyzed == False,  # noqa: E712
                NewsArticle.filter_score > 0,
            )
            .order_by(NewsArticle.collected_at.desc())
            .limit(limit),
        )


async def save_sentiment(items: Sequence[NewsItem], version: str = ANALYSIS_VERSION) -> int:
    saved = 0
    async with get_session() as session:
        for item in items:
            if item.id is None or not item.analyzed:
                continue
            await session.execute(
                update(NewsArticle)
                .where(NewsArticle.id == item.id, NewsArticle.analyzed == False)  # noqa: E712
                .values(
                    analyzed=True,
                    sentiment=item.sentiment.value if item.sentiment else None,
                    sentiment_score=item.sentiment_score,
                    impact=item.impact.value if item.impact else None,
                    key_topics=item.key_topics,
                    analysis_version=version,
                )
            )
            saved += 1
        await session.commit()
    return saved


async def get_recent_analyzed(instrument_id: str, limit: int = 20) -> list[NewsItem]:
    """Latest analysed articles with a sentiment, newest first."""
    async with get_session() as session:
        return await _select_items(
            session,
            select(NewsArticle)
            .where(
                NewsArticle.instrument_id == instrument_id,
                NewsArticle.analyzed == True,  # noqa: E712
                NewsArticle.sentiment.is_not(None),
            )
            .order_by(NewsArticle.published_at.desc().nulls_last())
            .limit(limit),
        )
