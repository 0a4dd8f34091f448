"""Filtering statistics repository using SQLAlchemy ORM."""

from __future__ import annotations

from signaldesk.core.logging import get_logger
from signaldesk.database.connection import get_session
from signaldesk.database.orm import FilteringStats
from signaldesk.news.schemas import FilteringStatsRecord


logger = get_logger("repositories.filtering_stats_orm")


async def save_stats(record: FilteringStatsRecord) -> None:
    """Append one filtering-run record."""
    async with get_session() as session:
        session.add(
            FilteringStats(
                instrument_id=record.instrument_id,
                time_period=record.time_period.value,
                raw_count=record.raw_count,
                after_source_filter=record.after_source_filter,
                after_dedup=record.after_dedup,
                after_quality_filter=record.after_quality_filter,
                final_count=record.final_count,
                high_importance_count=record.high_importance_count,
                filter_rate=record.filter_rate,
                avg_similarity=record.avg_similarity,
                created_at=record.created_at,
            )
        )
        await session.commit()
