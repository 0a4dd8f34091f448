"""
News filtering pipeline.

Stages, in order:
1. Source trust filter (allow-list tiers)
2. Near-duplicate suppression on titles
3. Clickbait / low-quality filter

Surviving items are scored and counted into one FilteringStatsRecord.
Nothing is written here; the filter job persists the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from signaldesk.core.logging import get_logger
from signaldesk.news.dedup import DEFAULT_THRESHOLD, remove_duplicates
from signaldesk.news.importance import classify_importance
from signaldesk.news.quality import filter_clickbait_and_low_quality
from signaldesk.news.schemas import (
    FilteringStatsRecord,
    ImportanceLabel,
    SourceTier,
    TimePeriod,
)
from signaldesk.news.sources import filter_by_source, get_source_tier


logger = get_logger("news.pipeline")


BASE_FILTER_SCORE = 0.5
TIER_BONUS: dict[SourceTier, float] = {
    SourceTier.TIER1: 0.2,
    SourceTier.TIER2: 0.15,
    SourceTier.TIER3: 0.1,
}
RICH_DESCRIPTION_LENGTH = 100
TITLE_LENGTH_RANGE = (20, 100)
REJECTED_FILTER_SCORE = 0.0


@dataclass
class FilteringRun:
    """Everything one pipeline pass produced."""

    final: list[Any]
    stats: FilteringStatsRecord
    source_stats: dict[str, Any] = field(default_factory=dict)
    dedup_stats: dict[str, Any] = field(default_factory=dict)
    quality_stats: dict[str, Any] = field(default_factory=dict)
    rejected: list[Any] = field(default_factory=list)


def calculate_filter_score(item: Any) -> float:
    """Score 0-1 from source tier, description richness and title length."""
    score = BASE_FILTER_SCORE

    tier = getattr(item, "source_tier", None) or get_source_tier(getattr(item, "source", None))
    score += TIER_BONUS.get(tier, 0.0)

    description = getattr(item, "description", None)
    if description and len(description) > RICH_DESCRIPTION_LENGTH:
        score += 0.1

    title = getattr(item, "title", None) or ""
    low, high = TITLE_LENGTH_RANGE
    if low <= len(title) <= high:
        score += 0.1

    return round(min(1.0, max(0.0, score)), 4)


def filter_rate(raw_count: int, final_count: int) -> float:
    """Share of raw items removed, as a percentage rounded to 2 places."""
    if raw_count <= 0:
        return 0.0
    return round((raw_count - final_count) / raw_count * 100, 2)


def run_filtering_pipeline(
    items: Sequence[Any],
    instrument_id: str,
    time_period: TimePeriod,
    threshold: float = DEFAULT_THRESHOLD,
) -> FilteringRun:
    """Run source -> dedup -> quality over ``items`` and annotate survivors."""
    raw_count = len(items)

    by_source = filter_by_source(items)
    logger.info(
        f"Source filter: {by_source.stats['passed']} passed, "
        f"{by_source.stats['filtered']} filtered"
    )

    dedup = remove_duplicates(by_source.passed, threshold=threshold)
    logger.info(
        f"Dedup: {dedup.stats['unique']} unique, {dedup.stats['duplicates']} duplicates, "
        f"avg similarity {dedup.stats['avg_similarity']}"
    )

    quality = filter_clickbait_and_low_quality(dedup.unique)
    logger.info(
        f"Quality filter: {quality.stats['passed']} passed "
        f"(clickbait {quality.stats['clickbait']}, low quality {quality.stats['low_quality']})"
    )

    final = quality.passed
    high_count = 0
    for item in final:
        if getattr(item, "filter_score", None) is None:
            item.filter_score = calculate_filter_score(item)
        label = classify_importance(getattr(item, "title", None), getattr(item, "description", None))
        if label == ImportanceLabel.HIGH:
            high_count += 1

    # Rejected items are scored 0.0 so they are not picked up as unfiltered again
    rejected = [*by_source.filtered, *dedup.duplicates, *quality.filtered]
    for item in rejected:
        if hasattr(item, "filter_score") and getattr(item, "filter_score", None) is None:
            item.filter_score = REJECTED_FILTER_SCORE

    stats = FilteringStatsRecord(
        instrument_id=instrument_id,
        time_period=time_period,
        raw_count=raw_count,
        after_source_filter=by_source.stats["passed"],
        after_dedup=dedup.stats["unique"],
        after_quality_filter=quality.stats["passed"],
        final_count=len(final),
        high_importance_count=high_count,
        filter_rate=filter_rate(raw_count, len(final)),
        avg_similarity=dedup.stats["avg_similarity"],
    )

    return FilteringRun(
        final=final,
        stats=stats,
        source_stats=by_source.stats,
        dedup_stats=dedup.stats,
        quality_stats=quality.stats,
        rejected=rejected,
    )
