"""
Keyword importance classification and enrichment quota selection.

Importance decides which filtered articles are worth the cost of fetching
and structuring the full text:

- high: earnings, M&A, launches, capacity, litigation/regulation
- medium: contracts, personnel, shareholder actions, listing events
- low: everything else, never enriched
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta, timezone
from typing import Any, Sequence

from signaldesk.news.schemas import ImportanceLabel, TimePeriod


HIGH_KEYWORDS: tuple[str, ...] = (
    "실적",
    "영업이익",
    "순이익",
    "매출",
    "IR",
    "인수",
    "합병",
    "M&A",
    "투자유치",
    "신제품",
    "출시",
    "론칭",
    "증설",
    "공장",
    "투자",
    "소송",
    "규제",
    "제재",
    "과징금",
)

MEDIUM_KEYWORDS: tuple[str, ...] = (
    "계약",
    "협약",
    "파트너십",
    "수주",
    "공급",
    "특허",
    "기술",
    "임원",
    "인사",
    "임원진",
    "CEO",
    "CFO",
    "CTO",
    "주주",
    "배당",
    "자사주",
    "매각",
    "매입",
    "지분",
    "증자",
    "감자",
    "상장",
    "상장폐지",
    "정지",
    "경고",
)

# Share of filtered items that may be enriched per run
ENRICHMENT_QUOTAS: dict[TimePeriod, float] = {
    TimePeriod.PEAK: 0.15,
    TimePeriod.ACTIVE: 0.10,
    TimePeriod.OFF: 0.05,
}

# Market clock is KST
MARKET_TZ = timezone(timedelta(hours=9))


def classify_importance(title: str | None, description: str | None = None) -> ImportanceLabel:
    """Label an article by keyword presence in ``title + " " + description``."""
    text = f"{title or ''} {description or ''}".lower()

    if any(keyword.lower() in text for keyword in HIGH_KEYWORDS):
        return ImportanceLabel.HIGH
    if any(keyword.lower() in text for keyword in MEDIUM_KEYWORDS):
        return ImportanceLabel.MEDIUM
    return ImportanceLabel.LOW


def classify_items(items: Sequence[Any]) -> list[ImportanceLabel]:
    """Classify and annotate ``importance`` on every item, returning the labels."""
    labels = []
    for item in items:
        label = classify_importance(
            getattr(item, "title", None), getattr(item, "description", None)
        )
        if hasattr(item, "importance"):
            item.importance = label
        labels.append(label)
    return labels


def get_time_period(now: datetime | None = None) -> TimePeriod:
    """
    Map wall-clock time to a trading-day period in KST.

    peak: 09:00-15:00, active: 08:00-09:00 and 15:00-20:00, off: otherwise.
    Naive datetimes are taken as UTC.
    """
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    hour = now.astimezone(MARKET_TZ).hour

    if 9 <= hour < 15:
        return TimePeriod.PEAK
    if 8 <= hour < 9 or 15 <= hour < 20:
        return TimePeriod.ACTIVE
    return TimePeriod.OFF


def enrichment_target_count(filtered_count: int, period: TimePeriod) -> int:
    return math.ceil(filtered_count * ENRICHMENT_QUOTAS[period])


def select_for_enrichment(
    items: Sequence[Any],
    period: TimePeriod,
    labels: Sequence[ImportanceLabel] | None = None,
) -> list[Any]:
    """
    Pick the items that proceed to full-content enrichment.

    Up to ceil(len(items) * quota) items: all high first, then medium
    backfill. Low items are never selected, even if the quota is not met.
    """
    if labels is None:
        labels = classify_items(items)

    target = enrichment_target_count(len(items), period)
    high = [item for item, label in zip(items, labels) if label == ImportanceLabel.HIGH]
    medium = [item for item, label in zip(items, labels) if label == ImportanceLabel.MEDIUM]

    selected = high[:target]
    if len(selected) < target:
        selected.extend(medium[: target - len(selected)])
    return selected
