"""Clickbait and low-quality article detection."""

from __future__ import annotations

import re
from typing import Any, Sequence

from signaldesk.news.schemas import FilterOutcome


CLICKBAIT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"속보"),
    re.compile(r"충격"),
    re.compile(r"긴급"),
    re.compile(r"대박"),
    re.compile(r"!\s*$"),
    re.compile(r"[?!]{2,}"),
    re.compile(r"주목|화제|폭발"),
    re.compile(r"놀라운|믿을 수 없는"),
    re.compile(r"이것만 알면"),
    re.compile(r"숨겨진 진실"),
)

MIN_DESCRIPTION_LENGTH = 50

# Netizen / comment-reaction pieces
_PUBLIC_REACTION = re.compile(r"네티즌|댓글|반응|누리꾼")
# "appears to be", "estimated to", "expected to"
_SPECULATIVE = re.compile(r"것으로 보인다|것으로 추정|것으로 전망")
# "according to an official", "an anonymous official"
_ANONYMOUS_SOURCE = re.compile(r"관계자에 따르면|익명의 관계자")


def is_clickbait(title: str | None) -> bool:
    if not title:
        return False
    return any(pattern.search(title) for pattern in CLICKBAIT_PATTERNS)


def is_low_quality(title: str | None, description: str | None) -> bool:
    if description and len(description) < MIN_DESCRIPTION_LENGTH:
        return True
    if title and _PUBLIC_REACTION.search(title):
        return True
    if title and _SPECULATIVE.search(title):
        return True
    if description and _ANONYMOUS_SOURCE.search(description):
        return True
    return False


def filter_clickbait_and_low_quality(items: Sequence[Any]) -> FilterOutcome:
    """
    Reject sensational titles and thin or speculative articles.

    An item matching both checks is counted once, as clickbait.
    """
    passed: list[Any] = []
    filtered: list[Any] = []
    stats = {
        "total": len(items),
        "passed": 0,
        "filtered": 0,
        "clickbait": 0,
        "low_quality": 0,
    }

    for item in items:
        title = getattr(item, "title", None)
        description = getattr(item, "description", None)

        if is_clickbait(title):
            stats["clickbait"] += 1
        elif is_low_quality(title, description):
            stats["low_quality"] += 1
        else:
            passed.append(item)
            stats["passed"] += 1
            continue

        filtered.append(item)
        stats["filtered"] += 1

    return FilterOutcome(passed=passed, filtered=filtered, stats=stats)
