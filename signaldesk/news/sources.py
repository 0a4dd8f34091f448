"""
Press allow-list and the source trust filter.

Sources are matched by the press name attached at ingestion. The news
search API only returns links, so ``resolve_source`` maps publisher hosts
to the same names.
"""

from __future__ import annotations

from typing import Any, Sequence
from urllib.parse import urlparse

from signaldesk.news.schemas import FilterOutcome, SourceTier


TRUSTED_SOURCES: dict[SourceTier, tuple[str, ...]] = {
    SourceTier.TIER1: (
        "연합뉴스",
        "한국경제",
        "매일경제",
        "서울경제",
        "머니투데이",
        "이데일리",
        "조선비즈",
        "연합인포맥스",
    ),
    SourceTier.TIER2: (
        "조선일보",
        "중앙일보",
        "동아일보",
        "한겨레",
        "경향신문",
        "한국일보",
        "파이낸셜뉴스",
        "헤럴드경제",
        "아시아경제",
        "뉴스1",
        "뉴시스",
        "KBS",
        "MBC",
        "SBS",
        "YTN",
    ),
    SourceTier.TIER3: (
        "전자신문",
        "디지털타임스",
        "아이뉴스24",
        "ZDNet Korea",
        "비즈니스포스트",
        "더벨",
        "머니S",
        "뉴스핌",
        "이투데이",
        "한국경제TV",
        "SBS Biz",
    ),
}

EXCLUDED_SOURCES: tuple[str, ...] = (
    "인사이트",
    "위키트리",
    "스포츠조선",
    "스포츠서울",
    "일간스포츠",
    "OSEN",
    "톱스타뉴스",
)

# Publisher host -> press name
SOURCE_DOMAINS: dict[str, str] = {
    "yna.co.kr": "연합뉴스",
    "hankyung.com": "한국경제",
    "mk.co.kr": "매일경제",
    "sedaily.com": "서울경제",
    "mt.co.kr": "머니투데이",
    "edaily.co.kr": "이데일리",
    "biz.chosun.com": "조선비즈",
    "news.einfomax.co.kr": "연합인포맥스",
    "chosun.com": "조선일보",
    "joongang.co.kr": "중앙일보",
    "donga.com": "동아일보",
    "hani.co.kr": "한겨레",
    "khan.co.kr": "경향신문",
    "hankookilbo.com": "한국일보",
    "fnnews.com": "파이낸셜뉴스",
    "heraldcorp.com": "헤럴드경제",
    "asiae.co.kr": "아시아경제",
    "news1.kr": "뉴스1",
    "newsis.com": "뉴시스",
    "news.kbs.co.kr": "KBS",
    "imnews.imbc.com": "MBC",
    "news.sbs.co.kr": "SBS",
    "ytn.co.kr": "YTN",
    "etnews.com": "전자신문",
    "dt.co.kr": "디지털타임스",
    "inews24.com": "아이뉴스24",
    "zdnet.co.kr": "ZDNet Korea",
    "businesspost.co.kr": "비즈니스포스트",
    "thebell.co.kr": "더벨",
    "moneys.co.kr": "머니S",
    "newspim.com": "뉴스핌",
    "etoday.co.kr": "이투데이",
    "wowtv.co.kr": "한국경제TV",
    "biz.sbs.co.kr": "SBS Biz",
    "insight.co.kr": "인사이트",
    "wikitree.co.kr": "위키트리",
    "sports.chosun.com": "스포츠조선",
    "sportsseoul.com": "스포츠서울",
    "isplus.com": "일간스포츠",
    "osen.co.kr": "OSEN",
    "topstarnews.net": "톱스타뉴스",
}


def resolve_source(url: str | None) -> str | None:
    """Map a publisher URL to its press name, most specific host suffix first."""
    if not url:
        return None
    host = (urlparse(url).hostname or "").lower().removeprefix("www.")
    if not host:
        return None

    labels = host.split(".")
    for i in range(len(labels) - 1):
        candidate = ".".join(labels[i:])
        if candidate in SOURCE_DOMAINS:
            return SOURCE_DOMAINS[candidate]
    return None


def get_source_tier(source_name: str | None) -> SourceTier:
    """Classify a source name; the lowest numeric tier wins on overlap."""
    if not source_name:
        return SourceTier.UNKNOWN
    if source_name in EXCLUDED_SOURCES:
        return SourceTier.EXCLUDED
    for tier in (SourceTier.TIER1, SourceTier.TIER2, SourceTier.TIER3):
        if source_name in TRUSTED_SOURCES[tier]:
            return tier
    return SourceTier.UNKNOWN


def filter_by_source(items: Sequence[Any]) -> FilterOutcome:
    """
    Keep only items whose source is on the allow-list and not excluded.

    Each item's ``source_tier`` is annotated. Rejected items are returned in
    ``filtered`` for audit.
    """
    passed: list[Any] = []
    filtered: list[Any] = []
    stats = {
        "total": len(items),
        "passed": 0,
        "filtered": 0,
        "tier1": 0,
        "tier2": 0,
        "tier3": 0,
    }
    tier_counter = {
        SourceTier.TIER1: "tier1",
        SourceTier.TIER2: "tier2",
        SourceTier.TIER3: "tier3",
    }

    for item in items:
        tier = get_source_tier(getattr(item, "source", None))
        if hasattr(item, "source_tier") and getattr(item, "source_tier", None) is None:
            item.source_tier = tier

        if tier in tier_counter:
            passed.append(item)
            stats["passed"] += 1
            stats[tier_counter[tier]] += 1
        else:
            filtered.append(item)
            stats["filtered"] += 1

    return FilterOutcome(passed=passed, filtered=filtered, stats=stats)
