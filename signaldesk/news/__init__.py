"""News ingestion, filtering and enrichment."""

from signaldesk.news.crawler import crawl_news_content
from signaldesk.news.dedup import remove_duplicates
from signaldesk.news.importance import (
    classify_importance,
    get_time_period,
    select_for_enrichment,
)
from signaldesk.news.pipeline import FilteringRun, run_filtering_pipeline
from signaldesk.news.quality import filter_clickbait_and_low_quality
from signaldesk.news.schemas import (
    CrawledContent,
    FilteringStatsRecord,
    ImportanceLabel,
    Instrument,
    NewsItem,
    SentimentAnnotation,
    SourceTier,
    StructuredNews,
    TimePeriod,
)
from signaldesk.news.search import NaverNewsClient
from signaldesk.news.sources import filter_by_source, get_source_tier


__all__ = [
    "CrawledContent",
    "FilteringRun",
    "FilteringStatsRecord",
    "ImportanceLabel",
    "Instrument",
    "NaverNewsClient",
    "NewsItem",
    "SentimentAnnotation",
    "SourceTier",
    "StructuredNews",
    "TimePeriod",
    "classify_importance",
    "crawl_news_content",
    "filter_by_source",
    "filter_clickbait_and_low_quality",
    "get_source_tier",
    "get_time_period",
    "remove_duplicates",
    "run_filtering_pipeline",
    "select_for_enrichment",
]
