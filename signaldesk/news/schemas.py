"""
Pydantic schemas for the news pipeline.

Items are created on ingestion and annotated in place by the filtering,
importance, enrichment and sentiment stages.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================


class SourceTier(str, Enum):
    """Trust tier of a news source (1 = most trusted)."""

    TIER1 = "1"
    TIER2 = "2"
    TIER3 = "3"
    EXCLUDED = "excluded"
    UNKNOWN = "unknown"


class ImportanceLabel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TimePeriod(str, Enum):
    """Partition of the trading day controlling enrichment quotas."""

    PEAK = "peak"
    ACTIVE = "active"
    OFF = "off"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Impact(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Market(str, Enum):
    KOSPI = "KOSPI"
    KOSDAQ = "KOSDAQ"


# =============================================================================
# Entities
# =============================================================================


class Instrument(BaseModel):
    """A tracked listed instrument."""

    id: str
    code: str = Field(..., description="Exchange code, e.g. '005930'")
    name: str
    market: Market = Market.KOSPI
    sector: str | None = None
    is_active: bool = True


class SentimentAnnotation(BaseModel):
    """Per-item sentiment result."""

    sentiment: Sentiment = Sentiment.NEUTRAL
    sentiment_score: float = Field(0.0, ge=-1.0, le=1.0)
    impact: Impact = Impact.MEDIUM
    key_topics: list[str] = Field(default_factory=list, max_length=5)

    @classmethod
    def neutral(cls) -> "SentimentAnnotation":
        """Default used for items the analyzer never answered for."""
        return cls()


class StructuredNews(BaseModel):
    """LLM-structured digest of a crawled article."""

    summary: str
    financial_numbers: list[str] = Field(default_factory=list)
    key_facts: list[str] = Field(default_factory=list)
    future_outlook: str = ""
    impact: Impact = Impact.MEDIUM


class NewsItem(BaseModel):
    """A collected news article plus its pipeline annotations."""

    id: str | None = None
    instrument_id: str
    title: str
    description: str | None = None
    source: str | None = None
    url: str | None = None
    published_at: datetime | None = None
    collected_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Filtering
    filter_score: float | None = Field(None, ge=0.0, le=1.0)
    source_tier: SourceTier | None = None

    # Importance / enrichment
    importance: ImportanceLabel | None = None
    has_full_content: bool = False
    full_content_summary: str | None = None
    financial_numbers: list[str] | None = None
    key_facts: list[str] | None = None
    future_outlook: str | None = None

    # Sentiment
    analyzed: bool = False
    sentiment: Sentiment | None = None
    sentiment_score: float | None = None
    impact: Impact | None = None
    key_topics: list[str] | None = None

    def apply_sentiment(self, result: SentimentAnnotation) -> None:
        """Attach a sentiment result; a second call is a no-op."""
        if self.analyzed:
            return
        self.sentiment = result.sentiment
        self.sentiment_score = result.sentiment_score
        self.impact = result.impact
        self.key_topics = list(result.key_topics)
        self.analyzed = True

    def apply_structured(self, structured: StructuredNews) -> None:
        self.has_full_content = True
        self.full_content_summary = structured.summary
        self.financial_numbers = structured.financial_numbers
        self.key_facts = structured.key_facts
        self.future_outlook = structured.future_outlook


# =============================================================================
# Stage outputs
# =============================================================================


T = TypeVar("T")


class FilterOutcome(BaseModel, Generic[T]):
    """Result of one filtering stage; ``filtered`` keeps rejected items for audit."""

    passed: list[T]
    filtered: list[T]
    stats: dict[str, Any]


class DedupOutcome(BaseModel, Generic[T]):
    unique: list[T]
    duplicates: list[T]
    stats: dict[str, Any]


class FilteringStatsRecord(BaseModel):
    """Aggregate counts for one filtering run of one instrument."""

    instrument_id: str
    time_period: TimePeriod
    raw_count: int
    after_source_filter: int
    after_dedup: int
    after_quality_filter: int
    final_count: int
    high_importance_count: int = 0
    filter_rate: float = Field(..., ge=0.0, le=100.0)
    avg_similarity: float = Field(..., ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class CrawledContent(BaseModel):
    """Article fetch result; failures are values, not exceptions."""

    success: bool
    title: str = ""
    content: str = ""
    error: str | None = None


class SearchResultItem(BaseModel):
    """One item of a news search page."""

    title: str
    description: str | None = None
    link: str
    original_link: str | None = None
    published_at: datetime | None = None
