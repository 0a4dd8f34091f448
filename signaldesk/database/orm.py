"""SQLAlchemy ORM models for signaldesk.

Four tables: tracked instruments, collected news articles with their
pipeline annotations, per-run filtering statistics, and append-only
investment opinions.

Usage:
    from signaldesk.database.orm import NewsArticle
    from signaldesk.database.connection import get_session

    async with get_session() as session:
        article = await session.get(NewsArticle, article_id)
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Naming convention for constraints and indexes
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models with naming convention."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Instrument(Base):
    """Listed instruments being tracked."""
    __tablename__ = "instruments"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    market: Mapped[str] = mapped_column(String(10), default="KOSPI")
    sector: Mapped[str | None] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_instruments_active", "is_active"),
    )


class NewsArticle(Base):
    """Collected news article and its filtering/enrichment/sentiment annotations."""
    __tablename__ = "news_articles"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    instrument_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("instruments.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    source: Mapped[str | None] = mapped_column(String(100))
    url: Mapped[str | None] = mapped_column(Text)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    collected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Filtering (0.0 marks an item rejected by the pipeline)
    filter_score: Mapped[float | None] = mapped_column(Float)
    source_tier: Mapped[str | None] = mapped_column(String(10))

    # Enrichment
    importance: Mapped[str | None] = mapped_column(String(10))
    has_full_content: Mapped[bool] = mapped_column(Boolean, default=False)
    full_content_summary: Mapped[str | None] = mapped_column(Text)
    financial_numbers: Mapped[list | None] = mapped_column(JSONB)
    key_facts: Mapped[list | None] = mapped_column(JSONB)
    future_outlook: Mapped[str | None] = mapped_column(Text)

    # Sentiment
    analyzed: Mapped[bool] = mapped_column(Boolean, default=False)
    sentiment: Mapped[str | None] = mapped_column(String(10))
    sentiment_score: Mapped[float | None] = mapped_column(Float)
    impact: Mapped[str | None] = mapped_column(String(10))
    key_topics: Mapped[list | None] = mapped_column(JSONB)
    analysis_version: Mapped[str | None] = mapped_column(String(10))

    __table_args__ = (
        UniqueConstraint("instrument_id", "url", name="uq_news_articles_instrument_url"),
        Index("idx_news_articles_instrument_collected", "instrument_id", "collected_at"),
        Index("idx_news_articles_unfiltered", "instrument_id", "filter_score"),
        Index("idx_news_articles_analyzed", "analyzed"),
    )


class FilteringStats(Base):
    """Aggregate counts for one filtering run of one instrument."""
    __tablename__ = "filtering_stats"

    id: Mapped[int] = mapped_column(primary_key=True)
    instrument_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("instruments.id", ondelete="CASCADE"), nullable=False
    )
    time_period: Mapped[str] = mapped_column(String(10), nullable=False)
    raw_count: Mapped[int] = mapped_column(Integer, nullable=False)
    after_source_filter: Mapped[int] = mapped_column(Integer, nullable=False)
    after_dedup: Mapped[int] = mapped_column(Integer, nullable=False)
    after_quality_filter: Mapped[int] = mapped_column(Integer, nullable=False)
    final_count: Mapped[int] = mapped_column(Integer, nullable=False)
    high_importance_count: Mapped[int] = mapped_column(Integer, default=0)
    filter_rate: Mapped[float] = mapped_column(Numeric(5, 2), nullable=False)
    avg_similarity: Mapped[float] = mapped_column(Numeric(4, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_filtering_stats_instrument_created", "instrument_id", "created_at"),
    )


class InvestmentOpinion(Base):
    """Append-only multi-agent investment opinion."""
    __tablename__ = "investment_opinions"

    id: Mapped[int] = mapped_column(primary_key=True)
    instrument_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("instruments.id", ondelete="CASCADE"), nullable=False
    )

    fundamental_rec: Mapped[str] = mapped_column(String(10), nullable=False)
    fundamental_confidence: Mapped[float] = mapped_column(Float, nullable=False)
    fundamental_reasoning: Mapped[list] = mapped_column(JSONB, default=list)
    technical_rec: Mapped[str] = mapped_column(String(10), nullable=False)
    technical_confidence: Mapped[float] = mapped_column(Float, nullable=False)
    technical_reasoning: Mapped[list] = mapped_column(JSONB, default=list)
    news_rec: Mapped[str] = mapped_column(String(10), nullable=False)
    news_confidence: Mapped[float] = mapped_column(Float, nullable=False)
    news_reasoning: Mapped[list] = mapped_column(JSONB, default=list)
    macro_rec: Mapped[str] = mapped_column(String(10), nullable=False)
    macro_confidence: Mapped[float] = mapped_column(Float, nullable=False)
    macro_reasoning: Mapped[list] = mapped_column(JSONB, default=list)
    risk_rec: Mapped[str] = mapped_column(String(10), nullable=False)
    risk_confidence: Mapped[float] = mapped_column(Float, nullable=False)
    risk_reasoning: Mapped[list] = mapped_column(JSONB, default=list)

    had_debate: Mapped[bool] = mapped_column(Boolean, default=False)
    debate_summary: Mapped[str | None] = mapped_column(Text)
    consensus_level: Mapped[int] = mapped_column(Integer, nullable=False)
    changed_agents: Mapped[list | None] = mapped_column(JSONB)

    final_rec: Mapped[str] = mapped_column(String(10), nullable=False)
    final_confidence: Mapped[float] = mapped_column(Float, nullable=False)
    target_price: Mapped[float | None] = mapped_column(Float)
    stop_loss: Mapped[float | None] = mapped_column(Float)
    time_horizon: Mapped[str | None] = mapped_column(String(20))
    strategy: Mapped[str] = mapped_column(Text, nullable=False)
    key_reasons: Mapped[list] = mapped_column(JSONB, default=list)
    risks: Mapped[list] = mapped_column(JSONB, default=list)

    analysis_type: Mapped[str] = mapped_column(String(20), default="full")
    synthesis_model: Mapped[str] = mapped_column(String(50), nullable=False)
    generation_time_ms: Mapped[int] = mapped_column(Integer, default=0)
    used_cache: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_investment_opinions_instrument_created", "instrument_id", "created_at"),
    )
