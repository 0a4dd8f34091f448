"""Database module: SQLAlchemy async engine, sessions and ORM models."""

from .connection import (
    close_database,
    get_async_database_url,
    get_session,
    init_sqlalchemy_engine,
)
from .orm import (
    Base,
    FilteringStats,
    Instrument,
    InvestmentOpinion,
    NewsArticle,
)


__all__ = [
    "Base",
    "FilteringStats",
    "Instrument",
    "InvestmentOpinion",
    "NewsArticle",
    "close_database",
    "get_async_database_url",
    "get_session",
    "init_sqlalchemy_engine",
]
