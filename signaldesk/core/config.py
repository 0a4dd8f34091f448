"""Application settings with Pydantic validation and environment loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    debug: bool = Field(default=False, description="Enable debug mode")

    # Database
    database_url: str = Field(
        default="",
        description="PostgreSQL connection URL",
    )
    db_pool_min_size: int = Field(default=5, ge=1, le=20)
    db_pool_max_size: int = Field(default=20, ge=5, le=100)

    # External credentials
    openai_api_key: str = Field(default="", description="OpenAI API key")
    naver_client_id: str = Field(default="", description="Naver search API client id")
    naver_client_secret: str = Field(
        default="", description="Naver search API client secret"
    )

    # LLM models
    default_model: str = Field(default="gpt-4o-mini")
    premium_model: str = Field(default="gpt-4o")
    premium_model_ratio: float = Field(
        default=0.2, ge=0.0, le=1.0, description="Share of synthesis runs on premium model"
    )

    # News pipeline
    news_display: int = Field(default=50, ge=1, le=100, description="Items per search call")
    news_fetch_limit: int = Field(
        default=1000, ge=1, le=1000, description="Max unfiltered items per filtering run"
    )
    dedup_threshold: float = Field(default=0.8, gt=0.0, le=1.0)
    enrichment_fetch_limit: int = Field(default=100, ge=1)
    enrichment_delay: float = Field(default=2.0, ge=0.0)
    crawl_timeout: float = Field(default=10.0, gt=0.0, le=120.0)

    # Sentiment
    sentiment_batch_size: int = Field(default=50, ge=1, le=200)
    sentiment_batch_delay: float = Field(default=1.0, ge=0.0)
    sentiment_fetch_limit: int = Field(default=500, ge=1)

    # Analysis
    news_agent_limit: int = Field(default=20, ge=1)

    # Scheduler
    scheduler_enabled: bool = Field(default=True)
    scheduler_timezone: str = Field(default="Asia/Seoul")

    # External API timeouts
    external_api_timeout: int = Field(
        default=30, ge=5, le=120, description="External API timeout in seconds"
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR"
    )
    log_format: str = Field(default="json", description="Log format: json or text")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower = v.lower()
        if lower not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return lower

    def require(self, *names: str) -> None:
        """Raise ConfigurationError if any of the named settings is empty."""
        missing = [name for name in names if not getattr(self, name, None)]
        if missing:
            env_names = ", ".join(name.upper() for name in missing)
            raise ConfigurationError(
                f"Missing required configuration: {env_names}",
                details={"missing": missing},
            )


@lru_cache
def get_settings() -> Settings:
    """Cached settings factory."""
    return Settings()


settings = get_settings()
