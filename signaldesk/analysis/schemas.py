"""
Pydantic schemas for the multi-agent analysis module.

Data snapshots fed to agents, agent opinions, debate and synthesis
outcomes, and the persisted analysis record.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from signaldesk.news.schemas import Impact, Sentiment


# =============================================================================
# Enums
# =============================================================================


class Recommendation(str, Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class AgentDomain(str, Enum):
    """The five opinion domains, in reporting order."""

    FUNDAMENTAL = "fundamental"
    TECHNICAL = "technical"
    NEWS = "news"
    MACRO = "macro"
    RISK = "risk"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# Data Snapshots
# =============================================================================


class FinancialData(BaseModel):
    """Valuation and statement figures. Ratios in percent where noted."""

    per: float | None = None
    pbr: float | None = None
    roe: float | None = Field(None, description="Return on equity, %")
    debt_ratio: float | None = Field(None, description="Debt / equity, %")
    current_ratio: float | None = Field(None, description="Current assets / liabilities, %")
    revenue: float | None = None
    operating_profit: float | None = None
    net_profit: float | None = None


class TechnicalData(BaseModel):
    price: float | None = None
    ma5: float | None = None
    ma20: float | None = None
    ma60: float | None = None
    rsi: float | None = None
    macd: float | None = None
    volume: int | None = None


class NewsDigest(BaseModel):
    """One analysed article as seen by the news agent."""

    title: str
    sentiment: Sentiment
    sentiment_score: float = 0.0
    impact: Impact = Impact.MEDIUM
    published_at: datetime | None = None


class NewsData(BaseModel):
    recent_news: list[NewsDigest] = Field(default_factory=list)
    sentiment_trend: dict[str, int] = Field(
        default_factory=lambda: {"positive": 0, "negative": 0, "neutral": 0}
    )


class MacroData(BaseModel):
    kospi: float | None = None
    kosdaq: float | None = None
    usd_krw: float | None = None


class RiskData(BaseModel):
    volatility: float | None = Field(None, description="Annualised volatility, %")
    beta: float | None = None
    max_drawdown: float | None = Field(None, description="Max drawdown, %")
    risk_level: RiskLevel = RiskLevel.MEDIUM


# =============================================================================
# Opinions
# =============================================================================


class AgentOpinion(BaseModel):
    """One domain agent's verdict."""

    recommendation: Recommendation
    confidence: float = Field(..., ge=0.0, le=100.0)
    reasoning: list[str] = Field(default_factory=list, max_length=5)


class AgentOpinions(BaseModel):
    """The five opinions for one instrument."""

    fundamental: AgentOpinion
    technical: AgentOpinion
    news: AgentOpinion
    macro: AgentOpinion
    risk: AgentOpinion

    def items(self) -> list[tuple[AgentDomain, AgentOpinion]]:
        return [(domain, getattr(self, domain.value)) for domain in AgentDomain]


class DebateResult(BaseModel):
    had_debate: bool
    consensus_level: int = Field(..., ge=0, le=100)
    debate_summary: str | None = None
    changed_agents: list[str] | None = None


class SynthesisResult(BaseModel):
    final_recommendation: Recommendation
    final_confidence: float = Field(..., ge=0.0, le=100.0)
    target_price: float | None = None
    stop_loss: float | None = None
    time_horizon: str | None = None
    strategy: str
    key_reasons: list[str] = Field(default_factory=list, max_length=5)
    risks: list[str] = Field(default_factory=list, max_length=5)
    synthesis_model: str


# =============================================================================
# Persisted Record
# =============================================================================


class AnalysisRecord(BaseModel):
    """One append-only investment opinion for an instrument."""

    instrument_id: str
    opinions: AgentOpinions
    debate: DebateResult
    synthesis: SynthesisResult
    analysis_type: str = "full"
    generation_time_ms: int = 0
    used_cache: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_row(self) -> dict[str, Any]:
        """Flatten into investment_opinions column values."""
        row: dict[str, Any] = {"instrument_id": self.instrument_id}
        for domain, opinion in self.opinions.items():
            row[f"{domain.value}_rec"] = opinion.recommendation.value
            row[f"{domain.value}_confidence"] = opinion.confidence
            row[f"{domain.value}_reasoning"] = list(opinion.reasoning)

        row.update(
            had_debate=self.debate.had_debate,
            debate_summary=self.debate.debate_summary,
            consensus_level=self.debate.consensus_level,
            changed_agents=self.debate.changed_agents,
            final_rec=self.synthesis.final_recommendation.value,
            final_confidence=self.synthesis.final_confidence,
            target_price=self.synthesis.target_price,
            stop_loss=self.synthesis.stop_loss,
            time_horizon=self.synthesis.time_horizon,
            strategy=self.synthesis.strategy,
            key_reasons=list(self.synthesis.key_reasons),
            risks=list(self.synthesis.risks),
            analysis_type=self.analysis_type,
            synthesis_model=self.synthesis.synthesis_model,
            generation_time_ms=self.generation_time_ms,
            used_cache=self.used_cache,
            created_at=self.created_at,
        )
        return row
