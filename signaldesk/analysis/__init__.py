"""Sentiment, structuring and multi-agent investment analysis."""

from signaldesk.analysis.data_collector import SmartDataCollector
from signaldesk.analysis.debate import calculate_consensus, run_debate
from signaldesk.analysis.market_data import MarketDataProvider
from signaldesk.analysis.orchestrator import AnalysisOrchestrator, AnalysisRunSummary
from signaldesk.analysis.schemas import (
    AgentDomain,
    AgentOpinion,
    AgentOpinions,
    AnalysisRecord,
    DebateResult,
    Recommendation,
    SynthesisResult,
)
from signaldesk.analysis.sentiment import batch_analyze_sentiment
from signaldesk.analysis.structurer import structure_news_content
from signaldesk.analysis.synthesis import choose_model, run_synthesis


__all__ = [
    "AgentDomain",
    "AgentOpinion",
    "AgentOpinions",
    "AnalysisOrchestrator",
    "AnalysisRecord",
    "AnalysisRunSummary",
    "DebateResult",
    "MarketDataProvider",
    "Recommendation",
    "SmartDataCollector",
    "SynthesisResult",
    "batch_analyze_sentiment",
    "calculate_consensus",
    "choose_model",
    "run_debate",
    "run_synthesis",
    "structure_news_content",
]
