"""Domain opinion agents."""

from typing import Optional

from signaldesk.analysis.agents.base import (
    OpinionAgentBase,
    clamp_confidence,
    parse_opinion,
)
from signaldesk.analysis.agents.fundamental import FundamentalAgent
from signaldesk.analysis.agents.macro import MacroAgent
from signaldesk.analysis.agents.news import NewsAgent
from signaldesk.analysis.agents.risk import RiskAgent
from signaldesk.analysis.agents.technical import TechnicalAgent
from signaldesk.llm.gateway import LLMGatewayProtocol


def get_opinion_agents(
    gateway: Optional[LLMGatewayProtocol] = None,
    news_limit: int = 20,
) -> list[OpinionAgentBase]:
    """The five agents in reporting order."""
    return [
        FundamentalAgent(gateway),
        TechnicalAgent(gateway),
        NewsAgent(gateway, news_limit=news_limit),
        MacroAgent(gateway),
        RiskAgent(gateway),
    ]


__all__ = [
    "FundamentalAgent",
    "MacroAgent",
    "NewsAgent",
    "OpinionAgentBase",
    "RiskAgent",
    "TechnicalAgent",
    "clamp_confidence",
    "get_opinion_agents",
    "parse_opinion",
]
