"""
Base classes for the domain opinion agents.

Each agent gathers its slice of data from the collector, asks the LLM for a
buy/sell/hold verdict, and validates the answer. An agent never raises: any
failure degrades to ``hold / 30 / [fallback_reason]``.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel

from signaldesk.analysis.schemas import AgentDomain, AgentOpinion, Recommendation
from signaldesk.core.logging import get_logger
from signaldesk.llm.gateway import LLMGatewayProtocol, get_gateway
from signaldesk.llm.schemas import LLMTask
from signaldesk.news.schemas import Instrument


logger = get_logger("analysis.agents")

FALLBACK_CONFIDENCE = 30.0
DEFAULT_CONFIDENCE = 50.0
MAX_REASONS = 5

OPINION_JSON_FORMAT = """다음 JSON 형식으로 응답하세요:
{
  "recommendation": "buy" | "sell" | "hold",
  "confidence": 0-100,
  "reasoning": ["이유1", "이유2", "이유3"],
  "evaluation": "종합 평가 (100자 이내)"
}"""


def clamp_confidence(value: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    """Clamp to [0, 100]; non-numeric or missing values become ``default``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return max(0.0, min(100.0, float(value)))


def parse_opinion(parsed: Any) -> AgentOpinion:
    """
    Validate a raw LLM answer into an AgentOpinion.

    Raises:
        ValueError: payload is not an object or recommendation is invalid
    """
    if not isinstance(parsed, dict):
        raise ValueError("Opinion payload is not a JSON object")

    try:
        recommendation = Recommendation(parsed.get("recommendation"))
    except ValueError:
        raise ValueError(f"Invalid recommendation: {parsed.get('recommendation')!r}") from None

    reasoning = parsed.get("reasoning")
    if isinstance(reasoning, list):
        reasons = [str(r) for r in reasoning]
    elif reasoning:
        reasons = [str(reasoning)]
    else:
        reasons = ["분석 완료"]

    return AgentOpinion(
        recommendation=recommendation,
        confidence=clamp_confidence(parsed.get("confidence")),
        reasoning=reasons[:MAX_REASONS],
    )


def describe(label: str, value: Optional[float], unit: str = "", digits: int = 2) -> str:
    """Prompt line for one metric, '데이터 없음' when missing."""
    if value is None:
        return f"- {label}: 데이터 없음"
    if abs(value) >= 1000:
        return f"- {label}: {value:,.0f}{unit}"
    return f"- {label}: {round(value, digits)}{unit}"


class OpinionAgentBase(ABC):
    """Shared flow for the five LLM-backed domain agents."""

    domain: AgentDomain
    agent_name: str
    system_prompt: str
    fallback_reason: str
    temperature: float = 0.3

    def __init__(self, gateway: Optional[LLMGatewayProtocol] = None, model: str | None = None):
        self._llm_gateway = gateway
        self.model = model

    @property
    def agent_id(self) -> str:
        return self.domain.value

    def set_llm_gateway(self, gateway: LLMGatewayProtocol) -> None:
        self._llm_gateway = gateway

    @property
    def gateway(self) -> LLMGatewayProtocol:
        return self._llm_gateway or get_gateway()

    @abstractmethod
    async def collect(self, instrument: Instrument, collector: Any) -> BaseModel:
        """Fetch the data this agent reasons over."""

    @abstractmethod
    def build_prompt(self, instrument: Instrument, data: BaseModel) -> str:
        """Build the analysis prompt for the LLM."""

    def fallback(self) -> AgentOpinion:
        return AgentOpinion(
            recommendation=Recommendation.HOLD,
            confidence=FALLBACK_CONFIDENCE,
            reasoning=[self.fallback_reason],
        )

    def create_llm_task(self, instrument: Instrument, data: BaseModel) -> LLMTask:
        return LLMTask(
            custom_id=f"opinion:{instrument.code}:{self.agent_id}",
            agent_id=self.agent_id,
            symbol=instrument.code,
            prompt=self.build_prompt(instrument, data),
            system_prompt=self.system_prompt,
            model=self.model,
            temperature=self.temperature,
        )

    async def run(self, instrument: Instrument, collector: Any) -> AgentOpinion:
        """Produce this domain's opinion; failures return the fallback."""
        try:
            data = await self.collect(instrument, collector)
            result = await self.gateway.run_realtime(self.create_llm_task(instrument, data))
            if result.failed:
                raise RuntimeError(result.error or "LLM call failed")
            return parse_opinion(result.parsed_json)
        except Exception as e:
            logger.error(f"{self.agent_name} failed for {instrument.name} ({instrument.code}): {e}")
            return self.fallback()
