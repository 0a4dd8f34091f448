"""
Final synthesis of the five opinions and the debate outcome.

The synthesis model is drawn per run: the default model most of the time,
the premium model for the remaining share.
"""

from __future__ import annotations

import math
import random
from typing import Any, Callable, Optional

from signaldesk.analysis.debate import format_opinions
from signaldesk.analysis.schemas import (
    AgentOpinions,
    DebateResult,
    Recommendation,
    SynthesisResult,
)
from signaldesk.core.config import settings
from signaldesk.core.logging import get_logger
from signaldesk.llm.gateway import LLMGatewayProtocol, get_gateway
from signaldesk.llm.schemas import LLMTask


logger = get_logger("analysis.synthesis")

DEFAULT_MODEL = "gpt-4o-mini"
PREMIUM_MODEL = "gpt-4o"
DEFAULT_MODEL_SHARE = 0.8

FALLBACK_CONFIDENCE = 50.0
FALLBACK_STRATEGY = "분석 중 오류 발생"
DEFAULT_STRATEGY = "종합 분석 완료"
MAX_ITEMS = 5
# Width of investment_opinions.time_horizon
MAX_TIME_HORIZON_CHARS = 20

SYSTEM_PROMPT = (
    "You are a senior investment advisor synthesizing multiple expert opinions "
    "into a final investment recommendation. Provide clear reasoning, target "
    "price, stop loss, and risk factors."
)


def choose_model(
    random_value: float,
    default_model: str = DEFAULT_MODEL,
    premium_model: str = PREMIUM_MODEL,
    default_share: float = DEFAULT_MODEL_SHARE,
) -> str:
    """``random_value < default_share`` picks the default model."""
    return default_model if random_value < default_share else premium_model


def build_synthesis_prompt(
    name: str, code: str, opinions: AgentOpinions, debate: DebateResult
) -> str:
    debate_block = ""
    if debate.had_debate:
        debate_block = (
            f"\n[토론 결과]\n합의도: {debate.consensus_level}%\n"
            f"요약: {debate.debate_summary or ''}\n"
        )

    return f"""다음 5명의 투자 전문가가 {name} ({code}) 종목에 대해 분석한 결과를 종합하여 최종 투자 의견을 제시하세요.

{format_opinions(opinions)}
{debate_block}
다음 JSON 형식으로 응답하세요:
{{
  "finalRecommendation": "buy" | "sell" | "hold",
  "finalConfidence": 0-100,
  "targetPrice": 숫자 (선택),
  "stopLoss": 숫자 (선택),
  "timeHorizon": "단기" | "중기" | "장기" (선택),
  "strategy": "투자 전략 (200자 이내)",
  "keyReasons": ["주요 이유1", "주요 이유2", "주요 이유3"],
  "risks": ["리스크 요소1", "리스크 요소2"]
}}"""


def _optional_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value][:MAX_ITEMS]


def fallback_synthesis(model: str) -> SynthesisResult:
    return SynthesisResult(
        final_recommendation=Recommendation.HOLD,
        final_confidence=FALLBACK_CONFIDENCE,
        strategy=FALLBACK_STRATEGY,
        key_reasons=[],
        risks=[],
        synthesis_model=model,
    )


def parse_synthesis(parsed: Any, model: str) -> SynthesisResult:
    """
    Validate a raw synthesis answer.

    Raises:
        ValueError: payload is not an object or recommendation is invalid
    """
    if not isinstance(parsed, dict):
        raise ValueError("Synthesis payload is not a JSON object")

    try:
        recommendation = Recommendation(parsed.get("finalRecommendation"))
    except ValueError:
        raise ValueError(
            f"Invalid finalRecommendation: {parsed.get('finalRecommendation')!r}"
        ) from None

    confidence = _optional_number(parsed.get("finalConfidence"))
    time_horizon = parsed.get("timeHorizon")

    return SynthesisResult(
        final_recommendation=recommendation,
        final_confidence=(
            max(0.0, min(100.0, confidence)) if confidence is not None else FALLBACK_CONFIDENCE
        ),
        target_price=_optional_number(parsed.get("targetPrice")),
        stop_loss=_optional_number(parsed.get("stopLoss")),
        time_horizon=str(time_horizon)[:MAX_TIME_HORIZON_CHARS] if time_horizon else None,
        strategy=str(parsed.get("strategy") or DEFAULT_STRATEGY),
        key_reasons=_string_list(parsed.get("keyReasons")),
        risks=_string_list(parsed.get("risks")),
        synthesis_model=model,
    )


async def run_synthesis(
    name: str,
    code: str,
    opinions: AgentOpinions,
    debate: DebateResult,
    gateway: Optional[LLMGatewayProtocol] = None,
    rng: Callable[[], float] = random.random,
) -> SynthesisResult:
    """Produce the final recommendation; any failure yields the hold fallback."""
    model = choose_model(
        rng(),
        default_model=settings.default_model,
        premium_model=settings.premium_model,
        default_share=1.0 - settings.premium_model_ratio,
    )

    gateway = gateway or get_gateway()
    task = LLMTask(
        custom_id=f"synthesis:{code}",
        agent_id="synthesis",
        symbol=code,
        prompt=build_synthesis_prompt(name, code, opinions, debate),
        system_prompt=SYSTEM_PROMPT,
        model=model,
        temperature=0.3,
    )

    try:
        result = await gateway.run_realtime(task)
        if result.failed:
            raise RuntimeError(result.error or "LLM call failed")
        return parse_synthesis(result.parsed_json, model)
    except Exception as e:
        logger.error(f"Synthesis failed for {name} ({code}): {e}")
        return fallback_synthesis(model)
