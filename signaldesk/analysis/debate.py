"""
Consensus measurement and the debate round.

Consensus is the share of agents holding the majority recommendation. When
it falls below the debate threshold, an LLM moderator reconciles the five
opinions and reports a revised consensus level.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Optional

from signaldesk.analysis.schemas import AgentOpinions, DebateResult, Recommendation
from signaldesk.core.logging import get_logger
from signaldesk.llm.gateway import LLMGatewayProtocol, get_gateway
from signaldesk.llm.schemas import LLMTask


logger = get_logger("analysis.debate")

DEBATE_THRESHOLD = 70
NO_WEIGHT_CONSENSUS = 50
DEBATE_DONE_SUMMARY = "토론 완료"
DEBATE_ERROR_SUMMARY = "토론 중 오류 발생"

SIGNED_SCORES = {
    Recommendation.BUY: 1,
    Recommendation.HOLD: 0,
    Recommendation.SELL: -1,
}

SYSTEM_PROMPT = (
    "You are a moderator facilitating a debate among investment experts. "
    "Help them reach consensus by synthesizing their different viewpoints."
)


def weighted_score(opinions: AgentOpinions) -> Optional[float]:
    """Confidence-weighted mean of signed scores, or None with zero total weight."""
    pairs = [(SIGNED_SCORES[o.recommendation], o.confidence) for _, o in opinions.items()]
    total_weight = sum(weight for _, weight in pairs)
    if total_weight == 0:
        return None
    return sum(score * weight for score, weight in pairs) / total_weight


def calculate_consensus(opinions: AgentOpinions) -> int:
    """
    Consensus level 0-100.

    ``round(majority_count / 5 * 100)``; 50 when every confidence is zero.
    The weighted score is computed but does not change the level.
    """
    if weighted_score(opinions) is None:
        return NO_WEIGHT_CONSENSUS

    recommendations = [o.recommendation for _, o in opinions.items()]
    majority = max(Counter(recommendations).values())
    return round(majority / len(recommendations) * 100)


def format_opinions(opinions: AgentOpinions) -> str:
    blocks = []
    for domain, opinion in opinions.items():
        blocks.append(
            f"[{domain.value.capitalize()} Agent]\n"
            f"의견: {opinion.recommendation.value}\n"
            f"신뢰도: {opinion.confidence:g}%\n"
            f"근거: {', '.join(opinion.reasoning)}"
        )
    return "\n\n".join(blocks)


def build_debate_prompt(opinions: AgentOpinions, consensus_level: int) -> str:
    return f"""다음 5명의 투자 전문가가 종목에 대해 서로 다른 의견을 가지고 있습니다. 이들의 의견을 조율하여 합의점을 찾아주세요.

{format_opinions(opinions)}

현재 합의도: {consensus_level}%

다음 JSON 형식으로 응답하세요:
{{
  "consensusLevel": 0-100,
  "debateSummary": "토론 요약 (200자 이내)",
  "changedAgents": ["의견이 변경된 Agent 이름들"]
}}"""


def _clamp_level(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return int(round(max(0.0, min(100.0, float(value)))))


async def run_debate(
    opinions: AgentOpinions,
    gateway: Optional[LLMGatewayProtocol] = None,
    threshold: int = DEBATE_THRESHOLD,
) -> DebateResult:
    """Skip the debate at or above ``threshold``; otherwise moderate one round."""
    consensus_level = calculate_consensus(opinions)

    if consensus_level >= threshold:
        return DebateResult(had_debate=False, consensus_level=consensus_level)

    logger.info(f"Consensus {consensus_level}% below {threshold}%, running debate")

    gateway = gateway or get_gateway()
    task = LLMTask(
        custom_id="debate:round",
        agent_id="debate",
        prompt=build_debate_prompt(opinions, consensus_level),
        system_prompt=SYSTEM_PROMPT,
        temperature=0.5,
    )

    try:
        result = await gateway.run_realtime(task)
        if result.failed:
            raise RuntimeError(result.error or "LLM call failed")
        parsed = result.parsed_json
        if not isinstance(parsed, dict):
            raise ValueError("Debate payload is not a JSON object")
    except Exception as e:
        logger.error(f"Debate failed: {e}")
        return DebateResult(
            had_debate=True,
            consensus_level=consensus_level,
            debate_summary=DEBATE_ERROR_SUMMARY,
        )

    changed = parsed.get("changedAgents")
    return DebateResult(
        had_debate=True,
        consensus_level=_clamp_level(parsed.get("consensusLevel"), consensus_level),
        debate_summary=str(parsed.get("debateSummary") or DEBATE_DONE_SUMMARY),
        changed_agents=[str(a) for a in changed] if isinstance(changed, list) else [],
    )
