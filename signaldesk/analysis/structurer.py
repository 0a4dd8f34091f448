"""
Article structuring.

Turns crawled article text into a short digest. Only the digest is stored;
the article body itself is never persisted.
"""

from __future__ import annotations

from signaldesk.core.exceptions import StructuringError
from signaldesk.core.logging import get_logger
from signaldesk.llm.gateway import LLMGatewayProtocol, get_gateway
from signaldesk.llm.schemas import LLMTask
from signaldesk.news.schemas import Impact, StructuredNews


logger = get_logger("analysis.structurer")

MAX_CONTENT_CHARS = 3000

SYSTEM_PROMPT = (
    "You are a financial news analyst. Extract key information from news "
    "articles and structure it as JSON. Never reproduce the original text verbatim."
)


def build_structuring_prompt(content: str, title: str | None = None) -> str:
    header = f"제목: {title}\n\n" if title else ""
    return f"""다음 뉴스의 핵심만 추출하세요. 원문을 재생산하지 말고 요약과 구조화된 정보만 제공하세요.

{header}본문:
{content[:MAX_CONTENT_CHARS]}

다음 JSON 형식으로 응답하세요:
{{
  "summary": "핵심 요약 (200자 이내)",
  "financialNumbers": ["재무 숫자"],
  "keyFacts": ["핵심 팩트"],
  "futureOutlook": "향후 전망 (100자 이내)",
  "impact": "high" | "medium" | "low"
}}"""


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


async def structure_news_content(
    content: str,
    title: str | None = None,
    gateway: LLMGatewayProtocol | None = None,
) -> StructuredNews:
    """
    Structure an article body into a StructuredNews digest.

    Raises:
        StructuringError: call failed, or summary/impact missing
    """
    gateway = gateway or get_gateway()
    task = LLMTask(
        custom_id="structure:article",
        agent_id="structurer",
        prompt=build_structuring_prompt(content, title),
        system_prompt=SYSTEM_PROMPT,
        temperature=0.3,
    )
    result = await gateway.run_realtime(task)

    if result.failed:
        raise StructuringError(f"Structuring failed: {result.error}")

    parsed = result.parsed_json
    if not isinstance(parsed, dict):
        raise StructuringError("Structuring failed: response is not a JSON object")

    summary = parsed.get("summary")
    impact = parsed.get("impact")
    if not summary or not impact:
        raise StructuringError(
            "Structuring failed: required field missing",
            details={"summary": bool(summary), "impact": bool(impact)},
        )

    try:
        impact = Impact(impact)
    except ValueError:
        impact = Impact.MEDIUM

    return StructuredNews(
        summary=str(summary),
        financial_numbers=_string_list(parsed.get("financialNumbers")),
        key_facts=_string_list(parsed.get("keyFacts")),
        future_outlook=str(parsed.get("futureOutlook") or ""),
        impact=impact,
    )
