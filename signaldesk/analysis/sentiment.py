"""
Batched sentiment analysis.

Items are sent to the LLM in contiguous chunks, each item tagged with its
global index. Responses are matched back by index, so a model that skips or
reorders records cannot shift results onto the wrong article. Anything the
model does not answer for becomes the neutral default.
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Awaitable, Callable, Optional, Sequence

from signaldesk.core.logging import get_logger
from signaldesk.llm.gateway import LLMGatewayProtocol, get_gateway
from signaldesk.llm.schemas import LLMTask
from signaldesk.news.schemas import Impact, Sentiment, SentimentAnnotation


logger = get_logger("analysis.sentiment")

DEFAULT_BATCH_SIZE = 50
DEFAULT_BATCH_DELAY = 1.0
MAX_TOPICS = 5

SYSTEM_PROMPT = (
    "You are a financial news sentiment analyst. Analyze the sentiment of each "
    "news article and return the results as JSON. Be concise and accurate."
)


def chunk(items: Sequence[Any], size: int) -> list[list[Any]]:
    """Split ``items`` into contiguous chunks of at most ``size``."""
    if size <= 0:
        raise ValueError("batch size must be positive")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def normalize_envelope(parsed: Any) -> list[dict]:
    """
    Extract the record list from any of the accepted response shapes.

    - a bare list
    - an object with a ``results`` or ``data`` list
    - an object keyed by index ({"0": {...}, "1": {...}})
    """
    if isinstance(parsed, list):
        records = parsed
    elif isinstance(parsed, dict):
        if isinstance(parsed.get("results"), list):
            records = parsed["results"]
        elif isinstance(parsed.get("data"), list):
            records = parsed["data"]
        else:
            records = list(parsed.values())
    else:
        records = []
    return [record for record in records if isinstance(record, dict)]


def _record_index(record: dict) -> Optional[int]:
    index = record.get("index")
    if isinstance(index, bool):
        return None
    if isinstance(index, int):
        return index
    if isinstance(index, str) and index.strip().lstrip("-").isdigit():
        return int(index)
    return None


def parse_sentiment_record(record: dict) -> SentimentAnnotation:
    """Validate one record, substituting defaults for bad fields."""
    try:
        sentiment = Sentiment(record.get("sentiment"))
    except ValueError:
        sentiment = Sentiment.NEUTRAL

    score = record.get("score", record.get("sentimentScore"))
    if isinstance(score, (int, float)) and not isinstance(score, bool) and math.isfinite(score):
        score = max(-1.0, min(1.0, float(score)))
    else:
        score = 0.0

    try:
        impact = Impact(record.get("impact"))
    except ValueError:
        impact = Impact.MEDIUM

    topics = record.get("keyTopics", record.get("key_topics"))
    if isinstance(topics, list):
        topics = [str(topic) for topic in topics][:MAX_TOPICS]
    else:
        topics = []

    return SentimentAnnotation(
        sentiment=sentiment,
        sentiment_score=score,
        impact=impact,
        key_topics=topics,
    )


def build_sentiment_prompt(batch: Sequence[tuple[int, Any]]) -> str:
    lines = []
    for index, item in batch:
        line = f"[{index}] 제목: {getattr(item, 'title', '')}"
        description = getattr(item, "description", None)
        if description:
            line += f"\n   요약: {description}"
        lines.append(line)
    listing = "\n\n".join(lines)

    return f"""다음 {len(batch)}개 뉴스의 감성을 분석하세요.

뉴스 목록:
{listing}

각 뉴스에 대해:
- sentiment: "positive" | "negative" | "neutral"
- score: -1.0 ~ 1.0 (긍정은 양수, 부정은 음수)
- impact: "high" | "medium" | "low" (주가 영향도)
- keyTopics: 주요 키워드 (최대 5개)

다음 JSON 형식으로 응답하세요:
{{"results": [{{"index": 0, "sentiment": "positive", "score": 0.8, "impact": "high", "keyTopics": ["실적"]}}]}}

index는 위 목록의 번호를 그대로 사용하세요."""


async def batch_analyze_sentiment(
    items: Sequence[Any],
    batch_size: int = DEFAULT_BATCH_SIZE,
    gateway: LLMGatewayProtocol | None = None,
    delay: float = DEFAULT_BATCH_DELAY,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    model: str | None = None,
) -> list[SentimentAnnotation]:
    """
    Analyse ``items`` and return one annotation per item, in input order.

    Chunks run one after another with ``delay`` seconds between them (none
    after the last). A failed chunk yields neutral defaults for its items.
    """
    if not items:
        return []

    gateway = gateway or get_gateway()
    indexed = list(enumerate(items))
    batches = chunk(indexed, batch_size)
    results: list[Optional[SentimentAnnotation]] = [None] * len(items)

    logger.info(f"Analysing {len(items)} items in {len(batches)} batches")

    for batch_no, batch in enumerate(batches):
        batch_indexes = {index for index, _ in batch}
        task = LLMTask(
            custom_id=f"sentiment:{batch_no}",
            agent_id="sentiment",
            prompt=build_sentiment_prompt(batch),
            system_prompt=SYSTEM_PROMPT,
            model=model,
            temperature=0.3,
            max_tokens=4000,
        )

        try:
            result = await gateway.run_realtime(task)
        except Exception as e:
            logger.error(f"Sentiment batch {batch_no + 1}/{len(batches)} raised: {e}")
            result = None

        if result is None or result.failed:
            if result is not None:
                logger.warning(
                    f"Sentiment batch {batch_no + 1}/{len(batches)} failed: {result.error}"
                )
        else:
            for record in normalize_envelope(result.parsed_json):
                index = _record_index(record)
                if index is None or index not in batch_indexes:
                    logger.warning(f"Sentiment record with unknown index {record.get('index')!r}")
                    continue
                results[index] = parse_sentiment_record(record)

        if batch_no < len(batches) - 1 and delay > 0:
            await sleep(delay)

    missing = sum(1 for result in results if result is None)
    if missing:
        logger.info(f"{missing} items defaulted to neutral sentiment")

    return [result or SentimentAnnotation.neutral() for result in results]
