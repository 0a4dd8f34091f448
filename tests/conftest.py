"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any, Callable, Optional

import pytest

from signaldesk.cache import TTLCache
from signaldesk.llm.schemas import LLMResult, LLMTask
from signaldesk.news.schemas import Instrument, Market, NewsItem


pytest_plugins = ["pytest_asyncio"]


class FakeGateway:
    """
    In-memory LLM gateway.

    ``responder`` maps a task to either a parsed JSON payload, an LLMResult,
    or an exception to raise. Every task is recorded in ``tasks``.
    """

    def __init__(self, responder: Callable[[LLMTask], Any] | Any = None):
        self.responder = responder
        self.tasks: list[LLMTask] = []

    async def run_realtime(self, task: LLMTask) -> LLMResult:
        self.tasks.append(task)
        payload = self.responder(task) if callable(self.responder) else self.responder
        if isinstance(payload, BaseException):
            raise payload
        if isinstance(payload, LLMResult):
            return payload
        return LLMResult(
            custom_id=task.custom_id,
            agent_id=task.agent_id,
            symbol=task.symbol,
            parsed_json=payload,
            model=task.model or "gpt-4o-mini",
        )


def failed_result(task: LLMTask, error: str = "boom") -> LLMResult:
    return LLMResult(
        custom_id=task.custom_id,
        agent_id=task.agent_id,
        symbol=task.symbol,
        error=error,
        failed=True,
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def instrument() -> Instrument:
    return Instrument(
        id="11111111-1111-1111-1111-111111111111",
        code="005930",
        name="삼성전자",
        market=Market.KOSPI,
    )


@pytest.fixture
def make_item() -> Callable[..., NewsItem]:
    """Factory for NewsItem with sensible defaults."""
    counter = {"n": 0}

    def _make(
        title: str = "삼성전자 반도체 공급 계약 체결 소식 정리",
        description: Optional[str] = (
            "반도체 업황 개선과 공급 계약 확대로 하반기 실적 개선 기대감이 커지고 있다. "
            "증권가에서는 목표주가를 잇따라 올리고 있다."
        ),
        source: Optional[str] = "연합뉴스",
        **fields: Any,
    ) -> NewsItem:
        counter["n"] += 1
        fields.setdefault("id", f"item-{counter['n']}")
        fields.setdefault("instrument_id", "11111111-1111-1111-1111-111111111111")
        fields.setdefault("url", f"https://www.yna.co.kr/view/{counter['n']}")
        return NewsItem(title=title, description=description, source=source, **fields)

    return _make


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(clock=clock)
