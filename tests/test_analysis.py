"""Tests for the opinion agents, smart data collector and orchestrator."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import FakeGateway, failed_result
from signaldesk.analysis.agents import (
    FundamentalAgent,
    MacroAgent,
    NewsAgent,
    RiskAgent,
    TechnicalAgent,
    get_opinion_agents,
    parse_opinion,
)
from signaldesk.analysis.agents.base import FALLBACK_CONFIDENCE, clamp_confidence, describe
from signaldesk.analysis.data_collector import SmartDataCollector, summarize_news
from signaldesk.analysis.market_data import (
    KOSPI_INDEX,
    USD_KRW,
    MarketDataProvider,
    classify_risk_level,
    to_yahoo_symbol,
)
from signaldesk.analysis.orchestrator import AnalysisOrchestrator
from signaldesk.analysis.schemas import (
    AgentDomain,
    AgentOpinion,
    FinancialData,
    MacroData,
    NewsData,
    Recommendation,
    RiskData,
    RiskLevel,
    TechnicalData,
)
from signaldesk.news.schemas import Impact, Instrument, Market, Sentiment


class FakeCollector:
    """Collector returning fixed snapshots."""

    def __init__(self, used_cache: bool = False):
        self.used_cache = used_cache
        self.runs = 0
        self.news_calls: list[tuple[str, int]] = []

    def begin_run(self) -> None:
        self.runs += 1

    async def collect_financial_data(self, code, market):
        return FinancialData(per=12.5, pbr=1.1, roe=14.2)

    async def collect_technical_data(self, code, market):
        return TechnicalData(price=71000, ma5=70500, rsi=55.0, volume=12000000)

    async def collect_macro_data(self):
        return MacroData(kospi=2600.5, usd_krw=1380.0)

    async def collect_news_data(self, instrument_id, limit):
        self.news_calls.append((instrument_id, limit))
        return NewsData()

    async def collect_risk_data(self, code, market):
        return RiskData(volatility=25.0, beta=1.1, max_drawdown=18.0)


def _verdict(recommendation: str, confidence: float = 70):
    return {"recommendation": recommendation, "confidence": confidence, "reasoning": ["근거"]}


# =============================================================================
# Opinion parsing
# =============================================================================


class TestParseOpinion:
    def test_valid_payload(self):
        opinion = parse_opinion(
            {"recommendation": "buy", "confidence": 82, "reasoning": list("abcdefg")}
        )

        assert opinion.recommendation == Recommendation.BUY
        assert opinion.confidence == 82.0
        assert opinion.reasoning == ["a", "b", "c", "d", "e"]

    def test_confidence_clamped_and_defaulted(self):
        assert parse_opinion({"recommendation": "sell", "confidence": 150}).confidence == 100.0
        assert parse_opinion({"recommendation": "sell", "confidence": "high"}).confidence == 50.0
        assert clamp_confidence(-3) == 0.0

    def test_nan_confidence_defaults(self):
        assert clamp_confidence(float("nan")) == 50.0
        assert clamp_confidence(float("inf")) == 50.0
        parsed = json.loads('{"recommendation": "buy", "confidence": NaN}')
        assert parse_opinion(parsed).confidence == 50.0

    def test_missing_reasoning(self):
        assert parse_opinion({"recommendation": "hold"}).reasoning == ["분석 완료"]
        assert parse_opinion({"recommendation": "hold", "reasoning": "하나"}).reasoning == ["하나"]

    @pytest.mark.parametrize("payload", [None, [], {"recommendation": "strong buy"}])
    def test_invalid_payload_raises(self, payload):
        with pytest.raises(ValueError):
            parse_opinion(payload)

    def test_describe(self):
        assert describe("PER", None) == "- PER: 데이터 없음"
        assert describe("PER", 12.3456) == "- PER: 12.35"
        assert describe("매출액", 302231000000000, "원") == "- 매출액: 302,231,000,000,000원"


# =============================================================================
# Agents
# =============================================================================


class TestOpinionAgents:
    def test_reporting_order(self):
        agents = get_opinion_agents(FakeGateway({}))
        assert [a.domain for a in agents] == list(AgentDomain)

    @pytest.mark.asyncio
    async def test_agent_uses_collected_data(self, instrument):
        gateway = FakeGateway(_verdict("buy", 75))
        agent = FundamentalAgent(gateway)

        opinion = await agent.run(instrument, FakeCollector())

        assert opinion == AgentOpinion(
            recommendation=Recommendation.BUY, confidence=75.0, reasoning=["근거"]
        )
        task = gateway.tasks[0]
        assert task.custom_id == "opinion:005930:fundamental"
        assert "삼성전자 (005930)" in task.prompt
        assert "PER (주가수익비율): 12.5" in task.prompt
        assert "부채비율: 데이터 없음" in task.prompt

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "agent_cls,reason",
        [
            (FundamentalAgent, "재무 데이터 부족으로 분석 불가"),
            (TechnicalAgent, "기술적 지표 데이터 부족으로 분석 불가"),
            (NewsAgent, "뉴스 데이터 부족으로 분석 불가"),
            (MacroAgent, "거시경제 데이터 부족으로 분석 불가"),
            (RiskAgent, "리스크 데이터 부족으로 분석 불가"),
        ],
    )
    async def test_failed_call_returns_fallback(self, instrument, agent_cls, reason):
        agent = agent_cls(FakeGateway(lambda task: failed_result(task)))

        opinion = await agent.run(instrument, FakeCollector())

        assert opinion.recommendation == Recommendation.HOLD
        assert opinion.confidence == FALLBACK_CONFIDENCE
        assert opinion.reasoning == [reason]

    @pytest.mark.asyncio
    async def test_collector_error_returns_fallback(self, instrument):
        collector = FakeCollector()
        collector.collect_risk_data = AsyncMock(side_effect=RuntimeError("yfinance down"))
        gateway = FakeGateway(_verdict("sell"))

        opinion = await RiskAgent(gateway).run(instrument, collector)

        assert opinion.recommendation == Recommendation.HOLD
        assert gateway.tasks == []

    @pytest.mark.asyncio
    async def test_news_agent_reads_by_instrument_id(self, instrument):
        collector = FakeCollector()

        await NewsAgent(FakeGateway(_verdict("hold")), news_limit=7).run(instrument, collector)

        assert collector.news_calls == [(instrument.id, 7)]

    def test_set_llm_gateway(self):
        agent = MacroAgent()
        gateway = FakeGateway({})
        agent.set_llm_gateway(gateway)
        assert agent.gateway is gateway


# =============================================================================
# Market data helpers
# =============================================================================


class TestMarketDataHelpers:
    def test_yahoo_symbols(self):
        assert to_yahoo_symbol("005930", Market.KOSPI) == "005930.KS"
        assert to_yahoo_symbol("035720", "KOSDAQ") == "035720.KQ"
        assert to_yahoo_symbol("^KS11") == "^KS11"

    @pytest.mark.parametrize(
        "vol,mdd,level",
        [
            (45.0, 10.0, RiskLevel.HIGH),
            (25.0, 35.0, RiskLevel.HIGH),
            (15.0, 10.0, RiskLevel.LOW),
            (25.0, 20.0, RiskLevel.MEDIUM),
            (None, None, RiskLevel.MEDIUM),
            (15.0, None, RiskLevel.LOW),
        ],
    )
    def test_classify_risk_level(self, vol, mdd, level):
        assert classify_risk_level(vol, mdd) == level


class TestMarketDataProvider:
    """Provider snapshots with the blocking yfinance fetchers replaced."""

    @pytest.fixture
    def provider(self):
        provider = MarketDataProvider()
        provider.requested = []
        provider.info = {}
        provider.histories = {}

        def fetch_info(symbol):
            provider.requested.append(symbol)
            return provider.info

        def fetch_history(symbol):
            provider.requested.append(symbol)
            return provider.histories.get(symbol, ([], []))

        provider._fetch_info_sync = fetch_info
        provider._fetch_history_sync = fetch_history
        return provider

    @pytest.mark.asyncio
    async def test_financial_snapshot(self, provider):
        provider.info = {
            "trailingPE": 12.5,
            "priceToBook": 1.1,
            "returnOnEquity": 0.0812,
            "debtToEquity": 35.2,
            "currentRatio": 2.5,
            "totalRevenue": 1000.0,
            "operatingMargins": 0.25,
            "netIncomeToCommon": 150.0,
        }

        data = await provider.get_financial_data("005930", Market.KOSPI)

        assert provider.requested == ["005930.KS"]
        assert data.per == 12.5
        assert data.pbr == 1.1
        assert data.roe == 8.12
        assert data.debt_ratio == 35.2
        assert data.current_ratio == 250.0
        assert data.operating_profit == 250.0
        assert data.net_profit == 150.0

    @pytest.mark.asyncio
    async def test_missing_info_gives_none_fields(self, provider):
        provider.info = {"trailingPE": "n/a"}

        data = await provider.get_financial_data("035720", "KOSDAQ")

        assert provider.requested == ["035720.KQ"]
        assert data.per is None
        assert data.operating_profit is None

    @pytest.mark.asyncio
    async def test_technical_snapshot_without_history(self, provider):
        data = await provider.get_technical_data("005930")

        assert data.price is None
        assert data.rsi is None

    @pytest.mark.asyncio
    async def test_technical_snapshot_uses_latest_close(self, provider):
        closes = [float(100 + i) for i in range(70)]
        provider.histories["005930.KS"] = (closes, [1000] * 69 + [5000])

        data = await provider.get_technical_data("005930")

        assert data.price == 169.0
        assert data.ma5 == pytest.approx(167.0)
        assert data.volume == 5000

    @pytest.mark.asyncio
    async def test_macro_snapshot(self, provider):
        provider.histories[KOSPI_INDEX] = ([2500.0, 2510.5], [])
        provider.histories[USD_KRW] = ([1380.0], [])

        data = await provider.get_macro_data()

        assert data.kospi == 2510.5
        assert data.kosdaq is None
        assert data.usd_krw == 1380.0


# =============================================================================
# Smart data collector
# =============================================================================


class TestSmartDataCollector:
    def _provider(self):
        provider = MagicMock()
        provider.get_financial_data = AsyncMock(return_value=FinancialData(per=10.0))
        provider.get_technical_data = AsyncMock(return_value=TechnicalData(price=100.0))
        provider.get_macro_data = AsyncMock(return_value=MacroData(kospi=2500.0))
        provider.get_risk_data = AsyncMock(return_value=RiskData(volatility=30.0))
        return provider

    @pytest.mark.asyncio
    async def test_financial_cached_across_runs(self, cache):
        provider = self._provider()
        collector = SmartDataCollector(provider=provider, cache=cache, news_reader=AsyncMock())

        collector.begin_run()
        await collector.collect_financial_data("005930")
        assert collector.used_cache is False

        collector.begin_run()
        data = await collector.collect_financial_data("005930")
        assert data.per == 10.0
        assert collector.used_cache is True
        provider.get_financial_data.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_technical_expires_after_five_minutes(self, cache, clock):
        provider = self._provider()
        collector = SmartDataCollector(provider=provider, cache=cache, news_reader=AsyncMock())

        await collector.collect_technical_data("005930")
        clock.advance(301)
        collector.begin_run()
        await collector.collect_technical_data("005930")

        assert provider.get_technical_data.await_count == 2
        assert collector.used_cache is False

    @pytest.mark.asyncio
    async def test_macro_uses_global_key(self, cache):
        provider = self._provider()
        collector = SmartDataCollector(provider=provider, cache=cache, news_reader=AsyncMock())

        await collector.collect_macro_data()

        assert cache.get("macro:global") == MacroData(kospi=2500.0)

    @pytest.mark.asyncio
    async def test_risk_and_news_are_not_cached(self, cache, make_item):
        provider = self._provider()
        reader = AsyncMock(
            return_value=[
                make_item(sentiment=Sentiment.POSITIVE, impact=Impact.HIGH, analyzed=True),
                make_item(sentiment=Sentiment.NEGATIVE, analyzed=True),
            ]
        )
        collector = SmartDataCollector(provider=provider, cache=cache, news_reader=reader)

        await collector.collect_risk_data("005930")
        await collector.collect_risk_data("005930")
        news = await collector.collect_news_data("inst-1", 20)
        await collector.collect_news_data("inst-1", 20)

        assert provider.get_risk_data.await_count == 2
        assert reader.await_count == 2
        reader.assert_awaited_with("inst-1", 20)
        assert news.sentiment_trend == {"positive": 1, "negative": 1, "neutral": 0}
        assert collector.used_cache is False

    def test_summarize_news_skips_unanalysed(self, make_item):
        data = summarize_news([make_item(), make_item(sentiment=Sentiment.NEUTRAL)])

        assert len(data.recent_news) == 1
        assert data.recent_news[0].impact == Impact.MEDIUM
        assert data.sentiment_trend["neutral"] == 1


# =============================================================================
# Orchestrator
# =============================================================================


class TestAnalysisOrchestrator:
    def _responder(self, agent_verdicts: dict[str, dict]):
        def respond(task):
            if task.agent_id in agent_verdicts:
                return agent_verdicts[task.agent_id]
            if task.agent_id == "debate":
                return {"consensusLevel": 70, "debateSummary": "합의", "changedAgents": []}
            return {
                "finalRecommendation": "buy",
                "finalConfidence": 68,
                "strategy": "분할 매수",
                "keyReasons": ["실적 개선"],
                "risks": ["환율"],
            }

        return respond

    @pytest.mark.asyncio
    async def test_unanimous_run_skips_debate_and_saves(self, instrument):
        gateway = FakeGateway(
            self._responder({d.value: _verdict("buy", 80) for d in AgentDomain})
        )
        save = AsyncMock()
        orchestrator = AnalysisOrchestrator(
            gateway=gateway, collector=FakeCollector(), save=save, rng=lambda: 0.5
        )

        record = await orchestrator.analyze_instrument(instrument)

        assert record.debate.had_debate is False
        assert record.debate.consensus_level == 100
        assert record.synthesis.final_recommendation == Recommendation.BUY
        assert record.synthesis.synthesis_model == "gpt-4o-mini"
        assert "debate" not in [t.agent_id for t in gateway.tasks]
        save.assert_awaited_once_with(record)

    @pytest.mark.asyncio
    async def test_split_run_debates(self, instrument):
        verdicts = {
            "fundamental": _verdict("buy"),
            "technical": _verdict("buy"),
            "news": _verdict("buy"),
            "macro": _verdict("sell"),
            "risk": _verdict("hold"),
        }
        gateway = FakeGateway(self._responder(verdicts))
        orchestrator = AnalysisOrchestrator(
            gateway=gateway, collector=FakeCollector(used_cache=True), save=None
        )

        record = await orchestrator.analyze_instrument(instrument)

        assert record.debate.had_debate is True
        assert record.debate.consensus_level == 70
        assert record.used_cache is True
        row = record.to_row()
        assert row["macro_rec"] == "sell"
        assert row["had_debate"] is True
        assert row["final_rec"] == "buy"

    @pytest.mark.asyncio
    async def test_raising_agent_gets_fallback(self, instrument):
        agents = get_opinion_agents(FakeGateway(_verdict("buy")))
        agents[1].run = AsyncMock(side_effect=RuntimeError("boom"))
        orchestrator = AnalysisOrchestrator(
            gateway=FakeGateway(self._responder({})),
            collector=FakeCollector(),
            agents=agents,
            save=None,
        )

        opinions = await orchestrator.collect_opinions(instrument)

        assert opinions.technical.recommendation == Recommendation.HOLD
        assert opinions.technical.confidence == FALLBACK_CONFIDENCE
        assert opinions.fundamental.recommendation == Recommendation.BUY

    @pytest.mark.asyncio
    async def test_run_all_continues_past_failures(self, instrument):
        other = Instrument(id="2", code="000660", name="SK하이닉스", market=Market.KOSPI)
        save = AsyncMock(side_effect=[RuntimeError("db down"), None])
        gateway = FakeGateway(
            self._responder({d.value: _verdict("buy", 80) for d in AgentDomain})
        )
        orchestrator = AnalysisOrchestrator(gateway=gateway, collector=FakeCollector(), save=save)

        summary = await orchestrator.run_all([instrument, other])

        assert summary.analyzed == 1
        assert summary.failed == 1
        assert summary.records[0].instrument_id == "2"
        assert summary.errors == ["005930: db down"]


# =============================================================================
# Persisted record
# =============================================================================


class TestAnalysisRecord:
    def test_row_matches_table_columns(self):
        from signaldesk.analysis.schemas import AgentOpinions, AnalysisRecord, DebateResult, SynthesisResult
        from signaldesk.database.orm import InvestmentOpinion

        opinion = AgentOpinion(recommendation=Recommendation.BUY, confidence=70, reasoning=["r"])
        record = AnalysisRecord(
            instrument_id="1",
            opinions=AgentOpinions(**{d.value: opinion for d in AgentDomain}),
            debate=DebateResult(had_debate=False, consensus_level=100),
            synthesis=SynthesisResult(
                final_recommendation=Recommendation.BUY,
                final_confidence=70,
                strategy="보유",
                synthesis_model="gpt-4o-mini",
            ),
        )

        row = record.to_row()

        assert set(row) <= set(InvestmentOpinion.__table__.columns.keys())
        assert row["risk_rec"] == "buy"
        assert row["consensus_level"] == 100

    def test_sentiment_applied_once(self, make_item):
        from signaldesk.news.schemas import SentimentAnnotation

        item = make_item()
        item.apply_sentiment(SentimentAnnotation(sentiment=Sentiment.POSITIVE, sentiment_score=0.5))
        item.apply_sentiment(SentimentAnnotation(sentiment=Sentiment.NEGATIVE, sentiment_score=-0.5))

        assert item.sentiment == Sentiment.POSITIVE
        assert item.sentiment_score == 0.5
