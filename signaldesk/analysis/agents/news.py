"""News agent: recent sentiment and its trend."""

from signaldesk.analysis.agents.base import OPINION_JSON_FORMAT, OpinionAgentBase
from signaldesk.analysis.schemas import AgentDomain, NewsData
from signaldesk.news.schemas import Instrument


PROMPT_NEWS_LIMIT = 10


class NewsAgent(OpinionAgentBase):
    domain = AgentDomain.NEWS
    agent_name = "News Agent"
    fallback_reason = "뉴스 데이터 부족으로 분석 불가"
    system_prompt = (
        "You are a news sentiment analyst specializing in the Korean stock market. "
        "Analyze news sentiment and trends to provide investment recommendations."
    )

    def __init__(self, *args, news_limit: int = 20, **kwargs):
        super().__init__(*args, **kwargs)
        self.news_limit = news_limit

    async def collect(self, instrument: Instrument, collector) -> NewsData:
        return await collector.collect_news_data(instrument.id, self.news_limit)

    def build_prompt(self, instrument: Instrument, data: NewsData) -> str:
        listing = "\n".join(
            f"[{i}] {n.title} ({n.sentiment.value}, 영향도: {n.impact.value})"
            for i, n in enumerate(data.recent_news[:PROMPT_NEWS_LIMIT], start=1)
        )
        trend = data.sentiment_trend
        return f"""당신은 한국 주식 시장의 뉴스 분석 전문가입니다. 다음 종목의 최근 뉴스 감성과 트렌드를 분석하여 투자 의견을 제시하세요.

종목명: {instrument.name}

최근 뉴스 ({len(data.recent_news)}개):
{listing or "최근 뉴스 없음"}

감성 트렌드:
- 긍정: {trend.get("positive", 0)}개
- 부정: {trend.get("negative", 0)}개
- 중립: {trend.get("neutral", 0)}개

분석 기준:
1. 긍정 뉴스가 많고 영향도가 높으면 매수 신호
2. 부정 뉴스가 많고 영향도가 높으면 매도 신호
3. 중립 뉴스가 많거나 뉴스가 적으면 보유

{OPINION_JSON_FORMAT}"""
