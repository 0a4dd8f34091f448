"""Technical agent: price trend, moving averages, momentum."""

from signaldesk.analysis.agents.base import OPINION_JSON_FORMAT, OpinionAgentBase, describe
from signaldesk.analysis.schemas import AgentDomain, TechnicalData
from signaldesk.news.schemas import Instrument


class TechnicalAgent(OpinionAgentBase):
    domain = AgentDomain.TECHNICAL
    agent_name = "Technical Agent"
    fallback_reason = "기술적 지표 데이터 부족으로 분석 불가"
    system_prompt = (
        "You are a technical analyst specializing in the Korean stock market. "
        "Analyze technical indicators and provide trading recommendations with clear reasoning."
    )

    async def collect(self, instrument: Instrument, collector) -> TechnicalData:
        return await collector.collect_technical_data(instrument.code, instrument.market)

    def build_prompt(self, instrument: Instrument, data: TechnicalData) -> str:
        volume = float(data.volume) if data.volume is not None else None
        metrics = "\n".join(
            [
                describe("현재가", data.price, "원"),
                describe("5일 이동평균", data.ma5, "원"),
                describe("20일 이동평균", data.ma20, "원"),
                describe("60일 이동평균", data.ma60, "원"),
                describe("RSI(14)", data.rsi),
                describe("MACD", data.macd),
                describe("거래량", volume),
            ]
        )
        return f"""당신은 한국 주식 시장의 기술적 분석 전문가입니다. 다음 종목의 기술적 지표를 분석하여 투자 의견을 제시하세요.

종목명: {instrument.name} ({instrument.code})

기술적 지표:
{metrics}

분석 기준:
1. 현재가가 이동평균선 위면 상승 추세, 아래면 하락 추세
2. RSI 70 이상 과매수, 30 미만 과매도
3. MACD 양수면 상승 모멘텀, 음수면 하락 모멘텀
4. 거래량 증가는 관심도 상승

{OPINION_JSON_FORMAT}"""
