"""Macro agent: index levels and FX."""

from signaldesk.analysis.agents.base import OPINION_JSON_FORMAT, OpinionAgentBase, describe
from signaldesk.analysis.schemas import AgentDomain, MacroData
from signaldesk.news.schemas import Instrument


class MacroAgent(OpinionAgentBase):
    domain = AgentDomain.MACRO
    agent_name = "Macro Agent"
    fallback_reason = "거시경제 데이터 부족으로 분석 불가"
    system_prompt = (
        "You are a macroeconomics analyst specializing in the Korean stock market. "
        "Analyze macroeconomic indicators and provide investment recommendations."
    )

    async def collect(self, instrument: Instrument, collector) -> MacroData:
        return await collector.collect_macro_data()

    def build_prompt(self, instrument: Instrument, data: MacroData) -> str:
        metrics = "\n".join(
            [
                describe("KOSPI", data.kospi),
                describe("KOSDAQ", data.kosdaq),
                describe("USD/KRW", data.usd_krw, "원"),
            ]
        )
        sector = f" (섹터: {instrument.sector})" if instrument.sector else ""
        return f"""당신은 한국 주식 시장의 거시경제 분석 전문가입니다. 현재 거시경제 지표를 분석하여 {instrument.name}{sector} 종목에 대한 투자 의견을 제시하세요.

거시경제 지표:
{metrics}

분석 기준:
1. 시장 지수 상승 추세면 긍정적
2. 환율 상승은 수출 기업에 긍정적, 내수 기업에 부정적
3. 금리 상승은 주식 시장에 부정적

{OPINION_JSON_FORMAT}"""
