"""Risk agent: volatility, beta, drawdown."""

from signaldesk.analysis.agents.base import OPINION_JSON_FORMAT, OpinionAgentBase, describe
from signaldesk.analysis.schemas import AgentDomain, RiskData
from signaldesk.news.schemas import Instrument


class RiskAgent(OpinionAgentBase):
    domain = AgentDomain.RISK
    agent_name = "Risk Agent"
    fallback_reason = "리스크 데이터 부족으로 분석 불가"
    system_prompt = (
        "You are a risk management analyst specializing in the Korean stock market. "
        "Analyze risk factors and provide investment recommendations with risk considerations."
    )

    async def collect(self, instrument: Instrument, collector) -> RiskData:
        return await collector.collect_risk_data(instrument.code, instrument.market)

    def build_prompt(self, instrument: Instrument, data: RiskData) -> str:
        metrics = "\n".join(
            [
                describe("연환산 변동성", data.volatility, "%"),
                describe("베타 (KOSPI 대비)", data.beta, digits=3),
                describe("최대 낙폭", data.max_drawdown, "%"),
                f"- 리스크 수준: {data.risk_level.value}",
            ]
        )
        return f"""당신은 한국 주식 시장의 리스크 관리 전문가입니다. 다음 종목의 리스크 수준을 분석하여 투자 의견을 제시하세요.

종목명: {instrument.name} ({instrument.code})

리스크 지표:
{metrics}

분석 기준:
1. 변동성이 높을수록 고위험
2. 베타가 1.0보다 크면 시장보다 변동성이 큼
3. 최대 낙폭 30% 이상이면 고위험
4. 리스크 수준이 높으면 매도 또는 보유, 낮으면 매수 고려

{OPINION_JSON_FORMAT}"""
