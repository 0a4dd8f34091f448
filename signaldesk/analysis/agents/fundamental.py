"""Fundamental agent: valuation ratios and financial health."""

from signaldesk.analysis.agents.base import OPINION_JSON_FORMAT, OpinionAgentBase, describe
from signaldesk.analysis.schemas import AgentDomain, FinancialData
from signaldesk.news.schemas import Instrument


class FundamentalAgent(OpinionAgentBase):
    domain = AgentDomain.FUNDAMENTAL
    agent_name = "Fundamental Agent"
    fallback_reason = "재무 데이터 부족으로 분석 불가"
    system_prompt = (
        "You are a financial analyst specializing in the Korean stock market. "
        "Analyze financial metrics and provide investment recommendations with clear reasoning."
    )

    async def collect(self, instrument: Instrument, collector) -> FinancialData:
        return await collector.collect_financial_data(instrument.code, instrument.market)

    def build_prompt(self, instrument: Instrument, data: FinancialData) -> str:
        metrics = "\n".join(
            [
                describe("PER (주가수익비율)", data.per),
                describe("PBR (주가순자산비율)", data.pbr),
                describe("ROE (자기자본이익률)", data.roe, "%"),
                describe("부채비율", data.debt_ratio, "%"),
                describe("유동비율", data.current_ratio, "%"),
                describe("매출액", data.revenue, "원"),
                describe("영업이익", data.operating_profit, "원"),
                describe("순이익", data.net_profit, "원"),
            ]
        )
        return f"""당신은 한국 주식 시장의 재무 분석 전문가입니다. 다음 종목의 재무 지표를 분석하여 투자 의견을 제시하세요.

종목명: {instrument.name} ({instrument.code})

재무 지표:
{metrics}

분석 기준:
1. PER: 10-20 적정, 20 이상 고평가, 10 미만 저평가 가능
2. PBR: 1.0 미만 저평가 가능, 2.0 이상 고평가
3. ROE: 15% 이상 우수, 10% 미만 개선 필요
4. 부채비율: 100% 미만 양호, 200% 이상 위험
5. 유동비율: 100% 이상 양호, 200% 이상 우수

{OPINION_JSON_FORMAT}"""
