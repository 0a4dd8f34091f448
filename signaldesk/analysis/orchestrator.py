"""
Multi-agent analysis orchestrator.

Per instrument: five opinions in parallel, then the debate gate, then
synthesis, then one append-only record. Instruments run one at a time and
a failing instrument never stops the others.
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence

from signaldesk.analysis.agents import OpinionAgentBase, get_opinion_agents
from signaldesk.analysis.data_collector import SmartDataCollector
from signaldesk.analysis.debate import run_debate
from signaldesk.analysis.schemas import AgentOpinion, AgentOpinions, AnalysisRecord
from signaldesk.analysis.synthesis import run_synthesis
from signaldesk.core.logging import get_logger
from signaldesk.llm.gateway import LLMGatewayProtocol, get_gateway
from signaldesk.news.schemas import Instrument


logger = get_logger("analysis.orchestrator")

RecordSink = Callable[[AnalysisRecord], Awaitable[None]]


async def _save_record(record: AnalysisRecord) -> None:
    from signaldesk.repositories import opinions_orm

    await opinions_orm.save_opinion(record)


@dataclass
class AnalysisRunSummary:
    analyzed: int = 0
    failed: int = 0
    records: list[AnalysisRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class AnalysisOrchestrator:
    """Coordinates opinions, debate and synthesis for each instrument."""

    def __init__(
        self,
        gateway: Optional[LLMGatewayProtocol] = None,
        collector: Optional[SmartDataCollector] = None,
        agents: Optional[Sequence[OpinionAgentBase]] = None,
        save: Optional[RecordSink] = _save_record,
        rng: Callable[[], float] = random.random,
        news_limit: int = 20,
    ):
        self.gateway = gateway or get_gateway()
        self.collector = collector or SmartDataCollector()
        self.agents = list(agents) if agents is not None else get_opinion_agents(
            self.gateway, news_limit=news_limit
        )
        self.save = save
        self.rng = rng

    async def _run_agent_safe(
        self, agent: OpinionAgentBase, instrument: Instrument
    ) -> AgentOpinion:
        try:
            return await agent.run(instrument, self.collector)
        except Exception as e:
            logger.error(f"Agent {agent.agent_id} failed for {instrument.code}: {e}")
            return agent.fallback()

    async def collect_opinions(self, instrument: Instrument) -> AgentOpinions:
        opinions = await asyncio.gather(
            *[self._run_agent_safe(agent, instrument) for agent in self.agents]
        )
        by_domain = {agent.domain.value: opinion for agent, opinion in zip(self.agents, opinions)}
        return AgentOpinions(**by_domain)

    async def analyze_instrument(self, instrument: Instrument) -> AnalysisRecord:
        """Run the full analysis for one instrument and persist the record."""
        start = time.monotonic()
        self.collector.begin_run()

        opinions = await self.collect_opinions(instrument)
        debate = await run_debate(opinions, gateway=self.gateway)
        synthesis = await run_synthesis(
            instrument.name,
            instrument.code,
            opinions,
            debate,
            gateway=self.gateway,
            rng=self.rng,
        )

        record = AnalysisRecord(
            instrument_id=instrument.id,
            opinions=opinions,
            debate=debate,
            synthesis=synthesis,
            generation_time_ms=int((time.monotonic() - start) * 1000),
            used_cache=self.collector.used_cache,
        )

        if self.save is not None:
            await self.save(record)

        logger.info(
            f"{instrument.name} ({instrument.code}): {synthesis.final_recommendation.value} "
            f"{synthesis.final_confidence:g}% consensus {debate.consensus_level}% "
            f"model {synthesis.synthesis_model} in {record.generation_time_ms}ms"
        )
        return record

    async def run_all(self, instruments: Sequence[Instrument]) -> AnalysisRunSummary:
        """Analyse instruments sequentially, logging and skipping failures."""
        summary = AnalysisRunSummary()
        for instrument in instruments:
            try:
                record = await self.analyze_instrument(instrument)
            except Exception as e:
                logger.exception(f"Analysis failed for {instrument.name} ({instrument.code})")
                summary.failed += 1
                summary.errors.append(f"{instrument.code}: {e}")
                continue
            summary.analyzed += 1
            summary.records.append(record)
        return summary
