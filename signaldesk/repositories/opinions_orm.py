"""Investment opinion repository using SQLAlchemy ORM. Append-only."""

from __future__ import annotations

from signaldesk.analysis.schemas import AnalysisRecord
from signaldesk.core.logging import get_logger
from signaldesk.database.connection import get_session
from signaldesk.database.orm import InvestmentOpinion


logger = get_logger("repositories.opinions_orm")


async def save_opinion(record: AnalysisRecord) -> None:
    async with get_session() as session:
        session.add(InvestmentOpinion(**record.to_row()))
        await session.commit()
    logger.debug(f"Saved opinion for instrument {record.instrument_id}")
