"""Instrument repository using SQLAlchemy ORM."""

from __future__ import annotations

from sqlalchemy import select

from signaldesk.core.logging import get_logger
from signaldesk.database.connection import get_session
from signaldesk.database.orm import Instrument as InstrumentRow
from signaldesk.news.schemas import Instrument


logger = get_logger("repositories.instruments_orm")


def _to_model(row: InstrumentRow) -> Instrument:
    return Instrument(
        id=str(row.id),
        code=row.code,
        name=row.name,
        market=row.market,
        sector=row.sector,
        is_active=row.is_active,
    )


async def list_active() -> list[Instrument]:
    """All active instruments, ordered by code."""
    async with get_session() as session:
        result = await session.execute(
            select(InstrumentRow)
            .where(InstrumentRow.is_active == True)  # noqa: E712
            .order_by(InstrumentRow.code)
        )
        return [_to_model(row) for row in result.scalars().all()]
