"""Tests for repository statements, with the database session replaced."""

from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from signaldesk.repositories import news_orm


@pytest.fixture
def session(monkeypatch):
    session = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()

    @asynccontextmanager
    async def fake_get_session():
        yield session

    monkeypatch.setattr(news_orm, "get_session", fake_get_session)
    return session


def _sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestInsertArticles:
    @pytest.mark.asyncio
    async def test_skips_conflicting_links(self, session, make_item):
        items = [make_item(), make_item(url="https://www.yna.co.kr/view/2")]
        result = MagicMock()
        result.scalars.return_value.all.return_value = ["new-id"]
        session.execute.return_value = result

        inserted = await news_orm.insert_articles(items)

        assert inserted == 1
        sql = _sql(session.execute.await_args.args[0])
        assert "ON CONFLICT (instrument_id, url) DO NOTHING" in sql
        assert "RETURNING news_articles.id" in sql
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_batch(self, session):
        assert await news_orm.insert_articles([]) == 0
        session.execute.assert_not_awaited()
