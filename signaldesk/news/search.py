"""
Naver news search client.

Returns one page of recent articles for a query, with HTML markup removed
from titles and descriptions.
"""

from __future__ import annotations

import html
import re
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import httpx

from signaldesk.core.config import settings
from signaldesk.core.exceptions import ExternalServiceError
from signaldesk.core.logging import get_logger
from signaldesk.news.schemas import SearchResultItem


logger = get_logger("news.search")

NAVER_NEWS_URL = "https://openapi.naver.com/v1/search/news.json"

_TAG = re.compile(r"<[^>]*>")


def strip_html(text: Optional[str]) -> Optional[str]:
    """Remove tags and unescape entities (search results wrap hits in <b>)."""
    if text is None:
        return None
    return html.unescape(_TAG.sub("", text)).strip()


def parse_pub_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 2822 date such as 'Mon, 13 Oct 2025 09:12:00 +0900'."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug(f"Unparseable pubDate: {value!r}")
        return None


class NaverNewsClient:
    """Thin async wrapper over the Naver news search endpoint."""

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id if client_id is not None else settings.naver_client_id
        self.client_secret = (
            client_secret if client_secret is not None else settings.naver_client_secret
        )
        self.timeout = timeout or float(settings.external_api_timeout)
        self._transport = transport

    async def search(self, query: str, display: int = 50) -> list[SearchResultItem]:
        """Fetch the newest ``display`` articles matching ``query``."""
        headers = {
            "X-Naver-Client-Id": self.client_id,
            "X-Naver-Client-Secret": self.client_secret,
        }
        params = {"query": query, "display": display, "sort": "date"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(NAVER_NEWS_URL, params=params, headers=headers)
                response.raise_for_status()
                data: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                f"News search failed: HTTP {e.response.status_code}",
                details={"query": query},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalServiceError(
                f"News search failed: {e}", details={"query": query}
            ) from e

        items = []
        for raw in data.get("items", []):
            link = raw.get("link")
            if not link:
                continue
            items.append(
                SearchResultItem(
                    title=strip_html(raw.get("title")) or "",
                    description=strip_html(raw.get("description")),
                    link=link,
                    original_link=raw.get("originallink") or None,
                    published_at=parse_pub_date(raw.get("pubDate")),
                )
            )

        logger.debug(f"Search '{query}' returned {len(items)} items")
        return items
