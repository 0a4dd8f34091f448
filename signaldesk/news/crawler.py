"""
Article body fetcher.

Fetches a news page and extracts its main text. Every failure mode is
returned as ``CrawledContent(success=False, error=...)`` so enrichment can
skip the article without interrupting the run.
"""

from __future__ import annotations

import re
from typing import Sequence

import httpx
from bs4 import BeautifulSoup

from signaldesk.core.logging import get_logger
from signaldesk.news.schemas import CrawledContent


logger = get_logger("news.crawler")

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

TITLE_SELECTORS = ("h2#title_area", "h3.media_end_head_headline", "h1", "title")
# Naver news body first, then generic containers
BODY_SELECTORS = ("#newsct_article", "article", ".article_body", "main", "body")

MIN_CONTENT_LENGTH = 50

_WHITESPACE = re.compile(r"\s+")


def _first_text(soup: BeautifulSoup, selectors: Sequence[str]) -> str:
    for selector in selectors:
        node = soup.select_one(selector)
        if node is None:
            continue
        text = node.get_text(" ", strip=True)
        if text:
            return text
    return ""


def extract_article(html: str) -> tuple[str, str]:
    """Return (title, body) extracted from an article page."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    title = _first_text(soup, TITLE_SELECTORS)
    content = _WHITESPACE.sub(" ", _first_text(soup, BODY_SELECTORS)).strip()
    return title, content


async def crawl_news_content(
    url: str | None,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CrawledContent:
    """Fetch ``url`` and extract the article body."""
    if not url or not url.startswith("http"):
        return CrawledContent(success=False, error="Invalid URL")

    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            response = await client.get(url)
    except httpx.TimeoutException:
        logger.warning(f"Timeout fetching {url}")
        return CrawledContent(success=False, error="Request timed out")
    except httpx.HTTPError as e:
        logger.warning(f"Error fetching {url}: {e}")
        return CrawledContent(success=False, error=f"Fetch failed: {e}")

    if not response.is_success:
        return CrawledContent(
            success=False,
            error=f"HTTP {response.status_code}: {response.reason_phrase}",
        )

    title, content = extract_article(response.text)
    if len(content) < MIN_CONTENT_LENGTH:
        return CrawledContent(
            success=False,
            title=title,
            error="Could not extract article body (too short or no matching selector)",
        )

    return CrawledContent(success=True, title=title, content=content)
