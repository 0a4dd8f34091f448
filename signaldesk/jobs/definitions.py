"""Built-in job definitions.

Jobs:
- collect_news: search recent articles per instrument and store new ones
- filter_news: source / dedup / quality pipeline over unfiltered articles
- collect_full_content: crawl and structure the most important articles
- analyze_sentiment: batched sentiment over filtered, unanalysed articles
- multi_agent_analysis: five-opinion investment analysis per instrument

Each job loads the active instruments, works through them one at a time,
logs and skips a failing instrument, and returns a summary string.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any, Awaitable, Callable, Optional

from signaldesk.core.config import settings
from signaldesk.core.exceptions import StructuringError
from signaldesk.core.logging import get_logger
from signaldesk.news.crawler import crawl_news_content
from signaldesk.news.importance import classify_items, get_time_period, select_for_enrichment
from signaldesk.news.pipeline import run_filtering_pipeline
from signaldesk.news.schemas import Instrument, NewsItem, TimePeriod
from signaldesk.news.search import NaverNewsClient
from signaldesk.news.sources import resolve_source
from signaldesk.repositories import filtering_stats_orm, instruments_orm, news_orm

from .registry import register_job


logger = get_logger("jobs.definitions")


# =============================================================================
# COLLECT NEWS
# =============================================================================


async def collect_news_for_instrument(
    instrument: Instrument,
    client: NaverNewsClient,
    display: int = 50,
) -> int:
    """Search news for one instrument and insert unseen articles. Returns count saved."""
    results = await client.search(instrument.name, display=display)
    if not results:
        return 0

    known = await news_orm.existing_urls(instrument.id, [r.link for r in results])
    now = datetime.now(UTC)

    fresh: list[NewsItem] = []
    seen: set[str] = set()
    for result in results:
        if result.link in known or result.link in seen:
            continue
        seen.add(result.link)
        fresh.append(
            NewsItem(
                instrument_id=instrument.id,
                title=result.title,
                description=result.description,
                source=resolve_source(result.original_link or result.link),
                url=result.link,
                published_at=result.published_at,
                collected_at=now,
            )
        )

    return await news_orm.insert_articles(fresh)


@register_job("collect_news")
async def collect_news_job() -> str:
    """Collect recent news for every active instrument."""
    instruments = await instruments_orm.list_active()
    if not instruments:
        return "No active instruments"

    client = NaverNewsClient()
    total = 0
    failed = 0
    for instrument in instruments:
        try:
            saved = await collect_news_for_instrument(
                instrument, client, display=settings.news_display
            )
            logger.info(f"{instrument.name} ({instrument.code}): saved {saved} articles")
            total += saved
        except Exception:
            logger.exception(f"News collection failed for {instrument.name} ({instrument.code})")
            failed += 1

    return f"Saved {total} articles for {len(instruments)} instruments ({failed} failed)"


# =============================================================================
# FILTER NEWS
# =============================================================================


async def filter_news_for_instrument(
    instrument: Instrument,
    period: TimePeriod,
    limit: int = 1000,
    threshold: float = 0.8,
):
    """Run the filtering pipeline over one instrument's unfiltered articles."""
    items = await news_orm.list_unfiltered(instrument.id, limit=limit)
    if not items:
        return None

    run = run_filtering_pipeline(items, instrument.id, period, threshold=threshold)
    await news_orm.save_filter_results([*run.final, *run.rejected])
    await filtering_stats_orm.save_stats(run.stats)

    logger.info(
        f"{instrument.name} ({instrument.code}): {run.stats.raw_count} -> "
        f"{run.stats.final_count} (filter rate {run.stats.filter_rate}%)"
    )
    return run


@register_job("filter_news")
async def filter_news_job() -> str:
    """Filter unfiltered news for every active instrument."""
    instruments = await instruments_orm.list_active()
    if not instruments:
        return "No active instruments"

    period = get_time_period()
    raw = final = failed = 0
    for instrument in instruments:
        try:
            run = await filter_news_for_instrument(
                instrument,
                period,
                limit=settings.news_fetch_limit,
                threshold=settings.dedup_threshold,
            )
        except Exception:
            logger.exception(f"Filtering failed for {instrument.name} ({instrument.code})")
            failed += 1
            continue
        if run is not None:
            raw += run.stats.raw_count
            final += run.stats.final_count

    return f"Filtered {raw} -> {final} articles ({period.value}, {failed} failed)"


# =============================================================================
# COLLECT FULL CONTENT
# =============================================================================


async def collect_full_content_for_instrument(
    instrument: Instrument,
    period: TimePeriod,
    crawl: Callable[..., Awaitable[Any]] = crawl_news_content,
    structure: Optional[Callable[..., Awaitable[Any]]] = None,
    delay: float = 2.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    limit: int = 100,
    timeout: float = 10.0,
) -> tuple[int, int]:
    """
    Enrich the most important filtered articles of one instrument.

    Every candidate gets an importance label; only the quota-selected ones
    are crawled and structured. Returns (succeeded, failed).
    """
    if structure is None:
        from signaldesk.analysis.structurer import structure_news_content

        structure = structure_news_content

    candidates = await news_orm.list_enrichment_candidates(instrument.id, limit=limit)
    if not candidates:
        return 0, 0

    labels = classify_items(candidates)
    targets = select_for_enrichment(candidates, period, labels)

    logger.info(
        f"{instrument.name} ({instrument.code}): {len(candidates)} candidates, "
        f"{len(targets)} selected for enrichment ({period.value})"
    )

    succeeded = failed = 0
    try:
        for item in targets:
            if not item.url:
                logger.warning(f"No URL, skipping: {item.title}")
                failed += 1
                continue

            try:
                crawled = await crawl(item.url, timeout=timeout)
                if not crawled.success or not crawled.content:
                    logger.warning(f"Crawl failed for {item.url}: {crawled.error}")
                    failed += 1
                    continue

                structured = await structure(crawled.content, item.title)
                item.apply_structured(structured)
                await news_orm.save_enrichment(item)
            except StructuringError as e:
                logger.warning(f"Structuring failed for {item.url}: {e.message}")
                failed += 1
                continue
            except Exception:
                logger.exception(f"Enrichment failed for {item.url}")
                item.has_full_content = False
                failed += 1
                continue

            succeeded += 1
            if delay > 0:
                await sleep(delay)
    finally:
        # Label everything not enriched so candidates are not re-selected
        await news_orm.save_importance(
            {
                item.id: item.importance
                for item in candidates
                if item.id is not None and not item.has_full_content
            }
        )

    return succeeded, failed


@register_job("collect_full_content")
async def collect_full_content_job() -> str:
    """Crawl and structure important articles for every active instrument."""
    instruments = await instruments_orm.list_active()
    if not instruments:
        return "No active instruments"

    period = get_time_period()
    succeeded = failed = errors = 0
    for instrument in instruments:
        try:
            ok, bad = await collect_full_content_for_instrument(
                instrument,
                period,
                delay=settings.enrichment_delay,
                limit=settings.enrichment_fetch_limit,
                timeout=settings.crawl_timeout,
            )
        except Exception:
            logger.exception(f"Enrichment failed for {instrument.name} ({instrument.code})")
            errors += 1
            continue
        succeeded += ok
        failed += bad

    return (
        f"Enriched {succeeded} articles, {failed} failed "
        f"({period.value}, {errors} instruments errored)"
    )


# =============================================================================
# ANALYZE SENTIMENT
# =============================================================================


async def analyze_pending_sentiment(
    limit: int = 500,
    batch_size: int = 50,
    delay: float = 1.0,
    gateway=None,
) -> int:
    """Annotate filtered, unanalysed articles with sentiment. Returns count saved."""
    from signaldesk.analysis.sentiment import batch_analyze_sentiment

    items = await news_orm.list_unanalyzed(limit=limit)
    if not items:
        return 0

    annotations = await batch_analyze_sentiment(
        items, batch_size=batch_size, gateway=gateway, delay=delay
    )
    for item, annotation in zip(items, annotations):
        item.apply_sentiment(annotation)

    return await news_orm.save_sentiment(items)


@register_job("analyze_sentiment")
async def analyze_sentiment_job() -> str:
    """Batched sentiment analysis over pending articles."""
    saved = await analyze_pending_sentiment(
        limit=settings.sentiment_fetch_limit,
        batch_size=settings.sentiment_batch_size,
        delay=settings.sentiment_batch_delay,
    )
    return f"Analysed {saved} articles"


# =============================================================================
# MULTI-AGENT ANALYSIS
# =============================================================================


@register_job("multi_agent_analysis")
async def multi_agent_analysis_job() -> str:
    """Five-opinion investment analysis for every active instrument."""
    from signaldesk.analysis.orchestrator import AnalysisOrchestrator

    instruments = await instruments_orm.list_active()
    if not instruments:
        return "No active instruments"

    orchestrator = AnalysisOrchestrator(news_limit=settings.news_agent_limit)
    summary = await orchestrator.run_all(instruments)
    return f"Analysed {summary.analyzed} instruments ({summary.failed} failed)"
