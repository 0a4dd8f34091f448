"""Job scheduler using APScheduler with async support."""

from __future__ import annotations

import inspect
import time
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from signaldesk.core.config import settings
from signaldesk.core.logging import get_logger, run_id_var

from .registry import get_all_jobs, require_job


logger = get_logger("jobs.scheduler")

# Cron expressions in the scheduler timezone (KST by default)
DEFAULT_SCHEDULES: dict[str, tuple[str, str]] = {
    "collect_news": ("*/30 * * * *", "Collect news every 30 min"),
    "filter_news": ("5,35 * * * *", "Filter news 5 min after collection"),
    "collect_full_content": ("10,40 * * * *", "Enrich important articles after filtering"),
    "analyze_sentiment": ("15,45 * * * *", "Batch sentiment after enrichment"),
    "multi_agent_analysis": ("0 8,12,16 * * 1-5", "Multi-agent analysis on trading days"),
}

# Global scheduler instance
_scheduler: Optional["JobScheduler"] = None


async def execute_job(name: str, func: Callable | None = None) -> str:
    """Run one job with timing and logging. Failures are logged and re-raised."""
    func = func or require_job(name)
    token = run_id_var.set(f"{name}-{datetime.now():%Y%m%d%H%M%S}")
    start = time.monotonic()
    logger.info(f"Job {name} started")
    try:
        result = func()
        if inspect.isawaitable(result):
            result = await result

        duration_ms = int((time.monotonic() - start) * 1000)
        message = str(result) if result else "Completed successfully"
        logger.info(f"Job {name} completed in {duration_ms}ms: {message}")
        return message
    except Exception:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.exception(f"Job {name} failed after {duration_ms}ms")
        raise
    finally:
        run_id_var.reset(token)


class JobScheduler:
    """Background job scheduler."""

    def __init__(self, schedules: dict[str, tuple[str, str]] | None = None):
        self.schedules = schedules if schedules is not None else DEFAULT_SCHEDULES
        self._scheduler = AsyncIOScheduler(
            timezone=settings.scheduler_timezone,
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,  # Only one instance per job at a time
                "misfire_grace_time": 60 * 5,
            },
        )
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Schedule all registered jobs and start. Needs a running event loop."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        if not settings.scheduler_enabled:
            logger.info("Scheduler disabled via SCHEDULER_ENABLED=false")
            return

        self._load_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Job scheduler started")

    def stop(self) -> None:
        if not self._running:
            return
        self._scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Job scheduler stopped")

    def _load_jobs(self) -> None:
        for name, func in get_all_jobs().items():
            cron_expr, description = self.schedules.get(name, ("0 * * * *", f"Job: {name}"))
            trigger = CronTrigger.from_crontab(cron_expr, timezone=settings.scheduler_timezone)
            self._scheduler.add_job(
                self._wrap_job(name, func),
                trigger=trigger,
                id=name,
                name=description,
                replace_existing=True,
            )
            logger.info(f"Scheduled job: {name} ({cron_expr})")

    def _wrap_job(self, name: str, func: Callable) -> Callable:
        async def wrapper():
            try:
                await execute_job(name, func)
            except Exception:
                # Already logged; keep the scheduler alive
                pass

        return wrapper


def get_scheduler() -> JobScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = JobScheduler()
    return _scheduler
