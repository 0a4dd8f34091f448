"""
Command line entry point.

    python -m signaldesk collect_news
    python -m signaldesk schedule
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from signaldesk.core.config import settings
from signaldesk.core.exceptions import ConfigurationError, JobError
from signaldesk.core.logging import get_logger, setup_logging
from signaldesk.database.connection import close_database
from signaldesk.jobs import execute_job, get_scheduler, list_job_names, require_job


logger = get_logger("cli")

# Settings each job needs before it may run
REQUIRED_SETTINGS: dict[str, tuple[str, ...]] = {
    "collect_news": ("database_url", "naver_client_id", "naver_client_secret"),
    "filter_news": ("database_url",),
    "collect_full_content": ("database_url", "openai_api_key"),
    "analyze_sentiment": ("database_url", "openai_api_key"),
    "multi_agent_analysis": ("database_url", "openai_api_key"),
}


def required_settings(command: str) -> tuple[str, ...]:
    if command == "schedule":
        names: list[str] = []
        for job_names in REQUIRED_SETTINGS.values():
            names.extend(n for n in job_names if n not in names)
        return tuple(names)
    return REQUIRED_SETTINGS.get(command, ("database_url",))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signaldesk",
        description="News signal pipeline and multi-agent investment analysis",
    )
    parser.add_argument(
        "command",
        help=f"Job to run once ({', '.join(list_job_names())}) or 'schedule'",
    )
    return parser


async def _run_job(name: str) -> str:
    try:
        return await execute_job(name)
    finally:
        await close_database()


async def _run_scheduler() -> None:
    scheduler = get_scheduler()
    scheduler.start()
    if not scheduler.running:
        return
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
        await close_database()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        if args.command != "schedule":
            require_job(args.command)
        settings.require(*required_settings(args.command))
    except (ConfigurationError, JobError) as e:
        logger.error(e.message, extra={"extra_fields": e.to_dict()})
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    if args.command == "schedule":
        try:
            asyncio.run(_run_scheduler())
        except KeyboardInterrupt:
            logger.info("Scheduler interrupted")
        return 0

    try:
        result = asyncio.run(_run_job(args.command))
    except Exception:
        return 1
    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
