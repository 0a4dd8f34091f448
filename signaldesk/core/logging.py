"""Structured logging configuration with job run ID tracking."""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config import settings


# Set by execute_job for the duration of one job run, e.g. "filter_news-20240105083500"
run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Tag every line emitted inside a job run
        run_id = run_id_var.get()
        if run_id:
            log_data["run_id"] = run_id

        # Error payloads passed as extra={"extra_fields": e.to_dict()}
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Source location only when debugging
        if settings.debug:
            log_data["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        # Article titles are Korean; keep them readable
        return json.dumps(log_data, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for local runs."""

    def format(self, record: logging.LogRecord) -> str:
        run_id = run_id_var.get()
        # Run ids are short ("<job>-<timestamp>"), print them whole
        rid = f"[{run_id}] " if run_id else ""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        base = f"{timestamp} {record.levelname:8} {rid}{record.name}: {record.getMessage()}"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


class SensitiveDataFilter(logging.Filter):
    """Redact credentials (OpenAI key, Naver client secret) from log messages."""

    SENSITIVE_KEYS = {
        "password",
        "token",
        "secret",
        "authorization",
        "api_key",
        "client_secret",
        "x-naver-client-secret",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage().lower()
        for key in self.SENSITIVE_KEYS:
            if key in message:
                record.msg = self._redact_value(str(record.msg), key)
        # Never drop the record, only rewrite it
        return True

    def _redact_value(self, text: str, key: str) -> str:
        """Replace the value following ``key`` with [REDACTED]."""
        # key=value, key: value, 'key': value, "key": value
        patterns = [
            rf'({key}\s*[=:]\s*)[^\s,}}\]]+',
            rf"('{key}'\s*:\s*)[^\s,}}\]]+",
            rf'("{key}"\s*:\s*)[^\s,}}\]]+',
        ]
        for pattern in patterns:
            text = re.sub(pattern, r"\1[REDACTED]", text, flags=re.IGNORECASE)
        return text


def setup_logging() -> None:
    """Configure logging for the CLI and the scheduler process."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))

    # Calling twice (job then scheduler) must not duplicate output
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Job results go to stdout alongside the logs
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, settings.log_level))

    if settings.log_format == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(TextFormatter())

    handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(handler)

    # Per-request chatter from the HTTP, LLM, market data and scheduler libraries
    for noisy in ("httpx", "openai", "yfinance", "apscheduler"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``signaldesk`` namespace, e.g. ``signaldesk.jobs.scheduler``."""
    return logging.getLogger(f"signaldesk.{name}")
