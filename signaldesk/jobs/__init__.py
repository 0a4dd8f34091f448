"""Scheduled pipeline jobs."""

from . import definitions  # noqa: F401  registers the jobs
from .registry import get_all_jobs, get_job, list_job_names, register_job, require_job
from .scheduler import DEFAULT_SCHEDULES, JobScheduler, execute_job, get_scheduler


__all__ = [
    "DEFAULT_SCHEDULES",
    "JobScheduler",
    "execute_job",
    "get_all_jobs",
    "get_job",
    "get_scheduler",
    "list_job_names",
    "register_job",
    "require_job",
]
