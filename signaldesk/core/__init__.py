"""Core infrastructure: settings, logging, exceptions."""

from .config import Settings, get_settings, settings
from .exceptions import (
    AppException,
    ConfigurationError,
    ExternalServiceError,
    JobError,
    StructuringError,
)
from .logging import get_logger, setup_logging


__all__ = [
    "AppException",
    "ConfigurationError",
    "ExternalServiceError",
    "JobError",
    "Settings",
    "StructuringError",
    "get_logger",
    "get_settings",
    "settings",
    "setup_logging",
]
