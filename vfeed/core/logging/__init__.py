"""Structured logging for feed components."""

from vfeed.core.logging.config import LOG_LEVELS, LogConfig
from vfeed.core.logging.logger import (
    bind,
    configure_logging,
    current_run_id,
    format_payload,
    logger,
    run_context,
)

__all__ = [
    "LOG_LEVELS",
    "LogConfig",
    "bind",
    "configure_logging",
    "current_run_id",
    "format_payload",
    "logger",
    "run_context",
]
