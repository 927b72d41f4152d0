"""
spine-tasks logging - structured, invocation-aware logging.

This package provides:
- Structured logging with structlog
- Invocation context propagation via contextvars
- Timing utilities for runner durations
- Settings-based configuration

Usage:
    from taskspine.logging import configure_logging, get_logger, log_step

    configure_logging()
    log = get_logger(__name__)

    with log_step("fan_out"):
        await parallel(units)
"""

from taskspine.logging.config import configure_logging, is_configured, is_debug_enabled, reset_logging
from taskspine.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    new_invocation_id,
    push_context,
    set_context,
)
from taskspine.logging.timing import TimingResult, log_step, timed_block

__all__ = [
    # Configuration
    "configure_logging",
    "is_configured",
    "is_debug_enabled",
    "reset_logging",
    # Context
    "get_logger",
    "set_context",
    "clear_context",
    "get_context",
    "bind_context",
    "push_context",
    "new_invocation_id",
    "LogContext",
    # Timing
    "TimingResult",
    "log_step",
    "timed_block",
]
