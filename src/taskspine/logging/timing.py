"""
Timing utilities for performance logging.

- Context manager: with log_step("tasks.parallel"):
- Manual: with timed_block() as timer; timer.duration_ms

Design:
- Logs start at DEBUG, end at INFO or DEBUG (with duration)
- Includes execution context automatically
- Lightweight tracing with span_id/parent_span_id

Both context managers are synchronous and may wrap ``await`` expressions
inside a coroutine; the pushed context belongs to the running task.
"""

import time
import traceback
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from taskspine.logging.context import get_context, get_logger, push_context


def _generate_span_id() -> str:
    """Generate a short span ID (8 hex chars)."""
    return uuid.uuid4().hex[:8]


@dataclass
class TimingResult:
    """Result of a timed operation with tracing support."""

    step: str
    span_id: str = field(default_factory=_generate_span_id)
    parent_span_id: str | None = None
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    status: str = "ok"  # ok, error
    error_info: dict[str, Any] | None = None

    def stop(self) -> "TimingResult":
        """Record end time."""
        self.ended_at = time.perf_counter()
        return self

    @property
    def duration_seconds(self) -> float:
        if self.ended_at is None:
            return time.perf_counter() - self.started_at
        return self.ended_at - self.started_at

    @property
    def duration_ms(self) -> float:
        return self.duration_seconds * 1000

    def add_metric(self, key: str, value: Any) -> "TimingResult":
        """Add a metric to include in the log output."""
        self.metrics[key] = value
        return self

    def set_error(self, e: BaseException) -> "TimingResult":
        """Record error information."""
        self.status = "error"
        self.error_info = {
            "error_type": type(e).__name__,
            "error_message": str(e),
            "error_stack": "".join(traceback.format_exception(type(e), e, e.__traceback__)),
        }
        return self

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to dict for logging."""
        result = {
            "duration_ms": round(self.duration_ms, 2),
            "span_id": self.span_id,
        }
        if self.parent_span_id:
            result["parent_span_id"] = self.parent_span_id
        result.update(self.metrics)
        return result

    def to_error_dict(self) -> dict[str, Any]:
        """Convert to dict for error logging."""
        result = self.to_log_dict()
        result["status"] = "error"
        if self.error_info:
            result.update(self.error_info)
        return result


@contextmanager
def timed_block(step: str = "unnamed") -> Iterator[TimingResult]:
    """
    Low-level timing context manager. Does not log.

    Usage:
        with timed_block("resolve") as timer:
            await work()
        print(f"Took {timer.duration_ms}ms")
    """
    timer = TimingResult(step=step, parent_span_id=get_context().span_id)
    try:
        yield timer
    finally:
        timer.stop()


@contextmanager
def log_step(
    event: str,
    log_start: bool = True,
    level: str = "info",
    error_level: str = "error",
    error_stack: bool = True,
    **extra_metrics,
) -> Iterator[TimingResult]:
    """
    Context manager that logs step start/end with timing and tracing.

    Logs:
    - Start: DEBUG level (event.start) with span_id
    - End: ``level`` (event.end) with duration_ms, span_id
    - Error: ``error_level`` (event.error) with error details, then re-raises

    Usage:
        with log_step("tasks.parallel", units=7) as timer:
            results = await gather()
            timer.add_metric("results", len(results))

    Args:
        event: Event name (e.g., "tasks.auto")
        log_start: Whether to log at start (DEBUG)
        level: Log level for end message ("info" or "debug")
        error_level: Log level for the error message
        error_stack: Include the formatted traceback in the error message
        **extra_metrics: Additional metrics to include in logs
    """
    log = get_logger("taskspine.timing")

    parent_span = get_context().span_id
    timer = TimingResult(step=event, parent_span_id=parent_span, metrics=dict(extra_metrics))
    context_token = push_context(span_id=timer.span_id, parent_span_id=parent_span, step=event)

    try:
        if log_start:
            start_fields = {"span_id": timer.span_id}
            if parent_span:
                start_fields["parent_span_id"] = parent_span
            start_fields.update(extra_metrics)
            log.debug(f"{event}.start", **start_fields)

        yield timer

    except Exception as e:
        timer.stop()
        timer.set_error(e)
        error_fields = timer.to_error_dict()
        if not error_stack:
            error_fields.pop("error_stack", None)
        getattr(log, error_level)(f"{event}.error", **error_fields)
        raise

    finally:
        timer.stop()
        context_token.restore()

    log_method = getattr(log, level)
    log_method(f"{event}.end", **timer.to_log_dict())
