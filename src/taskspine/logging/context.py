"""
Logging context management using contextvars.

Runner invocations push their identity (invocation id, runner name, task
name or index) into a context variable; a structlog processor copies it into
every log entry. contextvars are copied into each asyncio task on creation,
so context bound before a unit is scheduled follows it.
"""

import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Any

import structlog


def _generate_invocation_id() -> str:
    """Generate a short invocation ID (12 hex chars)."""
    return uuid.uuid4().hex[:12]


@dataclass
class LogContext:
    """
    Execution context attached to all log entries.

    Core identifiers:
        invocation_id: Unique id of one parallel/series/auto call
        runner: "parallel", "series" or "auto"

    Tracing (for nested timing blocks):
        span_id: Current span identifier
        parent_span_id: Parent span for nested operations

    Unit context:
        task: Task name within a graph
        index: Unit position within a task group
        step: Current timed step name
    """

    invocation_id: str | None = None
    runner: str | None = None

    span_id: str | None = None
    parent_span_id: str | None = None

    task: str | None = None
    index: int | None = None
    step: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "LogContext":
        """Create new context with merged values."""
        current = asdict(self)
        current.update({k: v for k, v in kwargs.items() if v is not None})
        return LogContext(**current)


_log_context: ContextVar[LogContext] = ContextVar("taskspine_log_context")  # noqa: B039


def get_context() -> LogContext:
    """Get the current log context."""
    return _log_context.get(LogContext())


def set_context(
    invocation_id: str | None = None,
    runner: str | None = None,
    task: str | None = None,
    index: int | None = None,
    step: str | None = None,
    span_id: str | None = None,
    parent_span_id: str | None = None,
) -> LogContext:
    """
    Set the current log context.

    This replaces the current context. Use bind_context() to add to existing.
    """
    ctx = LogContext(
        invocation_id=invocation_id,
        runner=runner,
        task=task,
        index=index,
        step=step,
        span_id=span_id,
        parent_span_id=parent_span_id,
    )
    _log_context.set(ctx)
    return ctx


def bind_context(**kwargs) -> LogContext:
    """Merge values into the current context."""
    updated = get_context().merge(**kwargs)
    _log_context.set(updated)
    return updated


def clear_context() -> None:
    """Clear the current context (reset to empty)."""
    _log_context.set(LogContext())


class _ContextToken:
    """Token for restoring context after a scoped operation."""

    def __init__(self, token):
        self._token = token

    def restore(self):
        """Restore the previous context."""
        _log_context.reset(self._token)


def push_context(**kwargs) -> _ContextToken:
    """
    Push new context values, returning a token to restore later.

    Usage:
        token = push_context(runner="auto", invocation_id=new_invocation_id())
        try:
            await run()
        finally:
            token.restore()
    """
    updated = get_context().merge(**kwargs)
    token = _log_context.set(updated)
    return _ContextToken(token)


def new_invocation_id() -> str:
    """Return a fresh invocation identifier."""
    return _generate_invocation_id()


def add_context_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that adds execution context to every log entry.

    Explicit keys passed to the log call win over context values.
    """
    for key, value in get_context().to_dict().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)
