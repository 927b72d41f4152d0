"""
Structured error types for spine-tasks.

Every error raised by the library itself derives from ``TaskSpineError`` and
carries a category, a structured ``ErrorContext`` and an optional chained
cause, so callers can catch the whole family with one ``except`` clause and
log errors with ``to_dict()``.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                     TaskSpineError                        │
        │            (category, context, cause)                     │
        ├──────────────────────────────────────────────────────────┤
        │                                                           │
        │  TaskFailure          OrchestrationError     ConfigError  │
        │  (TASK, .reason)      (ORCHESTRATION)        (CONFIG)     │
        │                              │                            │
        │                         GraphError                        │
        │                  (orchestration.exceptions)               │
        └──────────────────────────────────────────────────────────┘

A unit of work may reject with any value. Exceptions are surfaced to the
caller unchanged; anything else is wrapped in ``TaskFailure`` so the runner
can still raise it.

Examples:
    >>> error = TaskFailure("quota exhausted")
    >>> error.reason
    'quota exhausted'
    >>> error.with_context(task="fetch").context.task
    'fetch'

Tags:
    error-handling, exception-hierarchy, error-context, spine-tasks

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        TASK: A unit of work rejected or raised
        ORCHESTRATION: Malformed task graph or runner misuse
        CONFIG: Invalid settings
        INTERNAL: Bugs, unexpected state
    """

    TASK = "TASK"
    ORCHESTRATION = "ORCHESTRATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        runner: Entry point that observed the error ("parallel", "series", "auto")
        task: Task name within a graph
        index: Position of the unit within a task group
        invocation_id: Identifier of the runner invocation
        metadata: Additional key-value pairs
    """

    runner: str | None = None
    task: str | None = None
    index: int | None = None
    invocation_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["runner", "task", "index", "invocation_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TaskSpineError(Exception):
    """
    Base exception for all spine-tasks errors.

    Subclasses set ``default_category`` to classify themselves.

    Examples:
        >>> error = TaskSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'TaskSpineError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TaskSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise TaskFailure("timeout").with_context(task="fetch", runner="auto")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TASK FAILURES
# =============================================================================


class TaskFailure(TaskSpineError):
    """
    A unit of work rejected with a value that is not an exception.

    The original value is kept untouched in ``reason``.
    """

    default_category = ErrorCategory.TASK

    def __init__(self, reason: Any, *, context: ErrorContext | None = None):
        super().__init__(f"Task failed: {reason!r}", context=context)
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["reason"] = repr(self.reason)
        return result


# =============================================================================
# ORCHESTRATION / CONFIG ERRORS
# =============================================================================


class OrchestrationError(TaskSpineError):
    """Task graph or runner error."""

    default_category = ErrorCategory.ORCHESTRATION


class ConfigError(TaskSpineError):
    """Invalid configuration."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# HELPERS
# =============================================================================


def as_exception(reason: Any) -> Exception:
    """Return the exception a runner raises for a rejection ``reason``.

    ``Exception`` instances pass through; anything else, including
    ``BaseException`` subclasses such as ``CancelledError``, is wrapped.
    """
    if isinstance(reason, Exception):
        return reason
    return TaskFailure(reason)


def failure_reason(error: BaseException) -> Any:
    """Recover the value a unit rejected with.

    Inverse of :func:`as_exception`: unwraps ``TaskFailure`` and returns any
    other exception as-is.
    """
    if isinstance(error, TaskFailure):
        return error.reason
    return error


def categorize_error(error: BaseException) -> ErrorCategory:
    """Classify any exception into an ``ErrorCategory``."""
    if isinstance(error, TaskSpineError):
        return error.category
    return ErrorCategory.TASK
