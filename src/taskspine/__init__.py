"""
spine-tasks - asyncio control-flow primitives.

Three entry points over callback-style units of work:

- ``parallel(units)``: run concurrently, results in input order
- ``series(units)``: run one after another
- ``auto(graph)``: run named tasks as soon as their dependencies succeed
"""

__version__ = "0.1.0"

from taskspine.core import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    OrchestrationError,
    TaskFailure,
    TaskSpineError,
    TaskSpineSettings,
    failure_reason,
    get_settings,
)
from taskspine.logging import configure_logging, get_logger
from taskspine.orchestration import (
    Bare,
    CycleDetectedError,
    Dependent,
    DependencyError,
    GraphError,
    InvalidTaskError,
    Settlement,
    auto,
    delayed,
    depends,
    find_cycle,
    from_awaitable,
    from_callable,
    from_coroutine,
    lint_graph,
    parallel,
    rejected,
    resolved,
    series,
    start,
    validate_graph,
)

__all__ = [
    "__version__",
    # Runners
    "parallel",
    "series",
    "auto",
    "Bare",
    "Dependent",
    "depends",
    "start",
    "Settlement",
    # Adapters
    "from_coroutine",
    "from_awaitable",
    "from_callable",
    "resolved",
    "rejected",
    "delayed",
    # Graph checks
    "lint_graph",
    "validate_graph",
    "find_cycle",
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "TaskSpineError",
    "TaskFailure",
    "OrchestrationError",
    "ConfigError",
    "GraphError",
    "InvalidTaskError",
    "DependencyError",
    "CycleDetectedError",
    "failure_reason",
    # Settings / logging
    "TaskSpineSettings",
    "get_settings",
    "configure_logging",
    "get_logger",
]
