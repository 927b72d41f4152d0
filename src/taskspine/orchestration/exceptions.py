"""Orchestration exceptions — structured error hierarchy.

All graph exceptions inherit from ``taskspine.core.errors.OrchestrationError``
so that callers can catch the entire family with a single ``except`` clause.

These describe a malformed task graph.  A unit that fails at runtime is never
reported through this hierarchy: its own exception (or ``TaskFailure``)
reaches the caller.

Hierarchy::

    OrchestrationError  (from taskspine.core.errors)
      └── GraphError                  ── base for all task graph errors
            ├── InvalidTaskError        ── descriptor is not a unit/Bare/Dependent
            ├── DependencyError         ── task depends on unknown names
            └── CycleDetectedError      ── dependency graph has a cycle
"""

from typing import Any

from taskspine.core.errors import OrchestrationError


class GraphError(OrchestrationError):
    """Base exception for all task graph errors."""

    pass


class InvalidTaskError(GraphError):
    """Raised when a graph value is neither a unit nor a task descriptor."""

    def __init__(self, task_name: str, value: Any):
        self.task_name = task_name
        self.value = value
        super().__init__(
            f"Task '{task_name}' must be a unit, Bare or Dependent, got {type(value).__name__}"
        )


class DependencyError(GraphError):
    """Raised when a task depends on names missing from the graph."""

    def __init__(self, task_name: str, missing_deps: list[str]):
        self.task_name = task_name
        self.missing_deps = missing_deps
        deps_str = ", ".join(missing_deps)
        super().__init__(f"Task '{task_name}' depends on unknown tasks: {deps_str}")


class CycleDetectedError(GraphError):
    """Raised when the dependency graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        cycle_str = " -> ".join(cycle)
        super().__init__(f"Cycle detected in dependency graph: {cycle_str}")
