"""
spine-tasks orchestration — run units of work in parallel, in series, or as
a dependency graph.

ARCHITECTURE
────────────
::

    unit(resolve, reject)        ─ a unit of work
      └── start() / Settlement   ─ turns one unit into an asyncio.Future

    parallel(units)              ─ all at once, results in input order
    series(units)                ─ one after another, stop at first failure
    auto(graph)                  ─ named tasks with Bare / Dependent edges

    Supporting:
      adapters.py                ─ coroutine / awaitable / callable → unit
      linter.py                  ─ static checks of task graphs
      exceptions.py              ─ graph error hierarchy

MODULE MAP (recommended reading order)
──────────────────────────────────────
1. unit.py         ─ settlement contract
2. runners.py      ─ parallel + series
3. graph.py        ─ auto, Bare, Dependent
4. adapters.py     ─ unit adapters, depends() decorator
5. linter.py       ─ lint_graph, validate_graph, find_cycle
6. exceptions.py   ─ GraphError and subclasses

Example:
    from taskspine.orchestration import Dependent, auto, delayed, resolved

    results = await auto({
        "first": delayed(0.25, 10),
        "second": resolved(3),
        "sum": Dependent(["first", "second"], lambda r: resolved(r["first"] + r["second"])),
    })
"""

from taskspine.orchestration.adapters import (
    delayed,
    depends,
    from_awaitable,
    from_callable,
    from_coroutine,
    rejected,
    resolved,
)
from taskspine.orchestration.exceptions import (
    CycleDetectedError,
    DependencyError,
    GraphError,
    InvalidTaskError,
)
from taskspine.orchestration.graph import (
    Bare,
    Builder,
    Dependent,
    TaskDescriptor,
    as_descriptor,
    auto,
    normalize_graph,
)
from taskspine.orchestration.linter import (
    LintDiagnostic,
    LintResult,
    LintRule,
    Severity,
    find_cycle,
    lint_graph,
    validate_graph,
)
from taskspine.orchestration.runners import parallel, series
from taskspine.orchestration.unit import Reject, Resolve, Settlement, Unit, start

__all__ = [
    # Units
    "Unit",
    "Resolve",
    "Reject",
    "Settlement",
    "start",
    # Runners
    "parallel",
    "series",
    "auto",
    # Graph descriptors
    "Bare",
    "Dependent",
    "Builder",
    "TaskDescriptor",
    "as_descriptor",
    "normalize_graph",
    # Adapters
    "from_coroutine",
    "from_awaitable",
    "from_callable",
    "resolved",
    "rejected",
    "delayed",
    "depends",
    # Linter
    "Severity",
    "LintDiagnostic",
    "LintResult",
    "LintRule",
    "lint_graph",
    "validate_graph",
    "find_cycle",
    # Exceptions
    "GraphError",
    "InvalidTaskError",
    "DependencyError",
    "CycleDetectedError",
]
