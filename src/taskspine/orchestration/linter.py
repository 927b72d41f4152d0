"""Graph Linter — static checks for task graphs before execution.

``auto`` only rejects unknown dependency names.  A cycle is not detected
there: the tasks on it simply never start.  Callers that build graphs
dynamically can check them here first.

Architecture::

    lint_graph(graph)
    │
    ├── _check_empty_graph          W001
    ├── _check_unknown_dependencies E001
    ├── _check_cycles               E002
    ├── _check_self_dependencies    E003
    ├── _check_duplicate_dependencies W002
    └── (one-shot rules via extra_rules)
    │
    ▼
    LintResult
    ├── diagnostics: list[LintDiagnostic]
    ├── passed → bool (no errors)
    └── summary() → str

Example::

    from taskspine.orchestration.linter import lint_graph, validate_graph

    result = lint_graph(graph, name="nightly")
    if not result.passed:
        for d in result.errors:
            print(d)

    validate_graph(graph)   # raises DependencyError / CycleDetectedError
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from taskspine.logging import get_logger
from taskspine.orchestration.exceptions import CycleDetectedError
from taskspine.orchestration.graph import (
    TaskDescriptor,
    check_dependencies,
    dependency_names,
    normalize_graph,
)

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Diagnostic model
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    """Severity level for a lint diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class LintDiagnostic:
    """A single lint finding.

    Attributes:
        code: Short identifier (e.g. ``"E001"``).
        severity: ``error``, ``warning``, or ``info``.
        message: Human-readable description.
        task_name: Name of the offending task (if applicable).
    """

    code: str
    severity: Severity
    message: str
    task_name: str | None = None

    def __str__(self) -> str:
        prefix = f"[{self.code}] {self.severity.value.upper()}"
        location = f" in task '{self.task_name}'" if self.task_name else ""
        return f"{prefix}{location}: {self.message}"


@dataclass
class LintResult:
    """Aggregated result of linting a graph."""

    graph_name: str
    diagnostics: list[LintDiagnostic] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True if there are no error-level diagnostics."""
        return not any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def errors(self) -> list[LintDiagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[LintDiagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    def summary(self) -> str:
        """One-line summary of the lint result."""
        status = "PASS" if self.passed else "FAIL"
        parts = [f"{status}: {self.graph_name}"]
        if self.errors:
            parts.append(f"{len(self.errors)} errors")
        if self.warnings:
            parts.append(f"{len(self.warnings)} warnings")
        return " | ".join(parts)

    def __str__(self) -> str:
        lines = [self.summary()]
        for d in self.diagnostics:
            lines.append(f"  {d}")
        return "\n".join(lines)


# Rules take the dependency map (task name -> declared dependency names).
LintRule = Callable[[Mapping[str, Sequence[str]]], list[LintDiagnostic]]


# ---------------------------------------------------------------------------
# Cycle search
# ---------------------------------------------------------------------------

def _find_cycle(deps: Mapping[str, Sequence[str]], *, include_self: bool = True) -> list[str] | None:
    """Depth-first search in key order; returns ``[a, b, ..., a]`` or None."""
    visiting: list[str] = []
    done: set[str] = set()

    def visit(name: str) -> list[str] | None:
        visiting.append(name)
        for dep in deps.get(name, ()):
            if dep not in deps or dep in done:
                continue
            if dep == name and not include_self:
                continue
            if dep in visiting:
                return visiting[visiting.index(dep):] + [dep]
            cycle = visit(dep)
            if cycle:
                return cycle
        visiting.pop()
        done.add(name)
        return None

    for name in deps:
        if name not in done:
            cycle = visit(name)
            if cycle:
                return cycle
    return None


def find_cycle(graph: Mapping[str, TaskDescriptor]) -> list[str] | None:
    """Return one dependency cycle in ``graph`` (first name repeated last), or None."""
    return _find_cycle(dependency_names(normalize_graph(graph)))


# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------

def _check_empty_graph(deps: Mapping[str, Sequence[str]]) -> list[LintDiagnostic]:
    """W001: Graph has no tasks."""
    if deps:
        return []
    return [LintDiagnostic(code="W001", severity=Severity.WARNING, message="Graph has no tasks.")]


def _check_unknown_dependencies(deps: Mapping[str, Sequence[str]]) -> list[LintDiagnostic]:
    """E001: Task depends on a name that is not in the graph."""
    diagnostics = []
    for name, requires in deps.items():
        missing = [dep for dep in requires if dep not in deps]
        if missing:
            diagnostics.append(
                LintDiagnostic(
                    code="E001",
                    severity=Severity.ERROR,
                    message=f"Depends on unknown tasks: {', '.join(missing)}",
                    task_name=name,
                )
            )
    return diagnostics


def _check_cycles(deps: Mapping[str, Sequence[str]]) -> list[LintDiagnostic]:
    """E002: Tasks depend on each other in a loop and would never start."""
    cycle = _find_cycle(deps, include_self=False)
    if not cycle:
        return []
    return [
        LintDiagnostic(
            code="E002",
            severity=Severity.ERROR,
            message=f"Dependency cycle: {' -> '.join(cycle)}",
            task_name=cycle[0],
        )
    ]


def _check_self_dependencies(deps: Mapping[str, Sequence[str]]) -> list[LintDiagnostic]:
    """E003: Task depends on itself."""
    return [
        LintDiagnostic(
            code="E003",
            severity=Severity.ERROR,
            message="Task depends on itself.",
            task_name=name,
        )
        for name, requires in deps.items()
        if name in requires
    ]


def _check_duplicate_dependencies(deps: Mapping[str, Sequence[str]]) -> list[LintDiagnostic]:
    """W002: Same dependency listed more than once."""
    diagnostics = []
    for name, requires in deps.items():
        duplicates = sorted(dep for dep, count in Counter(requires).items() if count > 1)
        if duplicates:
            diagnostics.append(
                LintDiagnostic(
                    code="W002",
                    severity=Severity.WARNING,
                    message=f"Dependencies listed more than once: {', '.join(duplicates)}",
                    task_name=name,
                )
            )
    return diagnostics


_BUILT_IN_RULES: list[tuple[str, LintRule]] = [
    ("check_empty_graph", _check_empty_graph),
    ("check_unknown_dependencies", _check_unknown_dependencies),
    ("check_cycles", _check_cycles),
    ("check_self_dependencies", _check_self_dependencies),
    ("check_duplicate_dependencies", _check_duplicate_dependencies),
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def lint_graph(
    graph: Mapping[str, TaskDescriptor],
    *,
    name: str = "graph",
    extra_rules: list[LintRule] | None = None,
) -> LintResult:
    """Run all lint rules against a task graph.

    Parameters
    ----------
    graph
        The graph to lint (same shape ``auto`` accepts).
    name
        Label used in the summary.
    extra_rules
        One-shot rules to run after the built-in ones.

    Returns
    -------
    LintResult
        Aggregated diagnostics from all rules.
    """
    deps = dependency_names(normalize_graph(graph))
    result = LintResult(graph_name=name)
    all_rules = list(_BUILT_IN_RULES)

    if extra_rules:
        for i, rule in enumerate(extra_rules):
            all_rules.append((f"extra_rule_{i}", rule))

    for rule_name, rule in all_rules:
        try:
            result.diagnostics.extend(rule(deps))
        except Exception:
            logger.warning("tasks.lint.rule_failed", rule=rule_name, exc_info=True)
            result.diagnostics.append(
                LintDiagnostic(
                    code="X001",
                    severity=Severity.WARNING,
                    message=f"Lint rule '{rule_name}' raised an exception.",
                )
            )

    logger.debug("tasks.lint.done", graph=name, summary=result.summary())
    return result


def validate_graph(graph: Mapping[str, Any], *, check_cycles: bool = True) -> None:
    """Raise on the first structural problem in ``graph``.

    Raises:
        InvalidTaskError: A value is not a task descriptor.
        DependencyError: A task depends on an unknown name.
        CycleDetectedError: ``check_cycles`` is set and the graph has a cycle.
    """
    tasks = normalize_graph(graph)
    check_dependencies(tasks)

    if check_cycles:
        cycle = _find_cycle(dependency_names(tasks))
        if cycle:
            raise CycleDetectedError(cycle)
