"""
Dependency graph executor — ``auto``.

Resolves a mapping of named tasks, some of which depend on the results of
others, into a mapping of task name to result.

Task descriptors
────────────────
::

    graph = {
        "first":  delayed(0.25, 10),                     # plain unit
        "second": Bare(resolved(3)),                     # explicit Bare
        "sum":    Dependent(
            ["first", "second"],
            lambda r: resolved(r["first"] + r["second"]),
        ),
        "square": Dependent(["sum"], lambda r: delayed(0.25, r["sum"] ** 2)),
    }

    results = await auto(graph)
    # {"second": 3, "first": 10, "sum": 13, "square": 169}

Execution
─────────
1. Every task without dependencies is started immediately, in key order.
2. Every dependent task waits for all of its dependencies, then its builder
   is called with a read-only mapping of exactly those results, and the unit
   it returns is started.
3. Each result is recorded under its task name as it settles.
4. The first failure fails the whole call.  Tasks already running are left
   alone and tasks unblocked by unrelated completions still start; their
   results are discarded.  Dependents of the failed task never start.

Unknown dependency names raise ``DependencyError`` before anything starts.
Cycles are not detected: tasks on a cycle never start and the call stays
pending.  Use ``taskspine.orchestration.linter.validate_graph`` to check a
graph up front.

Tags:
    spine-tasks, orchestration, dag, dependencies, asyncio

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, TypeAlias

from taskspine.logging import get_logger, log_step, new_invocation_id, push_context
from taskspine.orchestration.exceptions import DependencyError, InvalidTaskError
from taskspine.orchestration.runners import annotate_failure, discard_pending
from taskspine.orchestration.unit import Unit, start

logger = get_logger(__name__)

Builder: TypeAlias = Callable[[Mapping[str, Any]], Unit]


@dataclass(frozen=True)
class Bare:
    """A task with no dependencies."""

    unit: Unit


@dataclass(frozen=True)
class Dependent:
    """A task that starts once every task named in ``requires`` succeeded.

    Attributes:
        requires: Names of the tasks this one depends on, in declared order.
        build: Called with a read-only mapping of the dependencies' results;
            returns the unit to start.
    """

    requires: tuple[str, ...]
    build: Builder

    def __post_init__(self) -> None:
        requires = self.requires
        if isinstance(requires, str):
            requires = (requires,)
        object.__setattr__(self, "requires", tuple(requires))


TaskDescriptor: TypeAlias = Bare | Dependent | Unit

# Keeps dependent-task workers alive until they finish, even after the
# invocation that created them has returned.
_workers: set[asyncio.Task[None]] = set()


def as_descriptor(name: str, value: Any) -> Bare | Dependent:
    """Normalize a graph value into ``Bare`` or ``Dependent``."""
    match value:
        case Bare() | Dependent():
            return value
        case _ if callable(value):
            return Bare(value)
        case _:
            raise InvalidTaskError(name, value)


def normalize_graph(graph: Mapping[str, TaskDescriptor]) -> dict[str, Bare | Dependent]:
    """Normalize every value of ``graph``, keeping declared key order."""
    return {name: as_descriptor(name, value) for name, value in graph.items()}


def check_dependencies(tasks: Mapping[str, Bare | Dependent]) -> None:
    """Raise ``DependencyError`` for the first task naming an unknown dependency."""
    for name, descriptor in tasks.items():
        if isinstance(descriptor, Dependent):
            missing = [dep for dep in descriptor.requires if dep not in tasks]
            if missing:
                raise DependencyError(name, missing)


async def auto(graph: Mapping[str, TaskDescriptor]) -> dict[str, Any]:
    """Run a dependency graph of named tasks.

    Args:
        graph: Task name to unit, ``Bare`` or ``Dependent``.

    Returns:
        Task name to result, in the order tasks settled.

    Raises:
        InvalidTaskError: A graph value is not a task descriptor.
        DependencyError: A task depends on a name missing from the graph.
        Exception: The first failure observed among the tasks.
    """
    tasks = normalize_graph(graph)
    check_dependencies(tasks)
    if not tasks:
        return {}

    loop = asyncio.get_running_loop()
    results: dict[str, Any] = {}
    gates: dict[str, asyncio.Future[Any]] = {}

    # id(exception) -> task that failed with it first; dependents of a failed
    # task later fail with the same exception object.
    origins: dict[int, str] = {}

    def record(name: str, gate: asyncio.Future[Any]) -> None:
        if gate.cancelled():
            return
        if gate.exception() is not None:
            origins.setdefault(id(gate.exception()), name)
            return
        results[name] = gate.result()
        logger.debug("tasks.auto.task_settled", task=name)

    token = push_context(runner="auto", invocation_id=new_invocation_id())
    try:
        with log_step(
            "tasks.auto",
            level="debug",
            error_level="warning",
            error_stack=False,
            tasks=len(tasks),
        ) as timer:
            dependents: list[tuple[str, Dependent]] = []

            for name, descriptor in tasks.items():
                match descriptor:
                    case Bare(unit=unit):
                        gate = start(unit, label=name)
                        logger.debug("tasks.auto.task_started", task=name)
                    case Dependent(requires=(), build=build):
                        gate = start(_deferred(build, MappingProxyType({})), label=name)
                        logger.debug("tasks.auto.task_started", task=name)
                    case Dependent():
                        gate = loop.create_future()
                        dependents.append((name, descriptor))
                gate.add_done_callback(lambda fut, name=name: record(name, fut))
                gates[name] = gate

            for name, descriptor in dependents:
                worker = asyncio.create_task(
                    _run_dependent(name, descriptor, gates, results),
                    name=f"taskspine.auto:{name}",
                )
                _workers.add(worker)
                worker.add_done_callback(_workers.discard)

            try:
                await asyncio.gather(*gates.values())
            except Exception as exc:
                failed = origins.get(id(exc))
                discard_pending(gates.items(), "auto")
                raise annotate_failure(exc, runner="auto", task=failed)

            timer.add_metric("results", len(results))
    finally:
        token.restore()

    return results


async def _run_dependent(
    name: str,
    descriptor: Dependent,
    gates: Mapping[str, asyncio.Future[Any]],
    results: Mapping[str, Any],
) -> None:
    """Wait for the dependencies of ``name``, then start it and settle its gate."""
    gate = gates[name]
    try:
        await asyncio.gather(*(gates[dep] for dep in descriptor.requires))
        view = MappingProxyType({dep: results[dep] for dep in descriptor.requires})
        logger.debug("tasks.auto.task_started", task=name, requires=list(descriptor.requires))
        value = await start(_deferred(descriptor.build, view), label=name)
    except Exception as exc:
        if not gate.done():
            gate.set_exception(exc)
        return
    if not gate.done():
        gate.set_result(value)


def _deferred(build: Builder, view: Mapping[str, Any]) -> Unit:
    """A unit that builds the real unit when started; builder errors reject it."""

    def unit(resolve, reject):
        build(view)(resolve, reject)

    return unit


def dependency_names(tasks: Mapping[str, Bare | Dependent]) -> dict[str, Sequence[str]]:
    """Map each task name to its declared dependency names."""
    return {
        name: descriptor.requires if isinstance(descriptor, Dependent) else ()
        for name, descriptor in tasks.items()
    }
