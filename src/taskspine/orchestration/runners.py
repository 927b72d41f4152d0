"""
Group runners — run a list of units concurrently or strictly in order.

``parallel(units)``
    Starts every unit immediately, in index order, before waiting on any of
    them.  Resolves with the results in input order once all succeed.  The
    first failure observed fails the call; units still pending keep running
    and their outcomes are discarded.

``series(units)``
    Starts unit ``n+1`` only after unit ``n`` succeeded.  The first failure
    fails the call and nothing after it is started.

Both runners raise the failing unit's own exception, or ``TaskFailure`` when
the unit rejected with a non-exception value.  ``TaskFailure`` is annotated
with the runner name and the failing index.

Example::

    from taskspine import delayed, parallel, resolved

    results = await parallel([resolved(1), delayed(0.05, 2)])
    assert results == [1, 2]

Tags:
    spine-tasks, orchestration, parallel, series, asyncio

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from typing import Any

from taskspine.core.errors import TaskFailure
from taskspine.core.settings import get_settings
from taskspine.logging import get_logger, log_step, new_invocation_id, push_context
from taskspine.orchestration.unit import Unit, start

logger = get_logger(__name__)


async def parallel(units: Iterable[Unit]) -> list[Any]:
    """Run ``units`` concurrently; return their results in input order.

    Args:
        units: Units of work.  An empty sequence resolves to ``[]``.

    Returns:
        One result per unit, positionally aligned with ``units``.

    Raises:
        Exception: The first failure observed among the units.
    """
    units = list(units)
    if not units:
        return []

    token = push_context(runner="parallel", invocation_id=new_invocation_id())
    try:
        with log_step(
            "tasks.parallel",
            level="debug",
            error_level="warning",
            error_stack=False,
            units=len(units),
        ) as timer:
            # All starts happen before the first suspension point.
            futures = [start(unit, label=index) for index, unit in enumerate(units)]
            try:
                results = await asyncio.gather(*futures)
            except Exception as exc:
                index = _failed_index(futures, exc)
                discard_pending(enumerate(futures), "parallel")
                raise annotate_failure(exc, runner="parallel", index=index)
            timer.add_metric("results", len(results))
    finally:
        token.restore()

    return list(results)


async def series(units: Iterable[Unit]) -> list[Any]:
    """Run ``units`` one after another; return their results in input order.

    Args:
        units: Units of work.  An empty sequence resolves to ``[]``.

    Returns:
        One result per unit, positionally aligned with ``units``.

    Raises:
        Exception: The failure of the first unit that fails.  No later unit
            has been started.
    """
    units = list(units)
    results: list[Any] = []

    token = push_context(runner="series", invocation_id=new_invocation_id())
    try:
        with log_step(
            "tasks.series",
            level="debug",
            error_level="warning",
            error_stack=False,
            units=len(units),
        ) as timer:
            for index, unit in enumerate(units):
                try:
                    value = await start(unit, label=index)
                except Exception as exc:
                    timer.add_metric("completed", index)
                    raise annotate_failure(exc, runner="series", index=index)
                results.append(value)
                logger.debug("tasks.series.step", index=index)
            timer.add_metric("completed", len(results))
    finally:
        token.restore()

    return results


# =============================================================================
# Shared failure handling (also used by the graph executor)
# =============================================================================


def annotate_failure(error: Exception, **context: Any) -> Exception:
    """Attach runner context to a ``TaskFailure``; other errors pass through."""
    if isinstance(error, TaskFailure):
        error.with_context(**{k: v for k, v in context.items() if v is not None})
    return error


def discard_pending(labelled: Iterable[tuple[Any, asyncio.Future[Any]]], runner: str) -> None:
    """Log the outcome of futures that settle after the runner already failed.

    Args:
        labelled: (index or task name, future) pairs.
        runner: Runner name used in the event name.
    """
    if not get_settings().log_discarded:
        return

    for label, future in labelled:
        if not future.done():
            future.add_done_callback(
                lambda fut, label=label: _log_discarded(fut, runner, label)
            )


def _log_discarded(future: asyncio.Future[Any], runner: str, label: Any) -> None:
    if future.cancelled():
        outcome = "cancelled"
    elif future.exception() is not None:
        outcome = "failed"
    else:
        outcome = "succeeded"
    logger.debug(f"tasks.{runner}.result_discarded", unit=label, outcome=outcome)


def _failed_index(futures: Sequence[asyncio.Future[Any]], error: BaseException) -> int | None:
    for index, future in enumerate(futures):
        if future.done() and not future.cancelled() and future.exception() is error:
            return index
    return None
