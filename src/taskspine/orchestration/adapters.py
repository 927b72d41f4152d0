"""Unit adapters — turn ordinary Python callables and awaitables into units.

Problem
-------
A unit of work has the signature ``unit(resolve, reject)``.  That is the
right shape for timer and callback APIs, but most asyncio code is written as
coroutine functions, and plenty of work is a plain synchronous call.

Solution
--------
These helpers wrap such code so it plugs into ``parallel``, ``series`` and
``auto`` without changing its signature::

    async def fetch(url: str) -> bytes: ...

    await parallel([from_coroutine(fetch, a), from_coroutine(fetch, b)])

    graph = {
        "raw": from_coroutine(fetch, url),
        "size": depends("raw")(lambda r: from_callable(len, r["raw"])),
    }

Available adapters:

* ``from_coroutine(fn, *args, **kwargs)`` — schedule ``fn(*args, **kwargs)``
  as a task when the unit starts
* ``from_awaitable(aw)`` — settle with an existing awaitable's outcome
* ``from_callable(fn, *args, **kwargs)`` — synchronous call
* ``resolved(value)`` / ``rejected(reason)`` — settle immediately
* ``delayed(seconds, value)`` — resolve after a timer
* ``depends(*names)`` — decorator building a ``Dependent`` descriptor

Tags:
    spine-tasks, orchestration, adapters, coroutines, callables

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from typing import Any

from taskspine.orchestration.graph import Builder, Dependent
from taskspine.orchestration.unit import Reject, Resolve, Unit

# Tasks created by coroutine units; held until done so they are not collected.
_running: set[asyncio.Task[Any]] = set()


def _settle_from(task: asyncio.Future[Any], resolve: Resolve, reject: Reject) -> None:
    if task.cancelled():
        reject(asyncio.CancelledError())
    elif task.exception() is not None:
        reject(task.exception())
    else:
        resolve(task.result())


def from_awaitable(awaitable: Awaitable[Any]) -> Unit:
    """Wrap an awaitable; the unit settles with its outcome.

    The awaitable is scheduled when the unit starts, not before.  An
    awaitable can only be consumed once, so the unit must be started once.
    """

    def unit(resolve: Resolve, reject: Reject) -> None:
        task = asyncio.ensure_future(awaitable)
        _running.add(task)
        task.add_done_callback(_running.discard)
        task.add_done_callback(lambda t: _settle_from(t, resolve, reject))

    return unit


def from_coroutine(fn: Callable[..., Coroutine[Any, Any, Any]], *args: Any, **kwargs: Any) -> Unit:
    """Wrap a coroutine function; it is called when the unit starts."""

    @functools.wraps(fn)
    def unit(resolve: Resolve, reject: Reject) -> None:
        from_awaitable(fn(*args, **kwargs))(resolve, reject)

    return unit


def from_callable(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Unit:
    """Wrap a synchronous callable.

    The call runs inside the unit's start, so the unit settles before the
    runner moves on.  Exceptions raised by ``fn`` reject the unit.
    """

    @functools.wraps(fn)
    def unit(resolve: Resolve, reject: Reject) -> None:
        resolve(fn(*args, **kwargs))

    return unit


def resolved(value: Any = None) -> Unit:
    """A unit that succeeds immediately with ``value``."""

    def unit(resolve: Resolve, reject: Reject) -> None:
        resolve(value)

    return unit


def rejected(reason: Any) -> Unit:
    """A unit that fails immediately with ``reason``."""

    def unit(resolve: Resolve, reject: Reject) -> None:
        reject(reason)

    return unit


def delayed(seconds: float, value: Any = None) -> Unit:
    """A unit that succeeds with ``value`` after ``seconds``."""

    def unit(resolve: Resolve, reject: Reject) -> None:
        asyncio.get_running_loop().call_later(seconds, resolve, value)

    return unit


def depends(*requires: str) -> Callable[[Builder], Dependent]:
    """Decorator form of ``Dependent``.

    Usage::

        @depends("first", "second")
        def total(results: Mapping[str, Any]) -> Unit:
            return resolved(results["first"] + results["second"])

        graph = {"first": ..., "second": ..., "total": total}
    """

    def decorator(build: Callable[[Mapping[str, Any]], Unit]) -> Dependent:
        return Dependent(requires, build)

    return decorator
