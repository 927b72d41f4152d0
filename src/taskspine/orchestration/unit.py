"""Unit of Work — the settlement contract every runner builds on.

A unit of work is any callable taking two handles::

    def fetch(resolve, reject):
        loop = asyncio.get_running_loop()
        loop.call_later(0.25, resolve, 42)

The runner invokes it synchronously the moment it is started and hands it a
``Settlement``; whatever the unit does afterwards (nothing, a timer, an I/O
callback, a worker thread) is opaque.  The unit must call exactly one of the
handles, at most once:

* ``resolve(value)`` settles with a success value.
* ``reject(reason)`` settles with a failure.  Exceptions are raised to the
  runner's caller as-is; any other value is wrapped in ``TaskFailure``.
* Raising from the unit body is the same as ``reject(exc)``.
* Calls after the first are ignored (logged at DEBUG).
* Calling neither leaves the unit pending forever.

Handles may be called from other threads; those calls are marshalled onto
the loop that started the unit.

Tags:
    spine-tasks, orchestration, unit-of-work, futures, settlement

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import Any, TypeAlias

from taskspine.core.errors import as_exception
from taskspine.core.settings import get_settings
from taskspine.logging import get_logger

logger = get_logger(__name__)

Resolve: TypeAlias = Callable[..., None]
Reject: TypeAlias = Callable[..., None]
Unit: TypeAlias = Callable[[Resolve, Reject], Any]


class Settlement:
    """The pair of handles given to one started unit.

    Owns the ``asyncio.Future`` the runner waits on.  ``resolve`` and
    ``reject`` are bound methods so they can be passed around freely
    (e.g. ``loop.call_later(0.1, settlement.resolve, value)``).

    Attributes:
        future: Future fixed by the first handle call.
        label: Name or index used in log entries.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        label: str | int | None = None,
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._thread_id = threading.get_ident()
        self._claimed = False
        self.future: asyncio.Future[Any] = self._loop.create_future()
        self.label = label

    @property
    def settled(self) -> bool:
        """True once a handle has been called (even if not applied yet)."""
        return self._claimed

    def resolve(self, value: Any = None) -> None:
        """Settle successfully with ``value``."""
        self._settle(value, None)

    def reject(self, reason: Any = None) -> None:
        """Settle with failure ``reason``."""
        self._settle(None, as_exception(reason))

    def _settle(self, value: Any, error: BaseException | None) -> None:
        if self._claimed:
            if get_settings().log_late_settlements:
                logger.debug(
                    "tasks.unit.late_settlement",
                    unit=self.label,
                    ignored="reject" if error is not None else "resolve",
                )
            return
        self._claimed = True

        if threading.get_ident() == self._thread_id:
            self._apply(value, error)
        else:
            self._loop.call_soon_threadsafe(self._apply, value, error)

    def _apply(self, value: Any, error: BaseException | None) -> None:
        # The future may have been cancelled by whoever awaits it.
        if self.future.done():
            return
        if error is not None:
            self.future.set_exception(error)
        else:
            self.future.set_result(value)

    def __repr__(self) -> str:
        state = "settled" if self._claimed else "pending"
        return f"Settlement(label={self.label!r}, {state})"


def start(unit: Unit, *, label: str | int | None = None) -> asyncio.Future[Any]:
    """Start ``unit`` now and return the future it settles.

    Must be called with a running event loop.  The unit body runs before this
    function returns; a synchronous unit therefore has a done future already.

    Args:
        unit: Callable accepting ``(resolve, reject)``.
        label: Task name or index, used for logging.

    Returns:
        The settlement future.
    """
    settlement = Settlement(label=label)
    try:
        unit(settlement.resolve, settlement.reject)
    except Exception as exc:
        settlement.reject(exc)
    return settlement.future
