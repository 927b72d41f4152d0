"""Tests for the unit-of-work settlement contract.

Covers:
- start() runs the unit body synchronously
- resolve / reject / raising
- Non-exception rejection values wrapped in TaskFailure
- Only the first handle call counts
- Handles called from another thread
"""

from __future__ import annotations

import asyncio
import threading
from unittest.mock import MagicMock

import pytest

from taskspine.core.errors import TaskFailure
from taskspine.orchestration import unit as unit_module
from taskspine.orchestration.unit import Settlement, start


class TestStart:
    @pytest.mark.asyncio
    async def test_body_runs_before_start_returns(self):
        calls = []
        start(lambda resolve, reject: calls.append("ran"))
        assert calls == ["ran"]

    @pytest.mark.asyncio
    async def test_synchronous_resolve_gives_done_future(self):
        future = start(lambda resolve, reject: resolve(5))
        assert future.done()
        assert await future == 5

    @pytest.mark.asyncio
    async def test_resolve_without_value_is_none(self):
        assert await start(lambda resolve, reject: resolve()) is None

    @pytest.mark.asyncio
    async def test_deferred_resolve(self):
        def unit(resolve, reject):
            asyncio.get_running_loop().call_later(0.01, resolve, "later")

        future = start(unit)
        assert not future.done()
        assert await future == "later"

    @pytest.mark.asyncio
    async def test_reject_with_exception_passes_through(self):
        error = ValueError("bad input")
        with pytest.raises(ValueError) as exc_info:
            await start(lambda resolve, reject: reject(error))
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_reject_with_plain_value_is_wrapped(self):
        with pytest.raises(TaskFailure) as exc_info:
            await start(lambda resolve, reject: reject("quota exhausted"))
        assert exc_info.value.reason == "quota exhausted"

    @pytest.mark.asyncio
    async def test_reject_without_reason(self):
        with pytest.raises(TaskFailure) as exc_info:
            await start(lambda resolve, reject: reject())
        assert exc_info.value.reason is None

    @pytest.mark.asyncio
    async def test_raising_body_rejects(self):
        def unit(resolve, reject):
            raise RuntimeError("exploded")

        with pytest.raises(RuntimeError, match="exploded"):
            await start(unit)

    @pytest.mark.asyncio
    async def test_base_exception_reason_is_wrapped(self):
        cancelled = asyncio.CancelledError()
        with pytest.raises(TaskFailure) as exc_info:
            await start(lambda resolve, reject: reject(cancelled))
        assert exc_info.value.reason is cancelled

    @pytest.mark.asyncio
    async def test_unit_that_never_settles_stays_pending(self):
        future = start(lambda resolve, reject: None)
        await asyncio.sleep(0.01)
        assert not future.done()


class TestSettleOnce:
    @pytest.mark.asyncio
    async def test_second_resolve_ignored(self):
        def unit(resolve, reject):
            resolve(1)
            resolve(2)

        assert await start(unit) == 1

    @pytest.mark.asyncio
    async def test_reject_after_resolve_ignored(self):
        def unit(resolve, reject):
            resolve("ok")
            reject("too late")

        assert await start(unit) == "ok"

    @pytest.mark.asyncio
    async def test_resolve_after_reject_ignored(self):
        def unit(resolve, reject):
            reject("first")
            resolve("second")

        with pytest.raises(TaskFailure) as exc_info:
            await start(unit)
        assert exc_info.value.reason == "first"

    @pytest.mark.asyncio
    async def test_raise_after_resolve_ignored(self):
        def unit(resolve, reject):
            resolve("kept")
            raise RuntimeError("ignored")

        assert await start(unit) == "kept"

    @pytest.mark.asyncio
    async def test_late_call_is_logged(self, monkeypatch):
        logger = MagicMock()
        monkeypatch.setattr(unit_module, "logger", logger)

        def unit(resolve, reject):
            resolve(1)
            reject("late")

        await start(unit, label="fetch")
        logger.debug.assert_called_once_with(
            "tasks.unit.late_settlement", unit="fetch", ignored="reject"
        )

    @pytest.mark.asyncio
    async def test_late_call_logging_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("TASKSPINE_LOG_LATE_SETTLEMENTS", "false")
        logger = MagicMock()
        monkeypatch.setattr(unit_module, "logger", logger)

        def unit(resolve, reject):
            resolve(1)
            resolve(2)

        await start(unit)
        logger.debug.assert_not_called()


class TestSettlement:
    @pytest.mark.asyncio
    async def test_settled_flag(self):
        settlement = Settlement(label="a")
        assert not settlement.settled
        settlement.resolve(1)
        assert settlement.settled
        assert await settlement.future == 1

    @pytest.mark.asyncio
    async def test_repr(self):
        settlement = Settlement(label="a")
        assert repr(settlement) == "Settlement(label='a', pending)"
        settlement.resolve()
        assert repr(settlement) == "Settlement(label='a', settled)"

    @pytest.mark.asyncio
    async def test_cancelled_future_ignores_settlement(self):
        settlement = Settlement()
        settlement.future.cancel()
        settlement.resolve(1)
        assert settlement.future.cancelled()

    @pytest.mark.asyncio
    async def test_resolve_from_other_thread(self):
        def unit(resolve, reject):
            threading.Thread(target=resolve, args=("from thread",)).start()

        assert await asyncio.wait_for(start(unit), timeout=2) == "from thread"

    @pytest.mark.asyncio
    async def test_reject_from_other_thread(self):
        def unit(resolve, reject):
            threading.Thread(target=reject, args=("thread failure",)).start()

        with pytest.raises(TaskFailure) as exc_info:
            await asyncio.wait_for(start(unit), timeout=2)
        assert exc_info.value.reason == "thread failure"
