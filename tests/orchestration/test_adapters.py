"""Tests for unit adapters."""

from __future__ import annotations

import asyncio

import pytest

from taskspine import (
    Dependent,
    TaskFailure,
    auto,
    delayed,
    depends,
    from_awaitable,
    from_callable,
    from_coroutine,
    parallel,
    rejected,
    resolved,
    series,
)
from taskspine.orchestration.unit import start


async def _double(x: int, delay: float = 0.0) -> int:
    await asyncio.sleep(delay)
    return x * 2


async def _fail(message: str) -> None:
    await asyncio.sleep(0)
    raise ValueError(message)


class TestFromCoroutine:
    @pytest.mark.asyncio
    async def test_resolves_with_return_value(self):
        assert await start(from_coroutine(_double, 21)) == 42

    @pytest.mark.asyncio
    async def test_kwargs_forwarded(self):
        assert await start(from_coroutine(_double, 4, delay=0.01)) == 8

    @pytest.mark.asyncio
    async def test_exception_rejects(self):
        with pytest.raises(ValueError, match="nope"):
            await start(from_coroutine(_fail, "nope"))

    @pytest.mark.asyncio
    async def test_called_only_when_started(self):
        calls = []

        async def work():
            calls.append("called")
            return 1

        unit = from_coroutine(work)
        await asyncio.sleep(0)
        assert calls == []
        assert await start(unit) == 1
        assert calls == ["called"]

    @pytest.mark.asyncio
    async def test_keeps_function_name(self):
        assert from_coroutine(_double, 1).__name__ == "_double"

    @pytest.mark.asyncio
    async def test_in_parallel(self):
        results = await parallel([
            from_coroutine(_double, 1, delay=0.02),
            from_coroutine(_double, 2, delay=0.01),
        ])
        assert results == [2, 4]


class TestFromAwaitable:
    @pytest.mark.asyncio
    async def test_future(self):
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        loop.call_later(0.01, future.set_result, "done")
        assert await start(from_awaitable(future)) == "done"

    @pytest.mark.asyncio
    async def test_coroutine_object(self):
        assert await start(from_awaitable(_double(5))) == 10

    @pytest.mark.asyncio
    async def test_cancelled_awaitable_rejects(self):
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        loop.call_soon(future.cancel)

        with pytest.raises(TaskFailure) as exc_info:
            await start(from_awaitable(future))
        assert isinstance(exc_info.value.reason, asyncio.CancelledError)


class TestFromCallable:
    @pytest.mark.asyncio
    async def test_resolves_synchronously(self):
        future = start(from_callable(sum, [1, 2, 3]))
        assert future.done()
        assert await future == 6

    @pytest.mark.asyncio
    async def test_exception_rejects(self):
        with pytest.raises(ZeroDivisionError):
            await start(from_callable(lambda: 1 / 0))

    @pytest.mark.asyncio
    async def test_in_series(self):
        assert await series([from_callable(len, "abc"), from_callable(max, 4, 9)]) == [3, 9]


class TestImmediateAndTimers:
    @pytest.mark.asyncio
    async def test_resolved(self):
        assert await start(resolved("value")) == "value"

    @pytest.mark.asyncio
    async def test_resolved_default_none(self):
        assert await start(resolved()) is None

    @pytest.mark.asyncio
    async def test_rejected_plain_value(self):
        with pytest.raises(TaskFailure) as exc_info:
            await start(rejected({"code": 7}))
        assert exc_info.value.reason == {"code": 7}

    @pytest.mark.asyncio
    async def test_rejected_exception(self):
        error = OSError("disk")
        with pytest.raises(OSError) as exc_info:
            await start(rejected(error))
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_delayed(self):
        loop = asyncio.get_running_loop()
        future = start(delayed(0.02, "late"))
        started = loop.time()
        assert not future.done()
        assert await future == "late"
        assert loop.time() - started >= 0.015


class TestDepends:
    def test_builds_dependent(self):
        @depends("a", "b")
        def build(results):
            return resolved(results["a"])

        assert isinstance(build, Dependent)
        assert build.requires == ("a", "b")

    def test_no_names(self):
        @depends()
        def build(results):
            return resolved(0)

        assert build.requires == ()

    @pytest.mark.asyncio
    async def test_coroutine_built_from_results(self):
        @depends("raw")
        def size(results):
            return from_coroutine(_double, len(results["raw"]))

        results = await auto({"raw": from_callable(str, 12345), "size": size})
        assert results == {"raw": "12345", "size": 10}
