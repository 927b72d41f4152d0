"""
Shared pytest fixtures and configuration for spine-tasks tests.

This module provides:
- Settings cache isolation
- Log context isolation
- A ``recorder`` that builds timer-driven units and records what happened

Timer delays in the tests are always distinct: asyncio runs every timer
whose deadline has passed in the same loop iteration, so equal delays do not
give a reliable order.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Generator

import pytest

from taskspine.core.settings import clear_settings_cache
from taskspine.logging import clear_context


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_fixture(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop cached settings and TASKSPINE_* env vars around every test."""
    for key in list(os.environ):
        if key.startswith("TASKSPINE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    clear_context()
    yield
    clear_settings_cache()
    clear_context()


# =============================================================================
# Unit Recorder
# =============================================================================


class Recorder:
    """Builds units that log their start and settlement into ``events``."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    @property
    def starts(self) -> list[Any]:
        return [label for event, label in self.events if event == "start"]

    @property
    def settles(self) -> list[Any]:
        return [label for event, label in self.events if event == "settle"]

    def ok(self, label: Any, value: Any, delay: float | None = None):
        """Unit resolving with ``value`` (after ``delay`` seconds, if given)."""

        def unit(resolve, reject):
            self.events.append(("start", label))

            def finish():
                self.events.append(("settle", label))
                resolve(value)

            if delay is None:
                finish()
            else:
                asyncio.get_running_loop().call_later(delay, finish)

        return unit

    def fail(self, label: Any, reason: Any, delay: float | None = None):
        """Unit rejecting with ``reason`` (after ``delay`` seconds, if given)."""

        def unit(resolve, reject):
            self.events.append(("start", label))

            def finish():
                self.events.append(("settle", label))
                reject(reason)

            if delay is None:
                finish()
            else:
                asyncio.get_running_loop().call_later(delay, finish)

        return unit


@pytest.fixture
def recorder() -> Recorder:
    """Fresh ``Recorder`` per test."""
    return Recorder()
