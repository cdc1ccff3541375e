"""Shared test fixtures."""

from __future__ import annotations

import time
from collections.abc import Callable

import pytest

from saintmode import SaintModeCache


@pytest.fixture
def cache():
    """A cache owning its own MemoryStore, with no default timeout."""
    c = SaintModeCache()
    yield c
    c.dispose()


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Poll *predicate* until it is truthy or *timeout* seconds pass."""

    def _wait(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return bool(predicate())

    return _wait
