"""Configuration file for pytest containing shared fixtures.

- clock: a ManualClock starting at 0 ms
- tracker: an OperationTracker driven by that clock
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from optrack.compiler.config_loader import clear_config_cache
from optrack.drivers.clock import ManualClock
from optrack.stdlib.lib.tracker import OperationTracker


@pytest.fixture
def clock() -> ManualClock:
    """Deterministic clock starting at 0 ms."""
    return ManualClock()


@pytest.fixture
def tracker(clock: ManualClock) -> Iterator[OperationTracker]:
    """Isolated tracker using the manual clock."""
    with OperationTracker(clock=clock) as t:
        yield t


@pytest.fixture(autouse=True)
def _fresh_config_cache() -> Iterator[None]:
    clear_config_cache()
    yield
    clear_config_cache()
