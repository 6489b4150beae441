"""Tests for clock drivers."""

from __future__ import annotations

import pytest

from optrack.drivers.clock import ManualClock, MonotonicClock
from optrack.kernel.exceptions import ValidationError
from optrack.kernel.ports.clock import Clock


class TestMonotonicClock:
    def test_is_clock(self) -> None:
        assert isinstance(MonotonicClock(), Clock)

    def test_never_goes_backwards(self) -> None:
        clock = MonotonicClock()
        first = clock.now()
        assert clock.now() >= first


class TestManualClock:
    def test_is_clock(self) -> None:
        assert isinstance(ManualClock(), Clock)

    def test_advance_and_set(self) -> None:
        clock = ManualClock(start=100)
        clock.advance(50)
        assert clock.now() == 150.0
        clock.set(1000)
        assert clock.now() == 1000.0

    def test_rejects_going_backwards(self) -> None:
        clock = ManualClock(start=100)
        with pytest.raises(ValidationError):
            clock.advance(-1)
        with pytest.raises(ValidationError):
            clock.set(99)
