"""Tests for AlertLog."""

from __future__ import annotations

import asyncio

import pytest

from optrack.drivers.clock import ManualClock
from optrack.kernel.domain.alert import AlertType
from optrack.kernel.exceptions import ValidationError
from optrack.stdlib.lib.alert_log import AlertLog


@pytest.fixture
def log(clock: ManualClock) -> AlertLog:
    return AlertLog(clock)


class TestAdd:
    def test_builds_alert(self, log: AlertLog, clock: ManualClock) -> None:
        clock.set(1500)
        alert = log.add("warning", "slow", "fetchA")

        assert alert.id == "fetchA-1500"
        assert alert.type == AlertType.WARNING
        assert alert.timestamp == 1500
        assert alert.component == "fetchA"
        assert alert.expires_at is None

    def test_ids_stay_unique_within_a_millisecond(self, log: AlertLog) -> None:
        ids = {log.add("error", f"e{i}", "fetchA").id for i in range(3)}
        assert len(ids) == 3

    def test_newest_first(self, log: AlertLog, clock: ManualClock) -> None:
        log.add("warning", "first", "a")
        clock.advance(1)
        log.add("error", "second", "b")
        assert [a.message for a in log.alerts()] == ["second", "first"]

    def test_capacity_keeps_newest(self, log: AlertLog) -> None:
        for i in range(150):
            log.add("warning", str(i), "c")

        alerts = log.alerts()
        assert len(alerts) == 100
        assert alerts[0].message == "149"
        assert alerts[-1].message == "50"

    def test_rejects_unknown_type(self, log: AlertLog) -> None:
        with pytest.raises(ValueError):
            log.add("fatal", "nope", "a")


class TestInfoExpiry:
    def test_lazy_expiry_on_read(self, log: AlertLog, clock: ManualClock) -> None:
        log.add("info", "retrying", "a")
        log.add("warning", "slow", "a")

        clock.advance(4999)
        assert len(log) == 2

        clock.advance(2)
        assert [a.type for a in log.alerts()] == [AlertType.WARNING]

    @pytest.mark.asyncio()
    async def test_timer_expiry_under_running_loop(self, clock: ManualClock) -> None:
        log = AlertLog(clock, info_ttl_ms=20)
        log.add("info", "retrying", "a")
        assert len(log) == 1

        await asyncio.sleep(0.05)

        assert len(log) == 0

    @pytest.mark.asyncio()
    async def test_close_cancels_timers(self, clock: ManualClock) -> None:
        log = AlertLog(clock, info_ttl_ms=20)
        log.add("info", "retrying", "a")
        log.close()

        await asyncio.sleep(0.05)

        # Manual clock has not moved, so only a timer could have removed it
        assert len(log) == 1


class TestRemoval:
    def test_remove(self, log: AlertLog) -> None:
        alert = log.add("warning", "slow", "a")
        assert log.remove(alert.id) is True
        assert log.remove(alert.id) is False
        assert log.alerts() == ()

    def test_clear_component(self, log: AlertLog) -> None:
        log.add("warning", "slow", "a")
        log.add("error", "boom", "b")
        log.add("error", "boom again", "a")

        assert log.clear("a") == 2
        assert [a.component for a in log.alerts()] == ["b"]

    def test_clear_all(self, log: AlertLog) -> None:
        log.add("warning", "slow", "a")
        log.add("error", "boom", "b")
        assert log.clear() == 2
        assert log.clear() == 0


class TestQueries:
    def test_recent(self, log: AlertLog) -> None:
        for i in range(30):
            log.add("warning", str(i), "a")
        recent = log.recent()
        assert len(recent) == 20
        assert recent[0].message == "29"
        assert len(log.recent(3)) == 3

    def test_for_component(self, log: AlertLog) -> None:
        log.add("warning", "slow", "a")
        log.add("error", "boom", "b")
        assert [a.message for a in log.for_component("b")] == ["boom"]


class TestValidation:
    def test_capacity(self, clock: ManualClock) -> None:
        with pytest.raises(ValidationError):
            AlertLog(clock, capacity=0)

    def test_ttl(self, clock: ManualClock) -> None:
        with pytest.raises(ValidationError):
            AlertLog(clock, info_ttl_ms=0)
