"""Tests for the Alert domain model."""

from __future__ import annotations

from optrack.kernel.domain.alert import Alert, AlertType, alert_to_dict


class TestAlert:
    def test_only_alerts_with_deadline_expire(self) -> None:
        info = Alert("a-0", AlertType.INFO, "hi", 0.0, "a", expires_at=5000.0)
        warning = Alert("a-1", AlertType.WARNING, "careful", 0.0, "a")
        assert not info.is_expired(4999.0)
        assert info.is_expired(5000.0)
        assert not warning.is_expired(1_000_000.0)

    def test_to_dict(self) -> None:
        alert = Alert("a-0", AlertType.ERROR, "boom", 10.0, "a")
        assert alert_to_dict(alert) == {
            "id": "a-0",
            "type": "error",
            "message": "boom",
            "timestamp": 10.0,
            "component": "a",
        }
