"""Tests for configuration data models."""

from __future__ import annotations

import pytest

from optrack.kernel.config.models import AlertConfig, LoggingConfig, ReportConfig, TrackerConfig
from optrack.kernel.domain.budget import NORMAL
from optrack.kernel.exceptions import ValidationError


class TestDefaults:
    def test_tracker_config_defaults(self) -> None:
        config = TrackerConfig()
        assert config.global_operation_id == "global"
        assert config.default_budget == NORMAL
        assert config.error_rate_mode == "smoothed"
        assert config.budgets == {}
        assert config.logging == LoggingConfig()
        assert config.alerts == AlertConfig(capacity=100, info_ttl_ms=5000.0, recent_limit=20)
        assert config.report.worst_performers_limit == 5

    def test_budgets_are_not_shared(self) -> None:
        a, b = TrackerConfig(), TrackerConfig()
        a.budgets["x"] = NORMAL
        assert b.budgets == {}


class TestValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [{"capacity": 0}, {"info_ttl_ms": 0}, {"recent_limit": -1}],
    )
    def test_alert_config(self, kwargs: dict) -> None:
        with pytest.raises(ValidationError):
            AlertConfig(**kwargs)

    def test_report_config(self) -> None:
        with pytest.raises(ValidationError):
            ReportConfig(worst_performers_limit=-1)

    def test_error_rate_mode(self) -> None:
        with pytest.raises(ValidationError, match="error_rate_mode"):
            TrackerConfig(error_rate_mode="average")  # type: ignore[arg-type]

    def test_global_operation_id(self) -> None:
        with pytest.raises(ValidationError):
            TrackerConfig(global_operation_id="")
