"""Tests for logging configuration."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest

from optrack.kernel.config.models import LoggingConfig
from optrack.kernel.logging import configure_from_config, configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    yield
    configure_logging(level="WARNING", format="console", force_reconfigure=True)


class TestConfigureFromConfig:
    def test_json_file_sink(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "optrack.log"
        configure_from_config(
            LoggingConfig(level="DEBUG", format="console", output_file=str(log_file)),
            force_reconfigure=True,
        )

        get_logger("optrack.tests").info("Operation {op_id} started", op_id="fetchA")

        lines = log_file.read_text().splitlines()
        record = json.loads(lines[-1])["record"]
        assert record["message"] == "Operation fetchA started"
        assert record["level"]["name"] == "INFO"
        assert record["extra"]["module"] == "optrack.tests"

    def test_level_filters(self, tmp_path: Path) -> None:
        log_file = tmp_path / "optrack.log"
        configure_from_config(
            LoggingConfig(level="WARNING", format="structured", output_file=str(log_file)),
            force_reconfigure=True,
        )

        log = get_logger("optrack.tests")
        log.debug("hidden")
        log.warning("Budget violation for {op_id}", op_id="calcB")

        messages = [json.loads(line)["record"]["message"] for line in log_file.read_text().splitlines()]
        assert messages == ["Budget violation for calcB"]


class TestGetLogger:
    def test_cached_per_name(self) -> None:
        assert get_logger("optrack.a") is get_logger("optrack.a")
        assert get_logger("optrack.a") is not get_logger("optrack.b")
