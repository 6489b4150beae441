"""Configuration data models for optrack."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from optrack.kernel.domain.budget import NORMAL, PerformanceBudget
from optrack.kernel.exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for optrack.

    Attributes
    ----------
    level : str, default="INFO"
        Log level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path to write JSON logs to
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output
    backtrace : bool, default=True
        Enable backtrace for debugging
    diagnose : bool, default=True
        Enable diagnose mode with variable values

    Examples
    --------
    TOML configuration:

    ```toml
    [tool.optrack.logging]
    level = "DEBUG"
    format = "rich"
    ```

    Environment variable overrides:

    ```bash
    export OPTRACK_LOG_LEVEL=DEBUG
    export OPTRACK_LOG_FORMAT=json
    export OPTRACK_LOG_FILE=/var/log/optrack/tracker.log
    ```
    """

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True
    backtrace: bool = True
    diagnose: bool = True


@dataclass(frozen=True, slots=True)
class AlertConfig:
    """Alert log settings.

    Attributes
    ----------
    capacity : int
        Maximum number of alerts kept (oldest evicted first)
    info_ttl_ms : float
        Lifetime of info alerts in milliseconds
    recent_limit : int
        Number of most recent alerts included in reports
    """

    capacity: int = 100
    info_ttl_ms: float = 5000.0
    recent_limit: int = 20

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValidationError("alerts.capacity", "must be at least 1", self.capacity)
        if self.info_ttl_ms <= 0:
            raise ValidationError("alerts.info_ttl_ms", "must be positive", self.info_ttl_ms)
        if self.recent_limit < 0:
            raise ValidationError("alerts.recent_limit", "cannot be negative", self.recent_limit)


@dataclass(frozen=True, slots=True)
class ReportConfig:
    """Fleet report settings."""

    worst_performers_limit: int = 5

    def __post_init__(self) -> None:
        if self.worst_performers_limit < 0:
            raise ValidationError(
                "report.worst_performers_limit", "cannot be negative", self.worst_performers_limit
            )


@dataclass(slots=True)
class TrackerConfig:
    """Complete optrack configuration.

    Attributes
    ----------
    global_operation_id : str
        Operation id exposed as ``OperationTracker.global_operation``
    default_budget : PerformanceBudget | None
        Budget assigned on ``start`` when none is given; None disables it
    error_rate_mode : str
        ``smoothed`` (errors / (errors + 1)) or ``ratio`` (errors / attempts)
    budgets : dict[str, PerformanceBudget]
        Budgets pre-assigned to specific operation ids
    logging : LoggingConfig
        Logging configuration
    alerts : AlertConfig
        Alert log configuration
    report : ReportConfig
        Report configuration

    Examples
    --------
    TOML configuration in pyproject.toml:

    ```toml
    [tool.optrack]
    global_operation_id = "global"
    default_budget = "normal"
    error_rate_mode = "smoothed"

    [tool.optrack.alerts]
    capacity = 100
    info_ttl_ms = 5000

    [tool.optrack.budgets.quote-generation]
    max_loading_time = 4000
    max_retry_attempts = 5
    ```
    """

    global_operation_id: str = "global"
    default_budget: PerformanceBudget | None = field(default_factory=lambda: NORMAL)
    error_rate_mode: Literal["smoothed", "ratio"] = "smoothed"
    budgets: dict[str, PerformanceBudget] = field(default_factory=dict)

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    def __post_init__(self) -> None:
        if not self.global_operation_id:
            raise ValidationError("global_operation_id", "cannot be empty")
        if self.error_rate_mode not in ("smoothed", "ratio"):
            raise ValidationError(
                "error_rate_mode", "must be 'smoothed' or 'ratio'", self.error_rate_mode
            )
