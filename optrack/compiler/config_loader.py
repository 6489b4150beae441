"""Configuration loader for optrack.

Parses configuration into :class:`~optrack.kernel.config.models.TrackerConfig`.
Supports two config sources:

1. **kind: Config YAML** - loaded via explicit path or the
   ``OPTRACK_CONFIG_PATH`` env var.
2. **pyproject.toml [tool.optrack]** - auto-discovery fallback.

Example YAML::

    kind: Config
    metadata:
      name: storefront
    spec:
      default_budget: normal
      error_rate_mode: ratio
      alerts:
        capacity: 50
      budgets:
        quote-generation: slow
        fetch-prices:
          max_loading_time: ${PRICES_BUDGET_MS}
      logging:
        level: DEBUG
"""

from __future__ import annotations

import os
import re
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, cast

import yaml

from optrack.kernel.config.models import (
    AlertConfig,
    LoggingConfig,
    ReportConfig,
    TrackerConfig,
)
from optrack.kernel.domain.budget import PerformanceBudget, get_budget_preset
from optrack.kernel.exceptions import ConfigurationError
from optrack.kernel.logging import get_logger

# Constants for boolean environment variable parsing
_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

# Values of ``default_budget`` that disable the default
_NO_BUDGET = frozenset({"none", "off", "disabled"})

logger = get_logger(__name__)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = sorted(_TRUTHY_VALUES | _FALSY_VALUES)
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


def parse_budget(value: Any, *, where: str = "budget") -> PerformanceBudget:
    """Turn a preset name or a mapping of thresholds into a budget.

    Mappings may start from a preset with a ``preset`` key and override
    individual thresholds.  Threshold values are validated by pydantic.
    """
    if isinstance(value, PerformanceBudget):
        return value
    if isinstance(value, str):
        return get_budget_preset(value)
    if isinstance(value, dict):
        data = dict(value)
        base = data.pop("preset", None)
        if base is not None:
            data = {**get_budget_preset(str(base)).model_dump(), **data}
        return PerformanceBudget.model_validate(data)
    raise ConfigurationError(where, f"expected a preset name or a mapping, got {type(value).__name__}")


@lru_cache(maxsize=32)
def _load_and_parse_cached(path_str: str) -> TrackerConfig:
    """Cached configuration loader."""
    loader = ConfigLoader()
    return loader._load_and_parse(Path(path_str))


class ConfigLoader:
    """Loads and processes optrack configuration files."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def load_config_file(self, path: str | Path | None = None) -> TrackerConfig:
        """Load configuration from YAML or pyproject.toml.

        Parameters
        ----------
        path : str | Path | None
            Path to config file. If None, searches using discovery order.

        Returns
        -------
        TrackerConfig
            Parsed configuration with environment variables substituted
        """
        config_path = self._find_config_file(path)
        return _load_and_parse_cached(str(config_path.absolute()))

    def _load_and_parse(self, config_path: Path) -> TrackerConfig:
        logger.info("Loading configuration from {path}", path=config_path)

        if config_path.suffix in (".yaml", ".yml"):
            return self._load_yaml_config(config_path)
        return self._load_toml_config(config_path)

    def _load_yaml_config(self, config_path: Path) -> TrackerConfig:
        """Load and parse a kind: Config YAML file.

        Raises
        ------
        ConfigurationError
            If the YAML file is not a valid kind: Config manifest
        """
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigurationError(
                config_path.name, f"expected a mapping, got {type(data).__name__}"
            )

        kind = data.get("kind")
        if kind != "Config":
            raise ConfigurationError(
                config_path.name,
                f"YAML config files must use the 'kind: Config' manifest format, got 'kind: {kind}'",
            )

        spec = data.get("spec") or {}
        if not isinstance(spec, dict):
            raise ConfigurationError(config_path.name, "'spec' must be a mapping")

        return self._parse_config(self._substitute_env_vars(spec))

    def _load_toml_config(self, config_path: Path) -> TrackerConfig:
        """Load and parse a TOML config file (pyproject.toml or flat TOML)."""
        with config_path.open("rb") as f:
            data = tomllib.load(f)

        if config_path.name == "pyproject.toml":
            optrack_data = data.get("tool", {}).get("optrack", {})
            if not optrack_data:
                logger.warning("No [tool.optrack] section found in pyproject.toml, using defaults")
                return get_default_config()
        elif "tool" in data and "optrack" in data.get("tool", {}):
            optrack_data = data["tool"]["optrack"]
        else:
            optrack_data = data

        return self._parse_config(self._substitute_env_vars(optrack_data))

    def _find_config_file(self, path: str | Path | None) -> Path:
        """Find configuration file.

        Discovery order:
        1. Explicit path argument
        2. ``OPTRACK_CONFIG_PATH`` env var
        3. ``pyproject.toml`` in CWD
        4. ``pyproject.toml`` in parent directories (with ``[tool.optrack]``)

        Raises
        ------
        FileNotFoundError
            If no configuration file is found
        """
        if path:
            config_path = Path(path)
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return config_path

        if env_path := os.getenv("OPTRACK_CONFIG_PATH"):
            config_path = Path(env_path)
            if config_path.exists():
                logger.debug("Using config from OPTRACK_CONFIG_PATH: {}", config_path)
                return config_path
            logger.warning("OPTRACK_CONFIG_PATH set but file not found: {}", config_path)

        if Path("pyproject.toml").exists():
            return Path("pyproject.toml")

        current = Path.cwd()
        while current != current.parent:
            pyproject = current / "pyproject.toml"
            if pyproject.exists():
                with pyproject.open("rb") as f:
                    data = tomllib.load(f)
                if "optrack" in data.get("tool", {}):
                    return pyproject
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Provide a kind: Config YAML path, "
            "set OPTRACK_CONFIG_PATH, or add [tool.optrack] to pyproject.toml"
        )

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively replace ``${VAR}`` placeholders with environment values.

        Unknown variables keep their placeholder.
        """
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    logger.debug(
                        "Environment variable ${{{var_name}}} not found, keeping placeholder",
                        var_name=var_name,
                    )
                    return match.group(0)
                return value

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def _parse_config(self, data: dict[str, Any]) -> TrackerConfig:
        """Parse format-agnostic configuration data into TrackerConfig."""
        config = TrackerConfig(
            global_operation_id=str(data.get("global_operation_id", "global")),
            error_rate_mode=data.get("error_rate_mode", "smoothed"),
            logging=self._parse_logging_config(data.get("logging") or {}),
        )

        if "default_budget" in data:
            raw = data["default_budget"]
            if raw is None or (isinstance(raw, str) and raw.lower() in _NO_BUDGET):
                config.default_budget = None
            else:
                config.default_budget = parse_budget(raw, where="default_budget")

        budgets = data.get("budgets") or {}
        if not isinstance(budgets, dict):
            raise ConfigurationError("budgets", "must be a mapping of operation id to budget")
        config.budgets = {
            str(op_id): parse_budget(value, where=f"budgets.{op_id}")
            for op_id, value in budgets.items()
        }
        if config.budgets:
            logger.debug("Loaded {count} operation budgets", count=len(config.budgets))

        if alerts := data.get("alerts"):
            config.alerts = AlertConfig(
                capacity=int(alerts.get("capacity", 100)),
                info_ttl_ms=float(alerts.get("info_ttl_ms", 5000.0)),
                recent_limit=int(alerts.get("recent_limit", 20)),
            )

        if report := data.get("report"):
            config.report = ReportConfig(
                worst_performers_limit=int(report.get("worst_performers_limit", 5)),
            )

        return config

    def _parse_logging_config(self, logging_data: dict[str, Any]) -> LoggingConfig:
        """Parse logging configuration with environment variable overrides.

        Environment variables take precedence over config file values:
        - OPTRACK_LOG_LEVEL: Log level
        - OPTRACK_LOG_FORMAT: Output format (console, json, structured, rich)
        - OPTRACK_LOG_FILE: Optional file path for log output
        - OPTRACK_LOG_COLOR: Use color output (true/false)
        - OPTRACK_LOG_TIMESTAMP: Include timestamp (true/false)
        - OPTRACK_LOG_BACKTRACE: Enable backtrace in logs (true/false)
        - OPTRACK_LOG_DIAGNOSE: Enable diagnose mode (true/false)
        """
        level = logging_data.get("level", "INFO")
        format_type = logging_data.get("format", "structured")
        output_file = logging_data.get("output_file")
        flags = {
            "use_color": logging_data.get("use_color", True),
            "include_timestamp": logging_data.get("include_timestamp", True),
            "backtrace": logging_data.get("backtrace", True),
            "diagnose": logging_data.get("diagnose", True),
        }

        if env_level := os.getenv("OPTRACK_LOG_LEVEL"):
            level = env_level.upper()
            logger.debug("Overriding log level from env: {}", level)

        if env_format := os.getenv("OPTRACK_LOG_FORMAT"):
            format_type = env_format.lower()
            logger.debug("Overriding log format from env: {}", format_type)

        if env_file := os.getenv("OPTRACK_LOG_FILE"):
            output_file = env_file
            logger.debug("Overriding log file from env: {}", output_file)

        for flag, env_name in (
            ("use_color", "OPTRACK_LOG_COLOR"),
            ("include_timestamp", "OPTRACK_LOG_TIMESTAMP"),
            ("backtrace", "OPTRACK_LOG_BACKTRACE"),
            ("diagnose", "OPTRACK_LOG_DIAGNOSE"),
        ):
            if env_value := os.getenv(env_name):
                try:
                    flags[flag] = _parse_bool_env(env_value)
                    logger.debug("Overriding {} from env: {}", flag, flags[flag])
                except ValueError as e:
                    logger.warning("Invalid {} value: {}", env_name, e)

        return LoggingConfig(
            level=cast("Literal['TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']", level),
            format=cast("Literal['console', 'json', 'structured', 'rich']", format_type),
            output_file=output_file,
            **flags,
        )


def load_config(path: str | Path | None = None) -> TrackerConfig:
    """Load configuration from file or return defaults.

    Parameters
    ----------
    path : str | Path | None
        Path to configuration file or None to search

    Returns
    -------
    TrackerConfig
        Loaded configuration or defaults if no file found
    """
    try:
        loader = ConfigLoader()
        return loader.load_config_file(path)
    except FileNotFoundError:
        if path:
            raise
        logger.info("No configuration file found, using defaults")
        return get_default_config()


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Needed when configuration files or ``OPTRACK_*`` variables change
    and a reload must be forced.
    """
    _load_and_parse_cached.cache_clear()


def get_default_config() -> TrackerConfig:
    """Default configuration, with logging env overrides applied."""
    return TrackerConfig(logging=ConfigLoader()._parse_logging_config({}))
