"""Configuration models for optrack."""

from optrack.kernel.config.models import (
    AlertConfig,
    LoggingConfig,
    ReportConfig,
    TrackerConfig,
)


def __getattr__(name: str) -> object:
    """Lazy imports for config loader symbols (defined in optrack.compiler.config_loader)."""
    _loader_names = {"ConfigLoader", "clear_config_cache", "get_default_config", "load_config"}
    if name in _loader_names:
        from optrack.compiler import config_loader

        return getattr(config_loader, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "AlertConfig",
    "LoggingConfig",
    "ReportConfig",
    "TrackerConfig",
]
