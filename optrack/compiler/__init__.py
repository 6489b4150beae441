"""Configuration compilation: turns config files into kernel models."""

from optrack.compiler.config_loader import (
    ConfigLoader,
    clear_config_cache,
    get_default_config,
    load_config,
    parse_budget,
)

__all__ = [
    "ConfigLoader",
    "clear_config_cache",
    "get_default_config",
    "load_config",
    "parse_budget",
]
