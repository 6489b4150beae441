"""CLI command modules."""

from . import budgets_cmd, config_cmd, demo_cmd

__all__ = [
    "budgets_cmd",
    "config_cmd",
    "demo_cmd",
]
