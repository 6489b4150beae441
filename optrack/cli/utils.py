"""CLI helper utilities for optrack commands."""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Protocol

import typer
from pydantic import BaseModel
from rich.console import Console

from optrack.compiler.config_loader import load_config
from optrack.kernel.config.models import TrackerConfig


class ContextProtocol(Protocol):
    """Protocol for common interface between Click and Typer contexts."""

    @property
    def obj(self) -> dict[str, Any] | None: ...


console = Console()


def output_format(ctx: ContextProtocol | None) -> str:
    settings = getattr(ctx, "obj", None) if ctx is not None else None
    if isinstance(settings, dict):
        return str(settings.get("output_format", "pretty"))
    return "pretty"


def wants_json(ctx: ContextProtocol | None) -> bool:
    return output_format(ctx) == "json"


def to_plain(value: Any) -> Any:
    """Convert dataclasses and pydantic models to JSON-friendly data."""
    if isinstance(value, BaseModel):
        return value.model_dump()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def print_output(obj: Any, ctx: ContextProtocol | None = None) -> None:
    """Print `obj` according to `ctx.obj['output_format']`.

    If ctx is None or no format specified, pretty-print using rich.console.
    """
    if wants_json(ctx):
        typer.echo(json.dumps(to_plain(obj), default=str, indent=2))
    elif isinstance(obj, (str, int, float)):
        typer.echo(str(obj))
    else:
        console.print(obj)


def load_cli_config(ctx: ContextProtocol | None) -> TrackerConfig:
    """Load the configuration selected by the global ``--config`` option."""
    settings = getattr(ctx, "obj", None) if ctx is not None else None
    path = settings.get("config_path") if isinstance(settings, dict) else None
    return load_config(path)
