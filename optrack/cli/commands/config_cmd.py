"""Configuration commands: show the resolved tracker configuration."""

from __future__ import annotations

from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from optrack.cli.utils import load_cli_config, print_output, to_plain, wants_json
from optrack.kernel.config.models import TrackerConfig

app = typer.Typer(help="Configuration management commands")
console = Console()


def config_to_dict(config: TrackerConfig) -> dict[str, Any]:
    """Flatten a TrackerConfig to plain data."""
    return to_plain(config)


def _lookup(data: dict[str, Any], key: str) -> Any:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(key)
        node = node[part]
    return node


@app.command("show")
def show_config(
    ctx: typer.Context,
    key: str | None = typer.Argument(None, help="Dotted key, e.g. alerts.capacity"),
) -> None:
    """Show the resolved configuration or a single key."""
    data = config_to_dict(load_cli_config(ctx))

    if key:
        try:
            value = _lookup(data, key)
        except KeyError:
            console.print(f"[red]Unknown configuration key:[/red] {key}")
            raise typer.Exit(1) from None
        print_output(value, ctx)
        return

    if wants_json(ctx):
        print_output(data, ctx)
        return

    table = Table(show_header=True, header_style="bold magenta", title="optrack configuration")
    table.add_column("Key")
    table.add_column("Value")
    for section, value in data.items():
        if isinstance(value, dict) and value and section != "budgets":
            for name, inner in value.items():
                table.add_row(f"{section}.{name}", str(inner))
        else:
            table.add_row(section, str(value))
    console.print(table)
