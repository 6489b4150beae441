"""Budget commands: inspect budget presets and configured budgets."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from optrack.cli.utils import load_cli_config, print_output, wants_json
from optrack.kernel.domain.budget import BUDGET_PRESETS, PerformanceBudget, get_budget_preset
from optrack.kernel.exceptions import ResourceNotFoundError

app = typer.Typer(help="Performance budget commands")
console = Console()


def _budget_table(title: str, budgets: dict[str, PerformanceBudget]) -> Table:
    table = Table(show_header=True, header_style="bold magenta", title=title)
    table.add_column("Name")
    table.add_column("Max loading (ms)", justify="right")
    table.add_column("Max retries", justify="right")
    table.add_column("Target success %", justify="right")
    table.add_column("Max error %", justify="right")
    for name, budget in budgets.items():
        table.add_row(
            name,
            f"{budget.max_loading_time:g}",
            str(budget.max_retry_attempts),
            f"{budget.target_success_rate:g}",
            f"{budget.max_error_rate:g}",
        )
    return table


@app.command("list")
def list_budgets(
    ctx: typer.Context,
    configured: bool = typer.Option(
        False, "--configured", help="List per-operation budgets from the configuration"
    ),
) -> None:
    """List budget presets (or configured per-operation budgets)."""
    if configured:
        budgets = dict(load_cli_config(ctx).budgets)
        title = "Configured budgets"
    else:
        budgets = dict(BUDGET_PRESETS)
        title = "Budget presets"

    if wants_json(ctx):
        print_output({name: b.model_dump() for name, b in budgets.items()}, ctx)
        return
    if not budgets:
        console.print("[yellow]No budgets configured[/yellow]")
        return
    console.print(_budget_table(title, budgets))


@app.command("show")
def show_budget(ctx: typer.Context, name: str = typer.Argument(..., help="Preset name")) -> None:
    """Show a single budget preset."""
    try:
        budget = get_budget_preset(name)
    except ResourceNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None

    if wants_json(ctx):
        print_output(budget.model_dump(), ctx)
        return
    console.print(_budget_table(name.lower(), {name.lower(): budget}))
