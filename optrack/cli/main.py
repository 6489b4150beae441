"""optrack CLI - Main entrypoint."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

import typer
from rich.console import Console

from optrack.cli.commands import budgets_cmd, config_cmd, demo_cmd
from optrack.kernel.logging import configure_logging

app = typer.Typer(
    name="optrack",
    help="optrack - track asynchronous operations against performance budgets.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)

console = Console()

app.add_typer(config_cmd.app, name="config", help="Configuration management")
app.add_typer(budgets_cmd.app, name="budgets", help="Inspect performance budgets")
app.add_typer(demo_cmd.app, name="demo", help="Simulate tracked operations")


def _package_version() -> str:
    try:
        return version("optrack")
    except PackageNotFoundError:
        return "0.0.0"


@app.callback(invoke_without_command=True)
def callback(
    ctx: typer.Context,
    *,
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Suppress non-error output"),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Enable verbose logging"),
    json_out: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Path to a kind: Config YAML or TOML file"
    ),
    log_level: str = typer.Option("warning", "--log-level", help="Log level: debug|info|warning|error"),
    show_version: bool = typer.Option(False, "--version", "-v", help="Show version and exit"),
) -> None:
    """optrack CLI.

    Global flags are parsed here and stored on `ctx.obj` for subcommands.
    """
    if ctx.obj is None:
        ctx.obj = {}

    effective_level = "warning" if log_level.lower() == "warn" else log_level.lower()
    if quiet:
        effective_level = "error"
    elif verbose:
        effective_level = "debug"

    ctx.obj.update({
        "quiet": quiet,
        "verbose": verbose,
        "output_format": "json" if json_out else "pretty",
        "config_path": config_path,
        "log_level": effective_level,
        "version": _package_version(),
    })

    configure_logging(level=effective_level.upper(), format="console", force_reconfigure=True)  # type: ignore[arg-type]

    if show_version:
        console.print(f"[bold blue]optrack[/bold blue] version [green]{_package_version()}[/green]")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main() -> None:
    """Main CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
