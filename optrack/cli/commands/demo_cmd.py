"""Demo commands: simulate a fleet of staged operations and report on it."""

from __future__ import annotations

import asyncio
import random

import typer
from rich.console import Console
from rich.table import Table

from optrack.cli.utils import load_cli_config, print_output, wants_json
from optrack.kernel.config.models import TrackerConfig
from optrack.kernel.domain.budget import budget_for_complexity
from optrack.kernel.logging import get_logger
from optrack.kernel.utils.progress import format_remaining
from optrack.stdlib.integrations.operation_wrapper import StagedOperation
from optrack.stdlib.lib.presets import LOADING_STAGES, make_operation_id
from optrack.stdlib.lib.reporter import PerformanceReport
from optrack.stdlib.lib.tracker import OperationTracker

app = typer.Typer(help="Simulate tracked operations")
console = Console()
logger = get_logger(__name__)

_COMPLEXITY = {
    "solar_calculation": "complex",
    "equipment_search": "normal",
    "rfq_form": "simple",
    "dashboard_data": "normal",
    "quote_generation": "complex",
}

_OPERATION_TYPES = {
    "solar_calculation": "calculation",
    "equipment_search": "data",
    "rfq_form": "form",
    "dashboard_data": "data",
    "quote_generation": "calculation",
}


class SimulatedFailure(RuntimeError):
    pass


async def simulate_fleet(
    tracker: OperationTracker,
    *,
    operations: int,
    duration_ms: float,
    fail_rate: float,
    seed: int | None,
) -> None:
    """Run *operations* staged operations concurrently on *tracker*.

    Each attempt fails with probability *fail_rate*; failed operations
    are retried while ``can_retry`` holds.
    """
    rng = random.Random(seed)
    presets = sorted(LOADING_STAGES)

    async def run_one(index: int) -> None:
        preset = presets[index % len(presets)]
        op = StagedOperation(
            tracker,
            make_operation_id(preset, str(index)),
            stages=LOADING_STAGES[preset],
            estimated_duration_ms=duration_ms * rng.uniform(0.5, 1.5),
            type=_OPERATION_TYPES[preset],
            budget=budget_for_complexity(_COMPLEXITY[preset]),  # type: ignore[arg-type]
        )
        fails = rng.random() < fail_rate
        work_s = duration_ms * rng.uniform(0.0, 1.5) / 1000

        async def work() -> str:
            await asyncio.sleep(work_s)
            if fails:
                raise SimulatedFailure(f"{preset} backend unavailable")
            return preset

        while True:
            try:
                await op.run(work)
                return
            except SimulatedFailure:
                if not op.can_retry:
                    return
                op.retry()
                fails = rng.random() < fail_rate

    await asyncio.gather(*(run_one(i) for i in range(operations)))


def _render_report(report: PerformanceReport) -> None:
    stats = report.overall_stats
    console.print(f"[bold blue]Fleet report[/bold blue] {report.timestamp}")
    console.print(
        f"operations: [green]{stats.total_operations}[/green]  "
        f"avg loading: [green]{stats.avg_loading_time:.0f}ms[/green]  "
        f"errors: [red]{stats.total_errors}[/red]  "
        f"avg success: [green]{stats.avg_success_rate:.1f}%[/green]"
    )
    console.print(
        f"with issues: [yellow]{report.summary.components_with_issues}[/yellow]  "
        f"avg score: [green]{report.summary.avg_performance_score:.1f}[/green]"
    )

    worst = Table(show_header=True, header_style="bold magenta", title="Worst performers")
    worst.add_column("Operation")
    worst.add_column("Score", justify="right")
    worst.add_column("Stage")
    worst.add_column("Duration (ms)", justify="right")
    worst.add_column("Retries", justify="right")
    worst.add_column("Remaining")
    for performer in report.worst_performers:
        record = performer.record
        duration = record.loading_duration
        worst.add_row(
            performer.op_id,
            f"{performer.score:.1f}",
            record.stage,
            f"{duration:.0f}" if duration is not None else "-",
            str(record.retry_count),
            format_remaining(record.estimated_time_remaining) or "-",
        )
    console.print(worst)

    if report.alerts:
        alerts = Table(show_header=True, header_style="bold magenta", title="Recent alerts")
        alerts.add_column("Type")
        alerts.add_column("Operation")
        alerts.add_column("Message")
        colors = {"error": "red", "warning": "yellow", "info": "cyan"}
        for alert in report.alerts:
            color = colors.get(str(alert.type), "white")
            alerts.add_row(f"[{color}]{alert.type}[/{color}]", alert.component, alert.message)
        console.print(alerts)


@app.command("run")
def run_demo(
    ctx: typer.Context,
    operations: int = typer.Option(10, "--operations", "-n", min=1, help="Number of operations"),
    duration_ms: float = typer.Option(
        300.0, "--duration-ms", min=0.0, help="Typical synthetic duration per operation"
    ),
    fail_rate: float = typer.Option(
        0.2, "--fail-rate", min=0.0, max=1.0, help="Probability that an attempt fails"
    ),
    seed: int | None = typer.Option(None, "--seed", help="Random seed for reproducible runs"),
) -> None:
    """Simulate a fleet of staged operations and print the fleet report."""
    config: TrackerConfig = load_cli_config(ctx)

    async def main() -> PerformanceReport:
        with OperationTracker(config) as tracker:
            await simulate_fleet(
                tracker,
                operations=operations,
                duration_ms=duration_ms,
                fail_rate=fail_rate,
                seed=seed,
            )
            return tracker.generate_report()

    report = asyncio.run(main())
    logger.debug(
        "Demo finished: {count} operations, {issues} with issues",
        count=report.overall_stats.total_operations,
        issues=report.summary.components_with_issues,
    )

    if wants_json(ctx):
        print_output(report.to_dict(), ctx)
        return
    _render_report(report)
