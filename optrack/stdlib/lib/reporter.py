"""Aggregate reporting over a snapshot of tracked operations.

Everything here is read-only: functions take a snapshot of records (and
budgets, alerts) and return plain frozen result objects.  Nothing reaches
back into the store.

Composite performance score of one operation::

    100
    - min(30, (duration / max_loading_time - 1) * 30)    # only when over budget
    - min(25, error_count * 5)
    - min(15, (retry_count - max_retry_attempts) * 5)     # only on retry overage
    + 0.1 * (success_rate - target_success_rate)
    clamped to [0, 100]
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from optrack.kernel.domain.alert import Alert, alert_to_dict
from optrack.kernel.domain.budget import BudgetVerdict, PerformanceBudget
from optrack.kernel.domain.operation import OperationRecord, operation_record_to_dict
from optrack.stdlib.lib.budget_evaluator import ErrorRateMode, evaluate

DEFAULT_WORST_LIMIT = 5
DEFAULT_REPORT_ALERTS = 20

MAX_LOADING_PENALTY = 30.0
MAX_ERROR_PENALTY = 25.0
MAX_RETRY_PENALTY = 15.0
ERROR_PENALTY_PER_ERROR = 5.0
RETRY_PENALTY_PER_RETRY = 5.0
SUCCESS_RATE_WEIGHT = 0.1


@dataclass(frozen=True, slots=True)
class OverallStats:
    """Fleet-wide averages and totals."""

    avg_loading_time: float = 0.0
    total_errors: int = 0
    avg_success_rate: float = 100.0
    total_operations: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "avg_loading_time": self.avg_loading_time,
            "total_errors": self.total_errors,
            "avg_success_rate": self.avg_success_rate,
            "total_operations": self.total_operations,
        }


@dataclass(frozen=True, slots=True)
class PerformerScore:
    """Composite score of one operation."""

    op_id: str
    score: float
    record: OperationRecord

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.op_id, "score": self.score, "record": operation_record_to_dict(self.record)}


@dataclass(frozen=True, slots=True)
class ReportSummary:
    components_with_issues: int
    avg_performance_score: float


@dataclass(frozen=True, slots=True)
class PerformanceReport:
    """Point-in-time fleet health report."""

    timestamp: str
    overall_stats: OverallStats
    worst_performers: tuple[PerformerScore, ...]
    alerts: tuple[Alert, ...]
    records: Mapping[str, OperationRecord]
    summary: ReportSummary
    budgets: Mapping[str, PerformanceBudget] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Render the report as JSON-friendly data."""
        return {
            "timestamp": self.timestamp,
            "overall_stats": self.overall_stats.to_dict(),
            "worst_performers": [p.to_dict() for p in self.worst_performers],
            "alerts": [alert_to_dict(a) for a in self.alerts],
            "metrics": {
                op_id: operation_record_to_dict(record) for op_id, record in self.records.items()
            },
            "summary": {
                "components_with_issues": self.summary.components_with_issues,
                "avg_performance_score": self.summary.avg_performance_score,
            },
        }


def performance_score(record: OperationRecord, budget: PerformanceBudget | None) -> float:
    """Composite 0-100 score; 100 when no budget applies."""
    if budget is None:
        return 100.0

    score = 100.0

    duration = record.loading_duration
    if duration:
        ratio = duration / budget.max_loading_time
        if ratio > 1:
            score -= min(MAX_LOADING_PENALTY, (ratio - 1) * MAX_LOADING_PENALTY)

    if record.error_count > 0:
        score -= min(MAX_ERROR_PENALTY, record.error_count * ERROR_PENALTY_PER_ERROR)

    if record.retry_count > budget.max_retry_attempts:
        overage = record.retry_count - budget.max_retry_attempts
        score -= min(MAX_RETRY_PENALTY, overage * RETRY_PENALTY_PER_RETRY)

    score += SUCCESS_RATE_WEIGHT * (record.success_rate - budget.target_success_rate)

    return max(0.0, min(100.0, score))


def overall_stats(records: Mapping[str, OperationRecord]) -> OverallStats:
    """Average loading time, total errors and average success rate.

    Loading time is averaged only over records whose duration is known,
    so in-flight operations do not drag the average towards zero.
    """
    if not records:
        return OverallStats()

    values = list(records.values())
    durations = [d for r in values if (d := r.loading_duration) is not None]
    return OverallStats(
        avg_loading_time=sum(durations) / len(durations) if durations else 0.0,
        total_errors=sum(r.error_count for r in values),
        avg_success_rate=sum(r.success_rate for r in values) / len(values),
        total_operations=len(values),
    )


def worst_performers(
    records: Mapping[str, OperationRecord],
    budgets: Mapping[str, PerformanceBudget],
    limit: int = DEFAULT_WORST_LIMIT,
) -> tuple[PerformerScore, ...]:
    """The *limit* lowest-scoring operations that have a budget, ascending."""
    scored = [
        PerformerScore(op_id=op_id, score=performance_score(record, budgets[op_id]), record=record)
        for op_id, record in records.items()
        if op_id in budgets
    ]
    scored.sort(key=lambda p: p.score)
    return tuple(scored[: max(0, limit)])


def generate_report(
    records: Mapping[str, OperationRecord],
    budgets: Mapping[str, PerformanceBudget],
    alerts: Sequence[Alert],
    *,
    worst_limit: int = DEFAULT_WORST_LIMIT,
    alert_limit: int = DEFAULT_REPORT_ALERTS,
    error_rate_mode: ErrorRateMode = ErrorRateMode.SMOOTHED,
    now: datetime | None = None,
) -> PerformanceReport:
    """Assemble a point-in-time fleet report.

    Args
    ----
        records: Snapshot of every tracked record.
        budgets: Budgets by operation id; records without one are not scored.
        alerts: Live alerts, newest first.
        worst_limit: Number of worst performers to include.
        alert_limit: Number of most recent alerts to include.
        error_rate_mode: Error-rate formula used for the issue count.
        now: Wall-clock timestamp of the report (defaults to current UTC).

    Returns
    -------
        A :class:`PerformanceReport`.
    """
    worst = worst_performers(records, budgets, worst_limit)
    with_issues = sum(
        1
        for op_id, record in records.items()
        if op_id in budgets
        and evaluate(record, budgets[op_id], error_rate_mode=error_rate_mode).verdict
        != BudgetVerdict.WITHIN_BUDGET
    )
    avg_score = sum(p.score for p in worst) / len(worst) if worst else 100.0

    return PerformanceReport(
        timestamp=(now or datetime.now(UTC)).isoformat(),
        overall_stats=overall_stats(records),
        worst_performers=worst,
        alerts=tuple(alerts[: max(0, alert_limit)]),
        records=dict(records),
        summary=ReportSummary(
            components_with_issues=with_issues, avg_performance_score=avg_score
        ),
        budgets=dict(budgets),
    )
