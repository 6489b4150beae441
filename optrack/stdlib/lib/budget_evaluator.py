"""Budget evaluation - compare an operation record against its budget.

Every rule is checked independently and all violations are collected.
The verdict is asymmetric: loading-time and error-rate breaches are hard
(``exceeded``); retry and success-rate drift are soft (``warning``).

The default error rate is the smoothed ``errors / (errors + 1)``, which
approaches 100% as errors accumulate and ignores successes entirely.
``ErrorRateMode.RATIO`` uses ``errors / (errors + successes)`` instead.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from optrack.kernel.domain.alert import AlertType
from optrack.kernel.domain.budget import (
    WITHIN_BUDGET,
    BudgetEvaluation,
    BudgetVerdict,
    BudgetViolation,
    ViolationKind,
)

if TYPE_CHECKING:
    from optrack.kernel.domain.budget import PerformanceBudget
    from optrack.kernel.domain.operation import OperationRecord


class ErrorRateMode(StrEnum):
    """How the error rate of a record is derived."""

    SMOOTHED = "smoothed"
    RATIO = "ratio"


def error_rate(record: OperationRecord, mode: ErrorRateMode = ErrorRateMode.SMOOTHED) -> float:
    """Derive the error rate (percent) of *record*.

    Examples
    --------
    >>> from optrack.kernel.domain.operation import OperationRecord
    >>> error_rate(OperationRecord(error_count=1))
    50.0
    >>> error_rate(OperationRecord(error_count=1, success_count=3), ErrorRateMode.RATIO)
    25.0
    """
    if record.error_count <= 0:
        return 0.0
    if mode == ErrorRateMode.RATIO:
        return record.error_count / (record.error_count + record.success_count) * 100
    return record.error_count / (record.error_count + 1) * 100


def evaluate(
    record: OperationRecord,
    budget: PerformanceBudget,
    *,
    error_rate_mode: ErrorRateMode = ErrorRateMode.SMOOTHED,
) -> BudgetEvaluation:
    """Evaluate *record* against *budget*.

    Deterministic and free of side effects.  The loading-time rule only
    fires once the record has an end time.
    """
    violations: list[BudgetViolation] = []

    duration = record.loading_duration
    if duration is not None and duration > budget.max_loading_time:
        overage = duration - budget.max_loading_time
        violations.append(
            BudgetViolation(
                kind=ViolationKind.LOADING_TIME,
                observed=duration,
                limit=budget.max_loading_time,
                alert_type=AlertType.WARNING,
                message=(
                    f"Loading time {duration:.0f}ms exceeds budget of "
                    f"{budget.max_loading_time:.0f}ms by {overage:.0f}ms"
                ),
            )
        )

    if record.retry_count > budget.max_retry_attempts:
        violations.append(
            BudgetViolation(
                kind=ViolationKind.RETRY_COUNT,
                observed=float(record.retry_count),
                limit=float(budget.max_retry_attempts),
                alert_type=AlertType.WARNING,
                message=(
                    f"Retry count {record.retry_count} exceeds budget of "
                    f"{budget.max_retry_attempts} attempts"
                ),
            )
        )

    if record.success_rate < budget.target_success_rate:
        violations.append(
            BudgetViolation(
                kind=ViolationKind.SUCCESS_RATE,
                observed=record.success_rate,
                limit=budget.target_success_rate,
                alert_type=AlertType.WARNING,
                message=(
                    f"Success rate {record.success_rate:.1f}% is below target of "
                    f"{budget.target_success_rate:g}%"
                ),
            )
        )

    rate = error_rate(record, error_rate_mode)
    if rate > budget.max_error_rate:
        violations.append(
            BudgetViolation(
                kind=ViolationKind.ERROR_RATE,
                observed=rate,
                limit=budget.max_error_rate,
                alert_type=AlertType.ERROR,
                message=f"Error rate {rate:.1f}% exceeds budget of {budget.max_error_rate:g}%",
            )
        )

    if not violations:
        return WITHIN_BUDGET
    if any(v.is_hard for v in violations):
        return BudgetEvaluation(verdict=BudgetVerdict.EXCEEDED, violations=tuple(violations))
    return BudgetEvaluation(verdict=BudgetVerdict.WARNING, violations=tuple(violations))
