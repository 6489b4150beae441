"""Domain models for operation tracking."""

from optrack.kernel.domain.alert import Alert, AlertType, alert_to_dict
from optrack.kernel.domain.budget import (
    BUDGET_PRESETS,
    DEFAULT_BUDGET,
    FAST,
    NORMAL,
    SLOW,
    BudgetEvaluation,
    BudgetVerdict,
    BudgetViolation,
    PerformanceBudget,
    ViolationKind,
    budget_for_complexity,
    get_budget_preset,
)
from optrack.kernel.domain.operation import (
    OperationRecord,
    OperationType,
    operation_record_to_dict,
)

__all__ = [
    "BUDGET_PRESETS",
    "DEFAULT_BUDGET",
    "FAST",
    "NORMAL",
    "SLOW",
    "Alert",
    "AlertType",
    "BudgetEvaluation",
    "BudgetVerdict",
    "BudgetViolation",
    "OperationRecord",
    "OperationType",
    "PerformanceBudget",
    "ViolationKind",
    "alert_to_dict",
    "budget_for_complexity",
    "get_budget_preset",
    "operation_record_to_dict",
]
