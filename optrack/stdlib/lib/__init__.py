"""Core tracker libraries.

The :class:`OperationTracker` is the public entry point; the store,
evaluator, alert log and reporter it composes are usable on their own.
"""

from optrack.stdlib.lib.alert_log import AlertLog
from optrack.stdlib.lib.budget_evaluator import ErrorRateMode, error_rate, evaluate
from optrack.stdlib.lib.operation_store import OperationStore, reduce_operations
from optrack.stdlib.lib.presets import LOADING_STAGES, get_stages, make_operation_id
from optrack.stdlib.lib.reporter import (
    OverallStats,
    PerformanceReport,
    PerformerScore,
    ReportSummary,
    generate_report,
    overall_stats,
    performance_score,
    worst_performers,
)
from optrack.stdlib.lib.tracker import OperationTracker

__all__ = [
    "LOADING_STAGES",
    "AlertLog",
    "ErrorRateMode",
    "OperationStore",
    "OperationTracker",
    "OverallStats",
    "PerformanceReport",
    "PerformerScore",
    "ReportSummary",
    "error_rate",
    "evaluate",
    "generate_report",
    "get_stages",
    "make_operation_id",
    "overall_stats",
    "performance_score",
    "reduce_operations",
    "worst_performers",
]
