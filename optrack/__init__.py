"""optrack - operation lifecycle tracker.

Tracks many independently running asynchronous operations, each keyed by
a string id, through a progress/retry/error lifecycle, and evaluates each
against a performance budget to produce health verdicts, alerts and
fleet-wide reports.
"""

# Version is defined in pyproject.toml and read dynamically
try:
    from importlib.metadata import version

    __version__ = version("optrack")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for development installs

from optrack.compiler.config_loader import load_config
from optrack.drivers.clock import ManualClock, MonotonicClock
from optrack.kernel.config.models import TrackerConfig
from optrack.kernel.domain import (
    FAST,
    NORMAL,
    SLOW,
    Alert,
    AlertType,
    BudgetEvaluation,
    BudgetVerdict,
    OperationRecord,
    OperationType,
    PerformanceBudget,
    budget_for_complexity,
)
from optrack.kernel.exceptions import (
    ConfigurationError,
    OptrackError,
    ResourceNotFoundError,
    TypeMismatchError,
    ValidationError,
)
from optrack.stdlib.integrations import (
    DataSource,
    FormProgress,
    StagedOperation,
    execute,
    load_weighted_sources,
    route_transition,
    tracked,
    tracking,
)
from optrack.stdlib.lib import (
    LOADING_STAGES,
    ErrorRateMode,
    OperationTracker,
    PerformanceReport,
    make_operation_id,
)

__all__ = [
    "FAST",
    "LOADING_STAGES",
    "NORMAL",
    "SLOW",
    "Alert",
    "AlertType",
    "BudgetEvaluation",
    "BudgetVerdict",
    "ConfigurationError",
    "DataSource",
    "ErrorRateMode",
    "FormProgress",
    "ManualClock",
    "MonotonicClock",
    "OperationRecord",
    "OperationTracker",
    "OperationType",
    "OptrackError",
    "PerformanceBudget",
    "PerformanceReport",
    "ResourceNotFoundError",
    "StagedOperation",
    "TrackerConfig",
    "TypeMismatchError",
    "ValidationError",
    "__version__",
    "budget_for_complexity",
    "execute",
    "load_config",
    "load_weighted_sources",
    "make_operation_id",
    "route_transition",
    "tracked",
    "tracking",
]
