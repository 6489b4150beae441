"""Integration adapters that drive async work through the tracker."""

from optrack.stdlib.integrations.loaders import (
    DataSource,
    FormProgress,
    load_weighted_sources,
    route_operation_id,
    route_transition,
)
from optrack.stdlib.integrations.operation_wrapper import (
    ProgressReporter,
    StagedOperation,
    error_message,
    execute,
    tracked,
    tracking,
)

__all__ = [
    "DataSource",
    "FormProgress",
    "ProgressReporter",
    "StagedOperation",
    "error_message",
    "execute",
    "load_weighted_sources",
    "route_operation_id",
    "route_transition",
    "tracked",
    "tracking",
]
