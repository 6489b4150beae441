"""Domain model for tracked operations.

Used by :class:`~optrack.stdlib.lib.operation_store.OperationStore` to
hold the lifecycle state of one asynchronous unit of work (a data fetch,
a calculation, a form submission, a route transition).

Records are frozen: every mutation produces a new record through
:func:`dataclasses.replace`, so a snapshot handed to a reader never
changes underneath it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import StrEnum
from types import MappingProxyType
from typing import Any

IDLE_STAGE = "idle"
STARTING_STAGE = "starting"
COMPLETED_STAGE = "completed"
ERROR_STAGE = "error"
RETRYING_STAGE = "retrying"


class OperationType(StrEnum):
    """Kind of work an operation represents."""

    INITIAL = "initial"
    NAVIGATION = "navigation"
    DATA = "data"
    CALCULATION = "calculation"
    FORM = "form"


@dataclass(frozen=True, slots=True)
class OperationRecord:
    """Point-in-time state of a single tracked operation.

    ``details`` is an opaque caller payload: the tracker stores it and
    hands it back but never looks inside.  ``metrics`` holds custom named
    measurements recorded with ``record_metric``.
    """

    is_loading: bool = False
    progress: float = 0.0
    stage: str = IDLE_STAGE
    start_time: float | None = None
    end_time: float | None = None
    estimated_time_remaining: float | None = None
    error: str | None = None
    retry_count: int = 0
    type: OperationType = OperationType.DATA
    success_rate: float = 100.0
    error_count: int = 0
    success_count: int = 0
    details: Mapping[str, Any] | None = None
    metrics: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def loading_duration(self) -> float | None:
        """Milliseconds between start and end, once both are known."""
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    @property
    def is_terminal(self) -> bool:
        """True once the operation has completed or failed."""
        return not self.is_loading and (self.progress >= 100 or self.error is not None)


# Field names ``record_metric`` may not shadow.
RESERVED_FIELDS = frozenset(OperationRecord.__dataclass_fields__) | {"loading_duration"}

DEFAULT_RECORD = OperationRecord()


def operation_record_to_dict(record: OperationRecord) -> dict[str, Any]:
    """Serialise a record to a plain, JSON-friendly dict."""
    data = {f.name: getattr(record, f.name) for f in fields(record)}
    data["type"] = str(record.type)
    data["details"] = dict(record.details) if record.details is not None else None
    data["metrics"] = dict(record.metrics)
    data["loading_duration"] = record.loading_duration
    return data
