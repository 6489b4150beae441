"""OperationStore - keyed, snapshot-based state for tracked operations.

Every mutation is a discrete action object.  Actions are reduced one at a
time against the latest snapshot by the pure :func:`reduce_operations`,
which returns a brand-new mapping; the previous snapshot is never
touched, so readers holding it see a consistent point-in-time view.

Concurrent callers are safe without locking the data: dispatch admits a
single action at a time, and an action dispatched while another is being
applied (for example by a change listener) is queued and applied right
after, in order.

Usage::

    from optrack.drivers.clock import MonotonicClock
    from optrack.stdlib.lib.operation_store import OperationStore

    store = OperationStore(MonotonicClock())
    store.start("fetch-quotes", stage="fetching")
    store.update_progress("fetch-quotes", 40, "parsing")
    store.finish("fetch-quotes")
"""

from __future__ import annotations

import dataclasses
import threading
from collections import deque
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from optrack.kernel.domain.operation import (
    COMPLETED_STAGE,
    ERROR_STAGE,
    RESERVED_FIELDS,
    RETRYING_STAGE,
    STARTING_STAGE,
    OperationRecord,
    OperationType,
)
from optrack.kernel.exceptions import ValidationError
from optrack.kernel.logging import get_logger
from optrack.kernel.utils.progress import (
    MAX_PROGRESS,
    MIN_PROGRESS,
    clamp_progress,
    estimate_remaining,
)

if TYPE_CHECKING:
    from optrack.kernel.ports.change_notifier import ChangeNotifier
    from optrack.kernel.ports.clock import Clock

logger = get_logger(__name__)

SUCCESS_RATE_PENALTY = 5.0
SUCCESS_RATE_REWARD = 1.0

OperationMap = Mapping[str, OperationRecord]

# Called with (previous, current) right after an action is applied.
AppliedCallback = Callable[[OperationRecord | None, OperationRecord | None], None]

# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StartOperation:
    op_id: str
    stage: str | None = None
    type: OperationType | None = None
    details: Mapping[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class UpdateProgress:
    op_id: str
    progress: float
    stage: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshEstimate:
    op_id: str


@dataclass(frozen=True, slots=True)
class FinishOperation:
    op_id: str


@dataclass(frozen=True, slots=True)
class FailOperation:
    op_id: str
    message: str


@dataclass(frozen=True, slots=True)
class RetryOperation:
    op_id: str


@dataclass(frozen=True, slots=True)
class ClearOperation:
    op_id: str


@dataclass(frozen=True, slots=True)
class RecordOutcome:
    op_id: str
    success: bool


@dataclass(frozen=True, slots=True)
class RecordMetrics:
    op_id: str
    metrics: Mapping[str, float]


Action = (
    StartOperation
    | UpdateProgress
    | RefreshEstimate
    | FinishOperation
    | FailOperation
    | RetryOperation
    | ClearOperation
    | RecordOutcome
    | RecordMetrics
)

# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------


def _apply(record: OperationRecord, action: Action, now: float) -> OperationRecord:
    """Compute the next record for an existing operation."""
    match action:
        case UpdateProgress(progress=progress, stage=stage):
            clamped = clamp_progress(progress)
            changes: dict[str, Any] = {"progress": clamped}
            if stage:
                changes["stage"] = stage
            if clamped in (MIN_PROGRESS, MAX_PROGRESS):
                changes["estimated_time_remaining"] = None
            return dataclasses.replace(record, **changes)

        case RefreshEstimate():
            estimate = estimate_remaining(record.start_time, now, record.progress)
            if estimate == record.estimated_time_remaining:
                return record
            return dataclasses.replace(record, estimated_time_remaining=estimate)

        case FinishOperation():
            return dataclasses.replace(
                record,
                is_loading=False,
                progress=MAX_PROGRESS,
                stage=COMPLETED_STAGE,
                error=None,
                end_time=now,
                estimated_time_remaining=None,
            )

        case FailOperation(message=message):
            return dataclasses.replace(
                record,
                is_loading=False,
                error=message,
                stage=ERROR_STAGE,
                end_time=now,
                estimated_time_remaining=None,
            )

        case RetryOperation():
            return dataclasses.replace(
                record,
                is_loading=True,
                progress=MIN_PROGRESS,
                stage=RETRYING_STAGE,
                error=None,
                start_time=now,
                end_time=None,
                estimated_time_remaining=None,
                retry_count=record.retry_count + 1,
            )

        case RecordOutcome(success=True):
            return dataclasses.replace(
                record,
                success_count=record.success_count + 1,
                success_rate=min(100.0, record.success_rate + SUCCESS_RATE_REWARD),
            )

        case RecordOutcome(success=False):
            return dataclasses.replace(
                record,
                error_count=record.error_count + 1,
                success_rate=max(0.0, record.success_rate - SUCCESS_RATE_PENALTY),
            )

        case RecordMetrics(metrics=metrics):
            merged = {**record.metrics, **metrics}
            return dataclasses.replace(record, metrics=MappingProxyType(merged))

    return record


def reduce_operations(state: OperationMap, action: Action, now: float) -> OperationMap:
    """Apply *action* to *state* and return the next state.

    Pure: *state* is never mutated.  Actions other than ``StartOperation``
    on an absent id return *state* itself.
    """
    op_id = action.op_id

    if isinstance(action, StartOperation):
        record = OperationRecord(
            is_loading=True,
            progress=MIN_PROGRESS,
            stage=action.stage or STARTING_STAGE,
            start_time=now,
            type=action.type or OperationType.DATA,
            details=MappingProxyType(dict(action.details)) if action.details is not None else None,
        )
        return {**state, op_id: record}

    if isinstance(action, ClearOperation):
        if op_id not in state:
            return state
        return {key: value for key, value in state.items() if key != op_id}

    current = state.get(op_id)
    if current is None:
        return state

    updated = _apply(current, action, now)
    if updated is current:
        return state
    return {**state, op_id: updated}


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class OperationStore:
    """Single-dispatch container of :class:`OperationRecord` snapshots.

    Mutation methods are synchronous and return immediately; the store
    itself never awaits.  Mutations on an absent id are silent no-ops,
    except ``start`` which always creates the record.
    """

    def __init__(self, clock: Clock, notifier: ChangeNotifier | None = None) -> None:
        """Initialise an empty store.

        Args
        ----
            clock: Time source for start/end timestamps and estimates.
            notifier: Optional change notifier; receives every record change.
        """
        self._clock = clock
        self._notifier = notifier
        self._state: OperationMap = {}
        self._queue: deque[tuple[Action, AppliedCallback | None]] = deque()
        self._draining = False
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(
        self, action: Action, *, on_applied: AppliedCallback | None = None
    ) -> OperationMap:
        """Apply *action* and return the resulting snapshot.

        Nested dispatches (from listeners or *on_applied* callbacks) are
        queued behind the action currently being applied.

        Args
        ----
            action: The action to apply.
            on_applied: Called with ``(previous, current)`` for the action's
                id once the action has actually been applied, which for a
                queued action is later than this call returns.
        """
        with self._lock:
            self._queue.append((action, on_applied))
            if self._draining:
                return self.snapshot
            self._draining = True
            try:
                while self._queue:
                    self._apply_one(*self._queue.popleft())
            finally:
                self._draining = False
            return self.snapshot

    def _apply_one(self, action: Action, on_applied: AppliedCallback | None) -> None:
        previous = self._state.get(action.op_id)
        self._state = reduce_operations(self._state, action, self._clock.now())
        current = self._state.get(action.op_id)
        if current is not previous:
            logger.trace(
                "{action} applied to {op_id}", action=type(action).__name__, op_id=action.op_id
            )
            if self._notifier is not None:
                self._notifier.notify(action.op_id, current)
        if on_applied is not None:
            on_applied(previous, current)

    # ------------------------------------------------------------------
    # Mutation API
    # ------------------------------------------------------------------

    def start(
        self,
        op_id: str,
        *,
        stage: str | None = None,
        type: OperationType | str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        """Create (or overwrite) the record for *op_id* in the loading state."""
        op_type = OperationType(type) if type is not None else None
        self.dispatch(StartOperation(op_id, stage=stage, type=op_type, details=details))

    def update_progress(self, op_id: str, progress: float, stage: str | None = None) -> None:
        """Report progress, then refresh the remaining-time estimate."""
        self.dispatch(UpdateProgress(op_id, progress=progress, stage=stage))
        self.dispatch(RefreshEstimate(op_id))

    def finish(self, op_id: str, *, on_applied: AppliedCallback | None = None) -> None:
        """Mark the operation completed."""
        self.dispatch(FinishOperation(op_id), on_applied=on_applied)

    def set_error(
        self, op_id: str, message: str, *, on_applied: AppliedCallback | None = None
    ) -> None:
        """Mark the operation failed with *message*."""
        self.dispatch(FailOperation(op_id, message=message), on_applied=on_applied)

    def retry(self, op_id: str, *, on_applied: AppliedCallback | None = None) -> None:
        """Re-open the operation and count one more retry."""
        self.dispatch(RetryOperation(op_id), on_applied=on_applied)

    def clear(self, op_id: str) -> None:
        """Remove the record entirely (idempotent)."""
        self.dispatch(ClearOperation(op_id))

    def record_success(self, op_id: str, *, on_applied: AppliedCallback | None = None) -> None:
        """Count a success: +1 success rate, capped at 100."""
        self.dispatch(RecordOutcome(op_id, success=True), on_applied=on_applied)

    def record_error(self, op_id: str, *, on_applied: AppliedCallback | None = None) -> None:
        """Count an error: -5 success rate, floored at 0."""
        self.dispatch(RecordOutcome(op_id, success=False), on_applied=on_applied)

    def record_metric(self, op_id: str, **metrics: float) -> None:
        """Merge custom named metrics into the record.

        Raises
        ------
        ValidationError
            If a metric name shadows a record field.
        """
        clashing = sorted(set(metrics) & RESERVED_FIELDS)
        if clashing:
            raise ValidationError("metrics", "names clash with record fields", clashing)
        if metrics:
            self.dispatch(RecordMetrics(op_id, metrics=dict(metrics)))

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Mapping[str, OperationRecord]:
        """Read-only view of the current state."""
        return MappingProxyType(self._state)

    def get(self, op_id: str) -> OperationRecord | None:
        """Current record for *op_id*, or None if absent."""
        return self._state.get(op_id)

    def __contains__(self, op_id: object) -> bool:
        return op_id in self._state

    def __iter__(self) -> Iterator[str]:
        return iter(self._state)

    def __len__(self) -> int:
        return len(self._state)
