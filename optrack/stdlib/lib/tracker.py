"""OperationTracker lib - public facade over store, budgets and alerts.

One tracker owns one :class:`OperationStore`, one budget map and one
:class:`AlertLog`.  There is no module-level instance: callers construct
a tracker and pass it to whatever needs it, so tests get isolated state
for free.

Budgets are evaluated whenever an operation reaches a terminal state
(``finish`` or ``set_error``); each violation becomes an alert.  Alerts
are observational only and never feed back into the store.

Usage::

    from optrack.stdlib.lib import OperationTracker

    tracker = OperationTracker()
    tracker.start("fetch-quotes", stage="fetching")
    tracker.update_progress("fetch-quotes", 50, "halfway")
    tracker.finish("fetch-quotes")
    tracker.get_budget_status("fetch-quotes")  # BudgetVerdict.WITHIN_BUDGET
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from optrack.drivers.clock import MonotonicClock
from optrack.drivers.observer_manager import LocalChangeNotifier
from optrack.kernel.config.models import TrackerConfig
from optrack.kernel.domain.alert import Alert, AlertType
from optrack.kernel.domain.budget import (
    WITHIN_BUDGET,
    BudgetEvaluation,
    BudgetVerdict,
    PerformanceBudget,
    get_budget_preset,
)
from optrack.kernel.domain.operation import (
    DEFAULT_RECORD,
    OperationRecord,
    OperationType,
    operation_record_to_dict,
)
from optrack.kernel.exceptions import TypeMismatchError, ValidationError
from optrack.kernel.logging import get_logger
from optrack.stdlib.lib.alert_log import AlertLog
from optrack.stdlib.lib.budget_evaluator import ErrorRateMode
from optrack.stdlib.lib.budget_evaluator import evaluate as evaluate_budget
from optrack.stdlib.lib.operation_store import OperationStore
from optrack.stdlib.lib.reporter import (
    OverallStats,
    PerformanceReport,
    PerformerScore,
    generate_report,
    overall_stats,
    worst_performers,
)

if TYPE_CHECKING:
    from optrack.kernel.ports.change_notifier import ChangeListener, ChangeNotifier, Unsubscribe
    from optrack.kernel.ports.clock import Clock

logger = get_logger(__name__)

BudgetLike = PerformanceBudget | str | Mapping[str, Any]


def _coerce_budget(budget: BudgetLike) -> PerformanceBudget:
    """Accept a budget model, a preset name or a mapping of thresholds."""
    if isinstance(budget, PerformanceBudget):
        return budget
    if isinstance(budget, str):
        return get_budget_preset(budget)
    if isinstance(budget, Mapping):
        return PerformanceBudget.model_validate(dict(budget))
    raise TypeMismatchError("budget", "PerformanceBudget, preset name or mapping", type(budget))


class OperationTracker:
    """Track named asynchronous operations and evaluate them against budgets.

    Mutation methods never raise for an unknown id; they are silent
    no-ops, except ``start`` which always creates the record.
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        *,
        clock: Clock | None = None,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        """Initialise an empty tracker.

        Args
        ----
            config: Tracker configuration; defaults to :class:`TrackerConfig`.
            clock: Time source in milliseconds; defaults to a monotonic clock.
            notifier: Change notifier; defaults to an in-process notifier.
        """
        self._config = config or TrackerConfig()
        self._clock = clock or MonotonicClock()
        self._notifier = notifier or LocalChangeNotifier()
        self._store = OperationStore(self._clock, self._notifier)
        self._alerts = AlertLog(
            self._clock,
            capacity=self._config.alerts.capacity,
            info_ttl_ms=self._config.alerts.info_ttl_ms,
        )
        self._error_rate_mode = ErrorRateMode(self._config.error_rate_mode)
        self._budgets: dict[str, PerformanceBudget] = dict(self._config.budgets)

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def start(
        self,
        op_id: str,
        *,
        stage: str | None = None,
        type: OperationType | str | None = None,
        details: Mapping[str, Any] | None = None,
        budget: BudgetLike | None = None,
    ) -> None:
        """Begin (or restart) tracking *op_id*.

        A budget given here replaces any existing one.  Otherwise an id
        without a budget receives the configured per-id budget or the
        default budget.
        """
        if not op_id:
            raise ValidationError("op_id", "cannot be empty")
        try:
            op_type = OperationType(type) if type is not None else None
        except ValueError:
            raise ValidationError(
                "type", f"must be one of {', '.join(OperationType)}", type
            ) from None

        if budget is not None:
            self._budgets[op_id] = _coerce_budget(budget)
        elif op_id not in self._budgets:
            fallback = self._config.budgets.get(op_id, self._config.default_budget)
            if fallback is not None:
                self._budgets[op_id] = fallback

        self._store.start(op_id, stage=stage, type=op_type, details=details)
        logger.debug("Operation {op_id} started", op_id=op_id)

    def update_progress(self, op_id: str, progress: float, stage: str | None = None) -> None:
        """Report progress (clamped to 0-100) and optionally a new stage."""
        self._store.update_progress(op_id, progress, stage)

    def finish(self, op_id: str) -> None:
        """Mark *op_id* completed and evaluate it against its budget.

        The success and the budget check belong to the transition out of
        the loading state; finishing an already terminal record only
        resets its terminal fields.
        """

        def on_finished(previous: OperationRecord | None, _: OperationRecord | None) -> None:
            if previous is None or not previous.is_loading:
                return
            logger.debug("Operation {op_id} completed", op_id=op_id)
            self._store.record_success(op_id, on_applied=lambda *_: self._check_budget(op_id))

        self._store.finish(op_id, on_applied=on_finished)

    def set_error(self, op_id: str, message: str) -> None:
        """Mark *op_id* failed with *message* and raise an error alert.

        As with :meth:`finish`, the error count, the failure alert and the
        budget check are emitted once per loading attempt.
        """

        def on_failed(previous: OperationRecord | None, _: OperationRecord | None) -> None:
            if previous is None or not previous.is_loading:
                return
            logger.debug("Operation {op_id} failed: {message}", op_id=op_id, message=message)
            self._alerts.add(AlertType.ERROR, f"Operation {op_id} failed: {message}", op_id)
            self._store.record_error(op_id, on_applied=lambda *_: self._check_budget(op_id))

        self._store.set_error(op_id, message, on_applied=on_failed)

    def retry(self, op_id: str) -> None:
        """Re-open *op_id* and count one more retry.

        Retrying is always the caller's decision; the tracker only records it.
        """

        def on_retried(_: OperationRecord | None, record: OperationRecord | None) -> None:
            if record is None:
                return
            logger.debug(
                "Operation {op_id} retrying (attempt {attempt})",
                op_id=op_id,
                attempt=record.retry_count,
            )
            self._alerts.add(
                AlertType.INFO,
                f"Retrying operation {op_id} (attempt {record.retry_count})",
                op_id,
            )

        self._store.retry(op_id, on_applied=on_retried)

    def clear(self, op_id: str) -> None:
        """Stop tracking *op_id*: drop its record and budget."""
        self._store.clear(op_id)
        self._budgets.pop(op_id, None)

    def record_success(self, op_id: str) -> None:
        self._store.record_success(op_id)

    def record_error(self, op_id: str) -> None:
        self._store.record_error(op_id)

    def record_metric(self, op_id: str, **metrics: float) -> None:
        """Attach custom named metrics (e.g. ``render_time=12.5``)."""
        self._store.record_metric(op_id, **metrics)

    def set_budget(self, op_id: str, budget: BudgetLike) -> PerformanceBudget:
        """Assign a budget to *op_id*; returns the validated budget."""
        resolved = _coerce_budget(budget)
        self._budgets[op_id] = resolved
        return resolved

    def add_alert(self, type: AlertType | str, message: str, component: str) -> Alert:
        """Append a caller-supplied alert to the log."""
        return self._alerts.add(type, message, component)

    def clear_alerts(self, component: str | None = None) -> int:
        """Drop alerts, all of them or those of one operation."""
        return self._alerts.clear(component)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, op_id: str) -> OperationRecord | None:
        return self._store.get(op_id)

    def is_any_loading(self) -> bool:
        """True if at least one tracked operation is in flight."""
        return any(record.is_loading for record in self._store.snapshot.values())

    def get_estimated_time_remaining(self, op_id: str) -> float | None:
        record = self._store.get(op_id)
        return record.estimated_time_remaining if record is not None else None

    @property
    def global_operation(self) -> OperationRecord:
        """Record of the configured global operation, or an idle default."""
        return self._store.get(self._config.global_operation_id) or DEFAULT_RECORD

    @property
    def records(self) -> Mapping[str, OperationRecord]:
        """Read-only snapshot of every tracked record."""
        return self._store.snapshot

    @property
    def alerts(self) -> tuple[Alert, ...]:
        """Live alerts, newest first."""
        return self._alerts.alerts()

    @property
    def budgets(self) -> Mapping[str, PerformanceBudget]:
        return dict(self._budgets)

    def get_budget(self, op_id: str) -> PerformanceBudget | None:
        return self._budgets.get(op_id)

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def evaluate(self, op_id: str) -> BudgetEvaluation:
        """Evaluate *op_id* against its budget without emitting alerts."""
        record = self._store.get(op_id)
        budget = self._budgets.get(op_id)
        if record is None or budget is None:
            return WITHIN_BUDGET
        return evaluate_budget(record, budget, error_rate_mode=self._error_rate_mode)

    def get_budget_status(self, op_id: str) -> BudgetVerdict:
        return self.evaluate(op_id).verdict

    def export_metrics(self) -> dict[str, dict[str, Any]]:
        """Every record as plain data, keyed by operation id."""
        return {
            op_id: operation_record_to_dict(record)
            for op_id, record in self._store.snapshot.items()
        }

    def overall_stats(self) -> OverallStats:
        return overall_stats(self._store.snapshot)

    def worst_performers(self, limit: int | None = None) -> tuple[PerformerScore, ...]:
        if limit is None:
            limit = self._config.report.worst_performers_limit
        return worst_performers(self._store.snapshot, self._budgets, limit)

    def generate_report(self) -> PerformanceReport:
        """Point-in-time fleet report (read-only)."""
        return generate_report(
            self._store.snapshot,
            dict(self._budgets),
            self._alerts.alerts(),
            worst_limit=self._config.report.worst_performers_limit,
            alert_limit=self._config.alerts.recent_limit,
            error_rate_mode=self._error_rate_mode,
        )

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def on_change(self, op_id: str | None, callback: ChangeListener) -> Unsubscribe:
        """Call ``callback(op_id, record)`` on every change to *op_id*.

        Pass ``None`` to observe every operation.  ``record`` is ``None``
        once the operation has been cleared.  Returns an unsubscribe
        callable.
        """
        return self._notifier.subscribe(op_id, callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel pending alert timers and drop all listeners."""
        self._alerts.close()
        self._notifier.clear()

    def __enter__(self) -> OperationTracker:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_budget(self, op_id: str) -> None:
        evaluation = self.evaluate(op_id)
        for violation in evaluation.violations:
            logger.warning(
                "Budget violation for {op_id}: {message}",
                op_id=op_id,
                message=violation.message,
            )
            self._alerts.add(violation.alert_type, violation.message, op_id)
