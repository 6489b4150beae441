"""Tests for OperationStore and the operation reducer."""

from __future__ import annotations

import math

import pytest

from optrack.drivers.clock import ManualClock
from optrack.drivers.observer_manager import LocalChangeNotifier
from optrack.kernel.domain.operation import OperationRecord, OperationType
from optrack.kernel.exceptions import ValidationError
from optrack.stdlib.lib.operation_store import (
    ClearOperation,
    FinishOperation,
    OperationStore,
    StartOperation,
    UpdateProgress,
    reduce_operations,
)


@pytest.fixture
def store(clock: ManualClock) -> OperationStore:
    return OperationStore(clock)


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------


class TestReduceOperations:
    def test_does_not_mutate_state(self) -> None:
        state: dict[str, OperationRecord] = {}
        after_start = reduce_operations(state, StartOperation("a"), 0.0)
        after_update = reduce_operations(after_start, UpdateProgress("a", 50), 10.0)

        assert state == {}
        assert after_start["a"].progress == 0.0
        assert after_update["a"].progress == 50.0

    def test_absent_id_returns_same_state(self) -> None:
        state = reduce_operations({}, StartOperation("a"), 0.0)
        assert reduce_operations(state, FinishOperation("b"), 10.0) is state
        assert reduce_operations(state, ClearOperation("b"), 10.0) is state

    def test_clear_removes(self) -> None:
        state = reduce_operations({}, StartOperation("a"), 0.0)
        assert "a" not in reduce_operations(state, ClearOperation("a"), 1.0)


# ---------------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------------


class TestStart:
    def test_creates_loading_record(self, store: OperationStore, clock: ManualClock) -> None:
        clock.set(1234)
        store.start("a")
        record = store.get("a")
        assert record is not None
        assert record.is_loading is True
        assert record.progress == 0.0
        assert record.stage == "starting"
        assert record.start_time == 1234.0
        assert record.type == OperationType.DATA

    def test_options(self, store: OperationStore) -> None:
        store.start("a", stage="fetching", type="calculation", details={"page": 2})
        record = store.get("a")
        assert record is not None
        assert record.stage == "fetching"
        assert record.type == OperationType.CALCULATION
        assert record.details == {"page": 2}

    def test_details_are_copied(self, store: OperationStore) -> None:
        details = {"page": 2}
        store.start("a", details=details)
        details["page"] = 3
        record = store.get("a")
        assert record is not None
        assert record.details == {"page": 2}

    def test_restart_resets_record(self, store: OperationStore) -> None:
        store.start("a")
        store.retry("a")
        store.record_error("a")
        store.start("a")
        record = store.get("a")
        assert record is not None
        assert record.retry_count == 0
        assert record.error_count == 0
        assert record.success_rate == 100.0


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class TestUpdateProgress:
    @pytest.mark.parametrize(
        ("value", "expected"), [(-20, 0.0), (37.5, 37.5), (180, 100.0), (math.nan, 0.0)]
    )
    def test_clamps(self, store: OperationStore, value: float, expected: float) -> None:
        store.start("a")
        store.update_progress("a", value)
        record = store.get("a")
        assert record is not None
        assert record.progress == expected

    def test_stage_only_replaced_when_given(self, store: OperationStore) -> None:
        store.start("a", stage="fetching")
        store.update_progress("a", 10)
        assert store.get("a").stage == "fetching"  # type: ignore[union-attr]
        store.update_progress("a", 20, "parsing")
        assert store.get("a").stage == "parsing"  # type: ignore[union-attr]

    def test_absent_id_is_noop(self, store: OperationStore) -> None:
        store.update_progress("ghost", 50)
        assert "ghost" not in store
        assert len(store) == 0

    def test_estimate(self, store: OperationStore, clock: ManualClock) -> None:
        store.start("a")
        clock.advance(1000)
        store.update_progress("a", 25)
        assert store.get("a").estimated_time_remaining == pytest.approx(3000)  # type: ignore[union-attr]

    def test_estimate_recomputed_on_every_update(
        self, store: OperationStore, clock: ManualClock
    ) -> None:
        store.start("a")
        clock.advance(1000)
        store.update_progress("a", 50)
        clock.advance(3000)
        store.update_progress("a", 50)
        assert store.get("a").estimated_time_remaining == pytest.approx(4000)  # type: ignore[union-attr]

    @pytest.mark.parametrize("progress", [0, 100])
    def test_no_estimate_at_boundaries(
        self, store: OperationStore, clock: ManualClock, progress: float
    ) -> None:
        store.start("a")
        clock.advance(500)
        store.update_progress("a", 40)
        store.update_progress("a", progress)
        assert store.get("a").estimated_time_remaining is None  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# Terminal transitions
# ---------------------------------------------------------------------------


class TestFinish:
    def test_completes(self, store: OperationStore, clock: ManualClock) -> None:
        store.start("a")
        clock.advance(500)
        store.update_progress("a", 50)
        clock.advance(500)
        store.finish("a")
        record = store.get("a")
        assert record is not None
        assert record.is_loading is False
        assert record.progress == 100.0
        assert record.stage == "completed"
        assert record.error is None
        assert record.end_time == 1000.0
        assert record.loading_duration == 1000.0
        assert record.estimated_time_remaining is None

    def test_finish_after_error_clears_error(self, store: OperationStore) -> None:
        store.start("a")
        store.set_error("a", "timeout")
        store.finish("a")
        record = store.get("a")
        assert record is not None
        assert (record.is_loading, record.progress, record.error) == (False, 100.0, None)

    def test_absent_id_is_noop(self, store: OperationStore) -> None:
        store.finish("ghost")
        assert store.get("ghost") is None


class TestSetError:
    def test_marks_failed_and_keeps_progress(self, store: OperationStore) -> None:
        store.start("a")
        store.update_progress("a", 60)
        store.set_error("a", "timeout")
        record = store.get("a")
        assert record is not None
        assert record.is_loading is False
        assert record.error == "timeout"
        assert record.stage == "error"
        assert record.progress == 60.0
        assert record.end_time is not None
        assert record.estimated_time_remaining is None

    def test_absent_id_is_noop(self, store: OperationStore) -> None:
        store.set_error("ghost", "boom")
        assert len(store) == 0


class TestRetry:
    def test_reopens(self, store: OperationStore, clock: ManualClock) -> None:
        store.start("a")
        store.update_progress("a", 70)
        store.set_error("a", "timeout")
        clock.advance(100)
        store.retry("a")
        record = store.get("a")
        assert record is not None
        assert record.is_loading is True
        assert record.progress == 0.0
        assert record.stage == "retrying"
        assert record.error is None
        assert record.start_time == 100.0
        assert record.end_time is None

    @pytest.mark.parametrize("n", [1, 3, 7])
    def test_counts_retries(self, store: OperationStore, n: int) -> None:
        store.start("a")
        for _ in range(n):
            store.retry("a")
        assert store.get("a").retry_count == n  # type: ignore[union-attr]

    def test_absent_id_is_noop(self, store: OperationStore) -> None:
        store.retry("ghost")
        assert len(store) == 0


class TestClear:
    def test_removes_and_is_idempotent(self, store: OperationStore) -> None:
        store.start("a")
        store.clear("a")
        store.clear("a")
        assert store.get("a") is None

    def test_stale_update_after_clear_is_noop(self, store: OperationStore) -> None:
        store.start("a")
        store.clear("a")
        store.update_progress("a", 50)
        store.finish("a")
        assert store.get("a") is None


# ---------------------------------------------------------------------------
# Outcomes and metrics
# ---------------------------------------------------------------------------


class TestOutcomes:
    def test_error_lowers_success_rate_by_five(self, store: OperationStore) -> None:
        store.start("a")
        store.record_error("a")
        store.record_error("a")
        record = store.get("a")
        assert record is not None
        assert record.success_rate == 90.0
        assert record.error_count == 2

    def test_success_rate_floor(self, store: OperationStore) -> None:
        store.start("a")
        for _ in range(25):
            store.record_error("a")
        assert store.get("a").success_rate == 0.0  # type: ignore[union-attr]

    def test_success_raises_by_one_with_ceiling(self, store: OperationStore) -> None:
        store.start("a")
        store.record_success("a")
        assert store.get("a").success_rate == 100.0  # type: ignore[union-attr]
        store.record_error("a")
        store.record_success("a")
        record = store.get("a")
        assert record is not None
        assert record.success_rate == 96.0
        assert record.success_count == 2


class TestRecordMetric:
    def test_merges(self, store: OperationStore) -> None:
        store.start("a")
        store.record_metric("a", render_time=12.0)
        store.record_metric("a", data_fetch_time=80.0, render_time=15.0)
        assert dict(store.get("a").metrics) == {  # type: ignore[union-attr]
            "render_time": 15.0,
            "data_fetch_time": 80.0,
        }

    @pytest.mark.parametrize("name", ["progress", "retry_count", "loading_duration"])
    def test_rejects_reserved_names(self, store: OperationStore, name: str) -> None:
        store.start("a")
        with pytest.raises(ValidationError):
            store.record_metric("a", **{name: 1.0})


# ---------------------------------------------------------------------------
# Snapshots and dispatch
# ---------------------------------------------------------------------------


class TestSnapshots:
    def test_old_snapshot_is_untouched(self, store: OperationStore) -> None:
        store.start("a")
        before = store.snapshot
        store.update_progress("a", 50)
        assert before["a"].progress == 0.0
        assert store.snapshot["a"].progress == 50.0

    def test_snapshot_is_read_only(self, store: OperationStore) -> None:
        store.start("a")
        with pytest.raises(TypeError):
            store.snapshot["b"] = OperationRecord()  # type: ignore[index]

    def test_ids_do_not_interfere(self, store: OperationStore) -> None:
        store.start("a")
        store.start("b")
        store.update_progress("a", 30)
        store.set_error("b", "boom")
        assert store.get("a").progress == 30.0  # type: ignore[union-attr]
        assert store.get("a").error is None  # type: ignore[union-attr]
        assert store.get("b").progress == 0.0  # type: ignore[union-attr]
        assert sorted(store) == ["a", "b"]


class TestDispatch:
    def test_notifies_changes(self, clock: ManualClock) -> None:
        notifier = LocalChangeNotifier()
        store = OperationStore(clock, notifier)
        events: list[tuple[str, OperationRecord | None]] = []
        notifier.subscribe(None, lambda op_id, record: events.append((op_id, record)))

        store.start("a")
        store.clear("a")

        assert [op_id for op_id, _ in events] == ["a", "a"]
        assert events[0][1] is not None
        assert events[1][1] is None

    def test_noop_does_not_notify(self, clock: ManualClock) -> None:
        notifier = LocalChangeNotifier()
        store = OperationStore(clock, notifier)
        events: list[str] = []
        notifier.subscribe(None, lambda op_id, record: events.append(op_id))

        store.finish("ghost")

        assert events == []

    def test_nested_dispatch_is_queued(self, clock: ManualClock) -> None:
        notifier = LocalChangeNotifier()
        store = OperationStore(clock, notifier)
        seen: list[float] = []

        def listener(op_id: str, record: OperationRecord | None) -> None:
            assert record is not None
            seen.append(record.progress)
            if record.stage == "starting" and record.progress == 0:
                store.update_progress(op_id, 10)
                # Queued behind the action being applied
                assert store.get(op_id).progress == 0.0  # type: ignore[union-attr]

        notifier.subscribe("a", listener)
        store.start("a")

        assert seen[:2] == [0.0, 10.0]
        assert store.get("a").progress == 10.0  # type: ignore[union-attr]

    def test_on_applied_sees_queued_result(self, clock: ManualClock) -> None:
        notifier = LocalChangeNotifier()
        store = OperationStore(clock, notifier)
        applied: list[tuple[bool, bool]] = []

        def listener(op_id: str, record: OperationRecord | None) -> None:
            if record is not None and record.progress == 100 and record.is_loading:
                store.finish(
                    op_id,
                    on_applied=lambda previous, current: applied.append(
                        (previous.is_loading, current.is_loading)  # type: ignore[union-attr]
                    ),
                )
                assert applied == []

        notifier.subscribe("a", listener)
        store.start("a")
        clock.advance(300)
        store.update_progress("a", 100)

        assert applied == [(True, False)]
        assert store.get("a").end_time == 300  # type: ignore[union-attr]

    def test_on_applied_called_for_absent_id(self, store: OperationStore) -> None:
        applied: list[tuple[OperationRecord | None, OperationRecord | None]] = []
        store.retry("ghost", on_applied=lambda *pair: applied.append(pair))
        assert applied == [(None, None)]
