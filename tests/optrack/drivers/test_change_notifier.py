"""Tests for LocalChangeNotifier."""

from __future__ import annotations

from typing import Any

import pydantic
import pytest

from optrack.drivers.observer_manager import ListenerRegistration, LocalChangeNotifier
from optrack.kernel.domain.operation import OperationRecord
from optrack.kernel.exceptions import TypeMismatchError


class _RecordingErrorHandler:
    def __init__(self) -> None:
        self.errors: list[tuple[Exception, dict[str, Any]]] = []

    def handle_error(self, error: Exception, context: dict[str, Any]) -> None:
        self.errors.append((error, context))


class TestSubscribe:
    def test_id_listener_only_sees_its_id(self) -> None:
        notifier = LocalChangeNotifier()
        seen: list[str] = []
        notifier.subscribe("a", lambda op_id, record: seen.append(op_id))

        notifier.notify("a", OperationRecord())
        notifier.notify("b", OperationRecord())

        assert seen == ["a"]

    def test_wildcard_listener_sees_every_id(self) -> None:
        notifier = LocalChangeNotifier()
        seen: list[str] = []
        notifier.subscribe(None, lambda op_id, record: seen.append(op_id))

        notifier.notify("a", OperationRecord())
        notifier.notify("b", None)

        assert seen == ["a", "b"]

    def test_delivery_follows_registration_order(self) -> None:
        notifier = LocalChangeNotifier()
        order: list[int] = []
        notifier.subscribe("a", lambda *_: order.append(1))
        notifier.subscribe(None, lambda *_: order.append(2))
        notifier.subscribe("a", lambda *_: order.append(3))

        notifier.notify("a", None)

        assert order == [1, 2, 3]

    def test_unsubscribe_callable(self) -> None:
        notifier = LocalChangeNotifier()
        seen: list[str] = []
        unsubscribe = notifier.subscribe("a", lambda op_id, record: seen.append(op_id))
        assert len(notifier) == 1

        unsubscribe()
        unsubscribe()  # idempotent
        notifier.notify("a", None)

        assert seen == []
        assert len(notifier) == 0

    def test_rejects_non_callable(self) -> None:
        with pytest.raises(TypeMismatchError):
            LocalChangeNotifier().subscribe("a", 42)  # type: ignore[arg-type]

    def test_clear(self) -> None:
        notifier = LocalChangeNotifier()
        notifier.subscribe("a", lambda *_: None)
        notifier.subscribe(None, lambda *_: None)
        notifier.clear()
        assert len(notifier) == 0


class TestFaultIsolation:
    def test_failing_listener_does_not_stop_others(self) -> None:
        handler = _RecordingErrorHandler()
        notifier = LocalChangeNotifier(error_handler=handler)
        seen: list[str] = []

        def broken(op_id: str, record: OperationRecord | None) -> None:
            raise RuntimeError("listener bug")

        notifier.subscribe("a", broken)
        notifier.subscribe("a", lambda op_id, record: seen.append(op_id))

        notifier.notify("a", None)

        assert seen == ["a"]
        assert len(handler.errors) == 1
        error, context = handler.errors[0]
        assert str(error) == "listener bug"
        assert context == {"listener_name": "broken", "op_id": "a"}


class TestListenerRegistration:
    def test_requires_listener_id(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ListenerRegistration(listener_id="", listener=print)

    def test_forbids_extra_fields(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            ListenerRegistration(listener_id="x", listener=print, priority=1)  # type: ignore[call-arg]
