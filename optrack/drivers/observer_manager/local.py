"""Local change notifier - in-process implementation of the ChangeNotifier port.

Listeners are plain synchronous callables.  The tracker never awaits, so
delivery is synchronous too; fault isolation keeps a broken listener from
affecting the store or the remaining listeners.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from optrack.kernel.exceptions import TypeMismatchError
from optrack.kernel.logging import get_logger

if TYPE_CHECKING:
    from optrack.kernel.domain.operation import OperationRecord
    from optrack.kernel.ports.change_notifier import ChangeListener, Unsubscribe

logger = get_logger(__name__)


class ErrorHandler(Protocol):
    """Protocol for handling listener errors."""

    def handle_error(self, error: Exception, context: dict[str, Any]) -> None:
        """Handle an error raised by a listener."""
        ...


class LoggingErrorHandler:
    """Default error handler that logs errors."""

    def __init__(self, log: Any | None = None):
        """Initialize with optional logger."""
        self.logger: Any = log if log is not None else logger

    def handle_error(self, error: Exception, context: dict[str, Any]) -> None:
        """Log the error with context."""
        listener_name = context.get("listener_name", "unknown")
        op_id = context.get("op_id", "unknown")
        self.logger.warning(
            "Listener {listener} failed for operation {op_id}: {error}",
            listener=listener_name,
            op_id=op_id,
            error=error,
        )


class ListenerRegistration(BaseModel):
    """Validated listener registration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    listener_id: str = Field(min_length=1)
    op_id: str | None = None
    listener: Callable[..., Any]


class LocalChangeNotifier:
    """In-process change notifier.

    Listeners subscribed with ``op_id=None`` receive every change;
    listeners subscribed to an id receive only that id's changes.
    Delivery order follows registration order.
    """

    def __init__(self, error_handler: ErrorHandler | None = None) -> None:
        """Initialize the notifier.

        Args
        ----
            error_handler: Optional error handler, defaults to LoggingErrorHandler
        """
        self._error_handler = error_handler or LoggingErrorHandler()
        self._registrations: dict[str, ListenerRegistration] = {}
        self._lock = threading.Lock()

    def subscribe(self, op_id: str | None, listener: ChangeListener) -> Unsubscribe:
        """Register *listener* for *op_id* (``None`` = every operation)."""
        if not callable(listener):
            raise TypeMismatchError("listener", "callable", type(listener))

        registration = ListenerRegistration(
            listener_id=str(uuid.uuid4()), op_id=op_id, listener=listener
        )
        with self._lock:
            self._registrations[registration.listener_id] = registration

        def unsubscribe() -> None:
            self.unsubscribe(registration.listener_id)

        return unsubscribe

    def unsubscribe(self, listener_id: str) -> bool:
        """Remove a listener by registration id.

        Returns
        -------
            True if the listener was found and removed, False otherwise
        """
        with self._lock:
            return self._registrations.pop(listener_id, None) is not None

    def notify(self, op_id: str, record: OperationRecord | None) -> None:
        """Deliver a change to every interested listener."""
        with self._lock:
            targets = [
                reg
                for reg in self._registrations.values()
                if reg.op_id is None or reg.op_id == op_id
            ]

        for reg in targets:
            try:
                reg.listener(op_id, record)
            except Exception as e:
                self._error_handler.handle_error(
                    e,
                    {
                        "listener_name": getattr(reg.listener, "__name__", reg.listener_id),
                        "op_id": op_id,
                    },
                )

    def clear(self) -> None:
        """Remove all listeners."""
        with self._lock:
            self._registrations.clear()

    def __len__(self) -> int:
        """Return number of registered listeners."""
        return len(self._registrations)
