"""Change Notifier Port - subscription interface for record changes.

Consumers (UI adapters, loggers, test probes) subscribe to changes of a
single operation id, or of every id, and receive the new record (``None``
once the record has been cleared).  Subscriptions are decoupled from any
particular rendering mechanism.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from optrack.kernel.domain.operation import OperationRecord

# Listener signature: (operation id, new record or None when cleared)
ChangeListener = Callable[[str, "OperationRecord | None"], None]
Unsubscribe = Callable[[], None]


class ChangeNotifier(Protocol):
    """Port interface for record-change subscriptions.

    Key guarantees:
    - Listeners are READ-ONLY observers and cannot veto a change
    - A failing listener never affects the store or other listeners
    - Listeners for one id are not called for changes of another id
    """

    @abstractmethod
    def subscribe(self, op_id: str | None, listener: ChangeListener) -> Unsubscribe:
        """Register *listener* for *op_id* (``None`` = every operation).

        Returns
        -------
            A zero-argument callable that removes the subscription.
        """
        ...

    @abstractmethod
    def notify(self, op_id: str, record: OperationRecord | None) -> None:
        """Deliver a change to every interested listener."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove all listeners."""
        ...

    @abstractmethod
    def __len__(self) -> int:
        """Return number of registered listeners."""
        ...
