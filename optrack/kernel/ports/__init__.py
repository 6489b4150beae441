"""Port interfaces consumed by the tracker."""

from optrack.kernel.ports.change_notifier import ChangeListener, ChangeNotifier, Unsubscribe
from optrack.kernel.ports.clock import Clock

__all__ = ["ChangeListener", "ChangeNotifier", "Clock", "Unsubscribe"]
