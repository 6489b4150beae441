"""Change notifier drivers."""

from optrack.drivers.observer_manager.local import (
    ErrorHandler,
    ListenerRegistration,
    LocalChangeNotifier,
    LoggingErrorHandler,
)

__all__ = ["ErrorHandler", "ListenerRegistration", "LocalChangeNotifier", "LoggingErrorHandler"]
