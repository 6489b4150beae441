"""Domain model for alerts emitted by the tracker."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class AlertType(StrEnum):
    """Severity of an alert."""

    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Alert:
    """Timestamped observational message about one operation.

    ``expires_at`` is set only for info alerts, which drop out of the log
    on their own.
    """

    id: str
    type: AlertType
    message: str
    timestamp: float
    component: str
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        """Check whether the alert has outlived its time-to-live."""
        return self.expires_at is not None and now >= self.expires_at


def alert_to_dict(alert: Alert) -> dict[str, Any]:
    """Serialise an alert to a plain dict."""
    return {
        "id": alert.id,
        "type": str(alert.type),
        "message": alert.message,
        "timestamp": alert.timestamp,
        "component": alert.component,
    }
