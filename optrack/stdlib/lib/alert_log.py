"""AlertLog - bounded, newest-first buffer of tracker alerts.

The log keeps the ``capacity`` most recent alerts and drops the oldest
on overflow.  Info alerts expire ``info_ttl_ms`` after insertion; warning
and error alerts stay until cleared or evicted.

Expiry is enforced two ways.  Reads always prune info alerts whose
deadline has passed according to the injected clock.  When an asyncio
loop is running, :meth:`AlertLog.add` also schedules a ``call_later``
timer that removes that one alert by id, so an idle log drains without
being read.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
from collections import deque
from typing import TYPE_CHECKING

from optrack.kernel.domain.alert import Alert, AlertType
from optrack.kernel.exceptions import ValidationError
from optrack.kernel.logging import get_logger

if TYPE_CHECKING:
    from optrack.kernel.ports.clock import Clock

logger = get_logger(__name__)

DEFAULT_CAPACITY = 100
DEFAULT_INFO_TTL_MS = 5000.0


class AlertLog:
    """Capacity-bounded alert buffer with info-alert auto-expiry."""

    def __init__(
        self,
        clock: Clock,
        *,
        capacity: int = DEFAULT_CAPACITY,
        info_ttl_ms: float = DEFAULT_INFO_TTL_MS,
    ) -> None:
        """Initialise an empty log.

        Args
        ----
            clock: Time source for timestamps and expiry.
            capacity: Maximum number of alerts retained.
            info_ttl_ms: Lifetime of info alerts in milliseconds.
        """
        if capacity < 1:
            raise ValidationError("capacity", "must be at least 1", capacity)
        if info_ttl_ms <= 0:
            raise ValidationError("info_ttl_ms", "must be positive", info_ttl_ms)
        self._clock = clock
        self._capacity = capacity
        self._info_ttl_ms = info_ttl_ms
        self._alerts: deque[Alert] = deque(maxlen=capacity)
        self._ids: set[str] = set()
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._sequence = itertools.count(1)
        self._lock = threading.RLock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def info_ttl_ms(self) -> float:
        return self._info_ttl_ms

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, type: AlertType | str, message: str, component: str) -> Alert:
        """Prepend a new alert, evicting the oldest beyond capacity."""
        alert_type = AlertType(type)
        now = self._clock.now()
        expires_at = now + self._info_ttl_ms if alert_type == AlertType.INFO else None

        with self._lock:
            alert = Alert(
                id=self._unique_id(component, now),
                type=alert_type,
                message=message,
                timestamp=now,
                component=component,
                expires_at=expires_at,
            )
            if len(self._alerts) == self._capacity:
                self._forget(self._alerts[-1].id)
            self._alerts.appendleft(alert)
            self._ids.add(alert.id)

        if alert_type == AlertType.INFO:
            self._schedule_expiry(alert.id)

        logger.debug(
            "Alert {alert_id} [{type}] {message}",
            alert_id=alert.id,
            type=str(alert_type),
            message=message,
        )
        return alert

    def remove(self, alert_id: str) -> bool:
        """Remove one alert by id.

        Returns
        -------
            True if the alert was present.
        """
        with self._lock:
            if alert_id not in self._ids:
                return False
            self._alerts = deque(
                (a for a in self._alerts if a.id != alert_id), maxlen=self._capacity
            )
            self._forget(alert_id)
            return True

    def clear(self, component: str | None = None) -> int:
        """Remove every alert, or only those of *component*.

        Returns
        -------
            Number of alerts removed.
        """
        with self._lock:
            doomed = [a.id for a in self._alerts if component is None or a.component == component]
            if not doomed:
                return 0
            doomed_ids = set(doomed)
            self._alerts = deque(
                (a for a in self._alerts if a.id not in doomed_ids), maxlen=self._capacity
            )
            for alert_id in doomed:
                self._forget(alert_id)
            return len(doomed)

    def close(self) -> None:
        """Cancel pending expiry timers."""
        with self._lock:
            for handle in self._timers.values():
                handle.cancel()
            self._timers.clear()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def alerts(self) -> tuple[Alert, ...]:
        """All live alerts, newest first."""
        with self._lock:
            self._prune_expired()
            return tuple(self._alerts)

    def recent(self, limit: int = 20) -> tuple[Alert, ...]:
        """The *limit* most recent live alerts."""
        return self.alerts()[: max(0, limit)]

    def for_component(self, component: str) -> tuple[Alert, ...]:
        """Live alerts emitted for one operation id."""
        return tuple(a for a in self.alerts() if a.component == component)

    def __len__(self) -> int:
        return len(self.alerts())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _unique_id(self, component: str, now: float) -> str:
        alert_id = f"{component}-{now:.0f}"
        while alert_id in self._ids:
            alert_id = f"{component}-{now:.0f}-{next(self._sequence)}"
        return alert_id

    def _forget(self, alert_id: str) -> None:
        self._ids.discard(alert_id)
        handle = self._timers.pop(alert_id, None)
        if handle is not None:
            handle.cancel()

    def _prune_expired(self) -> None:
        now = self._clock.now()
        expired = [a.id for a in self._alerts if a.is_expired(now)]
        if not expired:
            return
        expired_ids = set(expired)
        self._alerts = deque(
            (a for a in self._alerts if a.id not in expired_ids), maxlen=self._capacity
        )
        for alert_id in expired:
            self._forget(alert_id)

    def _schedule_expiry(self, alert_id: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: expiry happens lazily on read.
            return
        handle = loop.call_later(self._info_ttl_ms / 1000, self._expire, alert_id)
        with self._lock:
            if alert_id in self._ids:
                self._timers[alert_id] = handle
            else:
                handle.cancel()

    def _expire(self, alert_id: str) -> None:
        with self._lock:
            self._timers.pop(alert_id, None)
        self.remove(alert_id)
