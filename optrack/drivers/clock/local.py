"""Local clock drivers.

``MonotonicClock`` reads :func:`time.perf_counter`, like the node timer it
replaces; ``ManualClock`` only moves when told to and is what tests use.
"""

from __future__ import annotations

import time

from optrack.kernel.exceptions import ValidationError


class MonotonicClock:
    """Clock backed by ``time.perf_counter`` in milliseconds.

    Examples
    --------
    >>> clock = MonotonicClock()
    >>> a = clock.now()
    >>> clock.now() >= a
    True
    """

    __slots__ = ()

    def now(self) -> float:
        """Current monotonic time in milliseconds."""
        return time.perf_counter() * 1000


class ManualClock:
    """Deterministic clock advanced explicitly.

    Examples
    --------
    >>> clock = ManualClock(start=1000.0)
    >>> clock.advance(250)
    >>> clock.now()
    1250.0
    """

    __slots__ = ("_now",)

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def now(self) -> float:
        """Current time in milliseconds."""
        return self._now

    def advance(self, ms: float) -> None:
        """Move time forward by *ms* milliseconds."""
        if ms < 0:
            raise ValidationError("ms", "clock cannot move backwards", ms)
        self._now += ms

    def set(self, ms: float) -> None:
        """Jump to an absolute time, never earlier than the current one."""
        if ms < self._now:
            raise ValidationError("ms", "clock cannot move backwards", ms)
        self._now = float(ms)
