"""Clock port - the only external collaborator the tracker consumes.

All timestamps and durations inside optrack are expressed in
milliseconds read from a :class:`Clock`.  Production code uses
:class:`~optrack.drivers.clock.local.MonotonicClock`; tests inject
:class:`~optrack.drivers.clock.local.ManualClock` to control time.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Monotonic time source."""

    @abstractmethod
    def now(self) -> float:
        """Return the current time in milliseconds."""
        ...
