"""Clock drivers."""

from optrack.drivers.clock.local import ManualClock, MonotonicClock

__all__ = ["ManualClock", "MonotonicClock"]
