"""Progress arithmetic shared by the store and the integration adapters.

The remaining-time estimate is plain linear extrapolation: it assumes the
work proceeds at the rate observed so far.  It is recomputed on every
progress update, so it corrects itself as data arrives, but no smoothing
is applied and a single slow update can make the estimate jump.
"""

from __future__ import annotations

import math

MIN_PROGRESS = 0.0
MAX_PROGRESS = 100.0


def clamp_progress(value: float) -> float:
    """Clamp *value* into ``[0, 100]``; NaN is stored as 0.

    Examples
    --------
    >>> clamp_progress(-5)
    0.0
    >>> clamp_progress(140)
    100.0
    >>> clamp_progress(42.5)
    42.5
    """
    if math.isnan(value):
        return MIN_PROGRESS
    return float(min(MAX_PROGRESS, max(MIN_PROGRESS, value)))


def estimate_remaining(start_time: float | None, now: float, progress: float) -> float | None:
    """Estimate milliseconds left from elapsed time and reported progress.

    Returns ``None`` at the boundaries (no progress yet, or done) and when
    the start time is unknown.

    Examples
    --------
    >>> estimate_remaining(0.0, 1000.0, 25)
    3000.0
    >>> estimate_remaining(0.0, 1000.0, 100) is None
    True
    """
    if start_time is None or progress <= MIN_PROGRESS or progress >= MAX_PROGRESS:
        return None
    elapsed = now - start_time
    estimated_total = elapsed / (progress / 100)
    return estimated_total - elapsed


def format_remaining(ms: float | None) -> str | None:
    """Render a remaining-time estimate for humans, rounding up.

    Examples
    --------
    >>> format_remaining(1200)
    '2s'
    >>> format_remaining(61_000)
    '2m'
    >>> format_remaining(None) is None
    True
    """
    if not ms or ms <= 0:
        return None
    seconds = math.ceil(ms / 1000)
    if seconds < 60:
        return f"{seconds}s"
    return f"{math.ceil(seconds / 60)}m"
