"""Pure helpers shared across optrack."""

from optrack.kernel.utils.progress import clamp_progress, estimate_remaining, format_remaining

__all__ = ["clamp_progress", "estimate_remaining", "format_remaining"]
