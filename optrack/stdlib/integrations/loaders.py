"""Ready-made lifecycle adapters for common loading patterns.

- :func:`load_weighted_sources` - several data sources, progress by weight
- :class:`FormProgress` - validation then submission of a form
- :func:`route_transition` - navigation with background progress ticks
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from optrack.kernel.domain.operation import OperationType
from optrack.kernel.exceptions import ValidationError
from optrack.kernel.logging import get_logger
from optrack.stdlib.integrations.operation_wrapper import SYNTHETIC_PROGRESS_CEILING, error_message

if TYPE_CHECKING:
    from optrack.stdlib.lib.tracker import OperationTracker

logger = get_logger(__name__)

VALIDATION_SHARE = 40.0
SUBMISSION_START = 50.0

ROUTE_TICK_INTERVAL_S = 0.1
ROUTE_TICK_STEP = 20.0
ROUTE_TICK_CEILING = 80.0


# ---------------------------------------------------------------------------
# Weighted multi-source loading
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DataSource:
    """One named source with a relative weight in the overall progress."""

    name: str
    loader: Callable[[], Awaitable[Any]]
    weight: float = 1.0


async def load_weighted_sources(
    tracker: OperationTracker,
    op_id: str,
    sources: Sequence[DataSource],
    *,
    stage: str = "loading",
) -> dict[str, Any]:
    """Load *sources* one after another as a single tracked operation.

    Progress before each source is the completed share of the total weight,
    scaled to 90%.  A failing source does not fail the operation: it is
    counted with ``record_error`` and its result is ``None``.  The operation
    as a whole counts one success when it finishes.

    Returns
    -------
        Results keyed by source name.
    """
    total_weight = sum(source.weight for source in sources)
    if any(source.weight < 0 for source in sources) or (sources and total_weight <= 0):
        raise ValidationError("sources", "weights must be non-negative with a positive total")

    tracker.start(op_id, type=OperationType.DATA, stage=stage)
    results: dict[str, Any] = {}
    completed = 0.0
    try:
        for source in sources:
            tracker.update_progress(
                op_id, completed / total_weight * SYNTHETIC_PROGRESS_CEILING, f"Loading {source.name}"
            )
            try:
                results[source.name] = await source.loader()
            except Exception as e:
                logger.warning(
                    "Source {source} of {op_id} failed: {error}",
                    source=source.name,
                    op_id=op_id,
                    error=e,
                )
                tracker.record_error(op_id)
                results[source.name] = None
            completed += source.weight
    except Exception as e:
        tracker.set_error(op_id, error_message(e))
        raise

    tracker.update_progress(op_id, 100, "loaded")
    tracker.finish(op_id)
    return results


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


class FormProgress:
    """Two-phase form progress: validation fills 0-40%, submission 50-100%."""

    def __init__(self, tracker: OperationTracker, form_id: str) -> None:
        self._tracker = tracker
        self.form_id = form_id
        self.validation_progress = 0.0
        self.submission_progress = 0.0

    def start_validation(self) -> None:
        self._tracker.start(self.form_id, type=OperationType.FORM, stage="validating")
        self.validation_progress = 0.0
        self.submission_progress = 0.0

    def update_validation(self, validated_fields: int, total_fields: int) -> None:
        """Report that *validated_fields* of *total_fields* passed validation."""
        if total_fields <= 0:
            raise ValidationError("total_fields", "must be positive", total_fields)
        self.validation_progress = validated_fields / total_fields * VALIDATION_SHARE
        self._tracker.update_progress(
            self.form_id,
            self.validation_progress,
            f"Validating field {validated_fields}/{total_fields}",
        )

    def start_submission(self) -> None:
        self.submission_progress = SUBMISSION_START
        self._tracker.update_progress(self.form_id, SUBMISSION_START, "Submitting form")

    def update_submission(self, stage: str, progress: float) -> None:
        """Map submission *progress* (0-100) onto the 50-100% band."""
        self.submission_progress = SUBMISSION_START + progress * 0.5
        self._tracker.update_progress(self.form_id, self.submission_progress, stage)

    def complete(self) -> None:
        self._tracker.finish(self.form_id)
        self._reset()

    def fail(self, message: str) -> None:
        self._tracker.set_error(self.form_id, message)
        self._reset()

    def _reset(self) -> None:
        self.validation_progress = 0.0
        self.submission_progress = 0.0


# ---------------------------------------------------------------------------
# Route transitions
# ---------------------------------------------------------------------------


def route_operation_id(route_name: str) -> str:
    return f"route-{route_name}"


async def _tick(
    tracker: OperationTracker,
    op_id: str,
    interval_s: float,
    sleep: Callable[[float], Awaitable[Any]],
) -> None:
    progress = 0.0
    while progress < ROUTE_TICK_CEILING:
        await sleep(interval_s)
        progress += ROUTE_TICK_STEP
        tracker.update_progress(op_id, progress, "Loading page")


@asynccontextmanager
async def route_transition(
    tracker: OperationTracker,
    route_name: str,
    *,
    interval_s: float = ROUTE_TICK_INTERVAL_S,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> AsyncIterator[str]:
    """Track a navigation to *route_name* as operation ``route-<name>``.

    While the block runs, progress advances by 20 every *interval_s*
    seconds up to 80; leaving the block finishes the operation.

    Yields
    ------
        The operation id.
    """
    op_id = route_operation_id(route_name)
    tracker.start(op_id, type=OperationType.NAVIGATION, stage="navigating")
    ticker = asyncio.create_task(_tick(tracker, op_id, interval_s, sleep))
    try:
        yield op_id
    except Exception as e:
        tracker.set_error(op_id, error_message(e))
        raise
    finally:
        ticker.cancel()
        with suppress(asyncio.CancelledError):
            await ticker
    tracker.finish(op_id)
