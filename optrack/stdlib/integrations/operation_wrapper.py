"""Drive arbitrary async work through the operation lifecycle.

Four shapes of the same contract: ``start`` before the work, ``finish``
after it, ``set_error`` and re-raise (unchanged) when it fails.

- :func:`execute` - await a callable that receives a progress reporter
- :func:`tracking` - async context manager around a block
- :func:`tracked` - decorator for coroutine functions
- :class:`StagedOperation` - synthetic, evenly spaced stage progress

Cancellation is not intercepted: a cancelled block leaves the record
loading and it is up to the caller to ``clear`` it.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, ParamSpec, Protocol, TypeVar

from optrack.kernel.domain.operation import COMPLETED_STAGE, OperationType
from optrack.kernel.exceptions import ValidationError
from optrack.kernel.logging import get_logger

if TYPE_CHECKING:
    from optrack.kernel.domain.operation import OperationRecord
    from optrack.stdlib.lib.tracker import BudgetLike, OperationTracker

logger = get_logger(__name__)

T = TypeVar("T")
P = ParamSpec("P")

# Leave the last 10% for the real work.
SYNTHETIC_PROGRESS_CEILING = 90.0


class ProgressReporter(Protocol):
    """Callable handed to wrapped work for reporting progress."""

    def __call__(self, progress: float, stage: str | None = None) -> None: ...


def error_message(exc: BaseException) -> str:
    """Message recorded for a failed operation: ``str(exc)`` or the class name."""
    return str(exc) or type(exc).__name__


def _reporter(tracker: OperationTracker, op_id: str) -> ProgressReporter:
    def report(progress: float, stage: str | None = None) -> None:
        tracker.update_progress(op_id, progress, stage)

    return report


async def execute(
    tracker: OperationTracker,
    op_id: str,
    operation: Callable[[ProgressReporter], Awaitable[T]],
    **options: Any,
) -> T:
    """Run *operation* as tracked operation *op_id*.

    Args
    ----
        tracker: Tracker that records the lifecycle.
        op_id: Operation id.
        operation: Async callable receiving ``report(progress, stage=None)``.
        **options: Forwarded to :meth:`OperationTracker.start`
            (``stage``, ``type``, ``details``, ``budget``).

    Returns
    -------
        Whatever *operation* returns.

    Raises
    ------
    Exception
        Any exception from *operation*, re-raised unchanged after it has
        been recorded with ``set_error``.
    """
    tracker.start(op_id, **options)
    return await _drive(tracker, op_id, operation)


async def _drive(
    tracker: OperationTracker,
    op_id: str,
    operation: Callable[[ProgressReporter], Awaitable[T]],
) -> T:
    """Await *operation* for an already started record, then finish or fail it."""
    try:
        result = await operation(_reporter(tracker, op_id))
    except Exception as e:
        tracker.set_error(op_id, error_message(e))
        raise
    tracker.finish(op_id)
    return result


@asynccontextmanager
async def tracking(
    tracker: OperationTracker, op_id: str, **options: Any
) -> AsyncIterator[ProgressReporter]:
    """Track the enclosed block as operation *op_id*.

    Example
    -------
        >>> async with tracking(tracker, "quotes", stage="fetching") as report:  # doctest: +SKIP
        ...     report(50, "parsing")
    """
    tracker.start(op_id, **options)
    try:
        yield _reporter(tracker, op_id)
    except Exception as e:
        tracker.set_error(op_id, error_message(e))
        raise
    tracker.finish(op_id)


def tracked(
    tracker: OperationTracker, op_id: str, **options: Any
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorate a coroutine function so each call is tracked as *op_id*.

    Example
    -------
        >>> @tracked(tracker, "load-dashboard", type="data")  # doctest: +SKIP
        ... async def load_dashboard() -> dict: ...
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        if not inspect.iscoroutinefunction(func):
            raise ValidationError("func", "must be a coroutine function", func)

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            async with tracking(tracker, op_id, **options):
                return await func(*args, **kwargs)

        return wrapper

    return decorator


class StagedOperation:
    """Operation with synthetic stage-by-stage progress.

    Before awaiting the real work, the operation walks through *stages*
    reporting ``i / len(stages) * 90`` percent for stage ``i`` and sleeping
    ``estimated_duration_ms / len(stages)`` between stages.  The progress
    is cosmetic: it reflects elapsed time, not work done.

    ``can_retry`` is advisory; the caller decides whether to call
    :meth:`retry`.
    """

    def __init__(
        self,
        tracker: OperationTracker,
        op_id: str,
        *,
        stages: Sequence[str] = ("loading",),
        estimated_duration_ms: float = 2000.0,
        retry_limit: int = 3,
        type: OperationType | str = OperationType.DATA,
        budget: BudgetLike | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Configure the staged operation.

        Args
        ----
            tracker: Tracker that records the lifecycle.
            op_id: Operation id.
            stages: Stage labels walked through before the real work.
            estimated_duration_ms: Total synthetic duration spread over stages.
            retry_limit: Retry count below which ``can_retry`` is true.
            type: Operation type recorded on start.
            budget: Budget assigned on start (model, preset name or mapping).
            sleep: Awaitable sleep taking seconds (injectable for tests).
        """
        if not stages:
            raise ValidationError("stages", "must contain at least one stage")
        if estimated_duration_ms < 0:
            raise ValidationError(
                "estimated_duration_ms", "cannot be negative", estimated_duration_ms
            )
        if retry_limit < 0:
            raise ValidationError("retry_limit", "cannot be negative", retry_limit)
        self._tracker = tracker
        self.op_id = op_id
        self.stages = tuple(stages)
        self.estimated_duration_ms = estimated_duration_ms
        self.retry_limit = retry_limit
        self._type = type
        self._budget = budget
        self._sleep = sleep
        self._active = False
        self._resume = False

    @property
    def is_active(self) -> bool:
        """True while :meth:`run` is executing."""
        return self._active

    @property
    def record(self) -> OperationRecord | None:
        return self._tracker.get_by_id(self.op_id)

    @property
    def can_retry(self) -> bool:
        record = self.record
        return record is not None and record.retry_count < self.retry_limit

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Walk the synthetic stages, then await *operation*.

        After :meth:`retry` the re-opened record is driven as is, so its
        retry count survives; otherwise the operation is (re)started.
        """
        self._active = True
        try:
            if self._resume and self.record is not None:
                self._resume = False
                return await _drive(
                    self._tracker, self.op_id, functools.partial(self._staged, operation)
                )
            return await execute(
                self._tracker,
                self.op_id,
                functools.partial(self._staged, operation),
                type=self._type,
                stage=self.stages[0],
                budget=self._budget,
            )
        finally:
            self._active = False

    async def _staged(self, operation: Callable[[], Awaitable[T]], report: ProgressReporter) -> T:
        count = len(self.stages)
        interval_s = self.estimated_duration_ms / count / 1000
        for i, stage in enumerate(self.stages):
            report(i / count * SYNTHETIC_PROGRESS_CEILING, stage)
            if i < count - 1:
                await self._sleep(interval_s)

        result = await operation()
        report(100, COMPLETED_STAGE)
        return result

    def retry(self) -> None:
        """Record one more retry of this operation."""
        if not self.can_retry:
            logger.debug(
                "Operation {op_id} retried past its limit of {limit}",
                op_id=self.op_id,
                limit=self.retry_limit,
            )
        self._tracker.retry(self.op_id)
        self._resume = self.record is not None

    def clear(self) -> None:
        """Stop tracking this operation."""
        self._resume = False
        self._tracker.clear(self.op_id)
