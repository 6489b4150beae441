"""Domain models for performance budgets and budget verdicts.

A :class:`PerformanceBudget` is a named set of thresholds an operation's
observed metrics are compared against.  Budgets are validated pydantic
models so that thresholds loaded from configuration files are checked
once, at the boundary.

Example::

    budget = PerformanceBudget(max_loading_time=1000, max_error_rate=2)
    budget_for_complexity("complex")  # -> SLOW preset
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from optrack.kernel.domain.alert import AlertType
from optrack.kernel.exceptions import ResourceNotFoundError


class PerformanceBudget(BaseModel):
    """Thresholds an operation is evaluated against.

    Attributes
    ----------
    max_loading_time : float
        Maximum loading duration in milliseconds.
    max_retry_attempts : int
        Retries beyond this count are a soft violation.
    target_success_rate : float
        Success rate (percent) below which the operation is flagged.
    max_error_rate : float
        Error rate (percent) above which the operation is flagged.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_loading_time: float = Field(default=2000.0, gt=0)
    max_retry_attempts: int = Field(default=3, ge=0)
    target_success_rate: float = Field(default=95.0, ge=0, le=100)
    max_error_rate: float = Field(default=5.0, ge=0, le=100)


class BudgetVerdict(StrEnum):
    """Three-level health classification of an operation."""

    WITHIN_BUDGET = "within_budget"
    WARNING = "warning"
    EXCEEDED = "exceeded"


class ViolationKind(StrEnum):
    """Which budget threshold was crossed."""

    LOADING_TIME = "loading_time"
    RETRY_COUNT = "retry_count"
    SUCCESS_RATE = "success_rate"
    ERROR_RATE = "error_rate"


# Latency and error-rate breaches are user-visible; the rest are leading indicators.
HARD_VIOLATIONS = frozenset({ViolationKind.LOADING_TIME, ViolationKind.ERROR_RATE})


@dataclass(frozen=True, slots=True)
class BudgetViolation:
    """A single crossed threshold together with its candidate alert."""

    kind: ViolationKind
    observed: float
    limit: float
    alert_type: AlertType
    message: str

    @property
    def is_hard(self) -> bool:
        """True for violations that escalate the verdict to ``exceeded``."""
        return self.kind in HARD_VIOLATIONS


@dataclass(frozen=True, slots=True)
class BudgetEvaluation:
    """Result of comparing a record against its budget."""

    verdict: BudgetVerdict
    violations: tuple[BudgetViolation, ...] = ()

    @property
    def kinds(self) -> frozenset[ViolationKind]:
        """Set of violated thresholds."""
        return frozenset(v.kind for v in self.violations)


WITHIN_BUDGET = BudgetEvaluation(verdict=BudgetVerdict.WITHIN_BUDGET)

# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

DEFAULT_BUDGET = PerformanceBudget()

FAST = PerformanceBudget(
    max_loading_time=1000, max_retry_attempts=2, target_success_rate=98, max_error_rate=2
)
NORMAL = PerformanceBudget(
    max_loading_time=2000, max_retry_attempts=3, target_success_rate=95, max_error_rate=5
)
SLOW = PerformanceBudget(
    max_loading_time=4000, max_retry_attempts=5, target_success_rate=90, max_error_rate=10
)

BUDGET_PRESETS: dict[str, PerformanceBudget] = {"fast": FAST, "normal": NORMAL, "slow": SLOW}

Complexity = Literal["simple", "normal", "complex"]

_COMPLEXITY_PRESETS: dict[str, PerformanceBudget] = {
    "simple": FAST,
    "normal": NORMAL,
    "complex": SLOW,
}


def get_budget_preset(name: str) -> PerformanceBudget:
    """Look up a budget preset by name (``fast``, ``normal``, ``slow``)."""
    try:
        return BUDGET_PRESETS[name.lower()]
    except KeyError:
        raise ResourceNotFoundError("budget preset", name, sorted(BUDGET_PRESETS)) from None


def budget_for_complexity(complexity: Complexity) -> PerformanceBudget:
    """Pick a budget preset from an operation's complexity."""
    try:
        return _COMPLEXITY_PRESETS[complexity]
    except KeyError:
        raise ResourceNotFoundError(
            "complexity", complexity, sorted(_COMPLEXITY_PRESETS)
        ) from None
