"""Core exception hierarchy for optrack.

All optrack-specific exceptions inherit from OptrackError for easy
exception handling. Failures of *tracked* operations are never wrapped in
these types: the tracker records them and re-raises the caller's original
exception unchanged.
"""

from __future__ import annotations

# ============================================================================
# Base Exception
# ============================================================================


class OptrackError(Exception):
    """Base exception for all optrack errors.

    Catch this to handle all optrack errors.
    """

    pass


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(OptrackError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("tracker", "YAML file not found")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the component with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(OptrackError):
    """Raised when data validation fails.

    Examples
    --------
    Example usage::

        raise ValidationError("capacity", "must be positive", value=-1)
    """

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        """Initialize validation error.

        Args
        ----
            field: Name of the field that failed validation
            constraint: Description of the validation constraint
            value: The invalid value (optional)
        """
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


class TypeMismatchError(OptrackError):
    """Raised when a value has an unexpected type.

    Examples
    --------
    Example usage::

        raise TypeMismatchError("callback", "callable", int)
    """

    def __init__(
        self, field: str, expected: type | str, actual: type | str, value: object = None
    ) -> None:
        """Initialize type mismatch error.

        Args
        ----
            field: Name of the field with wrong type
            expected: Expected type or description
            actual: Actual type or description
            value: The value with wrong type (optional)
        """
        exp_str = expected.__name__ if isinstance(expected, type) else str(expected)
        act_str = actual.__name__ if isinstance(actual, type) else str(actual)

        if value is not None:
            msg = f"Type mismatch for '{field}': expected {exp_str}, got {act_str} ({value!r})"
        else:
            msg = f"Type mismatch for '{field}': expected {exp_str}, got {act_str}"
        super().__init__(msg)
        self.field = field
        self.expected = expected
        self.actual = actual
        self.value = value


# ============================================================================
# Lookup Errors
# ============================================================================


class ResourceNotFoundError(OptrackError):
    """Raised when a named resource (budget preset, stage preset) is unknown.

    Examples
    --------
    Example usage::

        raise ResourceNotFoundError("budget preset", "turbo", ["fast", "normal", "slow"])
    """

    def __init__(
        self, resource_type: str, resource_id: str, available: list[str] | None = None
    ) -> None:
        """Initialize resource not found error.

        Args
        ----
            resource_type: Type of resource (e.g., "budget preset")
            resource_id: Identifier of the missing resource
            available: List of available resources (optional)
        """
        msg = f"{resource_type.title()} '{resource_id}' not found"
        if available:
            msg += f". Available: {', '.join(available[:5])}"
            if len(available) > 5:
                msg += f" ... and {len(available) - 5} more"
        super().__init__(msg)
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.available = available
