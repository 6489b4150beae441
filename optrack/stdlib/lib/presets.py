"""Named stage sequences and operation id helpers."""

from __future__ import annotations

from types import MappingProxyType

from optrack.kernel.exceptions import ResourceNotFoundError

LOADING_STAGES: MappingProxyType[str, tuple[str, ...]] = MappingProxyType(
    {
        "solar_calculation": (
            "Initializing calculation",
            "Analyzing location data",
            "Calculating solar irradiance",
            "Processing energy requirements",
            "Evaluating equipment options",
            "Optimizing system design",
            "Calculating financial metrics",
            "Generating recommendations",
            "Finalizing results",
        ),
        "equipment_search": (
            "Initializing search",
            "Applying filters",
            "Querying equipment database",
            "Processing compatibility",
            "Calculating pricing",
            "Sorting results",
            "Finalizing search",
        ),
        "rfq_form": (
            "Validating form data",
            "Processing requirements",
            "Generating RFQ",
            "Submitting request",
            "Confirming submission",
        ),
        "dashboard_data": (
            "Loading system data",
            "Fetching performance metrics",
            "Calculating analytics",
            "Processing charts",
            "Finalizing dashboard",
        ),
        "quote_generation": (
            "Processing requirements",
            "Calculating system design",
            "Analyzing pricing",
            "Generating terms",
            "Finalizing quote",
        ),
    }
)


def get_stages(name: str) -> tuple[str, ...]:
    """Look up a stage sequence by name (case-insensitive)."""
    try:
        return LOADING_STAGES[name.lower()]
    except KeyError:
        raise ResourceNotFoundError("stage preset", name, sorted(LOADING_STAGES)) from None


def make_operation_id(component: str, context: str | None = None) -> str:
    """Build a conventional operation id.

    Examples
    --------
    >>> make_operation_id("quotes")
    'quotes'
    >>> make_operation_id("quotes", "page-2")
    'quotes-page-2'
    """
    return f"{component}-{context}" if context else component
