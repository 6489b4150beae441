"""Tests for stage presets and operation id helpers."""

from __future__ import annotations

import pytest

from optrack.kernel.exceptions import ResourceNotFoundError
from optrack.stdlib.lib.presets import LOADING_STAGES, get_stages, make_operation_id


class TestStages:
    def test_known_presets(self) -> None:
        assert set(LOADING_STAGES) == {
            "solar_calculation",
            "equipment_search",
            "rfq_form",
            "dashboard_data",
            "quote_generation",
        }

    def test_lookup_is_case_insensitive(self) -> None:
        stages = get_stages("RFQ_Form")
        assert stages[0] == "Validating form data"
        assert stages[-1] == "Confirming submission"

    def test_every_preset_has_stages(self) -> None:
        assert all(len(stages) >= 5 for stages in LOADING_STAGES.values())

    def test_unknown(self) -> None:
        with pytest.raises(ResourceNotFoundError):
            get_stages("unknown")

    def test_read_only(self) -> None:
        with pytest.raises(TypeError):
            LOADING_STAGES["new"] = ("x",)  # type: ignore[index]


class TestMakeOperationId:
    @pytest.mark.parametrize(
        ("component", "context", "expected"),
        [("quotes", None, "quotes"), ("quotes", "", "quotes"), ("quotes", "p2", "quotes-p2")],
    )
    def test_make_operation_id(self, component: str, context: str | None, expected: str) -> None:
        assert make_operation_id(component, context) == expected
