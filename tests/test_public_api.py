# tests/test_public_api.py
import optrack

EXPECTED = {
 "OperationTracker","OperationRecord","OperationType","TrackerConfig","load_config",
 "PerformanceBudget","BudgetVerdict","BudgetEvaluation","FAST","NORMAL","SLOW",
 "budget_for_complexity","ErrorRateMode","PerformanceReport",
 "Alert","AlertType",
 "ManualClock","MonotonicClock",
 "execute","tracking","tracked","StagedOperation",
 "DataSource","load_weighted_sources","FormProgress","route_transition",
 "LOADING_STAGES","make_operation_id",
 "OptrackError","ConfigurationError","ValidationError","TypeMismatchError","ResourceNotFoundError",
 "__version__",
}

def test_public_api_matches_dunder_all():
    assert hasattr(optrack, "__all__")
    assert set(optrack.__all__) == EXPECTED

def test_public_names_resolve():
    for name in optrack.__all__:
        assert getattr(optrack, name) is not None
