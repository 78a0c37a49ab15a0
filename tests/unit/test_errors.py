from __future__ import annotations

import pytest

from irvcert.core.budget import WorkBudget
from irvcert.core.errors import (
    ERROR_CODE_BUDGET_EXCEEDED,
    ERROR_CODE_DID_NOT_RULE_OUT_LOSER,
    ERROR_CODE_INVALID_CANDIDATE_INDEX,
    MALFORMED_INPUT_CODES,
    BudgetExhausted,
    IrvCertError,
)


def test_error_codes_are_stable() -> None:
    assert ERROR_CODE_INVALID_CANDIDATE_INDEX == "INVALID_CANDIDATE_INDEX"
    assert ERROR_CODE_BUDGET_EXCEEDED == "BUDGET_EXCEEDED"
    assert ERROR_CODE_DID_NOT_RULE_OUT_LOSER not in MALFORMED_INPUT_CODES


def test_irvcert_error_to_dict_includes_optional_fields() -> None:
    error = IrvCertError(
        code=ERROR_CODE_INVALID_CANDIDATE_INDEX,
        message="Assertion 3 refers to candidate 9",
        assertion_index=3,
        details={"candidate": 9},
    )
    assert error.is_malformed_input
    assert error.to_dict() == {
        "code": "INVALID_CANDIDATE_INDEX",
        "message": "Assertion 3 refers to candidate 9",
        "details": {"candidate": 9},
        "assertion_index": 3,
    }


def test_budget_exhausted_converts_to_error_value() -> None:
    exc = BudgetExhausted(work_done=11, seconds=0.25)
    error = exc.to_error()
    assert error.code == ERROR_CODE_BUDGET_EXCEEDED
    assert error.details == {"work_done": 11, "seconds": 0.25}
    assert "11 nodes" in error.message


def test_work_budget_raises_after_limit() -> None:
    budget = WorkBudget(work_limit=2)
    budget.tick()
    budget.tick()
    with pytest.raises(BudgetExhausted):
        budget.tick()
    assert budget.work_done == 3


def test_unlimited_budget_never_raises() -> None:
    budget = WorkBudget.unlimited()
    for _ in range(1000):
        budget.tick()
    assert not budget.exceeded()


@pytest.mark.parametrize("kwargs", [{"work_limit": 0}, {"seconds_limit": -1.0}])
def test_work_budget_rejects_non_positive_limits(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError, match="must be > 0"):
        WorkBudget(**kwargs)  # type: ignore[arg-type]
