from __future__ import annotations

from math import factorial

import pytest

from irvcert.core.assertions import Assertion, NotEliminatedBefore
from irvcert.core.constants import EFFECT_CONTRADICTION, EFFECT_SATISFIED
from irvcert.core.elimination import all_elimination_order_suffixes, expand_all
from irvcert.core.errors import (
    ERROR_CODE_INVALID_CANDIDATE_COUNT,
    ERROR_CODE_INVALID_CANDIDATE_INDEX,
    InvalidProblem,
)
from irvcert.core.explain import explain


def test_single_neb_step() -> None:
    explanation = explain([NotEliminatedBefore(winner=0, loser=1)], 2)
    step = explanation.steps[0]
    assert step.before == [((0,), EFFECT_SATISFIED), ((1,), EFFECT_CONTRADICTION)]
    assert step.after == [(0,)]
    assert step.removed == [(1,)]
    assert explanation.remaining == [(0,)]
    assert explanation.possible_winners == [0]


def test_guide_leaves_only_the_winner(guide_assertions: list[Assertion]) -> None:
    explanation = explain(guide_assertions, 4, winner=2)
    assert len(explanation.steps) == len(guide_assertions)
    assert explanation.remaining
    assert explanation.possible_winners == [2]


def test_hide_winner_rules_out_everything(guide_assertions: list[Assertion]) -> None:
    explanation = explain(guide_assertions, 4, winner=2, hide_winner=True)
    assert all(suffix[-1] != 2 for suffix in explanation.start)
    assert explanation.remaining == []


def test_hide_winner_needs_a_winner(guide_assertions: list[Assertion]) -> None:
    with pytest.raises(ValueError, match="hide_winner requires a winner"):
        explain(guide_assertions, 4, hide_winner=True)


def test_expand_fully_starts_from_complete_orders(guide_assertions: list[Assertion]) -> None:
    explanation = explain(guide_assertions, 4, winner=2, expand_fully_at_start=True, hide_winner=True)
    assert len(explanation.start) == factorial(4) - factorial(3)
    assert explanation.remaining == []


def test_independent_steps_start_from_the_same_frontier(guide_assertions: list[Assertion]) -> None:
    independent = explain(guide_assertions, 4, winner=2, cumulative=False)
    cumulative = explain(guide_assertions, 4, winner=2)
    start = all_elimination_order_suffixes(4)
    for step in independent.steps:
        assert step.after == expand_all(step.assertion, start, 4, keep_contradictions=False)
    assert sorted(independent.remaining) == sorted(cumulative.remaining)


def test_to_dict_uses_candidate_names() -> None:
    explanation = explain([NotEliminatedBefore(winner=0, loser=1)], 2, winner=0)
    payload = explanation.to_dict(["Alice", "Bob"])
    assert payload["steps"][0]["description"] == "Alice beats Bob"
    assert payload["steps"][0]["before"][1] == {"suffix": [1], "effect": "contradiction"}
    assert payload["possible_winners"] == [0]


def test_rejects_an_empty_contest() -> None:
    with pytest.raises(InvalidProblem) as excinfo:
        explain([], 0, winner=0, hide_winner=True)
    assert [error.code for error in excinfo.value.errors] == [ERROR_CODE_INVALID_CANDIDATE_COUNT]


def test_rejects_out_of_range_assertion() -> None:
    with pytest.raises(InvalidProblem, match="Assertion 0 refers to candidate 4"):
        explain([NotEliminatedBefore(winner=0, loser=4)], 3)


def test_invalid_problem_is_a_value_error() -> None:
    with pytest.raises(ValueError) as excinfo:
        explain([], 3, winner=5)
    assert isinstance(excinfo.value, InvalidProblem)
    assert excinfo.value.errors[0].code == ERROR_CODE_INVALID_CANDIDATE_INDEX
