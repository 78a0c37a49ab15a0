from __future__ import annotations

from typing import Any

import pytest

from irvcert.core.assertions import Assertion, NotEliminatedBefore, NotEliminatedNext
from irvcert.core.budget import WorkBudget
from irvcert.core.constants import (
    STATUS_INSUFFICIENT,
    STATUS_INVALID_INPUT,
    STATUS_PROVEN,
    STATUS_TRIMMED,
    STATUS_UNOPTIMIZED,
    TRIM_MINIMIZE_ASSERTIONS,
    TRIM_MINIMIZE_TREE,
    TRIM_NONE,
)
from irvcert.core.errors import ERROR_CODE_BUDGET_EXCEEDED, ERROR_CODE_DID_NOT_RULE_OUT_LOSER, BudgetExhausted
from irvcert.core.tree import build_pruning_tree
from irvcert.core.trim import (
    AllOf,
    AnyOf,
    AssertionChoice,
    TrimResult,
    choose_assertions,
    is_met,
    node_requirement,
    trim,
)
from irvcert.core.verify import verify_contest

GUIDE_CANONICAL = [4, 5, 2, 1, 3, 0]


def _trim(assertions: list[Assertion], **kwargs: Any) -> TrimResult:
    return trim(num_candidates=4, winner=2, assertions=assertions, **kwargs)


def test_minimize_tree_keeps_every_needed_guide_assertion(guide_assertions: list[Assertion]) -> None:
    result = _trim(guide_assertions, algorithm=TRIM_MINIMIZE_TREE)
    assert result.status == STATUS_TRIMMED
    assert result.optimized
    assert result.kept == GUIDE_CANONICAL
    assert result.assertions == [guide_assertions[index] for index in GUIDE_CANONICAL]
    assert result.removed_count == 0
    assert result.nodes_explored == 14
    assert result.max_depth == 4


def test_minimize_tree_drops_redundant_assertion(guide_assertions: list[Assertion]) -> None:
    # Implied by NEB(2, 1) and never the assertion that prunes a node.
    redundant = NotEliminatedNext(winner=2, loser=1, continuing=(1, 2))
    result = _trim([*guide_assertions, redundant], algorithm=TRIM_MINIMIZE_TREE)
    assert result.status == STATUS_TRIMMED
    assert 6 not in result.kept
    assert result.kept == GUIDE_CANONICAL
    assert result.removed_count == 1


def test_minimize_assertions_replaces_shallow_assertion_with_deeper_ones(
    guide_assertions: list[Assertion],
) -> None:
    result = _trim(guide_assertions, algorithm=TRIM_MINIMIZE_ASSERTIONS)
    assert result.status == STATUS_TRIMMED
    assert result.kept == [4, 2, 1, 3, 0]
    assert 5 not in result.kept


@pytest.mark.parametrize("algorithm", [TRIM_MINIMIZE_TREE, TRIM_MINIMIZE_ASSERTIONS])
def test_trimmed_assertions_remain_sufficient(guide_assertions: list[Assertion], algorithm: str) -> None:
    result = _trim(guide_assertions, algorithm=algorithm)
    report = verify_contest(num_candidates=4, winner=2, assertions=result.assertions)
    assert report.status == STATUS_PROVEN


def test_minimize_tree_prunes_the_same_nodes(guide_assertions: list[Assertion]) -> None:
    result = _trim(guide_assertions, algorithm=TRIM_MINIMIZE_TREE)
    for candidate in (0, 1, 3):
        before = build_pruning_tree(candidate, guide_assertions, 4)
        after = build_pruning_tree(candidate, result.assertions, 4)
        assert [node.suffix for node in before.pruned_nodes()] == [node.suffix for node in after.pruned_nodes()]


def test_insufficient_assertions_are_reported_not_trimmed(guide_assertions: list[Assertion]) -> None:
    without_neb = [assertion for assertion in guide_assertions if not isinstance(assertion, NotEliminatedBefore)]
    result = _trim(without_neb)
    assert result.status == STATUS_INSUFFICIENT
    assert len(result.kept) == len(without_neb)
    error = result.errors[0]
    assert error.code == ERROR_CODE_DID_NOT_RULE_OUT_LOSER
    assert error.candidate == 0
    assert error.details["counterexample"] == [1, 0]


def test_budget_exhaustion_returns_full_sorted_set(guide_assertions: list[Assertion]) -> None:
    result = _trim(guide_assertions, budget=WorkBudget(work_limit=2))
    assert result.status == STATUS_UNOPTIMIZED
    assert not result.optimized
    assert result.kept == GUIDE_CANONICAL
    assert result.errors[0].code == ERROR_CODE_BUDGET_EXCEEDED


def test_algorithm_none_only_sorts(guide_assertions: list[Assertion]) -> None:
    assert _trim(guide_assertions, algorithm=TRIM_NONE).kept == GUIDE_CANONICAL
    unsorted = _trim(guide_assertions, algorithm=TRIM_NONE, sort_assertions=False)
    assert unsorted.kept == [0, 1, 2, 3, 4, 5]


def test_unsorted_trim_keeps_input_order(guide_assertions: list[Assertion]) -> None:
    result = _trim(guide_assertions, sort_assertions=False)
    assert result.kept == [0, 1, 2, 3, 4, 5]


def test_invalid_input_is_not_trimmed() -> None:
    result = _trim([NotEliminatedBefore(winner=2, loser=2)])
    assert result.status == STATUS_INVALID_INPUT
    assert result.kept == [0]


def test_unknown_algorithm_raises(guide_assertions: list[Assertion]) -> None:
    with pytest.raises(ValueError, match="Unknown trim algorithm"):
        _trim(guide_assertions, algorithm="fastest")


def test_result_to_dict(guide_assertions: list[Assertion]) -> None:
    payload = _trim(guide_assertions).to_dict()
    assert payload["status"] == "TRIMMED"
    assert payload["algorithm"] == TRIM_MINIMIZE_TREE
    assert payload["kept"] == GUIDE_CANONICAL
    assert payload["assertions"][0] == {"type": "NEB", "winner": 2, "loser": 1}


def test_node_requirement_of_root_pruned_tree(guide_assertions: list[Assertion]) -> None:
    tree = build_pruning_tree(1, guide_assertions, 4)
    assert node_requirement(tree, tree.root) == AnyOf((AssertionChoice(4),))


def test_forced_choices_come_first() -> None:
    either = AnyOf((AssertionChoice(0), AssertionChoice(1)))
    forced = AllOf((AnyOf((AssertionChoice(1),)),))
    assert choose_assertions([either, forced]) == {1}


def test_direct_choice_preferred_over_conjunction() -> None:
    below = AllOf((AnyOf((AssertionChoice(1),)), AnyOf((AssertionChoice(2),))))
    node = AnyOf((AssertionChoice(0), below))
    assert choose_assertions([node]) == {0}


def test_conjunction_counts_when_already_selected() -> None:
    below = AllOf((AnyOf((AssertionChoice(1),)), AnyOf((AssertionChoice(2),))))
    node = AnyOf((AssertionChoice(0), below))
    elsewhere = AllOf((AnyOf((AssertionChoice(1),)), AnyOf((AssertionChoice(2),))))
    assert choose_assertions([node, elsewhere]) == {1, 2}


def test_greedy_selection_is_not_always_minimal() -> None:
    # Assertion 2 alone would do, but each node takes its first option.
    first = AnyOf((AssertionChoice(0), AssertionChoice(2)))
    second = AnyOf((AssertionChoice(1), AssertionChoice(2)))
    selected = choose_assertions([first, second])
    assert selected == {0, 1}
    assert is_met(first, {2}) and is_met(second, {2})


def test_choose_assertions_ticks_budget() -> None:
    requirement = AllOf(tuple(AnyOf((AssertionChoice(index), AssertionChoice(index + 1))) for index in range(5)))
    with pytest.raises(BudgetExhausted):
        choose_assertions([requirement], WorkBudget(work_limit=3))
