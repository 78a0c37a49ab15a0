from __future__ import annotations

import pytest

from irvcert.core.assertions import Assertion, NotEliminatedBefore, NotEliminatedNext
from irvcert.core.budget import WorkBudget
from irvcert.core.constants import (
    CONTINUE_FOREVER,
    CONTINUE_ONCE,
    CONTINUE_STOP_IMMEDIATELY,
    CONTINUE_STOP_ON_NEB,
)
from irvcert.core.errors import BudgetExhausted
from irvcert.core.tree import build_pruning_tree, next_level_policy, should_continue_past_pruning

N = 4


def test_tree_for_candidate_0(guide_assertions: list[Assertion]) -> None:
    tree = build_pruning_tree(0, guide_assertions, N)
    root = tree.root
    assert not tree.valid
    assert not root.pruned
    children = tree.children_of(root)
    assert [child.candidate for child in children] == [1, 2, 3]
    assert children[0].pruning_assertions == [4]
    assert children[1].pruning_assertions == [2]
    assert not children[2].pruned
    grandchildren = tree.children_of(children[2])
    assert [node.suffix for node in grandchildren] == [(1, 3, 0), (2, 3, 0)]
    assert grandchildren[0].pruning_assertions == [4]
    assert grandchildren[1].pruning_assertions == [3]
    assert tree.nodes_explored == 6
    assert tree.max_depth == 3


def test_tree_for_candidate_1_is_pruned_at_root(guide_assertions: list[Assertion]) -> None:
    tree = build_pruning_tree(1, guide_assertions, N)
    assert not tree.valid
    assert tree.root.pruning_assertions == [4]
    assert tree.root.children == []
    assert tree.nodes_explored == 1


def test_tree_for_winner_is_valid(guide_assertions: list[Assertion]) -> None:
    tree = build_pruning_tree(2, guide_assertions, N)
    assert tree.valid
    leaf = tree.first_valid_leaf()
    assert leaf is not None
    assert leaf.suffix == (0, 2)


def test_tree_for_candidate_3(guide_assertions: list[Assertion]) -> None:
    tree = build_pruning_tree(3, guide_assertions, N)
    assert not tree.valid
    children = tree.children_of(tree.root)
    assert children[0].pruning_assertions == [5]
    assert children[1].pruning_assertions == [4]
    assert not children[2].pruned
    grandchildren = tree.children_of(children[2])
    assert grandchildren[0].pruning_assertions == [1]
    assert not grandchildren[1].pruned
    deepest = tree.children_of(grandchildren[1])
    assert [node.suffix for node in deepest] == [(0, 1, 2, 3)]
    assert deepest[0].pruning_assertions == [0]
    assert tree.max_depth == 4
    assert tree.nodes_explored == 7


def test_parent_indices_point_back_into_the_arena(guide_assertions: list[Assertion]) -> None:
    tree = build_pruning_tree(3, guide_assertions, N)
    for node in tree.walk():
        if node.parent is None:
            assert node is tree.root
            continue
        parent = tree.nodes[node.parent]
        assert node.suffix[1:] == parent.suffix
        assert node.depth == parent.depth + 1


def test_relevant_restricts_assertions(guide_assertions: list[Assertion]) -> None:
    tree = build_pruning_tree(1, guide_assertions, N, relevant=[0, 1, 2, 3, 5])
    assert tree.valid


def test_to_dict_lists_pruning_and_children(guide_assertions: list[Assertion]) -> None:
    payload = build_pruning_tree(0, guide_assertions, N).to_dict()
    assert payload["candidate"] == 0
    assert payload["valid"] is False
    assert [child["candidate"] for child in payload["children"]] == [1, 2, 3]
    assert payload["children"][0]["pruning_assertions"] == [4]
    assert "children" not in payload["children"][0]


def test_record_all_pruning_keeps_every_contradicting_assertion() -> None:
    assertions = [NotEliminatedBefore(winner=0, loser=1), NotEliminatedBefore(winner=2, loser=1)]
    assert build_pruning_tree(1, assertions, 3).root.pruning_assertions == [0, 1]
    first_only = build_pruning_tree(1, assertions, 3, record_all_pruning=False)
    assert first_only.root.pruning_assertions == [0]


def test_continuation_searches_below_pruned_nodes() -> None:
    # Candidate 1 is ruled out directly by the NEB, and also by the NEN below.
    assertions: list[Assertion] = [
        NotEliminatedBefore(winner=0, loser=1),
        NotEliminatedNext(winner=0, loser=1, continuing=(0, 1)),
    ]
    stopped = build_pruning_tree(1, assertions, 2, policy=CONTINUE_STOP_IMMEDIATELY)
    assert stopped.root.children == []

    searched = build_pruning_tree(1, assertions, 2, policy=CONTINUE_FOREVER)
    children = searched.children_of(searched.root)
    assert searched.root.pruning_assertions == [0]
    assert [child.suffix for child in children] == [(0, 1)]
    assert children[0].pruning_assertions == [1]

    assert build_pruning_tree(1, assertions, 2, policy=CONTINUE_STOP_ON_NEB).root.children == []


def test_valid_descendant_clears_children_of_pruned_node() -> None:
    assertions: list[Assertion] = [
        NotEliminatedBefore(winner=0, loser=1),
        NotEliminatedNext(winner=0, loser=1, continuing=(0, 1)),
    ]
    tree = build_pruning_tree(1, assertions, 3, policy=CONTINUE_FOREVER)
    assert tree.root.pruned
    assert tree.root.children == []
    assert not tree.valid


def test_policy_helpers() -> None:
    assert not should_continue_past_pruning(CONTINUE_STOP_IMMEDIATELY, pruned_by_neb=False)
    assert should_continue_past_pruning(CONTINUE_ONCE, pruned_by_neb=True)
    assert should_continue_past_pruning(CONTINUE_FOREVER, pruned_by_neb=True)
    assert not should_continue_past_pruning(CONTINUE_STOP_ON_NEB, pruned_by_neb=True)
    assert should_continue_past_pruning(CONTINUE_STOP_ON_NEB, pruned_by_neb=False)
    assert next_level_policy(CONTINUE_ONCE) == CONTINUE_STOP_IMMEDIATELY
    assert next_level_policy(CONTINUE_FOREVER) == CONTINUE_FOREVER


def test_budget_is_checked_per_node(guide_assertions: list[Assertion]) -> None:
    with pytest.raises(BudgetExhausted) as excinfo:
        build_pruning_tree(3, guide_assertions, N, budget=WorkBudget(work_limit=3))
    assert excinfo.value.work_done == 4
