"""Removal of redundant assertions from a sufficient assertion set.

Every non-winner gets a pruning tree that records *all* assertions
contradicting each pruned node. Each tree becomes a requirement expression:

* a pruned node is ``AnyOf`` its contradicting assertions, plus ``AllOf`` its
  children when the search continued below it;
* an unpruned node is ``AllOf`` its children.

Choosing a subset of assertions is then choosing variables that satisfy every
expression with as few variables as possible. Exact minimisation is a
set-cover style problem, so a two pass heuristic is used instead:

1. *forced*: a pruned leaf with a single contradicting assertion must keep it;
2. *remaining*: every pruned node not yet satisfied by the selection keeps its
   first contradicting assertion, preferring that over the conjunctive
   alternative below it.

``minimize_tree`` stops at the first pruned node, so the trimmed set prunes
exactly the same nodes. ``minimize_assertions`` searches below pruned nodes
(except NEB-pruned ones by default, which are rarely redundant and have large
subtrees) so deeper assertions can stand in for shallow ones.

The heuristic is not optimal in general; see the adversarial cases in the test
suite.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from time import monotonic
from typing import Any, Literal

from irvcert.core.assertions import Assertion, assertions_to_dicts
from irvcert.core.budget import WorkBudget
from irvcert.core.constants import (
    CONTINUE_STOP_IMMEDIATELY,
    CONTINUE_STOP_ON_NEB,
    STATUS_INSUFFICIENT,
    STATUS_INVALID_INPUT,
    STATUS_TRIMMED,
    STATUS_UNOPTIMIZED,
    TRIM_MINIMIZE_ASSERTIONS,
    TRIM_MINIMIZE_TREE,
    TRIM_NONE,
)
from irvcert.core.errors import ERROR_CODE_DID_NOT_RULE_OUT_LOSER, BudgetExhausted, IrvCertError
from irvcert.core.ordering import canonical_order
from irvcert.core.tree import ContinuationPolicy, PruningTree, TreeNode, build_pruning_tree
from irvcert.core.validate import validate_problem

logger = logging.getLogger(__name__)

TrimAlgorithm = Literal["none", "minimize_tree", "minimize_assertions"]
TrimStatus = Literal["TRIMMED", "UNOPTIMIZED", "INSUFFICIENT", "INVALID_INPUT"]

_DEFAULT_POLICY: dict[str, ContinuationPolicy] = {
    TRIM_MINIMIZE_TREE: CONTINUE_STOP_IMMEDIATELY,
    TRIM_MINIMIZE_ASSERTIONS: CONTINUE_STOP_ON_NEB,
}


@dataclass(slots=True, frozen=True)
class AssertionChoice:
    index: int


@dataclass(slots=True, frozen=True)
class AllOf:
    parts: tuple[Requirement, ...]


@dataclass(slots=True, frozen=True)
class AnyOf:
    options: tuple[Requirement, ...]


Requirement = AssertionChoice | AllOf | AnyOf


def node_requirement(tree: PruningTree, node: TreeNode) -> Requirement:
    """What must be selected for ``node`` to stay eliminated."""
    below = AllOf(tuple(node_requirement(tree, child) for child in tree.children_of(node)))
    if not node.pruned:
        return below
    options: list[Requirement] = [AssertionChoice(index) for index in node.pruning_assertions]
    if node.children:
        options.append(below)
    return AnyOf(tuple(options))


def is_met(requirement: Requirement, selected: set[int]) -> bool:
    if isinstance(requirement, AssertionChoice):
        return requirement.index in selected
    if isinstance(requirement, AllOf):
        return bool(requirement.parts) and all(is_met(part, selected) for part in requirement.parts)
    if isinstance(requirement, AnyOf):
        return any(is_met(option, selected) for option in requirement.options)
    raise TypeError(f"Unsupported requirement: {type(requirement).__name__}")


def select_forced(requirement: Requirement, selected: set[int]) -> None:
    if isinstance(requirement, AllOf):
        for part in requirement.parts:
            select_forced(part, selected)
    elif isinstance(requirement, AnyOf):
        if len(requirement.options) == 1 and isinstance(requirement.options[0], AssertionChoice):
            selected.add(requirement.options[0].index)
    elif isinstance(requirement, AssertionChoice):
        selected.add(requirement.index)


def select_remaining(requirement: Requirement, selected: set[int], budget: WorkBudget | None = None) -> None:
    if budget is not None:
        budget.tick()
    if isinstance(requirement, AllOf):
        for part in requirement.parts:
            select_remaining(part, selected, budget)
    elif isinstance(requirement, AnyOf):
        if is_met(requirement, selected):
            return
        for option in requirement.options:
            if isinstance(option, AssertionChoice):
                selected.add(option.index)
                return
        raise ValueError("pruned node without a direct assertion choice")
    elif isinstance(requirement, AssertionChoice):
        selected.add(requirement.index)


def choose_assertions(requirements: Sequence[Requirement], budget: WorkBudget | None = None) -> set[int]:
    """Two-pass heuristic over all requirements; returns the selected indices."""
    selected: set[int] = set()
    for requirement in requirements:
        select_forced(requirement, selected)
    for requirement in requirements:
        select_remaining(requirement, selected, budget)
    return selected


@dataclass(slots=True)
class TrimResult:
    status: TrimStatus
    algorithm: TrimAlgorithm
    original_count: int
    kept: list[int]
    assertions: list[Assertion]
    nodes_explored: int = 0
    max_depth: int = 0
    seconds: float = 0.0
    errors: list[IrvCertError] = field(default_factory=list)

    @property
    def optimized(self) -> bool:
        return self.status == STATUS_TRIMMED

    @property
    def removed_count(self) -> int:
        return self.original_count - len(self.kept)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "algorithm": self.algorithm,
            "original_count": self.original_count,
            "kept": list(self.kept),
            "assertions": assertions_to_dicts(self.assertions),
            "nodes_explored": self.nodes_explored,
            "max_depth": self.max_depth,
            "seconds": self.seconds,
            "errors": [error.to_dict() for error in self.errors],
        }


def trim(
    *,
    num_candidates: int,
    winner: int,
    assertions: Sequence[Assertion],
    algorithm: TrimAlgorithm = TRIM_MINIMIZE_TREE,
    policy: ContinuationPolicy | None = None,
    sort_assertions: bool = True,
    budget: WorkBudget | None = None,
) -> TrimResult:
    """Select a smaller subset of ``assertions`` that still rules out every non-winner.

    ``kept`` holds indices into ``assertions``, in canonical order when
    ``sort_assertions`` is set. If the budget runs out the full (sorted) set
    is returned with status ``UNOPTIMIZED``; it is still a valid answer.
    """
    started = monotonic()
    errors = validate_problem(num_candidates=num_candidates, winner=winner, assertions=assertions)
    if errors:
        return TrimResult(
            status=STATUS_INVALID_INPUT,
            algorithm=algorithm,
            original_count=len(assertions),
            kept=list(range(len(assertions))),
            assertions=list(assertions),
            errors=errors,
        )

    order = canonical_order(assertions) if sort_assertions else list(range(len(assertions)))
    ordered = [assertions[index] for index in order]

    def _result(
        status: TrimStatus,
        kept_positions: Sequence[int],
        trees: Sequence[PruningTree],
        errs: list[IrvCertError],
    ) -> TrimResult:
        kept = [order[position] for position in kept_positions]
        return TrimResult(
            status=status,
            algorithm=algorithm,
            original_count=len(assertions),
            kept=kept,
            assertions=[assertions[index] for index in kept],
            nodes_explored=sum(tree.nodes_explored for tree in trees),
            max_depth=max((tree.max_depth for tree in trees), default=0),
            seconds=round(monotonic() - started, 6),
            errors=errs,
        )

    all_positions = list(range(len(ordered)))
    if algorithm == TRIM_NONE:
        return _result(STATUS_TRIMMED, all_positions, [], [])
    if algorithm not in _DEFAULT_POLICY:
        raise ValueError(f"Unknown trim algorithm: {algorithm!r}")

    search_policy = policy if policy is not None else _DEFAULT_POLICY[algorithm]
    work = budget if budget is not None else WorkBudget.unlimited()
    trees: list[PruningTree] = []
    try:
        for candidate in range(num_candidates):
            if candidate == winner:
                continue
            tree = build_pruning_tree(
                candidate,
                ordered,
                num_candidates,
                policy=search_policy,
                record_all_pruning=True,
                budget=work,
            )
            trees.append(tree)
            if tree.valid:
                leaf = tree.first_valid_leaf()
                counterexample = list(leaf.suffix) if leaf is not None else []
                logger.warning("cannot trim: candidate %d is not ruled out (%s)", candidate, counterexample)
                error = IrvCertError(
                    code=ERROR_CODE_DID_NOT_RULE_OUT_LOSER,
                    message=f"Assertions do not rule out candidate {candidate}",
                    candidate=candidate,
                    details={"counterexample": counterexample},
                )
                return _result(STATUS_INSUFFICIENT, all_positions, trees, [error])
        requirements = [node_requirement(tree, tree.root) for tree in trees]
        selected = choose_assertions(requirements, work)
    except BudgetExhausted as exc:
        logger.warning("trimming stopped, returning untrimmed assertions: %s", exc)
        return _result(STATUS_UNOPTIMIZED, all_positions, trees, [exc.to_error()])

    kept_positions = [position for position in all_positions if position in selected]
    logger.info(
        "trimmed %d assertions down to %d (%s, %d nodes)",
        len(assertions),
        len(kept_positions),
        algorithm,
        sum(tree.nodes_explored for tree in trees),
    )
    return _result(STATUS_TRIMMED, kept_positions, trees, [])


__all__ = [
    "AllOf",
    "AnyOf",
    "AssertionChoice",
    "Requirement",
    "TrimAlgorithm",
    "TrimResult",
    "TrimStatus",
    "choose_assertions",
    "is_met",
    "node_requirement",
    "select_forced",
    "select_remaining",
    "trim",
]
