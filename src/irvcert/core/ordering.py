"""Orderings of an assertion list.

``canonical_order`` is the human-readable order used before trimming: NEBs
before NENs, NENs by size of the continuing set, ties broken by winner, loser,
then the continuing candidates.

``order_by_pruning_power`` is a greedy order in which each assertion removes as
much as possible of the not-yet-excluded elimination orders. A suffix of length
``L`` stands for ``(n - L)!`` complete orders, which is the weight it carries.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from irvcert.core.assertions import Assertion, EliminationOrderSuffix, NotEliminatedNext
from irvcert.core.budget import WorkBudget
from irvcert.core.elimination import expand, expand_all
from irvcert.core.errors import InvalidProblem
from irvcert.core.validate import validate_problem


def canonical_sort_key(assertion: Assertion) -> tuple[int, int, int, int, tuple[int, ...]]:
    if isinstance(assertion, NotEliminatedNext):
        return (1, len(assertion.continuing), assertion.winner, assertion.loser, assertion.continuing)
    return (0, 0, assertion.winner, assertion.loser, ())


def canonical_order(assertions: Sequence[Assertion]) -> list[int]:
    """Indices of ``assertions`` in canonical order (stable for equal keys)."""
    return sorted(range(len(assertions)), key=lambda index: canonical_sort_key(assertions[index]))


@dataclass(slots=True)
class PruningPowerOrder:
    ordered: list[int]
    unused: list[int] = field(default_factory=list)
    remaining_frontier: list[EliminationOrderSuffix] = field(default_factory=list)

    @property
    def sufficient(self) -> bool:
        return not self.remaining_frontier


def _suffix_weights(num_candidates: int) -> list[float]:
    # weights[L] == (n - L)!, as floats; only compared against each other.
    weights = [0.0] * (num_candidates + 1)
    weights[num_candidates] = 1.0
    for i in range(1, num_candidates + 1):
        weights[num_candidates - i] = i * weights[num_candidates - i + 1]
    return weights


def order_by_pruning_power(
    assertions: Sequence[Assertion],
    winner: int,
    num_candidates: int,
    budget: WorkBudget | None = None,
) -> PruningPowerOrder:
    errors = validate_problem(num_candidates=num_candidates, winner=winner, assertions=assertions)
    if errors:
        raise InvalidProblem(errors)
    weights = _suffix_weights(num_candidates)
    frontier: list[EliminationOrderSuffix] = [(c,) for c in range(num_candidates) if c != winner]
    remaining = list(range(len(assertions)))
    ordered: list[int] = []

    while remaining and frontier:
        best_index = remaining[0]
        best_improvement = 0.0
        for index in remaining:
            improvement = 0.0
            for before in frontier:
                improvement += weights[len(before)]
                for after in expand(assertions[index], before, num_candidates, False, budget):
                    improvement -= weights[len(after)]
            if improvement > best_improvement:
                best_improvement = improvement
                best_index = index
        ordered.append(best_index)
        remaining.remove(best_index)
        frontier = expand_all(assertions[best_index], frontier, num_candidates, False, budget)

    return PruningPowerOrder(ordered=ordered, unused=remaining, remaining_frontier=frontier)


__all__ = [
    "PruningPowerOrder",
    "canonical_order",
    "canonical_sort_key",
    "order_by_pruning_power",
]
