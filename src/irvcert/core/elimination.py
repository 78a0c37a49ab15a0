"""Elimination order space and per-assertion suffix expansion.

``expand`` grows a suffix only where an assertion needs more information, so
starting from the single-candidate frontier is usually far cheaper than
enumerating all ``n!`` elimination orders.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from irvcert.core.assertions import Assertion, EliminationOrderSuffix, evaluate
from irvcert.core.budget import WorkBudget
from irvcert.core.constants import EFFECT_CONTRADICTION, EFFECT_SATISFIED


def expand(
    assertion: Assertion,
    suffix: EliminationOrderSuffix,
    num_candidates: int,
    keep_contradictions: bool,
    budget: WorkBudget | None = None,
) -> list[EliminationOrderSuffix]:
    """Suffixes extending ``suffix`` that ``assertion`` classifies definitively.

    With ``keep_contradictions`` the contradicted suffixes are returned too,
    which is what a diagnostic pass wants; a pruning pass drops them.
    """
    if budget is not None:
        budget.tick()
    effect = evaluate(assertion, suffix)
    if effect == EFFECT_SATISFIED:
        return [suffix]
    if effect == EFFECT_CONTRADICTION:
        return [suffix] if keep_contradictions else []
    expanded: list[EliminationOrderSuffix] = []
    for candidate in range(num_candidates):
        if candidate in suffix:
            continue
        expanded.extend(
            expand(assertion, (candidate, *suffix), num_candidates, keep_contradictions, budget)
        )
    return expanded


def expand_all(
    assertion: Assertion,
    suffixes: Iterable[EliminationOrderSuffix],
    num_candidates: int,
    keep_contradictions: bool,
    budget: WorkBudget | None = None,
) -> list[EliminationOrderSuffix]:
    expanded: list[EliminationOrderSuffix] = []
    for suffix in suffixes:
        expanded.extend(expand(assertion, suffix, num_candidates, keep_contradictions, budget))
    return expanded


def all_elimination_orders(num_candidates: int) -> list[EliminationOrderSuffix]:
    """All ``num_candidates!`` complete elimination orders."""
    if num_candidates <= 0:
        return [()]
    newest = num_candidates - 1
    orders: list[EliminationOrderSuffix] = []
    for shorter in all_elimination_orders(num_candidates - 1):
        for position in range(len(shorter) + 1):
            orders.append((*shorter[:position], newest, *shorter[position:]))
    return orders


def all_elimination_order_suffixes(num_candidates: int) -> list[EliminationOrderSuffix]:
    """The canonical starting frontier: one single-candidate suffix per candidate."""
    return [(candidate,) for candidate in range(num_candidates)]


def allowed_elimination_orders(
    assertions: Sequence[Assertion],
    num_candidates: int,
) -> list[EliminationOrderSuffix]:
    return [
        order
        for order in all_elimination_orders(num_candidates)
        if all(evaluate(assertion, order) == EFFECT_SATISFIED for assertion in assertions)
    ]


def allowed_elimination_order_suffixes(
    assertions: Sequence[Assertion],
    num_candidates: int,
    budget: WorkBudget | None = None,
) -> list[EliminationOrderSuffix]:
    """Minimal suffixes that survive every assertion, applied in order."""
    frontier: list[EliminationOrderSuffix] = [()]
    for assertion in assertions:
        frontier = expand_all(assertion, frontier, num_candidates, keep_contradictions=False, budget=budget)
    return frontier


__all__ = [
    "all_elimination_order_suffixes",
    "all_elimination_orders",
    "allowed_elimination_order_suffixes",
    "allowed_elimination_orders",
    "expand",
    "expand_all",
]
