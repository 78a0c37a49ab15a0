"""Step-by-step account of how an assertion list whittles down elimination orders.

Starting from every elimination order (or just the single-candidate suffixes),
each assertion is applied in turn. For each step the frontier is recorded
*before* pruning, expanded just far enough that the assertion decides every
suffix, and *after* pruning. Whatever is left at the end is what the
assertions fail to rule out.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from irvcert.core.assertions import (
    Assertion,
    AssertionEffect,
    EliminationOrderSuffix,
    describe_assertion,
    evaluate,
)
from irvcert.core.budget import WorkBudget
from irvcert.core.elimination import all_elimination_order_suffixes, all_elimination_orders, expand_all
from irvcert.core.errors import InvalidProblem
from irvcert.core.validate import validate_problem


@dataclass(slots=True)
class ExplanationStep:
    assertion_index: int
    assertion: Assertion
    before: list[tuple[EliminationOrderSuffix, AssertionEffect]] = field(default_factory=list)
    after: list[EliminationOrderSuffix] = field(default_factory=list)

    @property
    def removed(self) -> list[EliminationOrderSuffix]:
        kept = set(self.after)
        return [suffix for suffix, _ in self.before if suffix not in kept]

    def to_dict(self, candidate_names: Sequence[str] | None = None) -> dict[str, Any]:
        return {
            "assertion_index": self.assertion_index,
            "assertion": self.assertion.to_dict(),
            "description": describe_assertion(self.assertion, candidate_names),
            "before": [{"suffix": list(suffix), "effect": effect} for suffix, effect in self.before],
            "after": [list(suffix) for suffix in self.after],
        }


@dataclass(slots=True)
class Explanation:
    num_candidates: int
    start: list[EliminationOrderSuffix]
    steps: list[ExplanationStep] = field(default_factory=list)
    remaining: list[EliminationOrderSuffix] = field(default_factory=list)
    winner: int | None = None
    cumulative: bool = True

    @property
    def possible_winners(self) -> list[int]:
        return sorted({suffix[-1] for suffix in self.remaining if suffix})

    def to_dict(self, candidate_names: Sequence[str] | None = None) -> dict[str, Any]:
        return {
            "num_candidates": self.num_candidates,
            "winner": self.winner,
            "cumulative": self.cumulative,
            "start": [list(suffix) for suffix in self.start],
            "steps": [step.to_dict(candidate_names) for step in self.steps],
            "remaining": [list(suffix) for suffix in self.remaining],
            "possible_winners": self.possible_winners,
        }


def explain(
    assertions: Sequence[Assertion],
    num_candidates: int,
    *,
    winner: int | None = None,
    expand_fully_at_start: bool = False,
    hide_winner: bool = False,
    cumulative: bool = True,
    budget: WorkBudget | None = None,
) -> Explanation:
    """Apply ``assertions`` one at a time and record the frontier around each.

    ``hide_winner`` drops suffixes ending with ``winner`` from the start, as
    nobody needs to see why the winner's orders survive. With ``cumulative``
    off every assertion is applied to the starting frontier on its own.

    Raises ``InvalidProblem`` on malformed input.
    """
    if hide_winner and winner is None:
        raise ValueError("hide_winner requires a winner")
    errors = validate_problem(num_candidates=num_candidates, winner=winner, assertions=assertions)
    if errors:
        raise InvalidProblem(errors)
    if expand_fully_at_start:
        start = all_elimination_orders(num_candidates)
    else:
        start = all_elimination_order_suffixes(num_candidates)
    if hide_winner:
        start = [suffix for suffix in start if suffix[-1] != winner]

    explanation = Explanation(num_candidates=num_candidates, start=start, winner=winner, cumulative=cumulative)
    remaining = list(start)
    for index, assertion in enumerate(assertions):
        frontier = remaining if cumulative else start
        before = expand_all(assertion, frontier, num_candidates, keep_contradictions=True, budget=budget)
        after = expand_all(assertion, before, num_candidates, keep_contradictions=False, budget=budget)
        explanation.steps.append(
            ExplanationStep(
                assertion_index=index,
                assertion=assertion,
                before=[(suffix, evaluate(assertion, suffix)) for suffix in before],
                after=after,
            )
        )
        if cumulative:
            remaining = after
        else:
            remaining = expand_all(assertion, remaining, num_candidates, keep_contradictions=False, budget=budget)
    explanation.remaining = remaining
    return explanation


__all__ = [
    "Explanation",
    "ExplanationStep",
    "explain",
]
