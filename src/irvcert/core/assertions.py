"""Assertions about an IRV elimination process, and their effect on suffixes.

An *elimination order suffix* is a tuple of distinct candidates holding the
tail of an elimination order: the last element is the hypothesized final
survivor, the element before it the last candidate eliminated, and so on. The
earlier part of the order is left unspecified.

``evaluate`` decides, for one assertion and one suffix, whether every
elimination order ending in that suffix is ruled out (``contradiction``), every
such order is compatible (``satisfied``), or the answer depends on candidates
not yet placed (``undetermined``).

**Monotonicity:** both ``contradiction`` and ``satisfied`` are stable under
prepending candidates, so a search may retire an assertion along a branch as
soon as it stops being ``undetermined``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from irvcert.core.constants import (
    ASSERTION_TYPE_NEB,
    ASSERTION_TYPE_NEN,
    EFFECT_CONTRADICTION,
    EFFECT_SATISFIED,
    EFFECT_UNDETERMINED,
)

AssertionEffect = Literal["contradiction", "satisfied", "undetermined"]
EliminationOrderSuffix = tuple[int, ...]


@dataclass(slots=True, frozen=True)
class NotEliminatedBefore:
    """``winner`` is eliminated after ``loser`` in every elimination order."""

    winner: int
    loser: int

    @property
    def type(self) -> str:
        return ASSERTION_TYPE_NEB

    def to_dict(self) -> dict[str, Any]:
        return {"type": ASSERTION_TYPE_NEB, "winner": self.winner, "loser": self.loser}


@dataclass(slots=True, frozen=True)
class NotEliminatedNext:
    """``winner`` is not the next eliminated when exactly ``continuing`` remain."""

    winner: int
    loser: int
    continuing: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Canonical sorted form keeps equality and ordering independent of input order.
        object.__setattr__(self, "continuing", tuple(sorted(set(self.continuing))))

    @property
    def type(self) -> str:
        return ASSERTION_TYPE_NEN

    def is_continuing(self, candidate: int) -> bool:
        return candidate in self.continuing

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": ASSERTION_TYPE_NEN,
            "winner": self.winner,
            "loser": self.loser,
            "continuing": list(self.continuing),
        }


Assertion = NotEliminatedBefore | NotEliminatedNext


def _evaluate_neb(assertion: NotEliminatedBefore, suffix: Sequence[int]) -> AssertionEffect:
    for candidate in reversed(suffix):
        if candidate == assertion.winner:
            return EFFECT_SATISFIED
        if candidate == assertion.loser:
            return EFFECT_CONTRADICTION
    return EFFECT_UNDETERMINED


def _evaluate_nen(assertion: NotEliminatedNext, suffix: Sequence[int]) -> AssertionEffect:
    num_continuing = len(assertion.continuing)
    window_start = max(0, len(suffix) - num_continuing)
    for candidate in suffix[window_start:]:
        if not assertion.is_continuing(candidate):
            # The round the assertion talks about never happens on this branch.
            return EFFECT_SATISFIED
    if len(suffix) >= num_continuing:
        if suffix[window_start] == assertion.winner:
            return EFFECT_CONTRADICTION
        return EFFECT_SATISFIED
    if assertion.winner in suffix:
        return EFFECT_SATISFIED
    return EFFECT_UNDETERMINED


def evaluate(assertion: Assertion, suffix: Sequence[int]) -> AssertionEffect:
    """Classify ``suffix`` against a single assertion."""
    if isinstance(assertion, NotEliminatedBefore):
        return _evaluate_neb(assertion, suffix)
    if isinstance(assertion, NotEliminatedNext):
        return _evaluate_nen(assertion, suffix)
    raise TypeError(f"Unsupported assertion type: {type(assertion).__name__}")


def is_neb(assertion: Assertion) -> bool:
    return isinstance(assertion, NotEliminatedBefore)


def mentioned_candidates(assertion: Assertion) -> tuple[int, ...]:
    if isinstance(assertion, NotEliminatedNext):
        return (assertion.winner, assertion.loser, *assertion.continuing)
    return (assertion.winner, assertion.loser)


def allows_elimination_order(assertion: Assertion, elimination_order: Sequence[int]) -> bool:
    """True if a complete elimination order is not ruled out by ``assertion``."""
    return evaluate(assertion, elimination_order) != EFFECT_CONTRADICTION


def _name(candidate: int, candidate_names: Sequence[str] | None) -> str:
    if candidate_names is not None and 0 <= candidate < len(candidate_names):
        return candidate_names[candidate]
    return str(candidate)


def describe_assertion(assertion: Assertion, candidate_names: Sequence[str] | None = None) -> str:
    basic = f"{_name(assertion.winner, candidate_names)} beats {_name(assertion.loser, candidate_names)}"
    if isinstance(assertion, NotEliminatedNext):
        remaining = ",".join(_name(candidate, candidate_names) for candidate in assertion.continuing)
        return f"{basic} if only {{{remaining}}} remain"
    return basic


def assertions_to_dicts(assertions: Iterable[Assertion]) -> list[dict[str, Any]]:
    return [assertion.to_dict() for assertion in assertions]


__all__ = [
    "Assertion",
    "AssertionEffect",
    "EliminationOrderSuffix",
    "NotEliminatedBefore",
    "NotEliminatedNext",
    "allows_elimination_order",
    "assertions_to_dicts",
    "describe_assertion",
    "evaluate",
    "is_neb",
    "mentioned_candidates",
]
