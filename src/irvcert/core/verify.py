"""Verification that an assertion set rules out every non-winning candidate.

``verify`` answers, for one candidate, whether some elimination order ending
with that candidate escapes every assertion. ``verify_contest`` runs it for
every candidate other than the declared winner and folds the verdicts into a
``VerificationReport``.

**Findings are never corrected:** a non-winner whose tree is valid makes the
report ``INSUFFICIENT`` and carries the counterexample suffix. An exhausted
work budget makes it ``BUDGET_EXCEEDED``; malformed input makes it
``INVALID_INPUT`` before any search starts.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from irvcert.core.assertions import Assertion, EliminationOrderSuffix
from irvcert.core.budget import WorkBudget
from irvcert.core.constants import (
    REPORT_SCHEMA_VERSION,
    STATUS_BUDGET_EXCEEDED,
    STATUS_INCONSISTENT,
    STATUS_INSUFFICIENT,
    STATUS_INVALID_INPUT,
    STATUS_PROVEN,
)
from irvcert.core.errors import (
    ERROR_CODE_RULED_OUT_WINNER,
    BudgetExhausted,
    IrvCertError,
)
from irvcert.core.tree import PruningTree, build_pruning_tree
from irvcert.core.validate import validate_problem, validate_search

logger = logging.getLogger(__name__)

VerificationStatus = Literal["PROVEN", "INSUFFICIENT", "INCONSISTENT", "INVALID_INPUT", "BUDGET_EXCEEDED"]


@dataclass(slots=True)
class CandidateVerdict:
    candidate: int
    valid: bool
    tree: PruningTree
    counterexample: EliminationOrderSuffix | None = None
    errors: list[IrvCertError] = field(default_factory=list)

    @property
    def ruled_out(self) -> bool:
        return not self.valid and not self.errors

    def pruned_by(self) -> dict[EliminationOrderSuffix, list[int]]:
        """Pruning assertion indices for each pruned suffix in the tree."""
        return {node.suffix: list(node.pruning_assertions) for node in self.tree.pruned_nodes()}

    def to_dict(self, *, include_tree: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "candidate": self.candidate,
            "ruled_out": self.ruled_out,
            "nodes_explored": self.tree.nodes_explored,
            "max_depth": self.tree.max_depth,
        }
        if self.counterexample is not None:
            payload["counterexample"] = list(self.counterexample)
        if self.errors:
            payload["errors"] = [error.to_dict() for error in self.errors]
        if include_tree and self.tree.nodes:
            payload["tree"] = self.tree.to_dict()
        return payload


@dataclass(slots=True)
class VerificationReport:
    status: VerificationStatus
    num_candidates: int
    winner: int | None
    verdicts: list[CandidateVerdict] = field(default_factory=list)
    errors: list[IrvCertError] = field(default_factory=list)
    nodes_explored: int = 0

    @property
    def proven(self) -> bool:
        return self.status == STATUS_PROVEN

    @property
    def unexcluded_candidates(self) -> list[int]:
        """Non-winners the assertions fail to rule out."""
        return [v.candidate for v in self.verdicts if v.valid and v.candidate != self.winner]

    def verdict_for(self, candidate: int) -> CandidateVerdict | None:
        for verdict in self.verdicts:
            if verdict.candidate == candidate:
                return verdict
        return None

    def to_dict(self, *, include_trees: bool = False) -> dict[str, Any]:
        return {
            "report_schema_version": REPORT_SCHEMA_VERSION,
            "status": self.status,
            "num_candidates": self.num_candidates,
            "winner": self.winner,
            "nodes_explored": self.nodes_explored,
            "unexcluded_candidates": self.unexcluded_candidates,
            "verdicts": [verdict.to_dict(include_tree=include_trees) for verdict in self.verdicts],
            "errors": [error.to_dict() for error in self.errors],
        }


def verify(
    candidate: int,
    assertions: Sequence[Assertion],
    num_candidates: int,
    budget: WorkBudget | None = None,
) -> CandidateVerdict:
    """Search for an elimination order won by ``candidate`` that no assertion rules out.

    Malformed input (including an out-of-range ``candidate``) comes back as a
    verdict carrying ``errors`` and an empty tree; no search is run. Raises
    ``BudgetExhausted`` if ``budget`` runs out; ``verify_contest`` turns that
    into a result value.
    """
    errors = validate_search(candidate=candidate, num_candidates=num_candidates, assertions=assertions)
    if errors:
        for error in errors:
            logger.warning("invalid input: %s", error.message)
        return CandidateVerdict(
            candidate=candidate,
            valid=False,
            tree=PruningTree(root_candidate=candidate),
            errors=errors,
        )

    tree = build_pruning_tree(
        candidate,
        assertions,
        num_candidates,
        record_all_pruning=False,
        budget=budget,
    )
    leaf = tree.first_valid_leaf() if tree.valid else None
    return CandidateVerdict(
        candidate=candidate,
        valid=tree.valid,
        tree=tree,
        counterexample=leaf.suffix if leaf is not None else None,
    )


def verify_contest(
    *,
    num_candidates: int,
    winner: int,
    assertions: Sequence[Assertion],
    budget: WorkBudget | None = None,
    check_winner: bool = False,
) -> VerificationReport:
    errors = validate_problem(num_candidates=num_candidates, winner=winner, assertions=assertions)
    if errors:
        for error in errors:
            logger.warning("invalid input: %s", error.message)
        return VerificationReport(
            status=STATUS_INVALID_INPUT,
            num_candidates=num_candidates,
            winner=winner,
            errors=errors,
        )

    work = budget if budget is not None else WorkBudget.unlimited()
    report = VerificationReport(status=STATUS_PROVEN, num_candidates=num_candidates, winner=winner)
    for candidate in range(num_candidates):
        if candidate == winner and not check_winner:
            continue
        try:
            verdict = verify(candidate, assertions, num_candidates, budget=work)
        except BudgetExhausted as exc:
            logger.warning("verification of candidate %d stopped: %s", candidate, exc)
            report.status = STATUS_BUDGET_EXCEEDED
            report.errors.append(exc.to_error())
            report.nodes_explored = work.work_done
            return report
        report.verdicts.append(verdict)
        logger.debug(
            "candidate %d: %d nodes, max depth %d",
            candidate,
            verdict.tree.nodes_explored,
            verdict.tree.max_depth,
        )
        if candidate == winner:
            if not verdict.valid:
                logger.warning("assertions rule out the declared winner %d", winner)
                report.errors.append(
                    IrvCertError(
                        code=ERROR_CODE_RULED_OUT_WINNER,
                        message=f"Assertions rule out every elimination order won by the declared winner {winner}",
                        candidate=winner,
                    )
                )
                report.status = STATUS_INCONSISTENT
            continue
        if verdict.valid:
            logger.warning(
                "candidate %d is not ruled out; counterexample suffix %s",
                candidate,
                verdict.counterexample,
            )
            if report.status == STATUS_PROVEN:
                report.status = STATUS_INSUFFICIENT
        else:
            logger.info("candidate %d ruled out", candidate)

    report.nodes_explored = work.work_done
    return report


__all__ = [
    "CandidateVerdict",
    "VerificationReport",
    "VerificationStatus",
    "verify",
    "verify_contest",
]
