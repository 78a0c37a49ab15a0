from __future__ import annotations

from collections.abc import Sequence

from irvcert.core.assertions import Assertion, NotEliminatedNext, describe_assertion, mentioned_candidates
from irvcert.core.errors import (
    ERROR_CODE_CONTINUING_SET_MISSING_ENDPOINT,
    ERROR_CODE_DUPLICATE_ASSERTION_ENDPOINTS,
    ERROR_CODE_EMPTY_CONTINUING_SET,
    ERROR_CODE_INVALID_CANDIDATE_COUNT,
    ERROR_CODE_INVALID_CANDIDATE_INDEX,
    IrvCertError,
)


def _valid_index(candidate: object, num_candidates: int) -> bool:
    return isinstance(candidate, int) and not isinstance(candidate, bool) and 0 <= candidate < num_candidates


def validate_assertion(assertion: Assertion, num_candidates: int, index: int) -> list[IrvCertError]:
    errors: list[IrvCertError] = []
    for candidate in mentioned_candidates(assertion):
        if not _valid_index(candidate, num_candidates):
            errors.append(
                IrvCertError(
                    code=ERROR_CODE_INVALID_CANDIDATE_INDEX,
                    message=f"Assertion {index} refers to candidate {candidate!r}, outside 0..{num_candidates - 1}",
                    assertion_index=index,
                    details={"candidate": candidate},
                )
            )
            # One bad index is enough; the remaining checks would only repeat it.
            return errors

    if assertion.winner == assertion.loser:
        errors.append(
            IrvCertError(
                code=ERROR_CODE_DUPLICATE_ASSERTION_ENDPOINTS,
                message=f"Assertion {index} has the same winner and loser: {describe_assertion(assertion)}",
                assertion_index=index,
            )
        )

    if isinstance(assertion, NotEliminatedNext):
        if not assertion.continuing:
            errors.append(
                IrvCertError(
                    code=ERROR_CODE_EMPTY_CONTINUING_SET,
                    message=f"Assertion {index} has an empty continuing set",
                    assertion_index=index,
                )
            )
        else:
            missing = [c for c in (assertion.winner, assertion.loser) if not assertion.is_continuing(c)]
            if missing:
                errors.append(
                    IrvCertError(
                        code=ERROR_CODE_CONTINUING_SET_MISSING_ENDPOINT,
                        message=f"Assertion {index} continuing set does not contain {missing}",
                        assertion_index=index,
                        details={"missing": missing, "continuing": list(assertion.continuing)},
                    )
                )
    return errors


def validate_problem(
    *,
    num_candidates: int,
    winner: int | None,
    assertions: Sequence[Assertion],
) -> list[IrvCertError]:
    """Structural checks run before any search. An empty list means the input is usable."""
    if not isinstance(num_candidates, int) or isinstance(num_candidates, bool) or num_candidates <= 0:
        return [
            IrvCertError(
                code=ERROR_CODE_INVALID_CANDIDATE_COUNT,
                message=f"num_candidates must be a positive integer, got {num_candidates!r}",
            )
        ]

    errors: list[IrvCertError] = []
    if winner is not None and not _valid_index(winner, num_candidates):
        errors.append(
            IrvCertError(
                code=ERROR_CODE_INVALID_CANDIDATE_INDEX,
                message=f"Declared winner {winner!r} is outside 0..{num_candidates - 1}",
                candidate=winner if isinstance(winner, int) else None,
            )
        )
    for index, assertion in enumerate(assertions):
        errors.extend(validate_assertion(assertion, num_candidates, index))
    return errors


def validate_search(
    *,
    candidate: int,
    num_candidates: int,
    assertions: Sequence[Assertion],
) -> list[IrvCertError]:
    """``validate_problem`` for a search hypothesizing ``candidate`` as the final survivor."""
    errors = validate_problem(num_candidates=num_candidates, winner=None, assertions=assertions)
    if errors and errors[0].code == ERROR_CODE_INVALID_CANDIDATE_COUNT:
        return errors
    if not _valid_index(candidate, num_candidates):
        errors.insert(
            0,
            IrvCertError(
                code=ERROR_CODE_INVALID_CANDIDATE_INDEX,
                message=f"Candidate {candidate!r} is outside 0..{num_candidates - 1}",
                candidate=candidate if isinstance(candidate, int) else None,
            ),
        )
    return errors


__all__ = [
    "validate_assertion",
    "validate_search",
    "validate_problem",
]
