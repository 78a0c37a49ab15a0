from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ErrorCode = Literal[
    "INVALID_CANDIDATE_COUNT",
    "INVALID_CANDIDATE_INDEX",
    "DUPLICATE_ASSERTION_ENDPOINTS",
    "EMPTY_CONTINUING_SET",
    "CONTINUING_SET_MISSING_ENDPOINT",
    "BUDGET_EXCEEDED",
    "DID_NOT_RULE_OUT_LOSER",
    "RULED_OUT_WINNER",
]

ERROR_CODE_INVALID_CANDIDATE_COUNT = "INVALID_CANDIDATE_COUNT"
ERROR_CODE_INVALID_CANDIDATE_INDEX = "INVALID_CANDIDATE_INDEX"
ERROR_CODE_DUPLICATE_ASSERTION_ENDPOINTS = "DUPLICATE_ASSERTION_ENDPOINTS"
ERROR_CODE_EMPTY_CONTINUING_SET = "EMPTY_CONTINUING_SET"
ERROR_CODE_CONTINUING_SET_MISSING_ENDPOINT = "CONTINUING_SET_MISSING_ENDPOINT"
ERROR_CODE_BUDGET_EXCEEDED = "BUDGET_EXCEEDED"
ERROR_CODE_DID_NOT_RULE_OUT_LOSER = "DID_NOT_RULE_OUT_LOSER"
ERROR_CODE_RULED_OUT_WINNER = "RULED_OUT_WINNER"

MALFORMED_INPUT_CODES = {
    ERROR_CODE_INVALID_CANDIDATE_COUNT,
    ERROR_CODE_INVALID_CANDIDATE_INDEX,
    ERROR_CODE_DUPLICATE_ASSERTION_ENDPOINTS,
    ERROR_CODE_EMPTY_CONTINUING_SET,
    ERROR_CODE_CONTINUING_SET_MISSING_ENDPOINT,
}


@dataclass(slots=True, frozen=True)
class IrvCertError:
    code: ErrorCode
    message: str
    assertion_index: int | None = None
    candidate: int | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_malformed_input(self) -> bool:
        return self.code in MALFORMED_INPUT_CODES

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }
        if self.assertion_index is not None:
            payload["assertion_index"] = self.assertion_index
        if self.candidate is not None:
            payload["candidate"] = self.candidate
        return payload


class BudgetExhausted(Exception):
    """Raised inside a search when its work budget runs out.

    Public entry points catch it and report a ``BUDGET_EXCEEDED`` result instead.
    """

    def __init__(self, work_done: int, seconds: float) -> None:
        super().__init__(f"work budget exhausted after {work_done} nodes in {seconds:.3f}s")
        self.work_done = work_done
        self.seconds = seconds

    def to_error(self) -> IrvCertError:
        return IrvCertError(
            code=ERROR_CODE_BUDGET_EXCEEDED,
            message=str(self),
            details={"work_done": self.work_done, "seconds": round(self.seconds, 6)},
        )


class InvalidProblem(ValueError):
    """Raised by entry points that return plain results rather than a status."""

    def __init__(self, errors: list[IrvCertError]) -> None:
        super().__init__("; ".join(error.message for error in errors))
        self.errors = list(errors)


__all__ = [
    "ERROR_CODE_BUDGET_EXCEEDED",
    "ERROR_CODE_CONTINUING_SET_MISSING_ENDPOINT",
    "ERROR_CODE_DID_NOT_RULE_OUT_LOSER",
    "ERROR_CODE_DUPLICATE_ASSERTION_ENDPOINTS",
    "ERROR_CODE_EMPTY_CONTINUING_SET",
    "ERROR_CODE_INVALID_CANDIDATE_COUNT",
    "ERROR_CODE_INVALID_CANDIDATE_INDEX",
    "ERROR_CODE_RULED_OUT_WINNER",
    "MALFORMED_INPUT_CODES",
    "BudgetExhausted",
    "ErrorCode",
    "InvalidProblem",
    "IrvCertError",
]
