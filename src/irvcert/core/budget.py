from __future__ import annotations

from dataclasses import dataclass, field
from time import monotonic

from irvcert.core.errors import BudgetExhausted


@dataclass(slots=True)
class WorkBudget:
    """Counts units of search work against optional work and wall-clock limits.

    One unit is one search node (or one suffix expansion step). ``tick`` raises
    ``BudgetExhausted`` as soon as either limit is passed.
    """

    work_limit: int | None = None
    seconds_limit: float | None = None
    work_done: int = 0
    started: float = field(default_factory=monotonic)

    def __post_init__(self) -> None:
        if self.work_limit is not None and self.work_limit <= 0:
            raise ValueError("work_limit must be > 0")
        if self.seconds_limit is not None and self.seconds_limit <= 0:
            raise ValueError("seconds_limit must be > 0")

    @classmethod
    def unlimited(cls) -> WorkBudget:
        return cls()

    @property
    def elapsed(self) -> float:
        return monotonic() - self.started

    def exceeded(self) -> bool:
        if self.work_limit is not None and self.work_done > self.work_limit:
            return True
        return self.seconds_limit is not None and self.elapsed > self.seconds_limit

    def tick(self) -> None:
        self.work_done += 1
        if self.exceeded():
            raise BudgetExhausted(work_done=self.work_done, seconds=self.elapsed)


__all__ = ["WorkBudget"]
