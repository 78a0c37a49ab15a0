"""Contest problem files: a candidate count, a declared winner and assertions.

Problem files are YAML or JSON (JSON being a subset of YAML), e.g.::

    schema_version: "1"
    name: guide example
    candidates: [Alice, Bob, Chuan, Diego]
    winner: 2
    trim_algorithm: minimize_tree
    budget:
      work_limit: 1000000
      seconds_limit: 10
    assertions:
      - {type: NEB, winner: 2, loser: 1}
      - {type: NEN, winner: 0, loser: 1, continuing: [0, 1, 2, 3]}

Assertions may also be wrapped the way raire-rs writes them,
``{assertion: {...}, difficulty: 3.4}``. Only structure is checked here;
index ranges and endpoint rules are left to ``irvcert.core.validate`` so
they come back as error values.
"""

from __future__ import annotations

import glob
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from irvcert.core.assertions import Assertion, NotEliminatedBefore, NotEliminatedNext
from irvcert.core.budget import WorkBudget
from irvcert.core.constants import (
    ASSERTION_TYPE_NEB,
    ASSERTION_TYPE_NEN,
    CONTINUATION_POLICIES,
    PROBLEM_SCHEMA_VERSION,
    TRIM_ALGORITHMS,
    TRIM_MINIMIZE_TREE,
)
from irvcert.core.tree import ContinuationPolicy
from irvcert.core.trim import TrimAlgorithm


class ProblemFormatError(ValueError):
    pass


@dataclass(slots=True)
class BudgetConfig:
    work_limit: int | None = None
    seconds_limit: float | None = None

    def make_budget(self) -> WorkBudget:
        return WorkBudget(work_limit=self.work_limit, seconds_limit=self.seconds_limit)


@dataclass(slots=True)
class ContestProblem:
    num_candidates: int
    winner: int
    assertions: list[Assertion] = field(default_factory=list)
    candidates: list[str] = field(default_factory=list)
    name: str = "contest"
    source_path: Path | None = None
    schema_version: str = PROBLEM_SCHEMA_VERSION
    trim_algorithm: TrimAlgorithm = TRIM_MINIMIZE_TREE
    continuation: ContinuationPolicy | None = None
    sort_assertions: bool = True
    check_winner: bool = False
    budget: BudgetConfig = field(default_factory=BudgetConfig)

    @property
    def candidate_names(self) -> list[str]:
        if self.candidates:
            return list(self.candidates)
        return [str(index) for index in range(self.num_candidates)]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "schema_version": self.schema_version,
            "name": self.name,
            "num_candidates": self.num_candidates,
            "winner": self.winner,
            "assertions": [assertion.to_dict() for assertion in self.assertions],
            "trim_algorithm": self.trim_algorithm,
            "sort_assertions": self.sort_assertions,
            "check_winner": self.check_winner,
        }
        if self.candidates:
            payload["candidates"] = list(self.candidates)
        if self.continuation is not None:
            payload["continuation"] = self.continuation
        budget: dict[str, Any] = {}
        if self.budget.work_limit is not None:
            budget["work_limit"] = self.budget.work_limit
        if self.budget.seconds_limit is not None:
            budget["seconds_limit"] = self.budget.seconds_limit
        if budget:
            payload["budget"] = budget
        return payload


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ProblemFormatError(f"Problem file is not valid YAML/JSON: {path}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ProblemFormatError(f"Problem file must be a mapping: {path}")
    return loaded


def _require_int(raw: Any, *, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ProblemFormatError(f"{field_name} must be an integer, got {raw!r}")
    return raw


def _parse_bool(raw: Any, *, field_name: str, default: bool) -> bool:
    if raw is None:
        return default
    if not isinstance(raw, bool):
        raise ProblemFormatError(f"{field_name} must be a boolean")
    return raw


def assertion_from_dict(raw: Any, *, index: int = 0) -> Assertion:
    if not isinstance(raw, dict):
        raise ProblemFormatError(f"assertions[{index}] must be a mapping")
    if "assertion" in raw and isinstance(raw["assertion"], dict):
        raw = raw["assertion"]
    kind = raw.get("type")
    winner = _require_int(raw.get("winner"), field_name=f"assertions[{index}].winner")
    loser = _require_int(raw.get("loser"), field_name=f"assertions[{index}].loser")
    if kind == ASSERTION_TYPE_NEB:
        return NotEliminatedBefore(winner=winner, loser=loser)
    if kind == ASSERTION_TYPE_NEN:
        continuing = raw.get("continuing")
        if not isinstance(continuing, list):
            raise ProblemFormatError(f"assertions[{index}].continuing must be a list")
        members = tuple(
            _require_int(item, field_name=f"assertions[{index}].continuing[{position}]")
            for position, item in enumerate(continuing)
        )
        return NotEliminatedNext(winner=winner, loser=loser, continuing=members)
    raise ProblemFormatError(f"assertions[{index}].type must be NEB or NEN, got {kind!r}")


def _parse_budget(raw: Any) -> BudgetConfig:
    if raw is None:
        return BudgetConfig()
    if not isinstance(raw, dict):
        raise ProblemFormatError("budget must be a mapping")
    work_limit = raw.get("work_limit")
    seconds_limit = raw.get("seconds_limit")
    if work_limit is not None and (_require_int(work_limit, field_name="budget.work_limit") <= 0):
        raise ProblemFormatError("budget.work_limit must be > 0")
    if seconds_limit is not None:
        if isinstance(seconds_limit, bool) or not isinstance(seconds_limit, (int, float)) or seconds_limit <= 0:
            raise ProblemFormatError("budget.seconds_limit must be a positive number")
        seconds_limit = float(seconds_limit)
    return BudgetConfig(work_limit=work_limit, seconds_limit=seconds_limit)


def parse_problem(data: dict[str, Any], *, source_path: Path | None = None) -> ContestProblem:
    schema_version = str(data.get("schema_version", PROBLEM_SCHEMA_VERSION))
    if schema_version != PROBLEM_SCHEMA_VERSION:
        raise ProblemFormatError(
            f"Unsupported problem schema_version '{schema_version}'. Expected '{PROBLEM_SCHEMA_VERSION}'."
        )

    candidates_raw = data.get("candidates")
    if candidates_raw is None:
        candidates: list[str] = []
    elif isinstance(candidates_raw, list):
        candidates = [str(name) for name in candidates_raw]
    else:
        raise ProblemFormatError("candidates must be a list of names")

    if data.get("num_candidates") is not None:
        num_candidates = _require_int(data["num_candidates"], field_name="num_candidates")
    elif candidates:
        num_candidates = len(candidates)
    else:
        raise ProblemFormatError("num_candidates is required when candidates is not given")
    if candidates and len(candidates) != num_candidates:
        raise ProblemFormatError(
            f"candidates lists {len(candidates)} names but num_candidates is {num_candidates}"
        )

    winner = _require_int(data.get("winner"), field_name="winner")

    assertions_raw = data.get("assertions", [])
    if not isinstance(assertions_raw, list):
        raise ProblemFormatError("assertions must be a list")
    assertions = [assertion_from_dict(item, index=index) for index, item in enumerate(assertions_raw)]

    trim_algorithm = data.get("trim_algorithm", TRIM_MINIMIZE_TREE)
    if trim_algorithm not in TRIM_ALGORITHMS:
        raise ProblemFormatError(f"trim_algorithm must be one of {', '.join(TRIM_ALGORITHMS)}")
    continuation = data.get("continuation")
    if continuation is not None and continuation not in CONTINUATION_POLICIES:
        raise ProblemFormatError(f"continuation must be one of {', '.join(CONTINUATION_POLICIES)}")

    default_name = source_path.stem if source_path is not None else "contest"
    return ContestProblem(
        num_candidates=num_candidates,
        winner=winner,
        assertions=assertions,
        candidates=candidates,
        name=str(data.get("name") or default_name),
        source_path=source_path,
        schema_version=schema_version,
        trim_algorithm=trim_algorithm,
        continuation=continuation,
        sort_assertions=_parse_bool(data.get("sort_assertions"), field_name="sort_assertions", default=True),
        check_winner=_parse_bool(data.get("check_winner"), field_name="check_winner", default=False),
        budget=_parse_budget(data.get("budget")),
    )


def load_problem(path: Path) -> ContestProblem:
    return parse_problem(_load_yaml(path), source_path=path.resolve())


def _resolve_targets(targets: list[str]) -> list[Path]:
    resolved: list[Path] = []
    for target in targets:
        candidate = Path(target)
        if candidate.exists():
            resolved.append(candidate.resolve())
            continue
        resolved.extend(Path(path).resolve() for path in glob.glob(target))
    deduped = sorted(set(resolved), key=lambda value: str(value))
    if not deduped:
        joined = ", ".join(targets)
        raise ProblemFormatError(f"No problem files matched targets: {joined}")
    return deduped


def load_problems(targets: list[str]) -> list[ContestProblem]:
    return [load_problem(path) for path in _resolve_targets(targets)]


def dump_problem(problem: ContestProblem, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(problem.to_dict(), sort_keys=False), encoding="utf-8")


__all__ = [
    "BudgetConfig",
    "ContestProblem",
    "ProblemFormatError",
    "assertion_from_dict",
    "dump_problem",
    "load_problem",
    "load_problems",
    "parse_problem",
]
