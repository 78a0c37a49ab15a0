from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from irvcert.core.assertions import describe_assertion
from irvcert.core.explain import Explanation
from irvcert.core.ordering import PruningPowerOrder
from irvcert.core.trim import TrimResult
from irvcert.core.verify import VerificationReport
from irvcert.problem import ContestProblem

_STATUS_LABELS = {
    "PROVEN": "Winner confirmed",
    "INSUFFICIENT": "Assertions insufficient",
    "INCONSISTENT": "Assertions rule out the declared winner",
    "INVALID_INPUT": "Invalid input",
    "BUDGET_EXCEEDED": "Work budget exceeded",
    "TRIMMED": "Trimmed",
    "UNOPTIMIZED": "Not trimmed (budget exceeded)",
}


def _suffix_text(suffix: Sequence[int], names: Sequence[str]) -> str:
    return "[" + ", ".join(names[candidate] for candidate in suffix) + "]"


def _error_lines(errors: Sequence[Any]) -> list[str]:
    lines = ["", "### Errors", ""]
    for error in errors:
        location = f" (assertion {error.assertion_index})" if error.assertion_index is not None else ""
        lines.append(f"- `{error.code}`{location}: {error.message}")
    return lines


def render_verification_markdown(
    problem: ContestProblem,
    report: VerificationReport,
    *,
    show_pruning: bool = False,
) -> str:
    names = problem.candidate_names
    lines: list[str] = []
    lines.append(f"## irvcert verification: {problem.name}")
    lines.append("")
    lines.append(f"- Status: **{_STATUS_LABELS.get(report.status, report.status)}**")
    if report.winner is not None and 0 <= report.winner < len(names):
        lines.append(f"- Declared winner: **{names[report.winner]}**")
    lines.append(f"- Assertions: **{len(problem.assertions)}**")
    lines.append(f"- Nodes explored: **{report.nodes_explored}**")

    if report.verdicts:
        lines.append("")
        lines.append("### Candidates")
        lines.append("")
        lines.append("| Candidate | Ruled out | Nodes | Max depth | Counterexample |")
        lines.append("|---|---|---:|---:|---|")
        for verdict in report.verdicts:
            counterexample = (
                _suffix_text(verdict.counterexample, names) if verdict.counterexample is not None else ""
            )
            lines.append(
                f"| {names[verdict.candidate]} | {'yes' if verdict.ruled_out else 'no'} | "
                f"{verdict.tree.nodes_explored} | {verdict.tree.max_depth} | {counterexample} |"
            )
        if show_pruning:
            for verdict in report.verdicts:
                lines.append("")
                lines.append(f"#### Elimination orders ending with {names[verdict.candidate]}")
                lines.append("")
                for suffix, indices in verdict.pruned_by().items():
                    used = ", ".join(
                        f"#{index} ({describe_assertion(problem.assertions[index], names)})" for index in indices
                    )
                    lines.append(f"- {_suffix_text(suffix, names)} ruled out by {used}")
                if verdict.counterexample is not None:
                    lines.append(f"- {_suffix_text(verdict.counterexample, names)} NOT RULED OUT")

    if report.errors:
        lines.extend(_error_lines(report.errors))
    lines.append("")
    return "\n".join(lines)


def render_trim_markdown(problem: ContestProblem, result: TrimResult) -> str:
    names = problem.candidate_names
    lines: list[str] = []
    lines.append(f"## irvcert trim: {problem.name}")
    lines.append("")
    lines.append(f"- Status: **{_STATUS_LABELS.get(result.status, result.status)}**")
    lines.append(f"- Algorithm: `{result.algorithm}`")
    lines.append(f"- Assertions: **{result.original_count}** -> **{len(result.kept)}**")
    lines.append(f"- Nodes explored: **{result.nodes_explored}** (max depth {result.max_depth})")
    lines.append(f"- Seconds: {result.seconds:.3f}")
    lines.append("")
    lines.append("### Kept assertions")
    lines.append("")
    if not result.kept:
        lines.append("None.")
    for index, assertion in zip(result.kept, result.assertions):
        lines.append(f"- #{index}: {describe_assertion(assertion, names)}")
    if result.errors:
        lines.extend(_error_lines(result.errors))
    lines.append("")
    return "\n".join(lines)


def render_explanation_markdown(problem: ContestProblem, explanation: Explanation) -> str:
    names = problem.candidate_names
    lines: list[str] = []
    lines.append(f"## irvcert explanation: {problem.name}")
    lines.append("")
    lines.append(f"Starting with {len(explanation.start)} elimination order suffixes.")
    for step in explanation.steps:
        lines.append("")
        lines.append(f"### #{step.assertion_index}: {describe_assertion(step.assertion, names)}")
        lines.append("")
        for suffix, effect in step.before:
            lines.append(f"- {_suffix_text(suffix, names)} {effect}")
        lines.append(f"- {len(step.removed)} removed, {len(step.after)} left")
    lines.append("")
    if explanation.remaining:
        lines.append("### Not ruled out")
        lines.append("")
        for suffix in explanation.remaining:
            lines.append(f"- {_suffix_text(suffix, names)}")
    else:
        lines.append("Every elimination order is ruled out.")
    lines.append("")
    return "\n".join(lines)


def render_order_markdown(problem: ContestProblem, order: PruningPowerOrder) -> str:
    names = problem.candidate_names
    lines: list[str] = []
    lines.append(f"## irvcert pruning-power order: {problem.name}")
    lines.append("")
    for position, index in enumerate(order.ordered, start=1):
        lines.append(f"{position}. #{index}: {describe_assertion(problem.assertions[index], names)}")
    if order.unused:
        lines.append("")
        lines.append("Not needed: " + ", ".join(f"#{index}" for index in order.unused))
    if not order.sufficient:
        lines.append("")
        lines.append(f"{len(order.remaining_frontier)} suffixes are not ruled out by any assertion.")
    lines.append("")
    return "\n".join(lines)


def render_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


__all__ = [
    "render_explanation_markdown",
    "render_json",
    "render_order_markdown",
    "render_trim_markdown",
    "render_verification_markdown",
]
