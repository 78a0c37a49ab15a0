from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, NoReturn

import typer

from irvcert.core.budget import WorkBudget
from irvcert.core.constants import (
    CONTINUATION_POLICIES,
    EXIT_BUDGET_EXCEEDED,
    EXIT_INSUFFICIENT,
    EXIT_INTERNAL_ERROR,
    EXIT_SUCCESS,
    STATUS_BUDGET_EXCEEDED,
    STATUS_INCONSISTENT,
    STATUS_INSUFFICIENT,
    STATUS_INVALID_INPUT,
    STATUS_PROVEN,
    STATUS_TRIMMED,
    STATUS_UNOPTIMIZED,
    TRIM_ALGORITHMS,
)
from irvcert.core.errors import BudgetExhausted, IrvCertError
from irvcert.core.explain import explain as explain_assertions
from irvcert.core.ordering import order_by_pruning_power
from irvcert.core.trim import trim as trim_assertions
from irvcert.core.validate import validate_problem
from irvcert.core.verify import verify_contest
from irvcert.problem import ContestProblem, ProblemFormatError, dump_problem, load_problem, load_problems
from irvcert.report import (
    render_explanation_markdown,
    render_json,
    render_order_markdown,
    render_trim_markdown,
    render_verification_markdown,
)

_EXIT_CODES = {
    STATUS_PROVEN: EXIT_SUCCESS,
    STATUS_TRIMMED: EXIT_SUCCESS,
    STATUS_INSUFFICIENT: EXIT_INSUFFICIENT,
    STATUS_INCONSISTENT: EXIT_INSUFFICIENT,
    STATUS_INVALID_INPUT: EXIT_INTERNAL_ERROR,
    STATUS_BUDGET_EXCEEDED: EXIT_BUDGET_EXCEEDED,
    STATUS_UNOPTIMIZED: EXIT_BUDGET_EXCEEDED,
}


def _version_callback(value: bool) -> None:
    if value:
        from irvcert import __version__

        typer.echo(f"irvcert {__version__}")
        raise typer.Exit()


app = typer.Typer(add_completion=False, help="Check and trim IRV assertion sets")


@app.callback(invoke_without_command=True)
def _main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Print version and exit."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log search progress to stderr."),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _fail(message: str, exc: BaseException | None = None) -> NoReturn:
    typer.echo(f"ERROR: {message}", err=True)
    if exc is not None:
        raise typer.Exit(EXIT_INTERNAL_ERROR) from exc
    raise typer.Exit(EXIT_INTERNAL_ERROR)


def _load_one(path: Path) -> ContestProblem:
    try:
        return load_problem(path.resolve())
    except (OSError, ProblemFormatError) as exc:
        _fail(str(exc), exc)


def _make_budget(problem: ContestProblem, work_limit: int | None, max_seconds: float | None) -> WorkBudget:
    return WorkBudget(
        work_limit=work_limit if work_limit is not None else problem.budget.work_limit,
        seconds_limit=max_seconds if max_seconds is not None else problem.budget.seconds_limit,
    )


def _emit_errors(errors: list[IrvCertError]) -> None:
    for error in errors:
        typer.echo(f"ERROR: [{error.code}] {error.message}", err=True)


def _check_problem(problem: ContestProblem) -> None:
    errors = validate_problem(
        num_candidates=problem.num_candidates,
        winner=problem.winner,
        assertions=problem.assertions,
    )
    if errors:
        _emit_errors(errors)
        raise typer.Exit(EXIT_INTERNAL_ERROR)


def _budget_exhausted(exc: BudgetExhausted) -> NoReturn:
    typer.echo(f"ERROR: [{exc.to_error().code}] {exc}", err=True)
    raise typer.Exit(EXIT_BUDGET_EXCEEDED) from exc


_WORK_LIMIT_OPTION = typer.Option(None, "--work-limit", min=1, help="Maximum search nodes (overrides the file).")
_MAX_SECONDS_OPTION = typer.Option(
    None, "--max-seconds", min=0.001, help="Wall-clock limit in seconds (overrides the file)."
)


@app.command()
def verify(
    targets: list[str] = typer.Argument(..., help="Problem files or glob patterns"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of Markdown"),
    check_winner: bool | None = typer.Option(
        None,
        "--check-winner/--no-check-winner",
        help="Also check that the declared winner is not ruled out.",
    ),
    trees: bool = typer.Option(False, "--trees", help="Show which assertion rules out each elimination order"),
    work_limit: int | None = _WORK_LIMIT_OPTION,
    max_seconds: float | None = _MAX_SECONDS_OPTION,
) -> None:
    """Check that the assertions rule out every candidate except the declared winner."""
    try:
        problems = load_problems(targets)
    except (OSError, ProblemFormatError) as exc:
        _fail(str(exc), exc)

    exit_code = EXIT_SUCCESS
    payloads: list[dict[str, Any]] = []
    for problem in problems:
        report = verify_contest(
            num_candidates=problem.num_candidates,
            winner=problem.winner,
            assertions=problem.assertions,
            budget=_make_budget(problem, work_limit, max_seconds),
            check_winner=problem.check_winner if check_winner is None else check_winner,
        )
        exit_code = max(exit_code, _EXIT_CODES[report.status])
        if as_json:
            payloads.append({"name": problem.name, **report.to_dict(include_trees=trees)})
        else:
            typer.echo(render_verification_markdown(problem, report, show_pruning=trees))
            _emit_errors(report.errors)

    if as_json:
        typer.echo(render_json(payloads[0] if len(payloads) == 1 else {"problems": payloads}))
    raise typer.Exit(exit_code)


@app.command()
def trim(
    problem_file: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, help="Problem file"),
    algorithm: str | None = typer.Option(
        None,
        "--algorithm",
        help="none | minimize_tree | minimize_assertions (default: from the file)",
    ),
    continuation: str | None = typer.Option(
        None,
        "--continuation",
        help="Search below pruned nodes: stop_immediately | continue_once | forever | stop_on_neb",
    ),
    sort: bool | None = typer.Option(None, "--sort/--no-sort", help="Put assertions in canonical order first"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of Markdown"),
    output: Path | None = typer.Option(None, "--output", help="Write a problem file with the kept assertions"),
    work_limit: int | None = _WORK_LIMIT_OPTION,
    max_seconds: float | None = _MAX_SECONDS_OPTION,
) -> None:
    """Drop assertions that are not needed to rule out the non-winners."""
    problem = _load_one(problem_file)
    chosen = algorithm if algorithm is not None else problem.trim_algorithm
    if chosen not in TRIM_ALGORITHMS:
        _fail(f"--algorithm must be one of {', '.join(TRIM_ALGORITHMS)}")
    policy = continuation if continuation is not None else problem.continuation
    if policy is not None and policy not in CONTINUATION_POLICIES:
        _fail(f"--continuation must be one of {', '.join(CONTINUATION_POLICIES)}")

    result = trim_assertions(
        num_candidates=problem.num_candidates,
        winner=problem.winner,
        assertions=problem.assertions,
        algorithm=chosen,
        policy=policy,
        sort_assertions=problem.sort_assertions if sort is None else sort,
        budget=_make_budget(problem, work_limit, max_seconds),
    )
    if as_json:
        typer.echo(render_json({"name": problem.name, **result.to_dict()}))
    else:
        typer.echo(render_trim_markdown(problem, result))
        _emit_errors(result.errors)

    if output is not None and result.status in (STATUS_TRIMMED, STATUS_UNOPTIMIZED):
        trimmed = dataclasses.replace(problem, assertions=list(result.assertions), sort_assertions=False)
        dump_problem(trimmed, output.resolve())
        if not as_json:
            typer.echo(f"Trimmed problem written to: {output.resolve()}")
    raise typer.Exit(_EXIT_CODES[result.status])


@app.command()
def explain(
    problem_file: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, help="Problem file"),
    expand_fully: bool = typer.Option(
        False, "--expand-fully", help="Start from every complete elimination order"
    ),
    hide_winner: bool = typer.Option(
        False, "--hide-winner", help="Leave out elimination orders won by the declared winner"
    ),
    independent: bool = typer.Option(
        False, "--independent", help="Apply each assertion to the starting orders on its own"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of Markdown"),
    work_limit: int | None = _WORK_LIMIT_OPTION,
    max_seconds: float | None = _MAX_SECONDS_OPTION,
) -> None:
    """Show, assertion by assertion, which elimination orders get ruled out."""
    problem = _load_one(problem_file)
    _check_problem(problem)
    try:
        explanation = explain_assertions(
            problem.assertions,
            problem.num_candidates,
            winner=problem.winner,
            expand_fully_at_start=expand_fully,
            hide_winner=hide_winner,
            cumulative=not independent,
            budget=_make_budget(problem, work_limit, max_seconds),
        )
    except BudgetExhausted as exc:
        _budget_exhausted(exc)

    if as_json:
        typer.echo(render_json({"name": problem.name, **explanation.to_dict(problem.candidate_names)}))
    else:
        typer.echo(render_explanation_markdown(problem, explanation))
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def order(
    problem_file: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, help="Problem file"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of Markdown"),
    work_limit: int | None = _WORK_LIMIT_OPTION,
    max_seconds: float | None = _MAX_SECONDS_OPTION,
) -> None:
    """List the assertions greedily, each removing the most remaining elimination orders."""
    problem = _load_one(problem_file)
    _check_problem(problem)
    try:
        result = order_by_pruning_power(
            problem.assertions,
            problem.winner,
            problem.num_candidates,
            budget=_make_budget(problem, work_limit, max_seconds),
        )
    except BudgetExhausted as exc:
        _budget_exhausted(exc)

    if as_json:
        payload = {
            "name": problem.name,
            "ordered": result.ordered,
            "unused": result.unused,
            "sufficient": result.sufficient,
            "remaining": [list(suffix) for suffix in result.remaining_frontier],
        }
        typer.echo(render_json(payload))
    else:
        typer.echo(render_order_markdown(problem, result))
    raise typer.Exit(EXIT_SUCCESS if result.sufficient else EXIT_INSUFFICIENT)


__all__ = ["app"]
