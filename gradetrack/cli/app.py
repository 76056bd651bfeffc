"""CLI entry point for the gradetrack grade tracker."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gradetrack.core.records import EvaluationDraft
from gradetrack.core.transactions import MutationOutcome
from gradetrack.session import GradebookSession, LoadStatus, bootstrap_session

from .menu import open_gradebook, run_menu
from .render import course_payload, print_course, print_outcome, print_summary, summary_payload

app = typer.Typer(help="Track weighted course grades; every edit is checked against the course rules before it is saved.")
console = Console()
LOGGER = logging.getLogger("gradetrack.cli")


def _configure_logging(level: str, verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else getattr(logging, level))
    if not verbose:
        logging.getLogger().setLevel(getattr(logging, level))


def _session(ctx: typer.Context) -> GradebookSession:
    options = ctx.obj or {}
    try:
        session = bootstrap_session(
            options.get("config"),
            data_path=options.get("data"),
            rules_path=options.get("rules"),
        )
    except ValueError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/bold red]")
        raise typer.Exit(code=1) from exc
    _configure_logging(session.config.logging.level, options.get("verbose", False))
    return session


def _open(ctx: typer.Context) -> GradebookSession:
    """Bootstrap and load for one-shot commands.

    A missing gradebook starts empty (it is created on the first save); an
    unreadable one aborts so it is never overwritten.
    """
    session = _session(ctx)
    report = session.load()
    if report.status is LoadStatus.FAILED:
        console.print(f"[bold red]ERROR: {escape(report.message)}[/bold red]")
        raise typer.Exit(code=1)
    if report.status is LoadStatus.MISSING:
        LOGGER.info("Starting a new gradebook at %s", session.repository.path)
    return session


def _course_index(session: GradebookSession, course: str) -> int:
    """Resolve a course code or 1-based number to a store index."""
    ref = course.strip()
    if ref.isdigit():
        number = int(ref)
        if 1 <= number <= len(session.store):
            return number - 1
        raise typer.BadParameter(f"No course #{number}; the gradebook holds {len(session.store)} courses.")
    index = session.store.index_of(ref)
    if index is None:
        index = session.store.index_of(ref.upper())
    if index is None:
        raise typer.BadParameter(f"Unknown course {ref}")
    return index


def _evaluation_index(session: GradebookSession, course_index: int, number: int) -> int:
    course = session.store.get(course_index)
    if not 1 <= number <= len(course.evaluations):
        raise typer.BadParameter(f"No evaluation #{number} in {course.code}; it has {len(course.evaluations)}.")
    return number - 1


def _commit(session: GradebookSession, outcome: MutationOutcome) -> None:
    """Report the outcome and save after a commit; exit non-zero otherwise."""
    print_outcome(console, outcome)
    if not outcome.committed:
        raise typer.Exit(code=1)
    if not session.save():
        console.print(f"[bold red]ERROR: {escape(session.last_error or 'save failed')}[/bold red]")
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        show_default=False,
        help="Config YAML (defaults to GRADETRACK_CONFIG or config/gradetrack.yaml when present).",
    ),
    data: Optional[Path] = typer.Option(
        None,
        "--data",
        show_default=False,
        help="Gradebook JSON file (overrides storage.data_path and GRADETRACK_DATA).",
    ),
    rules: Optional[Path] = typer.Option(
        None,
        "--rules",
        show_default=False,
        help="Course rules YAML/JSON (overrides rules.rules_path and GRADETRACK_RULES).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Open the interactive menu when no command is given."""
    ctx.obj = {"config": config, "data": data, "rules": rules, "verbose": verbose}
    if ctx.invoked_subcommand is None:
        menu(ctx)


@app.command()
def menu(ctx: typer.Context) -> None:
    """Browse and edit the gradebook interactively."""

    session = _session(ctx)
    try:
        if not open_gradebook(console, session):
            return
        run_menu(console, session)
    except typer.Abort:
        console.print("Aborted without saving.")
    finally:
        session.close()


@app.command()
def summary(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Show marks earned, graded weight and percent for every course."""

    session = _open(ctx)
    courses = session.store.snapshot()
    if as_json:
        typer.echo(json.dumps(summary_payload(courses), indent=2, ensure_ascii=False))
        return
    print_summary(console, courses)


@app.command()
def show(
    ctx: typer.Context,
    course: str = typer.Argument(..., help="Course code or its number in the summary."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Show the evaluations of one course."""

    session = _open(ctx)
    record = session.store.get(_course_index(session, course))
    if as_json:
        typer.echo(json.dumps(course_payload(record), indent=2, ensure_ascii=False))
        return
    print_course(console, record)


@app.command(name="add-course")
def add_course_command(
    ctx: typer.Context,
    code: str = typer.Argument(..., help="Course code, e.g. COMP-1000."),
) -> None:
    """Add an empty course."""

    session = _open(ctx)
    _commit(session, session.controller.add_course(code.strip()))


@app.command(name="add-evaluation")
def add_evaluation_command(
    ctx: typer.Context,
    course: str = typer.Argument(..., help="Course code or its number in the summary."),
    description: str = typer.Argument(..., help="Evaluation name, e.g. 'Midterm'."),
    out_of: float = typer.Option(..., "--out-of", help="Maximum attainable mark."),
    weight: float = typer.Option(..., "--weight", help="Percentage weight towards the course grade."),
    earned: Optional[float] = typer.Option(None, "--earned", help="Marks earned (omit while ungraded)."),
) -> None:
    """Add an evaluation to a course."""

    session = _open(ctx)
    course_index = _course_index(session, course)
    draft = EvaluationDraft(description=description.strip(), out_of=out_of, weight=weight, earned_marks=earned)
    _commit(session, session.controller.add_evaluation(course_index, draft))


@app.command(name="set-marks")
def set_marks_command(
    ctx: typer.Context,
    course: str = typer.Argument(..., help="Course code or its number in the summary."),
    evaluation: int = typer.Argument(..., help="Evaluation number within the course."),
    marks: Optional[float] = typer.Argument(None, help="Marks earned; omit to mark the evaluation ungraded."),
) -> None:
    """Record (or clear) the marks earned on an evaluation."""

    session = _open(ctx)
    course_index = _course_index(session, course)
    evaluation_index = _evaluation_index(session, course_index, evaluation)
    _commit(session, session.controller.edit_evaluation_marks(course_index, evaluation_index, marks))


@app.command(name="delete-course")
def delete_course_command(
    ctx: typer.Context,
    course: str = typer.Argument(..., help="Course code or its number in the summary."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete a course and all of its evaluations."""

    session = _open(ctx)
    course_index = _course_index(session, course)
    code = session.store.get(course_index).code
    if not yes and not typer.confirm(f"Delete {code}?"):
        console.print("Nothing deleted.")
        return
    _commit(session, session.controller.delete_course(course_index))


@app.command(name="delete-evaluation")
def delete_evaluation_command(
    ctx: typer.Context,
    course: str = typer.Argument(..., help="Course code or its number in the summary."),
    evaluation: int = typer.Argument(..., help="Evaluation number within the course."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete one evaluation from a course."""

    session = _open(ctx)
    course_index = _course_index(session, course)
    evaluation_index = _evaluation_index(session, course_index, evaluation)
    description = session.store.get(course_index).evaluations[evaluation_index].description
    if not yes and not typer.confirm(f"Delete {description}?"):
        console.print("Nothing deleted.")
        return
    _commit(session, session.controller.delete_evaluation(course_index, evaluation_index))


@app.command()
def check(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Validate the whole stored gradebook against the course rules."""

    session = _open(ctx)
    result = session.validator.validate_gradebook(session.store.snapshot())
    if as_json:
        payload = {
            "valid": result.valid,
            "mode": session.validator.mode.value,
            "errors": result.errors,
            "warnings": result.warnings,
        }
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        table = Table(title="Gradebook Validation", show_header=True)
        table.add_column("Severity", justify="center")
        table.add_column("Message")
        for issue in result.errors:
            table.add_row("error", escape(issue), style="bold red")
        for issue in result.warnings:
            table.add_row("warning", escape(issue), style="yellow")
        if result.errors or result.warnings:
            console.print(table)
        if result.valid:
            console.print("[green]Gradebook looks good![/green]")
    if not result.valid:
        raise typer.Exit(code=1)


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
