"""Interactive key-press menus over a gradebook session."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from gradetrack.core.records import EvaluationDraft
from gradetrack.core.transactions import MutationOutcome
from gradetrack.session.context import GradebookSession, LoadStatus

from .render import TITLE, evaluation_table, print_course, print_outcome, print_summary

LOGGER = logging.getLogger(__name__)
RULE = "-" * 80


def _ask(label: str) -> str:
    return typer.prompt(label, default="", show_default=False).strip()


def _confirm(label: str) -> bool:
    return _ask(f"{label} (y/n)").lower() == "y"


def _ask_number(console: Console, label: str, *, allow_blank: bool = False) -> Optional[float]:
    """Prompt until the answer parses as a number (or is blank, when allowed)."""
    while True:
        raw = _ask(label)
        if not raw:
            if allow_blank:
                return None
            continue
        try:
            return float(raw)
        except ValueError:
            console.print(f"[red]ERROR: '{escape(raw)}' is not a number.[/red]")


def _header(console: Console) -> None:
    console.clear()
    console.print(TITLE, justify="center")
    console.print()


def _footer(console: Console, *lines: str) -> str:
    console.print(RULE)
    for line in lines:
        console.print(f" {line}")
    console.print(RULE)
    return _ask("Enter a command").upper()


def _report(console: Console, outcome: MutationOutcome) -> None:
    """Print the outcome; hold a rejection on screen until the user moves on."""
    print_outcome(console, outcome)
    if not outcome.committed:
        _ask("Press ENTER to continue")


def _selection(command: str, count: int) -> Optional[int]:
    if command.isdigit() and 1 <= int(command) <= count:
        return int(command) - 1
    return None


def open_gradebook(console: Console, session: GradebookSession) -> bool:
    """Load the gradebook, asking the user what to do when that fails.

    Returns ``False`` when the user chose to quit.
    """
    for notice in session.startup_notices:
        console.print(f"[yellow]{escape(notice)}[/yellow]")

    report = session.load()
    if report.status is LoadStatus.LOADED:
        return True
    path = session.repository.path
    if report.status is LoadStatus.MISSING:
        if _confirm(f"Grades data file {path.name} not found. Create new file?"):
            if session.save():
                console.print("New data set created.")
            else:
                console.print(f"[red]ERROR: {escape(session.last_error or 'save failed')}[/red]")
        return True
    console.print(f"[red]ERROR: {escape(report.message)}[/red]")
    return _confirm("Continue with an empty gradebook? Saving will replace the unreadable file.")


def run_menu(console: Console, session: GradebookSession) -> None:
    """Main menu loop; ``X`` (or end of input) saves and exits."""
    try:
        while True:
            courses = session.store.snapshot()
            _header(console)
            print_summary(console, courses)
            command = _footer(
                console,
                "Press # from the above list to view/edit/delete a specific course.",
                "Press A to add a new course.",
                "Press X to quit.",
            )
            if command == "A":
                add_course(console, session)
            elif command == "X":
                break
            else:
                index = _selection(command, len(courses))
                if index is not None:
                    course_menu(console, session, index)
    except typer.Abort:
        LOGGER.info("Input closed; saving and exiting")
    if not session.save():
        console.print(f"[red]ERROR: {escape(session.last_error or 'save failed')}[/red]")


def add_course(console: Console, session: GradebookSession) -> None:
    while True:
        code = _ask("Enter a course code (blank to cancel)")
        if not code:
            return
        outcome = session.controller.add_course(code)
        print_outcome(console, outcome)
        if outcome.committed:
            return


def course_menu(console: Console, session: GradebookSession, course_index: int) -> None:
    while True:
        course = session.store.get(course_index)
        _header(console)
        print_course(console, course)
        command = _footer(
            console,
            "Press D to delete this course.",
            "Press A to add an evaluation.",
            "Press # from the above list to edit/delete a specific evaluation.",
            "Press X to return to the main menu.",
        )
        if command == "A":
            add_evaluation(console, session, course_index)
        elif command == "D":
            if _confirm(f"Delete {course.code}?"):
                print_outcome(console, session.controller.delete_course(course_index))
                return
        elif command == "X":
            return
        else:
            evaluation_index = _selection(command, len(course.evaluations))
            if evaluation_index is not None:
                evaluation_menu(console, session, course_index, evaluation_index)


def add_evaluation(console: Console, session: GradebookSession, course_index: int) -> None:
    description = ""
    while not description:
        description = _ask("Enter a description")
    out_of = _ask_number(console, "Enter the 'out of' mark")
    weight = _ask_number(console, "Enter the % weight")
    earned = _ask_number(console, "Enter marks earned or press ENTER to skip", allow_blank=True)
    draft = EvaluationDraft(description=description, out_of=out_of, weight=weight, earned_marks=earned)
    _report(console, session.controller.add_evaluation(course_index, draft))


def evaluation_menu(console: Console, session: GradebookSession, course_index: int, evaluation_index: int) -> None:
    while True:
        course = session.store.get(course_index)
        evaluation = course.evaluations[evaluation_index]
        _header(console)
        console.print(evaluation_table(course, evaluation))
        command = _footer(
            console,
            "Press D to delete this evaluation.",
            "Press E to edit this evaluation.",
            "Press X to return to the previous menu.",
        )
        if command == "D":
            if _confirm(f"Delete {evaluation.description}?"):
                print_outcome(console, session.controller.delete_evaluation(course_index, evaluation_index))
                return
        elif command == "E":
            marks = _ask_number(
                console,
                f"Enter marks earned out of {evaluation.out_of:g}, press ENTER to leave unassigned",
                allow_blank=True,
            )
            _report(console, session.controller.edit_evaluation_marks(course_index, evaluation_index, marks))
        elif command == "X":
            return


__all__ = ["open_gradebook", "run_menu"]
