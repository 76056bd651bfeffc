"""Rich tables and JSON payloads for grade summaries."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gradetrack.core.grading import CourseSummary, course_summary, evaluation_breakdown, gradebook_summaries
from gradetrack.core.records import Course, Evaluation
from gradetrack.core.transactions import MutationOutcome

TITLE = "~ GRADES TRACKING SYSTEM ~"


def _num(value: Optional[float]) -> str:
    return "" if value is None else f"{value:.1f}"


def summary_table(courses: Sequence[Course]) -> Table:
    table = Table(title="Grades Summary", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Course")
    table.add_column("Marks Earned", justify="right")
    table.add_column("Out Of", justify="right")
    table.add_column("Percent", justify="right")
    for number, (course, summary) in enumerate(gradebook_summaries(courses), start=1):
        table.add_row(
            str(number),
            escape(course.code),
            _num(summary.marks_total),
            _num(summary.weight_total),
            _num(summary.percent_total),
        )
    return table


def evaluations_table(course: Course) -> Table:
    table = Table(title=f"{escape(course.code)} Evaluations", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Evaluation")
    for header in ("Marks Earned", "Out Of", "Percent", "Course Marks", "Weight/100"):
        table.add_column(header, justify="right")
    for number, evaluation in enumerate(course.evaluations, start=1):
        table.add_row(str(number), escape(evaluation.description), *_evaluation_cells(evaluation))
    return table


def evaluation_table(course: Course, evaluation: Evaluation) -> Table:
    table = Table(title=f"{escape(course.code)} {escape(evaluation.description)}", show_header=True)
    for header in ("Marks Earned", "Out Of", "Percent", "Course Marks", "Weight/100"):
        table.add_column(header, justify="right")
    table.add_row(*_evaluation_cells(evaluation))
    return table


def _evaluation_cells(evaluation: Evaluation) -> List[str]:
    breakdown = evaluation_breakdown(evaluation)
    return [
        _num(evaluation.earned_marks),
        _num(evaluation.out_of),
        _num(breakdown.percent),
        _num(breakdown.course_marks),
        _num(evaluation.weight),
    ]


def print_summary(console: Console, courses: Sequence[Course]) -> None:
    if not courses:
        console.print("There are currently no saved courses.")
        return
    console.print(summary_table(courses))


def print_course(console: Console, course: Course) -> None:
    if not course.evaluations:
        console.print(f"There are currently no evaluations for {escape(course.code)}.")
        return
    console.print(evaluations_table(course))


def print_outcome(console: Console, outcome: MutationOutcome) -> None:
    label = escape(outcome.operation[:1].upper() + outcome.operation[1:])
    if outcome.committed:
        console.print(f"[green]✓ {label} succeeded.[/green]")
    else:
        console.print(f"[bold red]✗ {label} was rejected:[/bold red]")
        for error in outcome.errors:
            console.print(f"  [red]• {escape(error)}[/red]")
    for warning in outcome.warnings:
        console.print(f"  [yellow]{escape(warning)}[/yellow]")


def _summary_payload(summary: CourseSummary) -> Dict[str, float]:
    return {
        "marks_total": summary.marks_total,
        "weight_total": summary.weight_total,
        "percent_total": summary.percent_total,
    }


def summary_payload(courses: Sequence[Course]) -> List[Dict[str, Any]]:
    return [
        {"number": number, "code": course.code, **_summary_payload(summary)}
        for number, (course, summary) in enumerate(gradebook_summaries(courses), start=1)
    ]


def course_payload(course: Course) -> Dict[str, Any]:
    evaluations = []
    for number, evaluation in enumerate(course.evaluations, start=1):
        breakdown = evaluation_breakdown(evaluation)
        evaluations.append(
            {
                "number": number,
                **evaluation.model_dump(mode="json"),
                "percent": breakdown.percent,
                "course_marks": breakdown.course_marks,
            }
        )
    return {
        "code": course.code,
        "evaluations": evaluations,
        "summary": _summary_payload(course_summary(course)),
    }


__all__ = [
    "TITLE",
    "course_payload",
    "evaluation_table",
    "evaluations_table",
    "print_course",
    "print_outcome",
    "print_summary",
    "summary_payload",
    "summary_table",
]
