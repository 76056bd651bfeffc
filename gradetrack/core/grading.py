"""Weighted grade arithmetic over the record model.

All percentages are rounded to one decimal place with round-half-up, done in
decimal arithmetic so that ``3.25`` becomes ``3.3`` regardless of how the
float is stored in binary.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Tuple

from .records import Course, Evaluation

ONE_DECIMAL = Decimal("0.1")


def round_one_decimal(value: float) -> float:
    if not math.isfinite(value):
        return value
    return float(Decimal(str(value)).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class EvaluationBreakdown:
    """Per-evaluation figures shown in the course view."""

    percent: Optional[float]
    course_marks: float


@dataclass(frozen=True)
class CourseSummary:
    """Standing on graded work only.

    ``weight_total`` counts graded evaluations, so ungraded work never drags
    ``percent_total`` down.
    """

    marks_total: float
    weight_total: float
    percent_total: float


def evaluation_percent(evaluation: Evaluation) -> Optional[float]:
    """Return the evaluation score as a percentage, or ``None`` while ungraded.

    A zero ``out_of`` can only reach here through the accept-all validator; it
    has no meaningful percentage either.
    """
    if evaluation.earned_marks is None or evaluation.out_of == 0:
        return None
    return round_one_decimal(100 * evaluation.earned_marks / evaluation.out_of)


def evaluation_course_marks(evaluation: Evaluation) -> float:
    """Return the marks this evaluation contributes towards the course (out of its weight)."""
    percent = evaluation_percent(evaluation)
    if percent is None:
        return 0.0
    return round_one_decimal(percent * evaluation.weight / 100)


def evaluation_breakdown(evaluation: Evaluation) -> EvaluationBreakdown:
    return EvaluationBreakdown(
        percent=evaluation_percent(evaluation),
        course_marks=evaluation_course_marks(evaluation),
    )


def course_summary(course: Course) -> CourseSummary:
    marks_total = round_one_decimal(math.fsum(evaluation_course_marks(item) for item in course.evaluations))
    graded_weight = math.fsum(item.weight for item in course.evaluations if item.graded)
    percent_total = round_one_decimal(100 * marks_total / graded_weight) if graded_weight > 0 else 0.0
    return CourseSummary(
        marks_total=marks_total,
        weight_total=round_one_decimal(graded_weight),
        percent_total=percent_total,
    )


def gradebook_summaries(courses: Iterable[Course]) -> List[Tuple[Course, CourseSummary]]:
    """Pair every course with its summary, keeping store order."""
    return [(course, course_summary(course)) for course in courses]


__all__ = [
    "CourseSummary",
    "EvaluationBreakdown",
    "course_summary",
    "evaluation_breakdown",
    "evaluation_course_marks",
    "evaluation_percent",
    "gradebook_summaries",
    "round_one_decimal",
]
