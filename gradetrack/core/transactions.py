"""Validate-then-commit mutations on the course store.

Every edit is applied to a deep copy of the affected course, checked by the
:class:`CourseValidator`, and swapped into the store only when it passes. A
rejected edit leaves the store exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Optional

from pydantic import ValidationError

from .records import Course, EvaluationDraft
from .validation import CourseValidator, ValidationResult

if TYPE_CHECKING:
    from gradetrack.storage.store import CourseStore

LOGGER = logging.getLogger(__name__)


class MutationState(str, Enum):
    PROPOSED = "proposed"
    VALIDATING = "validating"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class MutationOutcome:
    """What happened to a single mutation attempt."""

    operation: str
    state: MutationState = MutationState.PROPOSED
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    course: Optional[Course] = None

    @property
    def committed(self) -> bool:
        return self.state is MutationState.COMMITTED

    def advance(self, state: MutationState) -> None:
        LOGGER.debug("%s: %s -> %s", self.operation, self.state.value, state.value)
        self.state = state


class MutationController:
    """The only component that writes courses into a :class:`CourseStore`."""

    def __init__(self, store: CourseStore, validator: CourseValidator) -> None:
        self.store = store
        self.validator = validator

    # ============== Courses ==============

    def add_course(self, code: str) -> MutationOutcome:
        outcome = MutationOutcome(operation=f"add course {code}")
        with self.store.transaction():
            candidate = Course(code=code)
            result = self._validate(outcome, candidate, other_codes=self.store.codes())
            if result.valid:
                self.store.append(candidate)
            return self._finish(outcome, result, candidate)

    def delete_course(self, index: int) -> MutationOutcome:
        """Remove a course. Deletions cannot break the rules, so they skip validation."""
        with self.store.transaction():
            removed = self.store.remove(index)
        outcome = MutationOutcome(operation=f"delete course {removed.code}", course=removed)
        outcome.advance(MutationState.COMMITTED)
        LOGGER.info("Committed %s", outcome.operation)
        return outcome

    # ============== Evaluations ==============

    def add_evaluation(self, course_index: int, fields: EvaluationDraft | Mapping[str, Any]) -> MutationOutcome:
        outcome = MutationOutcome(operation="add evaluation")
        try:
            draft = fields if isinstance(fields, EvaluationDraft) else EvaluationDraft.model_validate(dict(fields))
        except ValidationError as exc:
            errors = [f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}" for error in exc.errors()]
            outcome.errors = errors
            outcome.advance(MutationState.ROLLED_BACK)
            LOGGER.info("Rolled back %s: %s", outcome.operation, errors)
            return outcome

        outcome.operation = f"add evaluation {draft.description!r}"
        return self._update_course(
            outcome,
            course_index,
            lambda candidate: candidate.evaluations.append(draft.to_evaluation()),
        )

    def edit_evaluation_marks(
        self,
        course_index: int,
        evaluation_index: int,
        new_marks: float | None,
    ) -> MutationOutcome:
        """Set (or with ``None`` clear) the earned marks of one evaluation."""

        def apply(candidate: Course) -> None:
            candidate.evaluations[self._check_evaluation_index(candidate, evaluation_index)].earned_marks = new_marks

        outcome = MutationOutcome(operation=f"edit marks of evaluation #{evaluation_index + 1}")
        return self._update_course(outcome, course_index, apply)

    def delete_evaluation(self, course_index: int, evaluation_index: int) -> MutationOutcome:
        outcome = MutationOutcome(operation=f"delete evaluation #{evaluation_index + 1}")
        with self.store.transaction():
            candidate = self.store.get(course_index)
            candidate.evaluations.pop(self._check_evaluation_index(candidate, evaluation_index))
            self.store.replace(course_index, candidate)
        outcome.course = candidate.model_copy(deep=True)
        outcome.advance(MutationState.COMMITTED)
        LOGGER.info("Committed %s on %s", outcome.operation, candidate.code)
        return outcome

    # ============== Internals ==============

    def _update_course(
        self,
        outcome: MutationOutcome,
        course_index: int,
        apply: Callable[[Course], None],
    ) -> MutationOutcome:
        with self.store.transaction():
            candidate = self.store.get(course_index)
            apply(candidate)
            others = [code for position, code in enumerate(self.store.codes()) if position != course_index]
            result = self._validate(outcome, candidate, other_codes=others)
            if result.valid:
                self.store.replace(course_index, candidate)
            return self._finish(outcome, result, candidate)

    def _validate(self, outcome: MutationOutcome, candidate: Course, *, other_codes: List[str]) -> ValidationResult:
        outcome.advance(MutationState.VALIDATING)
        return self.validator.validate(candidate, other_codes=other_codes)

    def _finish(self, outcome: MutationOutcome, result: ValidationResult, candidate: Course) -> MutationOutcome:
        outcome.warnings = list(result.warnings)
        if result.valid:
            outcome.course = candidate.model_copy(deep=True)
            outcome.advance(MutationState.COMMITTED)
            LOGGER.info("Committed %s on %s", outcome.operation, candidate.code)
        else:
            outcome.errors = list(result.errors)
            outcome.advance(MutationState.ROLLED_BACK)
            LOGGER.info("Rolled back %s on %s: %s", outcome.operation, candidate.code, outcome.errors)
        return outcome

    @staticmethod
    def _check_evaluation_index(course: Course, index: int) -> int:
        if not 0 <= index < len(course.evaluations):
            raise IndexError(
                f"Evaluation index {index} out of range ({course.code} has {len(course.evaluations)} evaluations)"
            )
        return index


__all__ = ["MutationController", "MutationOutcome", "MutationState"]
