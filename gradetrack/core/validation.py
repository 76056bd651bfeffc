"""Rule checks that gate every course edit before it is committed."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Sequence

from .records import Course, Evaluation
from .rules import RuleConfigError, RuleSet, load_rule_set

LOGGER = logging.getLogger(__name__)


class ConstraintViolation(ValueError):
    """Raised by :meth:`ValidationResult.raise_if_invalid`."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__(f"Validation failed: {'; '.join(self.errors)}")


@dataclass
class ValidationResult:
    """Result of a validation check."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    data: Any = None

    @property
    def is_valid(self) -> bool:
        return self.valid

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def raise_if_invalid(self) -> None:
        if not self.valid:
            raise ConstraintViolation(self.errors)


class ValidatorMode(str, Enum):
    """How the validator treats candidates."""

    STRICT = "strict"
    ACCEPT_ALL = "accept_all"


def _fmt(value: float) -> str:
    return f"{value:g}"


def _label(position: int, evaluation: Evaluation) -> str:
    description = evaluation.description.strip()
    return f"Evaluation #{position} ({description})" if description else f"Evaluation #{position}"


class CourseValidator:
    """Checks a candidate course against a fixed :class:`RuleSet`.

    A validator built without rules runs in accept-all mode: every candidate
    passes and the result carries a warning saying so. ``fallback_reason``
    records why the rules were unavailable.
    """

    def __init__(self, rules: RuleSet | None, *, fallback_reason: str | None = None):
        self.rules = rules
        self.fallback_reason = fallback_reason if rules is None else None

    @property
    def mode(self) -> ValidatorMode:
        return ValidatorMode.STRICT if self.rules is not None else ValidatorMode.ACCEPT_ALL

    @classmethod
    def accept_all(cls, reason: str) -> "CourseValidator":
        return cls(None, fallback_reason=reason)

    @classmethod
    def from_rules_file(cls, path: Path | None) -> "CourseValidator":
        """Load rules from ``path``; fall back to accept-all when that fails."""
        if path is None:
            reason = "No rules file configured"
        else:
            try:
                return cls(load_rule_set(path))
            except RuleConfigError as exc:
                reason = str(exc)
        LOGGER.warning("Course rules unavailable, accepting all edits: %s", reason)
        return cls.accept_all(reason)

    def describe(self) -> str:
        if self.rules is None:
            return f"accept-all ({self.fallback_reason})"
        return f"strict (course codes {self.rules.code_format}, total weight <= {_fmt(self.rules.max_total_weight)})"

    # ============== Course checks ==============

    def validate(self, candidate: Course, *, other_codes: Iterable[str] = ()) -> ValidationResult:
        """Run every rule against ``candidate`` and collect all violations.

        ``other_codes`` holds the codes of the remaining courses in the store;
        it is only consulted for the uniqueness rule.
        """
        if self.rules is None:
            LOGGER.debug("Accept-all validator passed course %s", candidate.code)
            return ValidationResult(
                valid=True,
                warnings=[f"Rules not enforced: {self.fallback_reason}"],
                data=candidate,
            )

        rules = self.rules
        errors: List[str] = []
        errors.extend(self._check_code(candidate.code, rules))
        if rules.unique_codes and candidate.code in set(other_codes):
            errors.append(f"Course code '{candidate.code}' is already in use.")
        for position, evaluation in enumerate(candidate.evaluations, start=1):
            errors.extend(self._check_evaluation(position, evaluation, rules))
        errors.extend(self._check_total_weight(candidate, rules))

        result = ValidationResult(valid=len(errors) == 0, errors=errors, data=candidate)
        if not result.valid:
            LOGGER.debug("Course %s failed validation: %s", candidate.code, errors)
        return result

    def _check_code(self, code: str, rules: RuleSet) -> List[str]:
        if rules.code_regex.fullmatch(code or "") is None:
            return [f"Course code '{code}' does not match the required format {rules.code_format}."]
        return []

    def _check_evaluation(self, position: int, evaluation: Evaluation, rules: RuleSet) -> List[str]:
        errors: List[str] = []
        label = _label(position, evaluation)
        if rules.require_description and not evaluation.description.strip():
            errors.append(f"{label}: description must not be empty.")
        out_of_ok = math.isfinite(evaluation.out_of) and evaluation.out_of > 0
        if not out_of_ok:
            errors.append(f"{label}: 'out of' mark must be greater than 0.")
        weight = evaluation.weight
        if not (math.isfinite(weight) and 0 < weight <= rules.max_weight):
            errors.append(f"{label}: weight must be greater than 0 and at most {_fmt(rules.max_weight)}.")
        earned = evaluation.earned_marks
        if earned is not None:
            upper = evaluation.out_of if out_of_ok else 0.0
            if not (math.isfinite(earned) and 0 <= earned <= upper):
                errors.append(f"{label}: marks earned must be between 0 and {_fmt(upper)}.")
        return errors

    def _check_total_weight(self, candidate: Course, rules: RuleSet) -> List[str]:
        total = math.fsum(item.weight for item in candidate.evaluations)
        if total > rules.max_total_weight:
            return [f"Total weight {_fmt(total)} exceeds {_fmt(rules.max_total_weight)}."]
        return []

    # ============== Gradebook checks ==============

    def validate_gradebook(self, courses: Sequence[Course]) -> ValidationResult:
        """Validate every course in ``courses``; errors are prefixed with the course code."""
        errors: List[str] = []
        warnings: List[str] = []
        invalid_codes: List[str] = []
        for index, course in enumerate(courses):
            others = [other.code for position, other in enumerate(courses) if position != index]
            result = self.validate(course, other_codes=others)
            if not result.valid:
                invalid_codes.append(course.code)
                errors.extend(f"{course.code}: {error}" for error in result.errors)
            for warning in result.warnings:
                if warning not in warnings:
                    warnings.append(warning)
        return ValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            data={"total_courses": len(courses), "invalid_courses": invalid_codes},
        )


__all__ = [
    "ConstraintViolation",
    "CourseValidator",
    "ValidationResult",
    "ValidatorMode",
]
