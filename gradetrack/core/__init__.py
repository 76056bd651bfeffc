"""
Grade arithmetic, course rules and the validate-then-commit controller.

Nothing here performs terminal I/O; the CLI and session layers call in with
typed values and render what comes back.
"""

from .config import AppConfig, load_app_config
from .grading import CourseSummary, course_summary, evaluation_course_marks, evaluation_percent
from .records import Course, Evaluation, EvaluationDraft
from .rules import RuleConfigError, RuleSet, load_rule_set
from .transactions import MutationController, MutationOutcome, MutationState
from .validation import ConstraintViolation, CourseValidator, ValidationResult, ValidatorMode

__all__ = [
    "AppConfig",
    "ConstraintViolation",
    "Course",
    "CourseSummary",
    "CourseValidator",
    "Evaluation",
    "EvaluationDraft",
    "MutationController",
    "MutationOutcome",
    "MutationState",
    "RuleConfigError",
    "RuleSet",
    "ValidationResult",
    "ValidatorMode",
    "course_summary",
    "evaluation_course_marks",
    "evaluation_percent",
    "load_app_config",
    "load_rule_set",
]
