"""Course and evaluation records shared by the calculator, validator and store."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Key spelling used by gradebooks written with the original console tool.
LEGACY_EVALUATION_KEYS: Dict[str, str] = {
    "Description": "description",
    "OutOf": "out_of",
    "Weight": "weight",
    "EarnedMarks": "earned_marks",
}
LEGACY_COURSE_KEYS: Dict[str, str] = {
    "Code": "code",
    "Evaluations": "evaluations",
}


def _rename_keys(data: Any, mapping: Dict[str, str]) -> Any:
    if not isinstance(data, dict):
        return data
    payload = dict(data)
    for legacy, current in mapping.items():
        if legacy in payload and current not in payload:
            payload[current] = payload.pop(legacy)
    return payload


class Evaluation(BaseModel):
    """A single gradable item (assignment, exam) inside a course."""

    model_config = ConfigDict(extra="ignore")

    description: str
    out_of: float = Field(..., description="Maximum attainable mark.")
    weight: float = Field(..., description="Percentage contribution to the course grade.")
    earned_marks: Optional[float] = Field(default=None, description="Marks earned; None while ungraded.")

    @model_validator(mode="before")
    @classmethod
    def coerce_legacy_format(cls, data: Any) -> Any:
        return _rename_keys(data, LEGACY_EVALUATION_KEYS)

    @property
    def graded(self) -> bool:
        return self.earned_marks is not None


class Course(BaseModel):
    """A course code and its evaluations in display order."""

    model_config = ConfigDict(extra="ignore")

    code: str
    evaluations: List[Evaluation] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def coerce_legacy_format(cls, data: Any) -> Any:
        return _rename_keys(data, LEGACY_COURSE_KEYS)


class EvaluationDraft(BaseModel):
    """Fields supplied when proposing a new evaluation."""

    description: str
    out_of: float
    weight: float
    earned_marks: Optional[float] = None

    def to_evaluation(self) -> Evaluation:
        return Evaluation(**self.model_dump())


__all__ = ["Course", "Evaluation", "EvaluationDraft"]
