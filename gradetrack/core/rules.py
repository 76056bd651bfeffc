"""Typed rule document for the course validator."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_CODE_PATTERN = r"^[A-Z]{4}-[0-9]{4}$"


class RuleConfigError(ValueError):
    """The rule document is missing, unreadable or malformed."""


class RuleSet(BaseModel):
    """Structural and semantic limits applied to every candidate course."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code_pattern: str = Field(default=DEFAULT_CODE_PATTERN, description="Regex a course code must fully match.")
    code_format: str = Field(default="UUUU-####", description="Human-readable hint for the code pattern.")
    unique_codes: bool = True
    require_description: bool = True
    max_weight: float = Field(default=100.0, gt=0)
    max_total_weight: float = Field(default=100.0, gt=0)

    @field_validator("code_pattern")
    @classmethod
    def check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"code_pattern is not a valid regular expression: {exc}") from exc
        return value

    @property
    def code_regex(self) -> re.Pattern[str]:
        return re.compile(self.code_pattern)


def read_rule_document(path: Path) -> Dict[str, Any]:
    """Load a YAML (or JSON) rule document and return its mapping."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        raise RuleConfigError(f"Rules file not found: {path}") from exc
    except OSError as exc:
        raise RuleConfigError(f"Cannot read rules file {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise RuleConfigError(f"Rules file {path} is not valid UTF-8: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuleConfigError(f"Invalid YAML in rules file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise RuleConfigError(f"Expected mapping at root of {path}, received {type(data).__name__}")
    return data


def load_rule_set(path: Path) -> RuleSet:
    data = read_rule_document(path)
    try:
        return RuleSet.model_validate(data)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in error['loc']) or '<root>'}: {error['msg']}" for error in exc.errors()
        )
        raise RuleConfigError(f"Invalid rules in {path}: {details}") from exc


__all__ = ["DEFAULT_CODE_PATTERN", "RuleConfigError", "RuleSet", "load_rule_set", "read_rule_document"]
