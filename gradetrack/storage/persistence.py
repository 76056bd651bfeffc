"""JSON file persistence for the ordered course list."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List

from pydantic import ValidationError

from gradetrack.core.records import Course

LOGGER = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Reading or writing the gradebook file failed."""


class GradebookNotFound(PersistenceError):
    """The gradebook file does not exist yet."""


class GradebookRepository:
    """Load and store the gradebook as a single JSON document.

    Saves are all-or-nothing: the document is written to a temporary file next
    to the target and moved into place with :func:`os.replace`.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> List[Course]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise GradebookNotFound(f"Gradebook file not found: {self.path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Cannot read gradebook {self.path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise PersistenceError(f"Gradebook {self.path} is not valid UTF-8: {exc}") from exc

        if not content.strip():
            LOGGER.info("Gradebook %s is empty", self.path)
            return []
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Invalid JSON in gradebook {self.path}: {exc}") from exc
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise PersistenceError(f"Expected a list of courses in {self.path}, received {type(payload).__name__}")

        courses: List[Course] = []
        for position, entry in enumerate(payload, start=1):
            try:
                courses.append(Course.model_validate(entry))
            except ValidationError as exc:
                raise PersistenceError(f"Course #{position} in {self.path} is malformed: {exc}") from exc
        LOGGER.info("Loaded %d courses from %s", len(courses), self.path)
        return courses

    def save(self, courses: Iterable[Course]) -> None:
        records = [course.model_dump(mode="json") for course in courses]
        text = json.dumps(records, indent=2, ensure_ascii=False) + "\n"
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Cannot save gradebook {self.path}: {exc}") from exc
        LOGGER.info("Saved %d courses to %s", len(records), self.path)


__all__ = ["GradebookNotFound", "GradebookRepository", "PersistenceError"]
