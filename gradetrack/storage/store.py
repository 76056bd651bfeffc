"""In-memory ordered course store owned by a gradebook session."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional

from gradetrack.core.records import Course


class CourseStore:
    """Ordered collection of courses.

    Readers always receive deep copies, so nothing outside the store holds a
    live reference. Writes go through the mutation controller (or the session
    loader) while holding :meth:`transaction`.
    """

    def __init__(self, courses: Iterable[Course] = ()) -> None:
        self._courses: List[Course] = [course.model_copy(deep=True) for course in courses]
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._courses)

    @contextmanager
    def transaction(self) -> Iterator["CourseStore"]:
        with self._lock:
            yield self

    # ============== Reads ==============

    def snapshot(self) -> List[Course]:
        with self._lock:
            return [course.model_copy(deep=True) for course in self._courses]

    def get(self, index: int) -> Course:
        with self._lock:
            return self._courses[self._check_index(index)].model_copy(deep=True)

    def codes(self) -> List[str]:
        with self._lock:
            return [course.code for course in self._courses]

    def index_of(self, code: str) -> Optional[int]:
        with self._lock:
            for index, course in enumerate(self._courses):
                if course.code == code:
                    return index
        return None

    def dump(self) -> List[Dict[str, Any]]:
        """Return the serialized form of every course in order."""
        with self._lock:
            return [course.model_dump(mode="json") for course in self._courses]

    # ============== Writes ==============

    def append(self, course: Course) -> None:
        with self._lock:
            self._courses.append(course)

    def replace(self, index: int, course: Course) -> None:
        with self._lock:
            self._courses[self._check_index(index)] = course

    def remove(self, index: int) -> Course:
        with self._lock:
            return self._courses.pop(self._check_index(index))

    def reset(self, courses: Iterable[Course]) -> None:
        with self._lock:
            self._courses = [course.model_copy(deep=True) for course in courses]

    def clear(self) -> None:
        with self._lock:
            self._courses = []

    def _check_index(self, index: int) -> int:
        if not 0 <= index < len(self._courses):
            raise IndexError(f"Course index {index} out of range (store holds {len(self._courses)} courses)")
        return index


__all__ = ["CourseStore"]
