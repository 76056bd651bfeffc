"""Session object that owns the course store for one run of the tool."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from gradetrack.core.config import AppConfig
from gradetrack.core.transactions import MutationController
from gradetrack.core.validation import CourseValidator
from gradetrack.storage.persistence import GradebookNotFound, GradebookRepository, PersistenceError
from gradetrack.storage.store import CourseStore

LOGGER = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    LOADED = "loaded"
    MISSING = "missing"
    FAILED = "failed"


class LoadReport(BaseModel):
    status: LoadStatus
    message: str = ""
    count: int = 0

    @property
    def ok(self) -> bool:
        return self.status is LoadStatus.LOADED


class GradebookSession(BaseModel):
    """Aggregated runtime state: config, store, validator and controller.

    Lifecycle: built empty by :func:`bootstrap_session`, filled by
    :meth:`load`, changed only through ``controller``, flushed by
    :meth:`save` and emptied by :meth:`close`.
    """

    config: AppConfig
    store: CourseStore
    validator: CourseValidator
    controller: MutationController
    repository: GradebookRepository
    env: dict[str, str] = Field(default_factory=dict)
    startup_notices: List[str] = Field(default_factory=list)
    last_error: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def load(self) -> LoadReport:
        """Replace the store contents with the persisted gradebook.

        On failure the store is left empty and the caller decides whether to
        continue.
        """
        try:
            courses = self.repository.load()
        except GradebookNotFound as exc:
            self.store.clear()
            LOGGER.info("%s", exc)
            return LoadReport(status=LoadStatus.MISSING, message=str(exc))
        except PersistenceError as exc:
            self.store.clear()
            self.last_error = str(exc)
            LOGGER.error("Failed to load gradebook: %s", exc)
            return LoadReport(status=LoadStatus.FAILED, message=str(exc))
        self.store.reset(courses)
        return LoadReport(status=LoadStatus.LOADED, count=len(courses))

    def save(self) -> bool:
        """Persist the store; failures are reported and leave the store untouched."""
        try:
            self.repository.save(self.store.snapshot())
        except PersistenceError as exc:
            self.last_error = str(exc)
            LOGGER.error("Failed to save gradebook: %s", exc)
            return False
        self.last_error = None
        return True

    def close(self) -> None:
        self.store.clear()
