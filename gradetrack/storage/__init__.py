"""Course store and gradebook persistence."""

from .persistence import GradebookNotFound, GradebookRepository, PersistenceError
from .store import CourseStore

__all__ = ["CourseStore", "GradebookNotFound", "GradebookRepository", "PersistenceError"]
