"""Session bootstrap utilities for gradetrack."""

from __future__ import annotations

from .bootstrap import bootstrap_session
from .context import GradebookSession, LoadReport, LoadStatus

__all__ = ["GradebookSession", "LoadReport", "LoadStatus", "bootstrap_session"]
