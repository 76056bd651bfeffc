"""
Core package for the gradetrack grade tracker.

Kept free of imports from the subpackages so ``gradetrack.get_version`` works
without pulling in the CLI stack.
"""

from importlib import metadata


def get_version() -> str:
    """Return the installed project version."""
    try:
        return metadata.version("gradetrack")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
