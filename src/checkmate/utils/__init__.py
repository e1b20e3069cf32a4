"""Utility modules for checkmate."""

from .project import find_project_root, project_dir_for

__all__ = [
    "find_project_root",
    "project_dir_for",
]
