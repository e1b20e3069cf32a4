"""
Project root discovery for checkmate.

The project config (``.checkmate.json``) is looked up in the project that
holds the document being edited, found by searching upward for a marker.
"""

from pathlib import Path

# Markers that indicate a project root, in order of priority
PROJECT_ROOT_MARKERS = [
    ".checkmate.json",
    ".git",
]


def find_project_root(start: Path | None = None) -> Path | None:
    """
    Find the project root directory by searching upward for marker files.

    Args:
        start: Directory to start searching from. Defaults to current working directory.

    Returns:
        Path to the project root directory, or None if not found.

    Example:
        >>> find_project_root(Path("/project/notes/daily"))
        PosixPath('/project')
    """
    if start is None:
        start = Path.cwd()

    current = start.resolve()
    while True:
        for marker in PROJECT_ROOT_MARKERS:
            if (current / marker).exists():
                return current
        if current == current.parent:
            return None
        current = current.parent


def project_dir_for(document_path: Path) -> Path:
    """The directory whose ``.checkmate.json`` applies to ``document_path``."""
    parent = document_path.resolve().parent
    return find_project_root(parent) or parent
