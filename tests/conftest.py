"""
Pytest configuration and shared fixtures.

Provides fixtures for isolated configuration, sample documents and
documents built from text with per-test configuration overrides.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from checkmate.core.config import clear_cache
from checkmate.core.config.models import CheckmateConfig
from checkmate.core.document import Document

# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """
    Keep tests away from the real user configuration.

    Points XDG_CONFIG_HOME at a temporary directory, drops CHECKMATE_*
    variables and clears the config cache around each test.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in (
        "CHECKMATE_SMART_TOGGLE",
        "CHECKMATE_DEFAULT_LIST_MARKER",
        "CHECKMATE_ARCHIVE_HEADING",
        "CHECKMATE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def user_config_dir(tmp_path):
    """Provide a temporary XDG_CONFIG_HOME/checkmate directory."""
    config_dir = tmp_path / "xdg" / "checkmate"
    config_dir.mkdir(parents=True)
    return config_dir


# ==============================================================================
# Configuration Fixtures
# ==============================================================================


@pytest.fixture
def config() -> CheckmateConfig:
    """Default configuration."""
    return CheckmateConfig()


@pytest.fixture
def custom_states_config() -> CheckmateConfig:
    """Configuration with an extra ``in_progress`` state written as ``[~]``."""
    return CheckmateConfig(
        todo_states={
            "unchecked": {"marker": "□", "markdown": [" "], "order": 1},
            "checked": {"marker": "✔", "markdown": ["x", "X"], "order": 2},
            "in_progress": {"marker": "◐", "markdown": ["~"], "order": 3},
        }
    )


# ==============================================================================
# Document Fixtures
# ==============================================================================


@pytest.fixture
def make_doc() -> Callable[..., Document]:
    """
    Factory building a document from text.

    Keyword arguments become CheckmateConfig fields, or pass ``config=``.

    Example:
        doc = make_doc("- [ ] Task", smart_toggle={"enabled": False})
    """

    def _make(text: str, config: CheckmateConfig | None = None, **overrides: Any) -> Document:
        if config is None:
            config = CheckmateConfig(**overrides)
        return Document.from_text(text, config=config)

    return _make


@pytest.fixture
def sample_text() -> str:
    """A small checklist in the on-disk bracket form."""
    return (
        "# Project\n"
        "\n"
        "- [ ] Write parser @priority(high)\n"
        "  - [x] Patterns\n"
        "  - [ ] Metadata\n"
        "- [x] Set up repo\n"
        "- Plain item\n"
    )


@pytest.fixture
def todo_file(tmp_path, sample_text) -> Path:
    """Write the sample checklist to a file inside a project directory."""
    project = tmp_path / "project"
    project.mkdir()
    (project / ".git").mkdir()
    path = project / "todo.md"
    path.write_text(sample_text, encoding="utf-8")
    return path
