"""
Tests for the checkmate command line.

Runs each command through the Typer app against a checklist file in a
temporary project.
"""

import json
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from checkmate import __version__
from checkmate.cli import app, cli_main
from checkmate.cli.errors import ExitCode

runner = CliRunner()


@pytest.fixture
def project(todo_file: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Run commands from inside the sample project."""
    monkeypatch.chdir(todo_file.parent)
    yield todo_file.parent


def write(project: Path, name: str, text: str) -> Path:
    path = project / name
    path.write_text(text, encoding="utf-8")
    return path


class TestListCommand:
    """Tests for checkmate list."""

    def test_shows_tree(self, project: Path, todo_file: Path) -> None:
        """Test the rendered tree."""
        result = runner.invoke(app, ["list", str(todo_file)])

        assert result.exit_code == 0
        assert "Write parser" in result.output
        assert "[1/2]" in result.output
        assert "@priority(high)" in result.output
        assert "Patterns" in result.output
        assert "Plain item" not in result.output

    def test_without_metadata(self, project: Path, todo_file: Path) -> None:
        """Test hiding tags."""
        result = runner.invoke(app, ["list", str(todo_file), "--no-metadata"])

        assert result.exit_code == 0
        assert "Write parser" in result.output
        assert "@priority" not in result.output

    def test_no_items(self, project: Path) -> None:
        """Test a file without todos."""
        path = write(project, "empty.md", "# Title\n")
        result = runner.invoke(app, ["list", str(path)])

        assert result.exit_code == 0
        assert "No todo items" in result.output

    def test_missing_file(self, project: Path) -> None:
        """Test a file that does not exist."""
        result = runner.invoke(app, ["list", str(project / "nope.md")])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Cannot open" in result.output

    def test_invalid_config(self, project: Path, todo_file: Path) -> None:
        """Test a project config that fails validation."""
        (project / ".checkmate.json").write_text(json.dumps({"default_list_marker": "1."}))
        result = runner.invoke(app, ["list", str(todo_file)])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Invalid checkmate configuration" in result.output

    def test_debug_flag(self, project: Path, todo_file: Path) -> None:
        """Test the global --debug option."""
        result = runner.invoke(app, ["--debug", "list", str(todo_file)])
        assert result.exit_code == 0


class TestToggleCommand:
    """Tests for checkmate toggle."""

    def test_last_child_checks_parent(self, project: Path, todo_file: Path) -> None:
        """Test toggling with propagation, saved in bracket form."""
        result = runner.invoke(app, ["toggle", str(todo_file), "5"])

        assert result.exit_code == 0
        assert "Updated" in result.output
        lines = todo_file.read_text(encoding="utf-8").splitlines()
        assert lines[2:5] == [
            "- [x] Write parser @priority(high)",
            "  - [x] Patterns",
            "  - [x] Metadata",
        ]

    def test_check_already_checked(self, project: Path, todo_file: Path, sample_text: str) -> None:
        """Test that --check on a checked item changes nothing."""
        result = runner.invoke(app, ["toggle", str(todo_file), "6", "--check"])

        assert result.exit_code == 0
        assert "Nothing to change" in result.output
        assert todo_file.read_text(encoding="utf-8") == sample_text

    def test_several_rows(self, project: Path, todo_file: Path) -> None:
        """Test unchecking several rows at once."""
        result = runner.invoke(app, ["toggle", str(todo_file), "4", "6", "--uncheck"])

        assert result.exit_code == 0
        text = todo_file.read_text(encoding="utf-8")
        assert "  - [ ] Patterns" in text
        assert "- [ ] Set up repo" in text

    def test_conflicting_options(self, project: Path, todo_file: Path) -> None:
        """Test that --check and --uncheck cannot be combined."""
        result = runner.invoke(app, ["toggle", str(todo_file), "3", "--check", "--uncheck"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Conflicting options" in result.output

    def test_row_without_item(self, project: Path, todo_file: Path) -> None:
        """Test a row holding a heading."""
        result = runner.invoke(app, ["toggle", str(todo_file), "1"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "No todo item at row 1" in result.output

    def test_row_out_of_range(self, project: Path, todo_file: Path) -> None:
        """Test a row past the end of the file."""
        result = runner.invoke(app, ["toggle", str(todo_file), "99"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "out of range" in result.output

    def test_cycle(self, project: Path) -> None:
        """Test cycling into a custom state from the project config."""
        (project / ".checkmate.json").write_text(
            json.dumps({"todo_states": {"in_progress": {"marker": "◐", "markdown": "~", "order": 1.5}}})
        )
        path = write(project, "work.md", "- [ ] Task\n")
        result = runner.invoke(app, ["toggle", str(path), "1", "--cycle"])

        assert result.exit_code == 0
        assert path.read_text(encoding="utf-8") == "- [~] Task\n"


class TestCreateCommand:
    """Tests for checkmate create."""

    def test_convert_list_item(self, project: Path, todo_file: Path) -> None:
        """Test turning a plain list item into a todo."""
        result = runner.invoke(app, ["create", str(todo_file), "7"])

        assert result.exit_code == 0
        assert "Created" in result.output
        assert todo_file.read_text(encoding="utf-8").splitlines()[6] == "- [ ] Plain item"

    def test_range(self, project: Path) -> None:
        """Test converting a range of lines."""
        path = write(project, "list.md", "alpha\n\nbeta\n")
        result = runner.invoke(app, ["create", str(path), "3", "--to", "1"])

        assert result.exit_code == 0
        assert path.read_text(encoding="utf-8") == "- [ ] alpha\n\n- [ ] beta\n"

    def test_row_out_of_range(self, project: Path, todo_file: Path) -> None:
        """Test a row past the end of the file."""
        result = runner.invoke(app, ["create", str(todo_file), "1", "--to", "50"])
        assert result.exit_code == ExitCode.USER_ERROR


class TestMetaCommand:
    """Tests for checkmate meta add/remove."""

    def test_add_with_value(self, project: Path, todo_file: Path) -> None:
        """Test adding a tag after existing ones."""
        result = runner.invoke(app, ["meta", "add", str(todo_file), "3", "due", "friday"])

        assert result.exit_code == 0
        assert "Tagged" in result.output
        line = todo_file.read_text(encoding="utf-8").splitlines()[2]
        assert line == "- [ ] Write parser @priority(high) @due(friday)"

    def test_add_default_value(self, project: Path, todo_file: Path) -> None:
        """Test adding a configured tag without a value."""
        result = runner.invoke(app, ["meta", "add", str(todo_file), "6", "@priority"])

        assert result.exit_code == 0
        assert todo_file.read_text(encoding="utf-8").splitlines()[5] == "- [x] Set up repo @priority(medium)"

    def test_add_done_checks_item(self, project: Path, todo_file: Path) -> None:
        """Test that the done tag checks its item."""
        result = runner.invoke(app, ["meta", "add", str(todo_file), "5", "done", "today"])

        assert result.exit_code == 0
        assert todo_file.read_text(encoding="utf-8").splitlines()[4] == "  - [x] Metadata @done(today)"

    def test_add_unknown_tag_without_value(self, project: Path, todo_file: Path) -> None:
        """Test that an unconfigured tag needs a value."""
        result = runner.invoke(app, ["meta", "add", str(todo_file), "3", "mystery"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Unknown metadata tag" in result.output

    def test_remove(self, project: Path, todo_file: Path) -> None:
        """Test removing a tag."""
        result = runner.invoke(app, ["meta", "remove", str(todo_file), "3", "priority"])

        assert result.exit_code == 0
        assert todo_file.read_text(encoding="utf-8").splitlines()[2] == "- [ ] Write parser"

    def test_remove_all(self, project: Path) -> None:
        """Test removing every tag."""
        path = write(project, "tags.md", "- [ ] Task @a(1) @b(2)\n")
        result = runner.invoke(app, ["meta", "remove", str(path), "1", "--all"])

        assert result.exit_code == 0
        assert path.read_text(encoding="utf-8") == "- [ ] Task\n"

    def test_remove_needs_tag(self, project: Path, todo_file: Path) -> None:
        """Test that remove without a tag or --all is rejected."""
        result = runner.invoke(app, ["meta", "remove", str(todo_file), "3"])

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Missing tag" in result.output


class TestArchiveCommand:
    """Tests for checkmate archive."""

    def test_archive(self, project: Path, todo_file: Path) -> None:
        """Test archiving the sample project, then running again."""
        result = runner.invoke(app, ["archive", str(todo_file)])

        assert result.exit_code == 0
        assert "Archived" in result.output
        assert todo_file.read_text(encoding="utf-8") == (
            "# Project\n"
            "\n"
            "- [ ] Write parser @priority(high)\n"
            "  - [x] Patterns\n"
            "  - [ ] Metadata\n"
            "- Plain item\n"
            "\n"
            "## Archive\n"
            "\n"
            "- [x] Set up repo\n"
        )

        again = runner.invoke(app, ["archive", str(todo_file)])
        assert again.exit_code == 0
        assert "No completed todos" in again.output

    def test_heading_from_env(self, project: Path, todo_file: Path, monkeypatch) -> None:
        """Test overriding the heading with an environment variable."""
        monkeypatch.setenv("CHECKMATE_ARCHIVE_HEADING", "Finished")
        result = runner.invoke(app, ["archive", str(todo_file)])

        assert result.exit_code == 0
        assert "## Finished" in todo_file.read_text(encoding="utf-8")


class TestLintCommand:
    """Tests for checkmate lint."""

    def test_clean(self, project: Path, todo_file: Path) -> None:
        """Test a file without issues."""
        result = runner.invoke(app, ["lint", str(todo_file)])

        assert result.exit_code == 0
        assert "no issues" in result.output

    def test_warning_fails(self, project: Path) -> None:
        """Test that a warning sets the exit status."""
        path = write(project, "bad.md", "- Parent\n - Bad child\n")
        result = runner.invoke(app, ["lint", str(path)])

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "INDENT_SHALLOW" in result.output

    def test_info_passes(self, project: Path) -> None:
        """Test that info findings are shown without failing."""
        path = write(project, "mixed.md", "- a\n1. b\n")
        result = runner.invoke(app, ["lint", str(path)])

        assert result.exit_code == 0
        assert "INCONSISTENT_MARKER" in result.output


class TestConvertCommand:
    """Tests for checkmate convert."""

    def test_to_unicode(self, project: Path, todo_file: Path) -> None:
        """Test printing the symbolic form."""
        result = runner.invoke(app, ["convert", str(todo_file)])

        assert result.exit_code == 0
        assert "- □ Write parser @priority(high)\n" in result.output
        assert "  - ✔ Patterns\n" in result.output

    def test_to_markdown(self, project: Path, todo_file: Path, sample_text: str) -> None:
        """Test that the markdown form reproduces the file."""
        result = runner.invoke(app, ["convert", str(todo_file), "--to", "markdown"])

        assert result.exit_code == 0
        assert result.output == sample_text


class TestVersionAndEntryPoint:
    """Tests for the version command and cli_main."""

    def test_version(self) -> None:
        """Test the version output."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert f"checkmate version {__version__}" in result.output

    def test_no_args_shows_help(self) -> None:
        """Test that running without a command prints usage."""
        result = runner.invoke(app, [])
        assert "Usage" in result.output

    def test_keyboard_interrupt(self) -> None:
        """Test that Ctrl+C exits with the SIGINT status."""
        with patch("checkmate.cli.app", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as exc_info:
                cli_main()
        assert exc_info.value.code == ExitCode.SIGINT
