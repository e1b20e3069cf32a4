"""
Tests for converting between bracket tokens and Unicode markers.
"""

import pytest

from checkmate.core.config.models import CheckmateConfig
from checkmate.core.convert import to_markdown, to_unicode
from checkmate.core.states import TodoStates


@pytest.fixture
def states(config) -> TodoStates:
    return TodoStates(config)


class TestToUnicode:
    """Tests for the load direction."""

    def test_tokens_replaced(self, states) -> None:
        """Test both canonical tokens, uppercase included."""
        assert to_unicode(["- [ ] Task", "  * [x] Done", "1. [X] Caps"], states) == [
            "- □ Task",
            "  * ✔ Done",
            "1. ✔ Caps",
        ]

    def test_other_lines_untouched(self, states) -> None:
        """Test that only todo markers change."""
        lines = ["# [x] Heading", "Text [ ] here", "- plain [x]", "", "- [ ] ok [x]"]
        assert to_unicode(lines, states) == lines[:4] + ["- □ ok [x]"]

    def test_fenced_code_untouched(self, states) -> None:
        """Test that todos inside fences keep their tokens."""
        lines = ["```", "- [ ] in code", "```", "- [ ] real"]
        assert to_unicode(lines, states) == ["```", "- [ ] in code", "```", "- □ real"]

    def test_unknown_token_untouched(self, states) -> None:
        """Test that an unconfigured token is not a todo."""
        assert to_unicode(["- [?] what"], states) == ["- [?] what"]

    def test_input_not_modified(self, states) -> None:
        """Test that a new list is returned."""
        lines = ["- [ ] a"]
        to_unicode(lines, states)
        assert lines == ["- [ ] a"]


class TestToMarkdown:
    """Tests for the save direction."""

    def test_markers_replaced(self, states) -> None:
        """Test writing the first markdown character of each state."""
        assert to_markdown(["- □ Task", "  - ✔ Done"], states) == ["- [ ] Task", "  - [x] Done"]

    def test_round_trip(self, states, sample_text) -> None:
        """Test that converting both ways restores the text."""
        lines = sample_text.split("\n")
        assert to_markdown(to_unicode(lines, states), states) == lines

    def test_custom_state(self, custom_states_config) -> None:
        """Test a configured custom state."""
        states = TodoStates(custom_states_config)
        assert to_unicode(["- [~] Busy"], states) == ["- ◐ Busy"]
        assert to_markdown(["- ◐ Busy"], states) == ["- [~] Busy"]

    def test_state_without_token_stays_symbolic(self) -> None:
        """Test that a state with no bracket form is written as its symbol."""
        states = TodoStates(
            CheckmateConfig(
                todo_states={
                    "unchecked": {"marker": "□", "markdown": [" "]},
                    "checked": {"marker": "✔", "markdown": ["x"]},
                    "blocked": {"marker": "⊘"},
                }
            )
        )
        assert to_markdown(["- ⊘ Stuck", "- ✔ Done"], states) == ["- ⊘ Stuck", "- [x] Done"]
