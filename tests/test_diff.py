"""
Tests for hunks and batch application.
"""

import pytest

from checkmate.core.diff import (
    LINE_INSERT,
    LINE_REPLACE,
    TEXT_INSERT,
    TEXT_REPLACE,
    Hunk,
    apply,
    apply_diff,
    apply_to_lines,
    make_line_append,
    make_line_delete,
    make_line_insert,
    make_line_replace,
    make_marker_replace,
    make_span_replace,
    make_text_delete,
    make_text_insert,
    make_text_replace,
    prepare,
)
from checkmate.core.document import Document
from checkmate.core.exceptions import HunkError
from checkmate.core.parser import Position


@pytest.fixture
def doc() -> Document:
    return Document(["line 1", "line 2", "line 3"])


class TestHunkKinds:
    """Tests for hunk construction."""

    def test_constructor_kinds(self) -> None:
        """Test the kind chosen by each constructor."""
        assert make_line_insert(0, "x").kind == LINE_INSERT
        assert make_line_replace(0, "x").kind == LINE_REPLACE
        assert make_line_delete((0, 1)).kind == LINE_REPLACE
        assert make_text_insert(0, 1, "x").kind == TEXT_INSERT
        assert make_text_replace(0, 1, 2, "x").kind == TEXT_REPLACE
        assert make_text_delete(0, 1, 2).kind == TEXT_REPLACE

    def test_detected_kinds(self) -> None:
        """Test kind detection for raw hunks."""
        assert Hunk(2, 0, 2, 0, ["new"]).kind == LINE_INSERT
        assert Hunk(1, 0, 3, 0, []).kind == LINE_REPLACE
        assert Hunk(0, 4, 0, 4, ["x"]).kind == TEXT_INSERT
        assert Hunk(0, 1, 0, 3, ["x"]).kind == TEXT_REPLACE

    def test_reversed_span_rejected(self) -> None:
        """Test that a hunk ending before it starts raises."""
        with pytest.raises(HunkError):
            Hunk(2, 0, 1, 0, [])

    def test_noops(self) -> None:
        """Test no-op detection."""
        assert make_text_insert(0, 3, "").is_noop
        assert make_text_replace(1, 2, 2, "").is_noop
        assert not make_text_insert(0, 3, "x").is_noop
        assert not make_text_delete(0, 1, 2).is_noop

    def test_multiline_text(self) -> None:
        """Test that newlines in replacement text expand to lines."""
        assert make_line_replace(0, "a\nb").insert == ["a", "b"]
        assert make_line_replace((1, 2), None).insert == []


class TestApplyDiff:
    """Tests for applying batches."""

    def test_worked_example(self, doc) -> None:
        """Test a mixed batch whose coordinates all refer to one snapshot."""
        count = apply_diff(doc, [
            make_text_insert(0, 6, " modified"),
            make_line_delete(2),
            make_text_replace(1, 0, 4, "LINE"),
        ])
        assert count == 3
        assert doc.lines == ["line 1 modified", "LINE 2"]

    def test_same_line_edits(self, doc) -> None:
        """Test several edits on one line, queued left to right."""
        apply_diff(doc, [
            make_text_replace(0, 0, 4, "LINE"),
            make_text_insert(0, 5, "#"),
            make_line_append(0, "!", doc.lines),
        ])
        assert doc.lines[0] == "LINE #1!"

    def test_same_position_keeps_queue_order(self, doc) -> None:
        """Test that inserts at one position appear in queue order."""
        apply_diff(doc, [make_text_insert(0, 0, "a"), make_text_insert(0, 0, "b")])
        assert doc.lines[0] == "abline 1"

    def test_line_expansion(self, doc) -> None:
        """Test replacing one line with several."""
        apply_diff(doc, [make_line_replace(1, ["2a", "2b"])])
        assert doc.lines == ["line 1", "2a", "2b", "line 3"]

    def test_line_insert_and_append(self, doc) -> None:
        """Test inserting lines, at the end too."""
        apply_diff(doc, [make_line_insert(0, "top"), make_line_insert(3, "bottom")])
        assert doc.lines == ["top", "line 1", "line 2", "line 3", "bottom"]

    def test_cross_row_replace(self, doc) -> None:
        """Test a span replacement crossing rows."""
        apply_diff(doc, [make_span_replace(Position(0, 4), Position(2, 4), "-")])
        assert doc.lines == ["line- 3"]

    def test_noops_filtered(self, doc) -> None:
        """Test that a batch of no-ops changes nothing."""
        assert apply_diff(doc, [make_text_insert(0, 0, "")]) == 0
        assert not doc.modified
        assert not doc.can_undo

    def test_prepare_orders_bottom_up(self) -> None:
        """Test application order."""
        a = make_text_insert(0, 1, "a")
        b = make_text_insert(2, 0, "b")
        c = make_text_insert(0, 5, "c")
        assert prepare([a, b, c]) == [b, c, a]

    def test_apply_single(self, doc) -> None:
        """Test the single-hunk helper."""
        assert apply(make_text_delete(0, 0, 5), doc) == 1
        assert doc.lines[0] == "1"

    def test_batch_is_one_undo_step(self, doc) -> None:
        """Test that undo reverts a whole batch."""
        apply_diff(doc, [make_text_insert(0, 0, "x"), make_text_insert(2, 0, "y")])
        assert doc.undo()
        assert doc.lines == ["line 1", "line 2", "line 3"]

    def test_apply_to_lines(self) -> None:
        """Test applying to a plain list without a document."""
        lines = ["a", "b"]
        assert apply_to_lines(lines, [make_line_delete(0)]) == ["b"]
        assert lines == ["a", "b"]


class TestUnicode:
    """Tests for byte-column edits on multi-byte text."""

    def test_marker_replace(self) -> None:
        """Test swapping a three-byte marker."""
        doc = Document.from_text("- □ Task")
        item = doc.todo_map.get_by_row(0)
        apply_diff(doc, [make_marker_replace(item, "✔")])
        assert doc.lines == ["- ✔ Task"]

    def test_insert_after_multibyte(self) -> None:
        """Test an insert positioned with byte columns."""
        doc = Document(["é!"])
        apply_diff(doc, [make_text_insert(0, 2, "x")])
        assert doc.lines == ["éx!"]

    def test_split_character_rejected(self) -> None:
        """Test that a column inside a character raises and changes nothing."""
        doc = Document(["é!", "ok"])
        with pytest.raises(HunkError):
            apply_diff(doc, [make_text_insert(1, 0, ">"), make_text_insert(0, 1, "x")])
        assert doc.lines == ["é!", "ok"]
        assert not doc.modified

    def test_column_past_end_rejected(self, doc) -> None:
        """Test that a column beyond the line raises."""
        with pytest.raises(HunkError):
            apply_diff(doc, [make_text_insert(0, 50, "x")])

    def test_row_outside_document_rejected(self, doc) -> None:
        """Test that rows beyond the document raise."""
        with pytest.raises(HunkError):
            apply_diff(doc, [make_text_insert(9, 0, "x")])
        with pytest.raises(HunkError):
            apply_diff(doc, [make_line_insert(9, "x")])


class TestRemap:
    """Tests for position remapping across a hunk."""

    def test_before_edit_unchanged(self) -> None:
        """Test positions before the span stay put."""
        assert make_text_insert(1, 2, "abc").remap(0, 5) == (0, 5)
        assert make_text_insert(1, 2, "abc").remap(1, 1) == (1, 1)

    def test_after_insert_shifts(self) -> None:
        """Test positions after an insert shift by its length."""
        assert make_text_insert(0, 2, "abc").remap(0, 5) == (0, 8)

    def test_inside_replaced_span_collapses(self) -> None:
        """Test positions inside a replacement move to its start."""
        assert make_text_replace(0, 2, 6, "x").remap(0, 4) == (0, 2)

    def test_after_delete_shifts_left(self) -> None:
        """Test positions after a deletion shift left."""
        assert make_text_delete(0, 2, 6).remap(0, 8) == (0, 4)

    def test_line_insert_shifts_rows(self) -> None:
        """Test rows at or below a line insert move down."""
        hunk = make_line_insert(1, ["a", "b"])
        assert hunk.remap(0, 3) == (0, 3)
        assert hunk.remap(1, 3) == (3, 3)

    def test_deleted_line_dropped(self) -> None:
        """Test positions on deleted lines are dropped."""
        hunk = make_line_delete(1)
        assert hunk.remap(1, 0) is None
        assert hunk.remap(2, 4) == (1, 4)

    def test_multiline_insert_moves_rest_of_row(self) -> None:
        """Test text after a line-splitting insert lands on the new last row."""
        hunk = make_text_insert(0, 2, "x\nyz")
        assert hunk.remap(0, 5) == (1, 5)
        assert hunk.remap(1, 0) == (2, 0)
