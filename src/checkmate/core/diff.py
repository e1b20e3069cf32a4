"""
Hunks: coordinate-bounded text edits.

A :class:`Hunk` replaces the text between two (row, byte column) positions
with zero or more lines. Two granularities exist:

- line hunks (both columns 0) insert, replace or delete whole lines
- text hunks edit a byte span, which may cross rows

A hunk's coordinates are only valid against the document state that
produced it. :func:`apply_diff` applies a batch computed against one
snapshot by filtering no-ops and applying the rest from the bottom of the
document to the top, so no hunk shifts the coordinates of one still
waiting. The batch is one undo step.

Example:
    >>> hunks = [
    ...     make_text_insert(0, 6, " modified"),
    ...     make_line_delete(2),
    ...     make_text_replace(1, 0, 4, "LINE"),
    ... ]
    >>> apply_diff(document, hunks)  # ["line 1", "line 2", "line 3"]
    3
    >>> document.lines
    ['line 1 modified', 'LINE 2']
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from checkmate.core.exceptions import HunkError
from checkmate.core.parser.models import Position, TodoItem
from checkmate.core.text import byte_len, is_char_boundary, slice_bytes

if TYPE_CHECKING:
    from checkmate.core.document import Document

logger = logging.getLogger(__name__)

LINE_INSERT = "line_insert"
LINE_REPLACE = "line_replace"
TEXT_INSERT = "text_insert"
TEXT_REPLACE = "text_replace"


@dataclass
class Hunk:
    """One atomic text edit."""

    start_row: int
    start_col: int
    end_row: int
    end_col: int
    insert: list[str] = field(default_factory=list)
    kind: str = ""

    def __post_init__(self) -> None:
        if not self.kind:
            self.kind = self._detect_kind()
        if (self.end_row, self.end_col) < (self.start_row, self.start_col):
            raise HunkError(f"hunk ends before it starts: {self}")

    def _detect_kind(self) -> str:
        line_boundary = self.start_col == 0 and self.end_col == 0
        same_pos = self.start_row == self.end_row and self.start_col == self.end_col
        if line_boundary and same_pos and self.insert:
            return LINE_INSERT
        if line_boundary and self.start_row != self.end_row:
            return LINE_REPLACE
        if same_pos:
            return TEXT_INSERT
        return TEXT_REPLACE

    @property
    def is_line_edit(self) -> bool:
        return self.kind in (LINE_INSERT, LINE_REPLACE)

    @property
    def is_noop(self) -> bool:
        """An empty span with nothing to insert."""
        empty_span = self.start_row == self.end_row and self.start_col == self.end_col
        if not empty_span:
            return False
        if self.kind == LINE_INSERT:
            return not self.insert
        return not self.insert or self.insert == [""]

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.start_row, self.start_col)

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def apply_to(self, lines: list[str]) -> None:
        """Apply this hunk to ``lines`` in place."""
        if self.kind == LINE_INSERT:
            if not 0 <= self.start_row <= len(lines):
                raise HunkError(f"line insert at row {self.start_row} outside 0..{len(lines)}")
            lines[self.start_row:self.start_row] = list(self.insert)
            return

        if self.kind == LINE_REPLACE:
            if not 0 <= self.start_row <= self.end_row <= len(lines):
                raise HunkError(
                    f"line replace {self.start_row}..{self.end_row} outside 0..{len(lines)}"
                )
            lines[self.start_row:self.end_row] = list(self.insert)
            return

        if not 0 <= self.start_row <= self.end_row < len(lines):
            raise HunkError(f"text edit rows {self.start_row}..{self.end_row} outside document")
        first, last = lines[self.start_row], lines[self.end_row]
        for line, col in ((first, self.start_col), (last, self.end_col)):
            if col > byte_len(line):
                raise HunkError(f"byte column {col} past end of line {line!r}")
            if not is_char_boundary(line, col):
                raise HunkError(f"byte column {col} splits a character in {line!r}")

        new_lines = list(self.insert) or [""]
        new_lines[0] = slice_bytes(first, 0, self.start_col) + new_lines[0]
        new_lines[-1] = new_lines[-1] + slice_bytes(last, self.end_col)
        lines[self.start_row:self.end_row + 1] = new_lines

    # ------------------------------------------------------------------
    # Anchor arithmetic
    # ------------------------------------------------------------------

    def remap(self, row: int, col: int) -> tuple[int, int] | None:
        """
        Map a position from before this hunk to after it.

        Positions before the edited span are unchanged. Positions after it
        shift by the net row and column delta. A position inside a replaced
        text span collapses to the span start; a position on a deleted line
        is dropped (None).
        """
        n = len(self.insert)
        sr, sc, er, ec = self.start_row, self.start_col, self.end_row, self.end_col

        if self.kind == LINE_INSERT:
            return (row + n, col) if row >= sr else (row, col)

        if self.kind == LINE_REPLACE:
            if row < sr:
                return (row, col)
            if row >= er:
                return (row + n - (er - sr), col)
            if row - sr < n:
                return (row, min(col, byte_len(self.insert[row - sr])))
            return None

        if (row, col) < (sr, sc):
            return (row, col)
        is_insert = (sr, sc) == (er, ec)
        if not is_insert and (row, col) < (er, ec):
            return (sr, sc)

        new_count = max(n, 1)
        last_inserted = self.insert[-1] if self.insert else ""
        if row == er:
            base = byte_len(last_inserted) + (sc if new_count == 1 else 0)
            return (sr + new_count - 1, base + (col - ec))
        return (row + (new_count - 1) - (er - sr), col)


# ----------------------------------------------------------------------
# Constructors
# ----------------------------------------------------------------------


def _as_lines(value: str | Sequence[str]) -> list[str]:
    if isinstance(value, str):
        return value.split("\n")
    return list(value)


def _row_span(rows: int | tuple[int, int]) -> tuple[int, int]:
    if isinstance(rows, int):
        return rows, rows
    start, end = rows
    return start, end


def make_line_replace(
    rows: int | tuple[int, int],
    text: str | Sequence[str] | None,
) -> Hunk:
    """
    Replace whole lines.

    Args:
        rows: A row, or an inclusive ``(start, end)`` pair of rows
        text: Replacement; a string containing newlines expands to several
            lines, and None deletes the rows
    """
    start, end = _row_span(rows)
    insert = [] if text is None else _as_lines(text)
    return Hunk(start, 0, end + 1, 0, insert, kind=LINE_REPLACE)


def make_line_insert(row: int, text: str | Sequence[str]) -> Hunk:
    """Insert lines before ``row`` (``row == len(lines)`` appends)."""
    return Hunk(row, 0, row, 0, _as_lines(text), kind=LINE_INSERT)


def make_line_delete(rows: int | tuple[int, int]) -> Hunk:
    return make_line_replace(rows, None)


def make_text_replace(row: int, start_col: int, end_col: int, text: str) -> Hunk:
    """Replace the bytes ``[start_col, end_col)`` of ``row`` with ``text``."""
    kind = TEXT_INSERT if start_col == end_col else TEXT_REPLACE
    return Hunk(row, start_col, row, end_col, _as_lines(text), kind=kind)


def make_text_insert(row: int, col: int, text: str) -> Hunk:
    return Hunk(row, col, row, col, _as_lines(text), kind=TEXT_INSERT)


def make_text_delete(row: int, start_col: int, end_col: int) -> Hunk:
    return Hunk(row, start_col, row, end_col, [], kind=TEXT_REPLACE)


def make_span_replace(start: Position, end: Position, text: str) -> Hunk:
    """Replace a span that may cross rows."""
    kind = TEXT_INSERT if start == end else TEXT_REPLACE
    return Hunk(start.row, start.col, end.row, end.col, _as_lines(text), kind=kind)


def make_marker_replace(item: TodoItem, new_marker: str) -> Hunk:
    """Swap an item's todo marker for ``new_marker``."""
    marker = item.todo_marker
    return make_text_replace(marker.row, marker.col, marker.col + byte_len(marker.text), new_marker)


def make_line_append(row: int, text: str, lines: Sequence[str]) -> Hunk:
    """Append ``text`` to the end of ``row``."""
    line = lines[row] if 0 <= row < len(lines) else ""
    return make_text_insert(row, byte_len(line), text)


# ----------------------------------------------------------------------
# Application
# ----------------------------------------------------------------------


def prepare(hunks: Iterable[Hunk]) -> list[Hunk]:
    """
    Drop no-ops and order hunks bottom-up for application.

    Hunks starting at the same position are applied last-queued first, so
    their inserted text ends up in queue order.
    """
    kept = [(h.sort_key, i, h) for i, h in enumerate(hunks) if not h.is_noop]
    kept.sort(key=lambda entry: (entry[0], entry[1]), reverse=True)
    return [h for _, _, h in kept]


def apply(hunk: Hunk, document: Document) -> int:
    """Apply a single hunk as its own undo step."""
    return apply_diff(document, [hunk])


def apply_diff(document: Document, hunks: Iterable[Hunk]) -> int:
    """
    Apply a batch of hunks as one atomic, undoable edit.

    Args:
        document: Document to edit in place
        hunks: Hunks computed against the document's current state

    Returns:
        Number of hunks applied (no-ops excluded)

    Raises:
        HunkError: If a hunk does not fit the document; the document is left
            unchanged
    """
    ordered = prepare(hunks)
    if not ordered:
        return 0
    document.apply_hunks(ordered)
    logger.debug(f"Applied {len(ordered)} hunks to {document.name}")
    return len(ordered)


def apply_to_lines(lines: Sequence[str], hunks: Iterable[Hunk]) -> list[str]:
    """Apply a batch of hunks to a copy of ``lines``."""
    result = list(lines)
    for hunk in prepare(hunks):
        hunk.apply_to(result)
    return result
