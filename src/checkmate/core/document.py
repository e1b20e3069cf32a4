"""
In-memory checklist documents.

A :class:`Document` is the mutable text every engine works against: a list
of lines plus the state a text editor would keep around it:

- a lazily rebuilt :class:`~checkmate.core.parser.TodoMap`
- item anchors that keep todo IDs stable while the text changes
- external anchors (see :meth:`Document.add_anchor`) that follow edits
- an undo/redo history where every applied batch is one step
- a ``modified`` flag and a change counter

Documents are loaded from and saved to disk in the bracket (``[x]``) form
and kept in memory in the Unicode marker form.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from checkmate.core.config.models import CheckmateConfig
from checkmate.core.convert import to_markdown, to_unicode
from checkmate.core.diff import Hunk
from checkmate.core.exceptions import DocumentReadError, DocumentWriteError
from checkmate.core.parser import DocumentParser, Position, TodoItem, TodoMap
from checkmate.core.states import TodoStates

logger = logging.getLogger(__name__)


@dataclass
class _Snapshot:
    lines: list[str]
    item_anchors: dict[int, Position]
    anchors: dict[int, Position]


class Document:
    """
    A checklist document held in memory.

    Example:
        >>> doc = Document.from_text("- [ ] Parent\\n  - [ ] Child")
        >>> [item.text for item in doc.todo_map.roots()]
        ['- [ ] Parent']
    """

    def __init__(
        self,
        lines: Sequence[str] | None = None,
        config: CheckmateConfig | None = None,
        name: str | None = None,
    ) -> None:
        self.lines: list[str] = list(lines) if lines else [""]
        self.config = config or CheckmateConfig()
        self.name = name or "<memory>"
        self.path: Path | None = None
        self.trailing_newline = False
        self.modified = False
        self.changedtick = 0
        self.closed = False

        self.parser = DocumentParser(self.config)
        self.states: TodoStates = self.parser.states

        self._todo_map: TodoMap | None = None
        self._item_anchors: dict[int, Position] = {}
        self._anchors: dict[int, Position] = {}
        self._next_item_id = 1
        self._next_anchor_id = 1

        self._undo: list[_Snapshot] = []
        self._redo: list[_Snapshot] = []
        self._group_depth = 0
        self._group_recorded = False

    # ------------------------------------------------------------------
    # Construction and persistence
    # ------------------------------------------------------------------

    @classmethod
    def from_text(
        cls,
        text: str,
        config: CheckmateConfig | None = None,
        name: str | None = None,
    ) -> Document:
        """Create a document from a string, splitting on newlines."""
        trailing = text.endswith("\n")
        body = text[:-1] if trailing else text
        doc = cls(body.split("\n"), config=config, name=name)
        doc.trailing_newline = trailing
        return doc

    @classmethod
    def load(cls, path: Path | str, config: CheckmateConfig | None = None) -> Document:
        """
        Read a file and convert its bracket tokens to the live Unicode form.

        The conversion does not count as a modification and is not undoable.

        Raises:
            DocumentReadError: If the file cannot be read or is not UTF-8
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadError(f"Cannot read {path}: {e}") from e

        doc = cls.from_text(text, config=config, name=str(path))
        doc.path = path
        doc.lines = to_unicode(doc.lines, doc.states)
        logger.debug(f"Loaded {path} ({len(doc.lines)} lines)")
        return doc

    def save(self, path: Path | str | None = None) -> Path:
        """
        Write the document in the bracket form.

        Args:
            path: Destination (defaults to the path it was loaded from)

        Returns:
            The path written

        Raises:
            DocumentWriteError: If there is no destination or writing fails;
                the document stays modified and usable
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise DocumentWriteError(f"{self.name} has no file to save to")

        text = "\n".join(to_markdown(self.lines, self.states))
        if self.trailing_newline:
            text += "\n"
        try:
            target.write_text(text, encoding="utf-8")
        except OSError as e:
            raise DocumentWriteError(f"Cannot write {target}: {e}") from e

        self.path = target
        self.modified = False
        logger.debug(f"Saved {target}")
        return target

    def text(self) -> str:
        """The live text, lines joined with newlines."""
        return "\n".join(self.lines) + ("\n" if self.trailing_newline else "")

    def close(self) -> None:
        """Tear the document down; late asynchronous results are discarded."""
        self.closed = True

    # ------------------------------------------------------------------
    # Parsed view
    # ------------------------------------------------------------------

    @property
    def todo_map(self) -> TodoMap:
        """The parsed todo map of the current text (cached until the next edit)."""
        return self._ensure_parsed()

    def _ensure_parsed(self) -> TodoMap:
        if self._todo_map is None:
            hints = {pos.row: item_id for item_id, pos in self._item_anchors.items()}
            todo_map = self.parser.parse(self.lines, ids=hints, next_id=self._next_item_id)
            self._item_anchors = {
                item.id: Position(item.row, item.list_marker.col) for item in todo_map.values()
            }
            if todo_map:
                self._next_item_id = max(self._next_item_id, max(todo_map) + 1)
            self._todo_map = todo_map
        return self._todo_map

    def get_item(self, item_id: int) -> TodoItem | None:
        return self.todo_map.get(item_id)

    def item_at(self, row: int, root_only: bool = False) -> TodoItem | None:
        return self.todo_map.item_at(row, root_only=root_only)

    def line(self, row: int) -> str:
        return self.lines[row] if 0 <= row < len(self.lines) else ""

    # ------------------------------------------------------------------
    # Anchors
    # ------------------------------------------------------------------

    def add_anchor(self, row: int, col: int = 0) -> int:
        """Track a position across edits; returns the anchor's ID."""
        anchor_id = self._next_anchor_id
        self._next_anchor_id += 1
        self._anchors[anchor_id] = Position(row, col)
        return anchor_id

    def anchor(self, anchor_id: int) -> Position | None:
        """Current position of an anchor, or None if its text was deleted."""
        return self._anchors.get(anchor_id)

    def remove_anchor(self, anchor_id: int) -> None:
        self._anchors.pop(anchor_id, None)

    @staticmethod
    def _remap(anchors: dict[int, Position], hunk: Hunk) -> dict[int, Position]:
        remapped: dict[int, Position] = {}
        for anchor_id, pos in anchors.items():
            moved = hunk.remap(pos.row, pos.col)
            if moved is not None:
                remapped[anchor_id] = Position(*moved)
        return remapped

    # ------------------------------------------------------------------
    # Editing and history
    # ------------------------------------------------------------------

    def _snapshot(self) -> _Snapshot:
        self._ensure_parsed()
        return _Snapshot(list(self.lines), dict(self._item_anchors), dict(self._anchors))

    def _restore(self, snap: _Snapshot) -> None:
        self.lines = list(snap.lines)
        self._item_anchors = dict(snap.item_anchors)
        self._anchors = dict(snap.anchors)
        self._todo_map = None
        self.modified = True
        self.changedtick += 1

    def apply_hunks(self, hunks: Sequence[Hunk]) -> None:
        """
        Apply already-ordered hunks as one edit.

        Prefer :func:`checkmate.core.diff.apply_diff`, which filters and
        orders a batch first. Either every hunk lands or none does.
        """
        if not hunks:
            return
        before = self._snapshot()

        lines = list(self.lines)
        item_anchors = dict(self._item_anchors)
        anchors = dict(self._anchors)
        for hunk in hunks:
            hunk.apply_to(lines)
            item_anchors = self._remap(item_anchors, hunk)
            anchors = self._remap(anchors, hunk)

        if not lines:
            lines = [""]
        self._record_undo(before)
        self.lines = lines
        self._item_anchors = item_anchors
        self._anchors = anchors
        self._todo_map = None
        self.modified = True
        self.changedtick += 1

    def _record_undo(self, before: _Snapshot) -> None:
        if self._group_depth and self._group_recorded:
            return
        self._undo.append(before)
        self._redo.clear()
        if self._group_depth:
            self._group_recorded = True

    @contextlib.contextmanager
    def undo_group(self) -> Iterator[None]:
        """Merge every edit made inside the block into one undo step."""
        if self._group_depth == 0:
            self._group_recorded = False
        self._group_depth += 1
        try:
            yield
        finally:
            self._group_depth -= 1
            if self._group_depth == 0:
                self._group_recorded = False

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    def undo(self) -> bool:
        """Revert the most recent undo step. Returns False if there is none."""
        if not self._undo:
            return False
        self._redo.append(self._snapshot())
        self._restore(self._undo.pop())
        return True

    def redo(self) -> bool:
        """Re-apply the most recently undone step. Returns False if there is none."""
        if not self._redo:
            return False
        self._undo.append(self._snapshot())
        self._restore(self._redo.pop())
        return True
