"""
Parser for checklist documents.

Walks the lines of a document once and rebuilds the todo tree:

    # Project
    - [ ] Parent @priority(high)
      continuation of the parent @started(06/30/25
        20:21)
      - [x] Child
    - □ Another root

Hierarchy comes purely from indentation, using a stack of open list items.
A blank line ends an item's first paragraph but does not close the item;
a heading, or text indented at or below an item's marker, closes it. Lines
inside fenced code blocks are never items.

Parsing never fails. Anything that does not fit the model is treated as
plain text, and an item that cannot be placed becomes a root.
"""

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from checkmate.core.config.models import CheckmateConfig
from checkmate.core.parser.models import (
    ItemMetadata,
    ListMarker,
    MetadataEntry,
    Position,
    Range,
    TodoItem,
    TodoMap,
    TodoMarker,
)
from checkmate.core.patterns import (
    PatternMatcher,
    TodoMarkerMatch,
    find_metadata,
    heading_level,
    is_fence,
    match_list_item,
)
from checkmate.core.states import TodoStates
from checkmate.core.text import byte_len, leading_whitespace

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\n\s*")


@dataclass
class _OpenItem:
    """A list item still accepting lines while the parse walks forward."""

    indent: int
    first_row: int
    last_row: int
    todo: TodoMarkerMatch | None = None
    item_id: int | None = None
    parent_id: int | None = None
    content_rows: list[int] = field(default_factory=list)
    paragraph_open: bool = True
    children: list[int] = field(default_factory=list)


class DocumentParser:
    """
    Turns document lines into a :class:`TodoMap`.

    Example:
        >>> parser = DocumentParser()
        >>> todo_map = parser.parse(["- [ ] Parent", "  - [x] Child"])
        >>> [item.state for item in todo_map.in_document_order()]
        ['unchecked', 'checked']
    """

    def __init__(self, config: CheckmateConfig | None = None) -> None:
        self.config = config or CheckmateConfig()
        self.states = TodoStates(self.config)
        self.matcher = PatternMatcher(self.states)
        self._aliases = {
            alias: name
            for name, tag in self.config.metadata.items()
            for alias in tag.aliases
        }

    def canonical_tag(self, tag: str) -> str | None:
        """Return the canonical name for an alias, or None if ``tag`` is not one."""
        return self._aliases.get(tag)

    def parse(
        self,
        lines: Sequence[str],
        ids: Mapping[int, int] | None = None,
        next_id: int = 1,
    ) -> TodoMap:
        """
        Parse a document snapshot.

        Args:
            lines: The document, one string per line without newlines
            ids: Optional first-row to ID hints; an item starting on a hinted
                row reuses that ID so IDs survive re-parses
            next_id: Smallest ID to hand out to items without a hint

        Returns:
            The parsed TodoMap
        """
        ids = ids or {}
        used: set[int] = set()
        counter = max([next_id, *[i + 1 for i in ids.values()]])

        def assign_id(row: int) -> int:
            nonlocal counter
            hinted = ids.get(row)
            if hinted is not None and hinted not in used:
                used.add(hinted)
                return hinted
            # counter starts above every hint, so fresh IDs never collide
            new_id = counter
            counter += 1
            used.add(new_id)
            return new_id

        stack: list[_OpenItem] = []
        finished: list[_OpenItem] = []
        in_fence = False

        def close_while(predicate) -> None:
            while stack and predicate(stack[-1]):
                finished.append(stack.pop())

        for row, line in enumerate(lines):
            if in_fence:
                if is_fence(line):
                    in_fence = False
                for node in stack:
                    node.last_row = row
                continue

            if not line.strip():
                for node in stack:
                    node.paragraph_open = False
                continue

            if heading_level(line) is not None:
                close_while(lambda _node: True)
                continue

            list_item = match_list_item(line)
            if list_item is not None:
                close_while(lambda node: node.indent >= list_item.indent)
                for node in stack:
                    node.paragraph_open = False
                    node.last_row = row

                todo = self.matcher.match_todo(line)
                node = _OpenItem(indent=list_item.indent, first_row=row, last_row=row, todo=todo)
                if todo is not None:
                    node.item_id = assign_id(row)
                    node.content_rows.append(row)
                    parent = next((n for n in reversed(stack) if n.item_id is not None), None)
                    if parent is not None:
                        node.parent_id = parent.item_id
                        parent.children.append(node.item_id)
                stack.append(node)
                continue

            indent = len(leading_whitespace(line))
            if is_fence(line):
                in_fence = True
                close_while(lambda node: node.indent >= indent)
                for node in stack:
                    node.paragraph_open = False
                    node.last_row = row
                continue

            if stack and stack[-1].paragraph_open and indent > stack[-1].indent:
                top = stack[-1]
                if top.item_id is not None:
                    top.content_rows.append(row)
                for node in stack:
                    node.last_row = row
                continue

            close_while(lambda node: node.indent >= indent)
            for node in stack:
                node.paragraph_open = False
                node.last_row = row

        finished.extend(reversed(stack))

        items: dict[int, TodoItem] = {}
        row_index: dict[int, int] = {}
        for node in finished:
            item = self._build_item(lines, node)
            if item is None:
                continue
            items[item.id] = item
            for content_row in node.content_rows:
                row_index[content_row] = item.id

        logger.debug(f"Parsed {len(items)} todo items from {len(lines)} lines")
        return TodoMap(items, row_index)

    def _build_item(self, lines: Sequence[str], node: _OpenItem) -> TodoItem | None:
        todo = node.todo
        if todo is None or node.item_id is None:
            return None
        first, last = node.content_rows[0], node.content_rows[-1]
        content_lines = [lines[r] for r in range(first, last + 1)]

        return TodoItem(
            id=node.item_id,
            state=todo.state.name,
            indent=node.indent,
            list_marker=ListMarker(
                text=todo.list_item.marker,
                row=first,
                col=todo.list_item.marker_col,
                ordered=todo.list_item.ordered,
            ),
            todo_marker=TodoMarker(text=todo.text, row=first, col=todo.col, form=todo.form),
            text=lines[first],
            content="\n".join(content_lines),
            range=Range(
                Position(first, todo.list_item.marker_col),
                Position(node.last_row, byte_len(lines[node.last_row])),
            ),
            content_range=Range(
                Position(first, todo.list_item.marker_col),
                Position(last, byte_len(lines[last])),
            ),
            children=tuple(node.children),
            parent=node.parent_id,
            metadata=self.extract_metadata(content_lines, first, todo.end_col),
        )

    def extract_metadata(
        self,
        content_lines: Sequence[str],
        first_row: int,
        start_col: int = 0,
    ) -> ItemMetadata:
        """
        Collect the metadata tags of one item's first paragraph.

        The paragraph lines are joined with newlines so a tag value can wrap
        onto following lines. Offsets found in the joined text are mapped
        back to (row, byte column) positions.

        Args:
            content_lines: The item's first line and continuation lines
            first_row: Document row of ``content_lines[0]``
            start_col: Byte column on the first line where scanning starts
        """
        if not any("@" in line for line in content_lines):
            return ItemMetadata()

        raw = "\n".join(content_lines)
        starts: list[int] = []
        offset = 0
        for line in content_lines:
            starts.append(offset)
            offset += len(line) + 1

        def to_position(char_offset: int) -> Position:
            idx = 0
            for i, line_start in enumerate(starts):
                if line_start <= char_offset:
                    idx = i
                else:
                    break
            line = content_lines[idx]
            col = char_offset - starts[idx]
            return Position(first_row + idx, byte_len(line[:col]))

        first_line = content_lines[0]
        skip = len(first_line.encode("utf-8")[:start_col].decode("utf-8", errors="ignore"))

        entries: list[MetadataEntry] = []
        by_tag: dict[str, MetadataEntry] = {}
        for span in find_metadata(raw):
            if span.start < skip:
                continue
            entry = MetadataEntry(
                tag=span.tag,
                value=_LINE_BREAK_RE.sub(" ", span.value),
                range=Range(to_position(span.start), to_position(span.end)),
                value_range=Range(to_position(span.value_start), to_position(span.value_end)),
                alias_for=self.canonical_tag(span.tag),
            )
            entries.append(entry)
            by_tag[entry.tag] = entry

        return ItemMetadata(entries=tuple(entries), by_tag=by_tag)


def parse_lines(lines: Sequence[str], config: CheckmateConfig | None = None) -> TodoMap:
    """
    Parse document lines with a throwaway parser.

    Args:
        lines: Document lines
        config: Configuration (defaults to built-in defaults)

    Returns:
        TodoMap of the document
    """
    return DocumentParser(config).parse(lines)


def parse_text(content: str, config: CheckmateConfig | None = None) -> TodoMap:
    """Parse a document given as one string."""
    return parse_lines(content.split("\n"), config)
