"""
Data models for parsed documents.

A parse produces a :class:`TodoMap`: an arena of :class:`TodoItem` records
keyed by integer ID. Items refer to their parent and children by ID only,
never by object reference. Records are immutable; a change to the text
produces a fresh map.

Rows are 0-based. Columns are 0-based UTF-8 byte columns. Range ends are
exclusive.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True, order=True)
class Position:
    """A (row, byte column) location in a document."""

    row: int
    col: int


@dataclass(frozen=True)
class Range:
    """A span between two positions, end-exclusive."""

    start: Position
    end: Position

    def contains(self, row: int, col: int | None = None) -> bool:
        """
        Check whether a row (or a row and column) falls inside this range.

        With ``col`` omitted, any row between the start and end rows matches.
        """
        if row < self.start.row or row > self.end.row:
            return False
        if col is None:
            return True
        if row == self.start.row and col < self.start.col:
            return False
        if row == self.end.row and col > self.end.col:
            return False
        return True

    @property
    def is_multiline(self) -> bool:
        return self.start.row != self.end.row


@dataclass(frozen=True)
class ListMarker:
    """The list marker of an item (``-``, ``*``, ``+``, ``1.``, ``2)`` ...)."""

    text: str
    row: int
    col: int
    ordered: bool


@dataclass(frozen=True)
class TodoMarker:
    """The completion marker of an item, exactly as written."""

    text: str
    """``[x]``-style token or the Unicode marker."""

    row: int
    col: int
    form: str
    """``"markdown"`` or ``"unicode"``."""


@dataclass(frozen=True)
class MetadataEntry:
    """One ``@tag(value)`` attached to a todo item."""

    tag: str
    """Tag name as written."""

    value: str
    """Value with line breaks (and the indentation after them) collapsed to one space."""

    range: Range
    """Span of the whole ``@tag(value)``."""

    value_range: Range
    """Span of the value only, between the parentheses."""

    alias_for: str | None = None
    """Canonical tag name when ``tag`` is an alias."""

    @property
    def canonical(self) -> str:
        return self.alias_for or self.tag


@dataclass(frozen=True)
class ItemMetadata:
    """The metadata of one item, in document order and indexed by tag."""

    entries: tuple[MetadataEntry, ...] = ()
    by_tag: Mapping[str, MetadataEntry] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def find(self, name: str) -> MetadataEntry | None:
        """Look up a tag by its written name or its canonical name."""
        if name in self.by_tag:
            return self.by_tag[name]
        for entry in self.entries:
            if entry.alias_for == name:
                return entry
        return None


@dataclass(frozen=True)
class TodoItem:
    """
    A todo list item.

    ``range`` covers the item and its whole subtree. ``content_range`` covers
    only the item's own first paragraph (its first line plus continuation
    lines), which is where its metadata lives.
    """

    id: int
    state: str
    indent: int
    """Indentation width of the list marker, in columns."""

    list_marker: ListMarker
    todo_marker: TodoMarker
    text: str
    """The item's first line."""

    content: str
    """The first paragraph, lines joined with newlines."""

    range: Range
    content_range: Range
    children: tuple[int, ...] = ()
    parent: int | None = None
    metadata: ItemMetadata = field(default_factory=ItemMetadata)

    @property
    def row(self) -> int:
        """Row of the item's first line."""
        return self.range.start.row

    @property
    def is_root(self) -> bool:
        return self.parent is None


class TodoMap(Mapping[int, TodoItem]):
    """
    The todo items of one document snapshot, keyed by ID.

    Besides mapping IDs to items, the map indexes every content row (first
    lines and continuation lines) and every tag, so position and tag lookups
    do not scan the whole document.
    """

    def __init__(
        self,
        items: dict[int, TodoItem],
        row_index: dict[int, int] | None = None,
    ) -> None:
        self._items = items
        self._ordered = sorted(items.values(), key=lambda i: i.row)
        self._first_rows = {item.row: item.id for item in self._ordered}
        self._row_index = dict(row_index) if row_index is not None else dict(self._first_rows)
        self._tag_index: dict[str, list[int]] = {}
        for item in self._ordered:
            for entry in item.metadata.entries:
                for name in {entry.tag, entry.canonical}:
                    ids = self._tag_index.setdefault(name, [])
                    if item.id not in ids:
                        ids.append(item.id)

    def __getitem__(self, item_id: int) -> TodoItem:
        return self._items[item_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"TodoMap({len(self._items)} items)"

    @property
    def by_row(self) -> Mapping[int, int]:
        """Row to item ID, for every content row of every item."""
        return self._row_index

    def in_document_order(self) -> list[TodoItem]:
        return list(self._ordered)

    def roots(self) -> list[TodoItem]:
        return [item for item in self._ordered if item.parent is None]

    def children_of(self, item: TodoItem) -> list[TodoItem]:
        return [self._items[cid] for cid in item.children if cid in self._items]

    def descendants_of(self, item: TodoItem) -> list[TodoItem]:
        """All descendants of ``item`` in document order."""
        result: list[TodoItem] = []
        stack = list(reversed(item.children))
        while stack:
            child = self._items.get(stack.pop())
            if child is None:
                continue
            result.append(child)
            stack.extend(reversed(child.children))
        return result

    def ancestors_of(self, item: TodoItem) -> list[TodoItem]:
        """Ancestors of ``item``, nearest first."""
        result: list[TodoItem] = []
        parent_id = item.parent
        while parent_id is not None and parent_id in self._items:
            parent = self._items[parent_id]
            result.append(parent)
            parent_id = parent.parent
        return result

    def get_by_row(self, row: int) -> TodoItem | None:
        """Return the item whose first line is ``row``."""
        item_id = self._first_rows.get(row)
        return self._items[item_id] if item_id is not None else None

    def item_at(self, row: int, root_only: bool = False) -> TodoItem | None:
        """
        Find the item at a row.

        A row on an item's first line or continuation lines resolves to that
        item. Otherwise the innermost item whose range contains the row is
        returned, unless ``root_only`` is set, in which case only an item's
        first line matches.
        """
        if root_only:
            return self.get_by_row(row)
        item_id = self._row_index.get(row)
        if item_id is not None:
            return self._items[item_id]
        best: TodoItem | None = None
        for item in self._ordered:
            if item.row > row:
                break
            if item.range.contains(row):
                best = item
        return best

    def with_tag(self, tag: str) -> list[TodoItem]:
        """Items carrying ``tag``, by written or canonical name."""
        return [self._items[i] for i in self._tag_index.get(tag, [])]
