"""
Line and tag pattern matching.

Recognizes the small subset of Markdown the document model cares about:
list items, todo markers (bracket ``[x]`` tokens and symbolic Unicode
markers), ATX headings, code fences and ``@tag(value)`` metadata. Results
are returned as structured spans rather than booleans so callers can edit
the exact bytes that matched.

All ``*_col`` fields are 0-based UTF-8 byte columns.
"""

import re
from dataclasses import dataclass

from checkmate.core.states import TodoState, TodoStates
from checkmate.core.text import byte_len

LIST_MARKER_PATTERN = r"[-+*]|\d+[.)]"

_LIST_ITEM_RE = re.compile(rf"^(?P<indent>[ \t]*)(?P<marker>{LIST_MARKER_PATTERN})(?=[ \t]|$)")
_HEADING_RE = re.compile(r"^ {0,3}(?P<hashes>#{1,6})(?:[ \t]+|$)")
_FENCE_RE = re.compile(r"^[ \t]*(?P<fence>`{3,}|~{3,})")
_TAG_START_RE = re.compile(r"@(?P<tag>[A-Za-z][A-Za-z0-9_-]*)\(")


@dataclass(frozen=True)
class ListItemMatch:
    """A list item prefix found at the start of a line."""

    indent: int
    """Indentation width in columns."""

    marker: str
    """The list marker text, e.g. ``-`` or ``12.``."""

    marker_col: int
    """Byte column of the list marker."""

    content_col: int
    """Byte column of the first non-blank character after the marker."""

    @property
    def ordered(self) -> bool:
        return self.marker[0].isdigit()


@dataclass(frozen=True)
class TodoMarkerMatch:
    """A todo marker following a list marker."""

    list_item: ListItemMatch
    state: TodoState
    text: str
    """The token exactly as written, e.g. ``[x]`` or ``✔``."""

    col: int
    """Byte column of the token."""

    form: str
    """``"markdown"`` for bracket tokens, ``"unicode"`` for symbolic markers."""

    @property
    def end_col(self) -> int:
        return self.col + byte_len(self.text)


@dataclass(frozen=True)
class MetadataSpan:
    """
    One ``@tag(value)`` occurrence.

    Offsets are string (code point) indexes into the scanned text and are
    end-exclusive. ``value`` is the raw text between the parentheses.
    """

    tag: str
    value: str
    start: int
    end: int
    value_start: int
    value_end: int


def match_list_item(line: str) -> ListItemMatch | None:
    """
    Match a list item prefix.

    A marker must be followed by whitespace or the end of the line, so
    ``-foo`` and ``1.5`` are not list items.

    Example:
        >>> match_list_item("  1. [ ] Task").marker
        '1.'
    """
    m = _LIST_ITEM_RE.match(line)
    if not m:
        return None
    indent = m.group("indent")
    marker = m.group("marker")
    rest = line[m.end():]
    content_offset = m.end() + (len(rest) - len(rest.lstrip(" \t")))
    return ListItemMatch(
        indent=len(indent),
        marker=marker,
        marker_col=byte_len(indent),
        content_col=byte_len(line[:content_offset]),
    )


def heading_level(line: str) -> int | None:
    """Return the ATX heading level of ``line``, or None."""
    m = _HEADING_RE.match(line)
    if not m:
        return None
    return len(m.group("hashes"))


def is_fence(line: str) -> bool:
    """True if ``line`` opens or closes a fenced code block."""
    return _FENCE_RE.match(line) is not None


def find_closing_paren(text: str, open_idx: int) -> int | None:
    """
    Find the parenthesis that balances the one at ``open_idx``.

    Returns:
        Index of the matching ``)``, or None if the group never closes
    """
    depth = 0
    for idx in range(open_idx, len(text)):
        ch = text[idx]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return idx
    return None


def find_metadata(text: str) -> list[MetadataSpan]:
    """
    Scan ``text`` for metadata tags, left to right.

    The value of a tag runs to the balancing parenthesis, so nested groups
    such as ``@issue(fix(api): broken!)`` stay inside one tag. ``text`` may
    contain newlines when a value wraps across lines. A tag that never
    balances is not metadata; scanning resumes just after its ``@``.

    Example:
        >>> [s.tag for s in find_metadata("Task @a(1) @b(f(x)) @bad(")]
        ['a', 'b']
    """
    spans: list[MetadataSpan] = []
    pos = 0
    while True:
        m = _TAG_START_RE.search(text, pos)
        if not m:
            break
        open_idx = m.end() - 1
        close_idx = find_closing_paren(text, open_idx)
        if close_idx is None:
            pos = m.start() + 1
            continue
        spans.append(
            MetadataSpan(
                tag=m.group("tag"),
                value=text[open_idx + 1:close_idx],
                start=m.start(),
                end=close_idx + 1,
                value_start=open_idx + 1,
                value_end=close_idx,
            )
        )
        pos = close_idx + 1
    return spans


class PatternMatcher:
    """
    Todo-marker recognition for one set of todo states.

    The patterns depend on the configured markers, so they are compiled once
    per state set and reused for every line.

    Example:
        >>> matcher = PatternMatcher(states)
        >>> matcher.match_todo("- [x] Done").state.name
        'checked'
    """

    def __init__(self, states: TodoStates) -> None:
        self.states = states
        tokens = [re.escape(f"[{ch}]") for ch in states.markdown_chars]
        # longest first so a marker is never shadowed by its own prefix
        markers = sorted(states.markers, key=len, reverse=True)
        alternatives = []
        if tokens:
            alternatives.append(f"(?P<bracket>{'|'.join(tokens)})")
        alternatives.append(f"(?P<unicode>{'|'.join(re.escape(m) for m in markers)})")
        self._todo_re = re.compile(
            rf"^(?P<prefix>[ \t]*(?:{LIST_MARKER_PATTERN})[ \t]+)"
            rf"(?:{'|'.join(alternatives)})(?=[ \t]|$)"
        )

    def match_todo(self, line: str) -> TodoMarkerMatch | None:
        """Match a todo item's first line, in either marker form."""
        m = self._todo_re.match(line)
        if not m:
            return None
        list_item = match_list_item(line)
        if list_item is None:
            return None
        if m.groupdict().get("bracket"):
            text = m.group("bracket")
            state = self.states.by_markdown(text[1])
            form = "markdown"
        else:
            text = m.group("unicode")
            state = self.states.by_marker(text)
            form = "unicode"
        if state is None:
            return None
        return TodoMarkerMatch(
            list_item=list_item,
            state=state,
            text=text,
            col=byte_len(m.group("prefix")),
            form=form,
        )

    def is_todo(self, line: str) -> bool:
        return self.match_todo(line) is not None
