"""
Creating and removing todo items.

``create`` turns a plain line (or list item) into an unchecked todo, or,
on a line that already is a todo, opens a new empty todo below it.
``remove`` turns todos back into plain list items or plain text.
"""

import logging
from collections.abc import Sequence

from checkmate.core.diff import Hunk, make_line_insert, make_text_delete, make_text_insert
from checkmate.core.metadata import MetadataEngine
from checkmate.core.parser import TodoItem, TodoMap
from checkmate.core.patterns import match_list_item
from checkmate.core.states import UNCHECKED, TodoStates
from checkmate.core.text import byte_len, get_next_ordered_marker, leading_whitespace, slice_bytes

logger = logging.getLogger(__name__)


def _preferred_form(todo_map: TodoMap) -> str:
    # follow the document: bracket tokens stay bracket tokens
    items = todo_map.in_document_order()
    return items[0].todo_marker.form if items else "unicode"


def _unchecked_token(states: TodoStates, form: str) -> str:
    return states.token_for(UNCHECKED, form)


def convert_line(ctx, row: int) -> list[Hunk]:
    """Make a non-todo line an unchecked todo, keeping an existing list marker."""
    line = ctx.document.line(row)
    if ctx.document.parser.matcher.match_todo(line) is not None:
        return []
    token = _unchecked_token(ctx.document.states, _preferred_form(ctx.todo_map))

    match = match_list_item(line)
    if match is not None:
        marker_end = match.marker_col + byte_len(match.marker)
        if match.content_col == marker_end:
            return [make_text_insert(row, marker_end, f" {token} ")]
        return [make_text_insert(row, match.content_col, f"{token} ")]

    indent = leading_whitespace(line)
    marker = ctx.config.default_list_marker
    return [make_text_insert(row, byte_len(indent), f"{marker} {token} ")]


def insert_below(ctx, item: TodoItem) -> list[Hunk]:
    """Open an empty unchecked todo after ``item``'s paragraph, at the same indent."""
    line = item.text
    indent = slice_bytes(line, 0, item.list_marker.col)
    marker = item.list_marker.text
    if item.list_marker.ordered:
        marker = get_next_ordered_marker(marker) or marker
    token = _unchecked_token(ctx.document.states, item.todo_marker.form)
    return [make_line_insert(item.content_range.end.row + 1, f"{indent}{marker} {token} ")]


def create(ctx, row: int) -> list[Hunk]:
    """
    Create a todo at ``row``.

    Example:
        ``- Text`` becomes ``- □ Text``; on ``1. □ Task`` a new line
        ``2. □ `` is inserted below.
    """
    item = ctx.get_item_by_row(row)
    if item is not None:
        return insert_below(ctx, item)
    return convert_line(ctx, row)


def create_range(ctx, start_row: int, end_row: int) -> list[Hunk]:
    """Convert every non-blank, non-todo line between two rows (inclusive)."""
    hunks: list[Hunk] = []
    for row in range(start_row, end_row + 1):
        if not ctx.document.line(row).strip():
            continue
        hunks.extend(convert_line(ctx, row))
    return hunks


def strip_marker(ctx, item_id: int, preserve_list_marker: bool = True) -> list[Hunk]:
    """Delete an item's todo marker (and optionally its list marker)."""
    item = ctx.get_item(item_id)
    if item is None:
        return []
    line = item.text
    end = item.todo_marker.col + byte_len(item.todo_marker.text)
    rest = slice_bytes(line, end)
    end += byte_len(rest) - byte_len(rest.lstrip(" \t"))
    start = item.todo_marker.col if preserve_list_marker else item.list_marker.col
    return [make_text_delete(item.row, start, end)]


def _strip_after_metadata(ctx, item_id: int, row: int, preserve_list_marker: bool) -> None:
    item = ctx.get_item(item_id) or ctx.get_item_by_row(row)
    if item is None:
        logger.debug(f"remove: item {item_id} vanished before its marker was stripped")
        return
    ctx.add_op(strip_marker, item.id, preserve_list_marker)


def remove(
    ctx,
    ids: Sequence[int],
    preserve_list_marker: bool = True,
    remove_metadata: bool = True,
) -> list[Hunk]:
    """
    Turn todo items back into non-todo lines.

    Args:
        ctx: Transaction context
        ids: Items to convert
        preserve_list_marker: Keep ``- `` (otherwise only the text remains)
        remove_metadata: Also strip the items' metadata tags, including
            tags on continuation lines
    """
    engine = MetadataEngine(ctx.config)
    hunks: list[Hunk] = []
    for item_id in ids:
        item = ctx.get_item(item_id)
        if item is None:
            continue
        if remove_metadata and item.metadata:
            # metadata edits may touch the marker's line; strip the marker once they land
            hunks.extend(engine.remove_all(ctx, item_id))
            ctx.add_cb(_strip_after_metadata, item_id, item.row, preserve_list_marker)
        else:
            hunks.extend(strip_marker(ctx, item_id, preserve_list_marker))
    return hunks
