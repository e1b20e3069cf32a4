"""
Metadata engine.

Adds, updates and removes ``@tag(value)`` annotations on todo items and
resolves the allowed values of a tag.

Tags are kept in ``sort_order`` from left to right: a new tag is inserted
after the last tag that sorts at or before it. All edit methods are
transaction operations (``fn(ctx, ...) -> hunks``) and queue the tag's
lifecycle callbacks, which run once the edit has landed:

- ``on_add(ctx, item)`` when a tag is newly added
- ``on_change(ctx, item, old, new)`` when an existing value changes
- ``on_remove(ctx, item)`` when a tag is removed

Example:
    >>> engine = MetadataEngine(doc.config)
    >>> run(doc, lambda ctx: ctx.add_op(engine.add, item.id, "priority", "high"))
    >>> doc.lines[0]
    '- □ Task @priority(high)'
"""

import asyncio
import inspect
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from checkmate.core.config.models import CheckmateConfig, MetadataTagConfig
from checkmate.core.diff import Hunk, make_line_delete, make_span_replace, make_text_insert
from checkmate.core.exceptions import UnknownTagError
from checkmate.core.metadata.models import (
    ChoiceSource,
    Deferred,
    Immediate,
    InsertPosition,
    MetadataContext,
)
from checkmate.core.parser import MetadataEntry, Position, TodoItem
from checkmate.core.text import byte_len, leading_whitespace, slice_bytes, trim_trailing

if TYPE_CHECKING:
    from checkmate.core.document import Document

logger = logging.getLogger(__name__)

DEFAULT_SORT_ORDER = 100


def _positional_arity(fn: Callable[..., Any]) -> int:
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return 1
    if any(p.kind == p.VAR_POSITIONAL for p in params):
        return 2
    return sum(
        1 for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    )


def sanitize_choices(values: Any, tag: str = "") -> list[str]:
    """
    Normalize a list of choices.

    Strings are trimmed and dropped when empty, numbers become strings, and
    anything else is dropped.
    """
    if not isinstance(values, (list, tuple)):
        logger.warning(f"choices for @{tag} must be a list, got {type(values).__name__}")
        return []
    result: list[str] = []
    for value in values:
        if isinstance(value, str):
            value = value.strip()
            if value:
                result.append(value)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            result.append(str(value))
    return result


def removal_hunk(lines: Sequence[str], start: Position, end: Position) -> Hunk:
    """
    Delete the text between ``start`` and ``end`` without leaving a gap.

    The whitespace in front of the span on its first row is removed with
    it. When the span opens the line's content, the whitespace after it is
    removed instead. Text left on both sides of a wrapped span stays on two
    rows, the second keeping its indentation. Rows left holding only
    whitespace are deleted, so the item's paragraph stays unbroken.
    """
    first, last = lines[start.row], lines[end.row]
    before = slice_bytes(first, 0, start.col)
    after = slice_bytes(last, end.col)
    keep_before, keep_after = bool(before.strip()), bool(after.strip())

    if not keep_before and not keep_after:
        return make_line_delete((start.row, end.row))

    trailing_gap = byte_len(after) - byte_len(after.lstrip())
    start_col, end_col = start.col, end.col + trailing_gap
    replacement = ""
    if keep_before:
        start_col -= byte_len(before) - byte_len(before.rstrip())
        if not keep_after:
            end_col = byte_len(last)
        elif end.row > start.row:
            replacement = "\n" + leading_whitespace(last)
        else:
            end_col = end.col
    return make_span_replace(
        Position(start.row, start_col), Position(end.row, end_col), replacement
    )


def removal_hunks(lines: Sequence[str], entries: Sequence[MetadataEntry]) -> list[Hunk]:
    """Remove several tags of one item, merging spans that would overlap."""
    # [first start, last end, end of the removed span]
    groups: list[list[Position]] = []
    for entry in sorted(entries, key=lambda e: e.range.start):
        hunk = removal_hunk(lines, entry.range.start, entry.range.end)
        start = Position(hunk.start_row, hunk.start_col)
        stop = Position(hunk.end_row, hunk.end_col)
        if groups and start < groups[-1][2]:
            groups[-1][1] = entry.range.end
            groups[-1][2] = max(stop, groups[-1][2])
        else:
            groups.append([entry.range.start, entry.range.end, stop])
    return [removal_hunk(lines, first, last) for first, last, _ in groups]


class MetadataEngine:
    """
    Metadata operations for one configuration.

    Args:
        config: Configuration holding the tag definitions
    """

    def __init__(self, config: CheckmateConfig) -> None:
        self.config = config
        self.tags: dict[str, MetadataTagConfig] = config.metadata
        self._aliases = {
            alias: name for name, tag in self.tags.items() for alias in tag.aliases
        }

    # ------------------------------------------------------------------
    # Tag definitions
    # ------------------------------------------------------------------

    def canonical_name(self, tag: str) -> str | None:
        """Resolve an alias to its tag; None if the tag is not configured."""
        if tag in self.tags:
            return tag
        return self._aliases.get(tag)

    def props(self, tag: str) -> MetadataTagConfig | None:
        canonical = self.canonical_name(tag)
        return self.tags.get(canonical) if canonical else None

    def sort_order(self, tag: str) -> int:
        props = self.props(tag)
        return props.sort_order if props is not None else DEFAULT_SORT_ORDER

    def find_entry(self, item: TodoItem, tag: str) -> MetadataEntry | None:
        """The item's entry for ``tag``, matching aliases in either direction."""
        entry = item.metadata.find(tag)
        if entry is not None:
            return entry
        canonical = self.canonical_name(tag)
        if canonical is None:
            return None
        for candidate in item.metadata.entries:
            if self.canonical_name(candidate.tag) == canonical:
                return candidate
        return None

    def default_value(self, tag: str, item: TodoItem | None = None, document=None) -> str:
        """Evaluate the tag's ``get_value`` (a string, or a function of the context)."""
        props = self.props(tag)
        if props is None or props.get_value is None:
            return ""
        getter = props.get_value
        if isinstance(getter, str):
            return getter

        context = MetadataContext(
            name=self.canonical_name(tag) or tag, value="", item=item, document=document
        )
        try:
            result = getter(context) if _positional_arity(getter) else getter()
        except Exception as e:
            logger.error(f"get_value for @{tag} failed: {e}")
            return ""
        return "" if result is None else str(result)

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def find_insert_position(self, item: TodoItem, tag: str) -> InsertPosition:
        """
        Find where a new tag goes on ``item``.

        Args:
            item: Item receiving the tag
            tag: Tag name (or alias)

        Returns:
            After the last entry that sorts at or before ``tag``; otherwise
            before the first entry that sorts after it; otherwise at the end
            of the item's first line with trailing whitespace ignored.
        """
        entries = item.metadata.entries
        if not entries:
            line = item.text
            return InsertPosition(item.row, byte_len(trim_trailing(line)), True)

        order = self.sort_order(tag)
        last_before: MetadataEntry | None = None
        for entry in entries:
            if self.sort_order(entry.tag) <= order:
                last_before = entry
        if last_before is not None:
            end = last_before.range.end
            return InsertPosition(end.row, end.col, True)

        first_after = next(e for e in entries if self.sort_order(e.tag) > order)
        start = first_after.range.start
        return InsertPosition(start.row, start.col, False)

    def next_metadata(
        self,
        item: TodoItem,
        row: int,
        col: int,
        backward: bool = False,
    ) -> MetadataEntry | None:
        """
        Entry after (or before) a position on the item, wrapping around.

        Returns None when the item has no metadata.
        """
        entries = sorted(item.metadata.entries, key=lambda e: e.range.start)
        if not entries:
            return None
        here = Position(row, col)
        if backward:
            earlier = [e for e in entries if e.range.start < here and not e.range.contains(row, col)]
            return earlier[-1] if earlier else entries[-1]
        later = [e for e in entries if e.range.start > here]
        return later[0] if later else entries[0]

    @staticmethod
    def entry_at(item: TodoItem, row: int, col: int) -> MetadataEntry | None:
        """The entry whose span covers a position."""
        for entry in item.metadata.entries:
            if entry.range.contains(row, col) and Position(row, col) != entry.range.end:
                return entry
        return None

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _queue(self, ctx, hook: str, tag: str, item_id: int, *extra: Any) -> None:
        props = self.props(tag)
        fn = getattr(props, hook, None) if props is not None else None
        if fn is None:
            return

        def fire(tx_ctx) -> None:
            updated = tx_ctx.get_item(item_id)
            if updated is None:
                logger.debug(f"{hook} for @{tag}: item {item_id} is gone")
                return
            fn(tx_ctx, updated, *extra)

        fire.__qualname__ = f"{hook}@{tag}"
        ctx.add_cb(fire)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add(self, ctx, item_id: int, tag: str, value: str | None = None) -> list[Hunk]:
        """
        Add a tag, or update its value if the item already has it.

        Raises:
            UnknownTagError: If ``tag`` is not configured and no value is given
        """
        item = ctx.get_item(item_id)
        if item is None:
            return []
        if value is None:
            if self.props(tag) is None:
                raise UnknownTagError(f"metadata tag @{tag} is not configured")
            value = self.default_value(tag, item, ctx.document)

        existing = self.find_entry(item, tag)
        if existing is not None:
            return self._set_value(ctx, item, existing, value)

        pos = self.find_insert_position(item, tag)
        text = f"@{tag}({value})"
        text = f" {text}" if pos.insert_after_space else f"{text} "
        self._queue(ctx, "on_add", tag, item.id)
        return [make_text_insert(pos.row, pos.col, text)]

    def update(self, ctx, item_id: int, tag: str, value: str) -> list[Hunk]:
        """Change a tag's value; does nothing when the item lacks the tag."""
        item = ctx.get_item(item_id)
        if item is None:
            return []
        existing = self.find_entry(item, tag)
        if existing is None:
            logger.debug(f"update: item {item_id} has no @{tag}")
            return []
        return self._set_value(ctx, item, existing, value)

    def _set_value(self, ctx, item: TodoItem, entry: MetadataEntry, value: str) -> list[Hunk]:
        if entry.value == value:
            return []
        self._queue(ctx, "on_change", entry.tag, item.id, entry.value, value)
        return [make_span_replace(entry.value_range.start, entry.value_range.end, value)]

    def remove(self, ctx, item_id: int, tag: str) -> list[Hunk]:
        """Remove a tag, including wrapped values and nested parentheses."""
        item = ctx.get_item(item_id)
        if item is None:
            return []
        entry = self.find_entry(item, tag)
        if entry is None:
            return []
        self._queue(ctx, "on_remove", entry.tag, item.id)
        return [removal_hunk(ctx.document.lines, entry.range.start, entry.range.end)]

    def remove_all(self, ctx, item_id: int) -> list[Hunk]:
        """Remove every tag of an item."""
        item = ctx.get_item(item_id)
        if item is None or not item.metadata:
            return []
        for entry in item.metadata.entries:
            self._queue(ctx, "on_remove", entry.tag, item.id)
        return removal_hunks(ctx.document.lines, item.metadata.entries)

    def toggle(self, ctx, item_id: int, tag: str, value: str | None = None) -> list[Hunk]:
        """Remove the tag if present, add it otherwise."""
        item = ctx.get_item(item_id)
        if item is None:
            return []
        if self.find_entry(item, tag) is not None:
            return self.remove(ctx, item_id, tag)
        return self.add(ctx, item_id, tag, value)

    # ------------------------------------------------------------------
    # Choices
    # ------------------------------------------------------------------

    def choice_source(self, tag: str, context: MetadataContext) -> ChoiceSource:
        """
        Classify a tag's ``choices`` setting.

        A list, or a plain function of the context, is :class:`Immediate`.
        An ``async def``, or a function taking ``(context, complete)``, is
        :class:`Deferred`.
        """
        props = self.props(tag)
        choices = props.choices if props is not None else None
        if choices is None:
            return Immediate([])
        if not callable(choices):
            return Immediate(list(choices))
        if inspect.iscoroutinefunction(choices):
            return Deferred(choices, is_async=True)
        if _positional_arity(choices) >= 2:
            return Deferred(choices)
        try:
            return Immediate(choices(context) if _positional_arity(choices) else choices())
        except Exception as e:
            logger.error(f"choices for @{tag} failed: {e}")
            return Immediate([])

    async def resolve_choices(
        self,
        tag: str,
        item: TodoItem,
        document: "Document | None" = None,
    ) -> list[str]:
        """
        Resolve the allowed values of a tag.

        A deferred source that does not deliver within ``choices_timeout_ms``
        yields an empty list.
        """
        canonical = self.canonical_name(tag)
        if canonical is None:
            return []
        entry = self.find_entry(item, tag)
        context = MetadataContext(
            name=canonical, value=entry.value if entry else "", item=item, document=document
        )
        source = self.choice_source(canonical, context)
        if isinstance(source, Immediate):
            return sanitize_choices(source.values, canonical)

        timeout = self.config.choices_timeout_ms / 1000
        try:
            if source.is_async:
                values = await asyncio.wait_for(source.fn(context), timeout=timeout)
            else:
                values = await asyncio.wait_for(
                    self._await_completion(source.fn, context), timeout=timeout
                )
        except asyncio.TimeoutError:
            logger.warning(f"choices for @{canonical} timed out")
            return []
        except Exception as e:
            logger.error(f"choices for @{canonical} failed: {e}")
            return []
        return sanitize_choices(values, canonical)

    @staticmethod
    async def _await_completion(fn: Callable[..., Any], context: MetadataContext) -> Any:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def complete(values: Any) -> None:
            if future.cancelled():
                logger.debug(f"Late choices for @{context.name} ignored")
                return
            if future.done():
                logger.warning(
                    f"choices for @{context.name} completed more than once; ignoring"
                )
                return
            future.set_result(values)

        returned = fn(context, complete)
        if inspect.isawaitable(returned):
            returned = await returned
        if isinstance(returned, (list, tuple)) and not future.done():
            return returned
        return await future

    def get_choices(
        self,
        tag: str,
        on_result: Callable[[list[str]], Any],
        item: TodoItem,
        document: "Document | None" = None,
    ) -> "asyncio.Task | None":
        """
        Resolve choices and hand them to ``on_result``.

        Inside a running event loop the work is scheduled and the task is
        returned; otherwise it runs to completion before returning. The
        result is dropped if ``document`` was closed in the meantime.
        """

        async def deliver() -> None:
            values = await self.resolve_choices(tag, item, document)
            if document is not None and document.closed:
                logger.debug(f"Discarding choices for @{tag}: document closed")
                return
            on_result(values)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(deliver())
            return None
        return loop.create_task(deliver())
