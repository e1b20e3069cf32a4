"""
Archiving completed todos.

Moves every checked root item, with its subtree, under an archive heading
at the end of the document:

    - □ Open task
    - ✔ Done task
      - ✔ Done child

becomes

    - □ Open task

    ## Archive

    - ✔ Done task
      - ✔ Done child

The archive section runs from its heading to the next heading of the same
or a higher level. Items already inside it stay where they are, so running
the archive twice in a row changes nothing the second time.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from checkmate.core import transaction
from checkmate.core.config.models import ArchiveConfig
from checkmate.core.diff import Hunk, make_line_replace
from checkmate.core.document import Document
from checkmate.core.parser import TodoMap
from checkmate.core.patterns import heading_level, is_fence
from checkmate.core.states import CHECKED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchivePlan:
    """The rewritten document, and how many root items moved."""

    lines: list[str]
    archived: int


def heading_text(settings: ArchiveConfig) -> str:
    return f"{'#' * settings.heading.level} {settings.heading.title}"


def find_archive_section(lines: Sequence[str], settings: ArchiveConfig) -> tuple[int, int] | None:
    """
    Locate the archive section.

    Returns:
        ``(heading_row, last_row)`` inclusive, or None if there is no
        archive heading
    """
    heading = heading_text(settings)
    level = settings.heading.level
    start: int | None = None
    in_fence = False
    for row, line in enumerate(lines):
        if is_fence(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        if start is None:
            if line.strip() == heading:
                start = row
            continue
        found = heading_level(line)
        if found is not None and found <= level:
            return start, row - 1
    if start is None:
        return None
    return start, len(lines) - 1


def _trim_blank(lines: list[str]) -> list[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def plan_archive(lines: Sequence[str], todo_map: TodoMap, settings: ArchiveConfig) -> ArchivePlan:
    """Compute the archived document without touching it."""
    section = find_archive_section(lines, settings)

    def in_section(first: int, last: int) -> bool:
        return section is not None and first > section[0] and last <= section[1]

    blocks: list[tuple[int, int]] = []
    for item in todo_map.roots():
        if item.state != CHECKED or in_section(item.row, item.range.end.row):
            continue
        last = item.range.end.row if settings.include_children else item.content_range.end.row
        blocks.append((item.row, last))
    blocks.sort()

    if not blocks:
        return ArchivePlan(list(lines), 0)

    moved_rows = {row for first, last in blocks for row in range(first, last + 1)}
    block_ends = {last: first for first, last in blocks}

    kept: list[str] = []
    for row, line in enumerate(lines):
        if section is not None and section[0] <= row <= section[1]:
            continue
        if row in moved_rows:
            continue
        if not line.strip() and row - 1 in block_ends:
            # a blank line right after a moved block goes with it when it would double up
            first = block_ends[row - 1]
            blank_before = first > 0 and not lines[first - 1].strip()
            if blank_before or (kept and not kept[-1].strip()):
                continue
        kept.append(line)

    existing: list[str] = []
    if section is not None:
        existing = _trim_blank(list(lines[section[0] + 1:section[1] + 1]))

    spacing = [""] * settings.parent_spacing
    new_lines: list[str] = []
    for idx, (first, last) in enumerate(blocks):
        if idx:
            new_lines.extend(spacing)
        new_lines.extend(lines[first:last + 1])

    if settings.newest_first:
        parts = [new_lines, existing]
    else:
        parts = [existing, new_lines]
    content: list[str] = []
    for part in parts:
        if not part:
            continue
        if content:
            content.extend(spacing)
        content.extend(part)

    result = list(kept)
    while result and not result[-1].strip():
        result.pop()
    if result:
        result.append("")
    result.append(heading_text(settings))
    result.append("")
    result.extend(content)
    return ArchivePlan(result, len(blocks))


def archive_op(ctx, settings: ArchiveConfig | None = None) -> list[Hunk]:
    """Transaction operation that rewrites the document with its archive applied."""
    document = ctx.document
    plan = plan_archive(document.lines, ctx.todo_map, settings or ctx.config.archive)
    if not plan.archived:
        return []
    logger.info(f"Archived {plan.archived} todo item(s) in {document.name}")
    return [make_line_replace((0, len(document.lines) - 1), plan.lines)]


def archive(document: Document, settings: ArchiveConfig | None = None) -> bool:
    """
    Archive the completed root items of ``document``.

    Args:
        document: Document to edit
        settings: Archive settings (defaults to the document's config)

    Returns:
        True if anything moved
    """
    result = transaction.run(document, lambda ctx: ctx.add_op(archive_op, settings))
    return result.hunks_applied > 0
