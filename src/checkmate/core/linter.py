"""
List indentation linter.

Checks two CommonMark list indentation rules and one consistency rule:

- a nested marker must start at or right of its parent's content column
  (``INDENT_SHALLOW``)
- it may sit at most three columns past that content column
  (``INDENT_DEEP``)
- ordered and unordered markers should not be mixed at one column
  (``INCONSISTENT_MARKER``)

A single pass over the lines with a small stack of open list items.
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from checkmate.core.config.models import CheckmateConfig, LinterConfig

logger = logging.getLogger(__name__)

_UNORDERED_RE = re.compile(r"^(\s*)([-+*])\s+(.*)$")
_ORDERED_RE = re.compile(r"^(\s*)(\d+[.)])\s+(.*)$")


@dataclass(frozen=True)
class Rule:
    id: str
    message: str
    severity: str


RULES: dict[str, Rule] = {
    "INCONSISTENT_MARKER": Rule(
        "INCONSISTENT_MARKER",
        "Mixed ordered / unordered list markers at this indent level",
        "info",
    ),
    "INDENT_SHALLOW": Rule(
        "INDENT_SHALLOW",
        "List marker indented too little for nesting",
        "warning",
    ),
    "INDENT_DEEP": Rule(
        "INDENT_DEEP",
        "List marker indented too far",
        "warning",
    ),
}


@dataclass(frozen=True)
class Diagnostic:
    """One lint finding. ``row`` and ``col`` are 0-based."""

    rule: str
    message: str
    severity: str
    row: int
    col: int


@dataclass(frozen=True)
class _ListItem:
    marker_col: int
    content_col: int
    marker_type: str


def _parse_list_item(line: str) -> _ListItem | None:
    for pattern, marker_type in ((_UNORDERED_RE, "unordered"), (_ORDERED_RE, "ordered")):
        m = pattern.match(line)
        if m:
            marker_col = len(m.group(1))
            after = marker_col + len(m.group(2))
            rest = line[after:]
            content_col = after + len(rest) - len(rest.lstrip(" \t"))
            return _ListItem(marker_col, content_col, marker_type)
    return None


class Linter:
    """
    Runs the list rules over a document.

    Example:
        >>> Linter().lint(["- Parent", " - Bad child"])[0].rule
        'INDENT_SHALLOW'
    """

    def __init__(self, settings: LinterConfig | None = None) -> None:
        self.settings = settings or LinterConfig()

    def _diagnostic(self, rule_id: str, row: int, col: int, extra: str | None = None) -> Diagnostic:
        rule = RULES[rule_id]
        message = rule.message
        if extra and self.settings.verbose:
            message = f"{message} {extra}"
        severity = self.settings.severity.get(rule_id, rule.severity)
        return Diagnostic(rule=rule_id, message=message, severity=severity, row=row, col=col)

    def lint(self, lines: Sequence[str]) -> list[Diagnostic]:
        if not self.settings.enabled:
            return []

        diagnostics: list[Diagnostic] = []
        stack: list[_ListItem] = []
        marker_types: dict[int, str] = {}

        for row, line in enumerate(lines):
            item = _parse_list_item(line)
            if item is None:
                continue

            while stack and stack[-1].marker_col >= item.marker_col:
                stack.pop()
            parent = stack[-1] if stack else None

            seen = marker_types.get(item.marker_col)
            if seen is not None and seen != item.marker_type:
                diagnostics.append(self._diagnostic("INCONSISTENT_MARKER", row, item.marker_col))
            else:
                marker_types[item.marker_col] = item.marker_type

            if parent is not None:
                if item.marker_col < parent.content_col:
                    diagnostics.append(
                        self._diagnostic(
                            "INDENT_SHALLOW",
                            row,
                            item.marker_col,
                            f"(should be at column {parent.content_col} or greater)",
                        )
                    )
                elif item.marker_col > parent.content_col + 3:
                    diagnostics.append(
                        self._diagnostic(
                            "INDENT_DEEP",
                            row,
                            item.marker_col,
                            f"(maximum allowed is column {parent.content_col + 3})",
                        )
                    )
            stack.append(item)

        logger.debug(f"Lint found {len(diagnostics)} issue(s) in {len(lines)} lines")
        return diagnostics


def lint(
    lines: Sequence[str],
    settings: LinterConfig | CheckmateConfig | None = None,
) -> list[Diagnostic]:
    """Lint ``lines`` with the given (or default) settings."""
    if isinstance(settings, CheckmateConfig):
        settings = settings.linter
    return Linter(settings).lint(lines)
