"""
Conversion between the on-disk and live todo marker forms.

On disk, states are written as Markdown task-list tokens (``[ ]``, ``[x]``,
or custom ones such as ``[.]``). In a live document each state is shown as
its Unicode marker (``□``, ``✔``). Only the marker token of a todo line is
rewritten. Everything else on the line, and every line that is not a todo
(including anything inside fenced code blocks), is left alone, so a
load/save cycle reproduces the file byte for byte apart from the tokens
themselves.
"""

import logging
from collections.abc import Sequence

from checkmate.core.patterns import PatternMatcher, TodoMarkerMatch, is_fence
from checkmate.core.states import TodoStates
from checkmate.core.text import slice_bytes

logger = logging.getLogger(__name__)


def _replace_token(line: str, match: TodoMarkerMatch, token: str) -> str:
    return slice_bytes(line, 0, match.col) + token + slice_bytes(line, match.end_col)


def _convert(lines: Sequence[str], states: TodoStates, source_form: str) -> list[str]:
    matcher = PatternMatcher(states)
    target_form = "unicode" if source_form == "markdown" else "markdown"
    result: list[str] = []
    in_fence = False
    changed = 0

    for line in lines:
        if is_fence(line):
            in_fence = not in_fence
            result.append(line)
            continue
        match = None if in_fence else matcher.match_todo(line)
        if match is None or match.form != source_form:
            result.append(line)
            continue
        if target_form == "markdown" and match.state.markdown_token is None:
            # states without a bracket form stay symbolic
            result.append(line)
            continue
        result.append(_replace_token(line, match, states.token_for(match.state.name, target_form)))
        changed += 1

    logger.debug(f"Converted {changed} todo markers to {target_form}")
    return result


def to_unicode(lines: Sequence[str], states: TodoStates) -> list[str]:
    """
    Replace bracket tokens with Unicode markers.

    Example:
        >>> to_unicode(["- [ ] Task", "- [x]"], states)
        ['- □ Task', '- ✔']
    """
    return _convert(lines, states, "markdown")


def to_markdown(lines: Sequence[str], states: TodoStates) -> list[str]:
    """
    Replace Unicode markers with bracket tokens.

    Each state is written with its first markdown character, so ``[X]``
    read from disk is written back as ``[x]``.
    """
    return _convert(lines, states, "unicode")
