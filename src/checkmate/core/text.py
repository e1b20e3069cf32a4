"""
Text position helpers.

Everything that records a position in a document (item ranges, metadata
spans, hunk coordinates) stores 0-based UTF-8 byte columns. Human-facing
columns (the CLI, cursor-like positions) are code point columns. The
functions here convert between the two and answer small questions about a
single line. They are pure and hold no state.
"""

import re

_ORDERED_MARKER_RE = re.compile(r"^\s*(\d+)([.)])")
_LEADING_WS_RE = re.compile(r"^\s*")


def byte_len(text: str) -> int:
    """Length of ``text`` once encoded as UTF-8."""
    return len(text.encode("utf-8"))


def char_to_byte_col(line: str, col: int) -> int:
    """
    Convert a code point column to a byte column.

    Columns outside the line are clamped to ``[0, byte_len(line)]``.

    Example:
        >>> char_to_byte_col("- □ Test with ✔ symbols", 3)
        5
    """
    if col <= 0:
        return 0
    if col >= len(line):
        return byte_len(line)
    return byte_len(line[:col])


def byte_to_char_col(line: str, byte_col: int) -> int:
    """
    Convert a byte column to a code point column.

    Columns outside the line are clamped. A byte column that falls inside a
    multi-byte sequence resolves to the character containing it.
    """
    if byte_col <= 0:
        return 0
    encoded = line.encode("utf-8")
    if byte_col >= len(encoded):
        return len(line)
    return len(encoded[:byte_col].decode("utf-8", errors="ignore"))


def is_char_boundary(line: str, byte_col: int) -> bool:
    """Return True if ``byte_col`` does not split a UTF-8 sequence of ``line``."""
    encoded = line.encode("utf-8")
    if byte_col < 0 or byte_col > len(encoded):
        return False
    if byte_col == len(encoded):
        return True
    # continuation bytes look like 0b10xxxxxx
    return (encoded[byte_col] & 0xC0) != 0x80


def slice_bytes(line: str, start: int, end: int | None = None) -> str:
    """Return the part of ``line`` between two byte columns."""
    encoded = line.encode("utf-8")
    stop = len(encoded) if end is None else end
    return encoded[start:stop].decode("utf-8")


def trim_leading(line: str) -> str:
    return line.lstrip()


def trim_trailing(line: str) -> str:
    return line.rstrip()


def leading_whitespace(line: str) -> str:
    """Return the indentation of ``line``."""
    match = _LEADING_WS_RE.match(line)
    return match.group(0) if match else ""


def is_end_of_line(line: str, col: int, include_whitespace: bool = True) -> bool:
    """
    Check whether ``col`` sits on the last character of ``line``.

    Args:
        line: The line to examine
        col: 0-based code point column
        include_whitespace: When False, trailing whitespace does not count
            as part of the line

    Returns:
        True if ``col`` is the final character position
    """
    length = len(line) if include_whitespace else len(trim_trailing(line))
    return col + 1 == length


def get_next_ordered_marker(line: str, restart: bool = False) -> str | None:
    """
    Compute the ordered list marker that should follow the one on ``line``.

    Args:
        line: A line (or bare marker) such as ``"1. [ ] Task"`` or ``"2)"``
        restart: Start numbering again at 1, e.g. for a first nested item

    Returns:
        The next marker (``"2."``, ``"50)"``), or None if ``line`` does not
        begin with an ordered list marker

    Example:
        >>> get_next_ordered_marker("49) [ ] C")
        '50)'
        >>> get_next_ordered_marker("- [ ] E") is None
        True
    """
    match = _ORDERED_MARKER_RE.match(line)
    if not match:
        return None
    number, delimiter = match.groups()
    if restart:
        return f"1{delimiter}"
    return f"{int(number) + 1}{delimiter}"
