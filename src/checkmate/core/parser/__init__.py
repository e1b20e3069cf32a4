"""
Document parsing.

Builds the todo tree and inline metadata of a checklist document.
"""

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
from checkmate.core.parser.parser import DocumentParser, parse_lines, parse_text

__all__ = [
    "DocumentParser",
    "ItemMetadata",
    "ListMarker",
    "MetadataEntry",
    "Position",
    "Range",
    "TodoItem",
    "TodoMap",
    "TodoMarker",
    "parse_lines",
    "parse_text",
]
