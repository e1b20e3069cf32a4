"""
Metadata tags.

Insertion, update and removal of ``@tag(value)`` annotations, and
resolution of the values a tag may take.
"""

from checkmate.core.metadata.models import (
    ChoiceSource,
    Deferred,
    Immediate,
    InsertPosition,
    MetadataContext,
)
from checkmate.core.metadata.service import (
    DEFAULT_SORT_ORDER,
    MetadataEngine,
    removal_hunk,
    removal_hunks,
    sanitize_choices,
)

__all__ = [
    "ChoiceSource",
    "DEFAULT_SORT_ORDER",
    "Deferred",
    "Immediate",
    "InsertPosition",
    "MetadataContext",
    "MetadataEngine",
    "removal_hunk",
    "removal_hunks",
    "sanitize_choices",
]
