"""
Data models for the metadata engine.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from checkmate.core.parser import TodoItem

if TYPE_CHECKING:
    from checkmate.core.document import Document


@dataclass(frozen=True)
class InsertPosition:
    """Where a new ``@tag(value)`` goes on an item's line."""

    row: int
    col: int
    """Byte column."""

    insert_after_space: bool
    """
    True when the tag is appended after existing text and needs a separating
    space in front of it. False when it is inserted in front of an existing
    tag and needs a space after it.
    """


@dataclass
class MetadataContext:
    """
    What value getters and choice functions are told about the tag.

    Attributes:
        name: Canonical tag name
        value: Current value ("" when the item does not carry the tag)
        item: The todo item
        document: The document the item belongs to
    """

    name: str
    value: str
    item: TodoItem | None = None
    document: "Document | None" = None


@dataclass(frozen=True)
class Immediate:
    """Choices that are known right away."""

    values: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class Deferred:
    """
    Choices produced later.

    ``fn`` is either an ``async def`` taking the context, or a function
    taking ``(context, complete)`` that calls ``complete(values)`` once.
    """

    fn: Callable[..., Any]
    is_async: bool = False


ChoiceSource = Union[Immediate, Deferred]
