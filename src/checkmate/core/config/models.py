"""
Configuration data models for checkmate.

These models define the structure of .checkmate.json and
~/.config/checkmate/config.json files, with validation and type safety via
Pydantic. Metadata tag callbacks (``get_value``, ``choices``, ``on_add`` ...)
can only be supplied from Python, since JSON has no callables.
"""

from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .defaults import default_metadata

PROPAGATION_PATTERN = "^(none|direct_children|all_children)$"


class TodoStateConfig(BaseModel):
    """
    One completion state a todo item can be in.

    Every state has a Unicode marker (the live form) and one or more
    single-character markdown tokens (the on-disk ``[c]`` form). The first
    markdown character is used when writing.
    """
    marker: str = Field(..., min_length=1, description="Unicode marker used in the live document")
    markdown: list[str] = Field(
        default_factory=list,
        description="Characters accepted inside [ ] for this state (first one is written)"
    )
    type: str = Field(
        default="inactive",
        pattern="^(incomplete|complete|inactive)$",
        description="Semantic class: incomplete, complete or inactive"
    )
    order: Optional[float] = Field(
        default=None,
        description="Position when cycling through states"
    )

    @field_validator("markdown", mode="before")
    @classmethod
    def validate_markdown(cls, v: Union[str, list[str], None]) -> list[str]:
        """Accept a single character as shorthand for a one-element list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("markdown")
    @classmethod
    def validate_markdown_chars(cls, v: list[str]) -> list[str]:
        for ch in v:
            if len(ch) != 1:
                raise ValueError(f"markdown token must be a single character, got {ch!r}")
        return v


class SmartToggleConfig(BaseModel):
    """
    Parent/child state propagation policy.

    Each direction is one of ``none``, ``direct_children`` or ``all_children``.
    """
    enabled: bool = Field(default=True, description="Enable state propagation")
    check_down: str = Field(
        default="direct_children",
        pattern=PROPAGATION_PATTERN,
        description="Which descendants are checked when a parent is checked"
    )
    uncheck_down: str = Field(
        default="none",
        pattern=PROPAGATION_PATTERN,
        description="Which descendants are unchecked when a parent is unchecked"
    )
    check_up: str = Field(
        default="direct_children",
        pattern=PROPAGATION_PATTERN,
        description="Which children must be checked before a parent is checked"
    )
    uncheck_up: str = Field(
        default="direct_children",
        pattern=PROPAGATION_PATTERN,
        description="Which children being unchecked will uncheck the parent"
    )


class MetadataTagConfig(BaseModel):
    """
    Definition of one ``@tag(value)`` metadata type.

    Example:
        >>> MetadataTagConfig(aliases=["init"], sort_order=20, get_value="today")
    """
    aliases: list[str] = Field(
        default_factory=list,
        description="Alternative tag names treated as this tag"
    )
    sort_order: int = Field(
        default=100,
        description="Left-to-right placement among tags (lower sorts left)"
    )
    get_value: Union[str, Callable[..., Any], None] = Field(
        default=None,
        description="Default value, or a function of the metadata context returning one"
    )
    choices: Union[list[Any], Callable[..., Any], None] = Field(
        default=None,
        description="Allowed values: a list, or a sync/deferred/async function"
    )
    on_add: Optional[Callable[..., Any]] = Field(
        default=None,
        description="Called as on_add(ctx, item) when the tag is newly added"
    )
    on_change: Optional[Callable[..., Any]] = Field(
        default=None,
        description="Called as on_change(ctx, item, old, new) when the value changes"
    )
    on_remove: Optional[Callable[..., Any]] = Field(
        default=None,
        description="Called as on_remove(ctx, item) when the tag is removed"
    )

    model_config = ConfigDict(extra="allow")


class ArchiveHeadingConfig(BaseModel):
    """Heading that introduces the archive section."""
    title: str = Field(default="Archive", min_length=1, description="Heading text")
    level: int = Field(default=2, ge=1, le=6, description="Heading level (number of #)")


class ArchiveConfig(BaseModel):
    """
    Archive behavior.

    Controls where completed root items are moved and how they are laid out.
    """
    heading: ArchiveHeadingConfig = Field(
        default_factory=ArchiveHeadingConfig,
        description="Archive section heading"
    )
    parent_spacing: int = Field(
        default=0,
        ge=0,
        description="Blank lines between archived root items"
    )
    newest_first: bool = Field(
        default=True,
        description="Put newly archived items above older ones"
    )
    include_children: bool = Field(
        default=True,
        description="Move each archived item's whole subtree with it"
    )


class LinterConfig(BaseModel):
    """List indentation linter settings."""
    enabled: bool = Field(default=True, description="Enable the linter")
    verbose: bool = Field(default=False, description="Add expected columns to messages")
    severity: dict[str, str] = Field(
        default_factory=lambda: {
            "INCONSISTENT_MARKER": "info",
            "INDENT_SHALLOW": "warning",
            "INDENT_DEEP": "warning",
        },
        description="Severity per rule id (error, warning, info, hint)"
    )


class LoggingConfig(BaseModel):
    """Logging settings for the command line."""
    level: str = Field(
        default="warning",
        pattern="^(debug|info|warning|error)$",
        description="Minimum level written to stderr"
    )


class CheckmateConfig(BaseModel):
    """
    Top-level checkmate configuration.

    Passed explicitly to the parser, metadata engine and propagation engine.
    It's loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = CheckmateConfig(smart_toggle={"check_down": "all_children"})
        >>> config.smart_toggle.check_down
        'all_children'
    """
    todo_states: dict[str, TodoStateConfig] = Field(
        default_factory=lambda: {
            "unchecked": TodoStateConfig(marker="□", markdown=[" "], type="incomplete", order=1),
            "checked": TodoStateConfig(marker="✔", markdown=["x", "X"], type="complete", order=2),
        },
        validate_default=True,
        description="Completion states by name"
    )
    default_list_marker: str = Field(
        default="-",
        pattern=r"^[-*+]$",
        description="List marker used when converting plain lines to todos"
    )
    smart_toggle: SmartToggleConfig = Field(
        default_factory=SmartToggleConfig,
        description="State propagation policy"
    )
    metadata: dict[str, MetadataTagConfig] = Field(
        default_factory=default_metadata,
        validate_default=True,
        description="Metadata tag definitions by canonical name"
    )
    choices_timeout_ms: int = Field(
        default=5000,
        ge=0,
        description="How long to wait for deferred metadata choices"
    )
    archive: ArchiveConfig = Field(
        default_factory=ArchiveConfig,
        description="Archive section settings"
    )
    linter: LinterConfig = Field(
        default_factory=LinterConfig,
        description="List linter settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,  # Validate on field assignment
    )

    @field_validator("todo_states")
    @classmethod
    def validate_todo_states(cls, v: dict[str, TodoStateConfig]) -> dict[str, TodoStateConfig]:
        """Require the canonical states and keep markers unambiguous."""
        for required in ("unchecked", "checked"):
            if required not in v:
                raise ValueError(f"todo_states must define '{required}'")
        v["unchecked"].type = "incomplete"
        v["checked"].type = "complete"

        seen_markers: dict[str, str] = {}
        seen_markdown: dict[str, str] = {}
        for name, state in v.items():
            if state.marker in seen_markers:
                raise ValueError(
                    f"todo state '{name}' reuses marker {state.marker!r} of '{seen_markers[state.marker]}'"
                )
            seen_markers[state.marker] = name
            for ch in state.markdown:
                if ch in seen_markdown:
                    raise ValueError(
                        f"todo state '{name}' reuses markdown [{ch}] of '{seen_markdown[ch]}'"
                    )
                seen_markdown[ch] = name

        # states without an explicit order are appended after the ordered ones
        next_order = max((s.order for s in v.values() if s.order is not None), default=0)
        for state in v.values():
            if state.order is None:
                next_order += 1
                state.order = next_order
        return v

    @model_validator(mode="after")
    def validate_metadata_aliases(self) -> "CheckmateConfig":
        """An alias may not shadow another tag's canonical name."""
        for name, tag in self.metadata.items():
            for alias in tag.aliases:
                if alias in self.metadata and alias != name:
                    raise ValueError(f"metadata alias '{alias}' of '{name}' is also a tag name")
        return self
