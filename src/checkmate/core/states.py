"""
Lookup tables over the configured todo states.

The configuration stores states by name. The parser, the converters and the
propagation engine need the reverse questions answered quickly: which state
does this marker belong to, which state does ``[x]`` mean, what is the next
state when cycling. :class:`TodoStates` precomputes those answers once.
"""

from dataclasses import dataclass

from checkmate.core.config.models import CheckmateConfig

CHECKED = "checked"
UNCHECKED = "unchecked"


@dataclass(frozen=True)
class TodoState:
    """A resolved todo state."""

    name: str
    marker: str
    markdown: tuple[str, ...]
    type: str
    order: float

    @property
    def markdown_token(self) -> str | None:
        """The ``[c]`` token written for this state, if it has one."""
        if not self.markdown:
            return None
        return f"[{self.markdown[0]}]"


class TodoStates:
    """Ordered view of the configured todo states."""

    __slots__ = ("_by_name", "_by_marker", "_by_markdown", "_ordered")

    def __init__(self, config: CheckmateConfig) -> None:
        self._by_name: dict[str, TodoState] = {}
        for name, state in config.todo_states.items():
            self._by_name[name] = TodoState(
                name=name,
                marker=state.marker,
                markdown=tuple(state.markdown),
                type=state.type,
                order=state.order if state.order is not None else 0,
            )
        self._ordered = sorted(self._by_name.values(), key=lambda s: (s.order, s.name))
        self._by_marker = {s.marker: s for s in self._ordered}
        self._by_markdown = {ch: s for s in self._ordered for ch in s.markdown}

    def __iter__(self):
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> TodoState:
        """Return the state called ``name``; raises KeyError if unknown."""
        return self._by_name[name]

    def by_marker(self, marker: str) -> TodoState | None:
        return self._by_marker.get(marker)

    def by_markdown(self, ch: str) -> TodoState | None:
        return self._by_markdown.get(ch)

    @property
    def markers(self) -> list[str]:
        return [s.marker for s in self._ordered]

    @property
    def markdown_chars(self) -> list[str]:
        return list(self._by_markdown)

    def is_custom(self, name: str) -> bool:
        """True for any state other than the canonical checked/unchecked pair."""
        return name not in (CHECKED, UNCHECKED)

    def token_for(self, name: str, form: str) -> str:
        """
        Return the text that represents state ``name`` in the given form.

        Args:
            name: State name
            form: ``"unicode"`` or ``"markdown"``

        Raises:
            KeyError: If the state is unknown
            ValueError: If a markdown token is requested for a state without one
        """
        state = self._by_name[name]
        if form == "markdown":
            token = state.markdown_token
            if token is None:
                raise ValueError(f"todo state '{name}' has no markdown representation")
            return token
        return state.marker

    def next_state(self, name: str, backward: bool = False) -> str:
        """Next state in ``order``, wrapping around."""
        names = [s.name for s in self._ordered]
        idx = names.index(name) if name in names else 0
        step = -1 if backward else 1
        return names[(idx + step) % len(names)]
