"""
Smart toggle: completion-state changes and their propagation.

A state change on one item can imply changes on its relatives. Checking a
parent may check its children (``check_down``); checking the last open
child may check the parent (``check_up``); the unchecked direction mirrors
both. :class:`PropagationEngine` computes the closure of a batch of explicit
changes under those four policies, and the ``set_state``, ``toggle`` and
``cycle`` operations turn the result into marker hunks inside a
transaction.

Only the canonical ``checked`` and ``unchecked`` states take part in
propagation. Items in a custom state are never forced, and their state
neither blocks nor satisfies a parent.
"""

import heapq
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from checkmate.core.config.models import SmartToggleConfig
from checkmate.core.diff import Hunk, make_marker_replace
from checkmate.core.parser import TodoItem, TodoMap
from checkmate.core.states import CHECKED, UNCHECKED, TodoStates

logger = logging.getLogger(__name__)

StateChange = tuple[int, str]


@dataclass(frozen=True)
class ChildCounts:
    """Completed and total todo children of an item."""

    completed: int
    total: int


class PropagationEngine:
    """
    Computes which items change state when some items are toggled.

    Example:
        >>> engine = PropagationEngine(config.smart_toggle, TodoStates(config))
        >>> engine.compute(todo_map, [(parent.id, "checked")])
        {1: 'checked', 2: 'checked', 3: 'checked'}
    """

    def __init__(self, settings: SmartToggleConfig, states: TodoStates) -> None:
        self.settings = settings
        self.states = states

    def compute(self, todo_map: TodoMap, changes: Iterable[StateChange]) -> dict[int, str]:
        """
        Expand explicit changes into the full set of state changes.

        Args:
            todo_map: Current parse of the document
            changes: ``(item_id, target_state)`` pairs; applied in document
                order whatever order they are given in

        Returns:
            Item ID to new state, in document order, for every item whose
            state actually changes (explicit changes included)
        """
        explicit = [(i, s) for i, s in changes if i in todo_map]
        explicit.sort(key=lambda change: todo_map[change[0]].row)

        want: dict[int, str] = {}
        if not self.settings.enabled:
            for item_id, state in explicit:
                want[item_id] = state
            return self._diff(todo_map, want)

        for item_id, state in explicit:
            self._mark_down(todo_map, want, item_id, state, 0)
        self._propagate_up(todo_map, want, pinned={item_id for item_id, _ in explicit})

        result = self._diff(todo_map, want)
        logger.debug(f"Propagated {len(explicit)} explicit changes to {len(result)} items")
        return result

    # ------------------------------------------------------------------
    # Downward
    # ------------------------------------------------------------------

    def _mark_down(
        self,
        todo_map: TodoMap,
        want: dict[int, str],
        item_id: int,
        state: str,
        depth: int,
    ) -> None:
        if want.get(item_id) == state:
            return
        want[item_id] = state
        if state not in (CHECKED, UNCHECKED):
            return

        policy = self.settings.check_down if state == CHECKED else self.settings.uncheck_down
        if policy == "none" or (policy == "direct_children" and depth > 0):
            return

        for child in todo_map.children_of(todo_map[item_id]):
            if self.states.is_custom(child.state):
                continue
            self._mark_down(todo_map, want, child.id, state, depth + 1)

    # ------------------------------------------------------------------
    # Upward
    # ------------------------------------------------------------------

    def _effective(self, want: dict[int, str], item: TodoItem) -> str:
        return want.get(item.id, item.state)

    def _considered(self, todo_map: TodoMap, parent: TodoItem, policy: str) -> list[TodoItem]:
        if policy == "all_children":
            return todo_map.descendants_of(parent)
        return todo_map.children_of(parent)

    def _should_check(self, todo_map: TodoMap, want: dict[int, str], parent: TodoItem) -> bool:
        policy = self.settings.check_up
        if policy == "none":
            return False
        seen = False
        for child in self._considered(todo_map, parent, policy):
            state = self._effective(want, child)
            if self.states.is_custom(state):
                continue
            if state != CHECKED:
                return False
            seen = True
        return seen

    def _should_uncheck(self, todo_map: TodoMap, want: dict[int, str], parent: TodoItem) -> bool:
        policy = self.settings.uncheck_up
        if policy == "none":
            return False
        return any(
            self._effective(want, child) == UNCHECKED
            for child in self._considered(todo_map, parent, policy)
        )

    def _propagate_up(self, todo_map: TodoMap, want: dict[int, str], pinned: set[int]) -> None:
        # deepest parents first, so each ancestor sees its subtree settled
        depth = {item_id: len(todo_map.ancestors_of(todo_map[item_id])) for item_id in todo_map}
        heap: list[tuple[int, int]] = []
        waves: dict[int, set[str]] = {}

        def schedule(item_id: int, direction: str) -> None:
            if direction not in (CHECKED, UNCHECKED):
                return
            parent_id = todo_map[item_id].parent
            if parent_id is None or parent_id not in todo_map:
                return
            if parent_id not in waves:
                waves[parent_id] = set()
                heapq.heappush(heap, (-depth[parent_id], parent_id))
            waves[parent_id].add(direction)

        for item_id, state in list(want.items()):
            schedule(item_id, state)

        while heap:
            _, parent_id = heapq.heappop(heap)
            directions = waves.pop(parent_id)
            if parent_id in pinned:
                continue
            parent = todo_map[parent_id]
            current = self._effective(want, parent)
            if self.states.is_custom(current):
                continue

            # a check wave only checks, an uncheck wave only unchecks
            if CHECKED in directions and self._should_check(todo_map, want, parent):
                target = CHECKED
            elif UNCHECKED in directions and self._should_uncheck(todo_map, want, parent):
                target = UNCHECKED
            else:
                continue
            if target != current:
                want[parent_id] = target
                schedule(parent_id, target)

    @staticmethod
    def _diff(todo_map: TodoMap, want: dict[int, str]) -> dict[int, str]:
        changed = [
            (item_id, state)
            for item_id, state in want.items()
            if todo_map[item_id].state != state
        ]
        changed.sort(key=lambda change: todo_map[change[0]].row)
        return dict(changed)


# ----------------------------------------------------------------------
# Transaction operations
# ----------------------------------------------------------------------


def _marker_for(states: TodoStates, item: TodoItem, state: str) -> str:
    try:
        return states.token_for(state, item.todo_marker.form)
    except ValueError:
        return states.token_for(state, "unicode")


def set_state(ctx, changes: Sequence[StateChange]) -> list[Hunk]:
    """
    Set item states directly, without propagation.

    The new marker is written in the item's current form, so a ``[ ]``
    item becomes ``[x]`` and a ``□`` item becomes ``✔``.
    """
    states = ctx.document.states
    hunks: list[Hunk] = []
    for item_id, state in changes:
        item = ctx.get_item(item_id)
        if item is None:
            logger.debug(f"set_state: item {item_id} no longer exists")
            continue
        if item.state == state:
            continue
        if state not in states:
            raise KeyError(f"unknown todo state '{state}'")
        hunks.append(make_marker_replace(item, _marker_for(states, item, state)))
    return hunks


def _propagated(ctx, changes: list[StateChange]) -> list[Hunk]:
    engine = PropagationEngine(ctx.config.smart_toggle, ctx.document.states)
    result = engine.compute(ctx.todo_map, changes)
    return set_state(ctx, list(result.items()))


def toggle(ctx, ids: Sequence[int], target_state: str | None = None) -> list[Hunk]:
    """
    Toggle items with smart propagation.

    Args:
        ctx: Transaction context
        ids: Items to toggle
        target_state: State to set; when omitted each checked item becomes
            unchecked and every other item becomes checked
    """
    changes: list[StateChange] = []
    for item_id in ids:
        item = ctx.get_item(item_id)
        if item is None:
            continue
        if target_state is not None:
            state = target_state
        else:
            state = UNCHECKED if item.state == CHECKED else CHECKED
        changes.append((item_id, state))
    return _propagated(ctx, changes)


def cycle(ctx, ids: Sequence[int], backward: bool = False) -> list[Hunk]:
    """Move each item to the next (or previous) state in the configured order."""
    states = ctx.document.states
    changes = [
        (item_id, states.next_state(item.state, backward=backward))
        for item_id in ids
        if (item := ctx.get_item(item_id)) is not None
    ]
    return _propagated(ctx, changes)


def count_child_todos(item: TodoItem, todo_map: TodoMap, recursive: bool = False) -> ChildCounts:
    """
    Count an item's checked children.

    Args:
        item: Parent item
        todo_map: Map the item belongs to
        recursive: Count every descendant instead of direct children only
    """
    children = todo_map.descendants_of(item) if recursive else todo_map.children_of(item)
    completed = sum(1 for child in children if child.state == CHECKED)
    return ChildCounts(completed=completed, total=len(children))
