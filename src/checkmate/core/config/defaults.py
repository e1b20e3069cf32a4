"""
Built-in metadata tags.

``priority``, ``started`` and ``done`` ship enabled. ``done`` keeps the
item's state in step with the tag: adding it checks the item, removing it
unchecks the item.
"""

from datetime import datetime
from typing import Any


def timestamp(_context: Any = None) -> str:
    """Current local time in the format used by the date-valued tags."""
    return datetime.now().strftime("%m/%d/%y %H:%M")


def _set_state_on(state: str):
    def callback(ctx: Any, item: Any) -> None:
        # imported late: the toggle ops import the config package
        from checkmate.core.toggle import set_state

        ctx.add_op(set_state, ((item.id, state),))

    callback.__name__ = f"set_{state}"
    return callback


def default_metadata() -> dict[str, dict[str, Any]]:
    """Return fresh definitions for the built-in tags."""
    return {
        "priority": {
            "sort_order": 10,
            "get_value": "medium",
            "choices": ["low", "medium", "high"],
        },
        "started": {
            "aliases": ["init"],
            "sort_order": 20,
            "get_value": timestamp,
        },
        "done": {
            "aliases": ["completed", "finished"],
            "sort_order": 30,
            "get_value": timestamp,
            "on_add": _set_state_on("checked"),
            "on_remove": _set_state_on("unchecked"),
        },
    }
