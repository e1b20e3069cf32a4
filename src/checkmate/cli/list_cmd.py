"""
checkmate list - show the todo tree of a document.
"""

from pathlib import Path

import typer
from rich.text import Text
from rich.tree import Tree

from checkmate.cli.common import console, open_document
from checkmate.core.parser import TodoItem, TodoMap
from checkmate.core.states import CHECKED, UNCHECKED
from checkmate.core.text import byte_len, slice_bytes
from checkmate.core.toggle import count_child_todos

STATE_STYLES = {
    CHECKED: "green",
    UNCHECKED: "default",
}


def item_title(item: TodoItem) -> str:
    """The text of an item's first line, without its markers and inline tags."""
    line = item.text
    pos = item.todo_marker.col + byte_len(item.todo_marker.text)
    pieces: list[str] = []
    for entry in item.metadata.entries:
        if entry.range.start.row != item.row:
            continue
        pieces.append(slice_bytes(line, pos, entry.range.start.col))
        pos = entry.range.end.col if entry.range.end.row == item.row else byte_len(line)
    pieces.append(slice_bytes(line, pos))
    return " ".join("".join(pieces).split())


def item_label(item: TodoItem, todo_map: TodoMap, show_metadata: bool = True) -> Text:
    label = Text()
    label.append(f"{item.row + 1:>4} ", style="dim")
    label.append(item.todo_marker.text, style=STATE_STYLES.get(item.state, "yellow"))
    label.append(" ")
    label.append(item_title(item), style="dim" if item.state == CHECKED else "")

    if item.children:
        counts = count_child_todos(item, todo_map)
        label.append(f" [{counts.completed}/{counts.total}]", style="bold")

    if show_metadata:
        for entry in item.metadata.entries:
            label.append(f" @{entry.tag}", style="cyan")
            if entry.value:
                label.append(f"({' '.join(entry.value.split())})", style="cyan")
    return label


def list_todos(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file to read"),
    show_metadata: bool = typer.Option(
        True,
        "--metadata/--no-metadata",
        help="Show metadata tags after each item",
    ),
) -> None:
    """
    Show the todo tree of FILE.

    Rows are printed 1-based, the way the other commands take them.
    """
    document = open_document(ctx, file)
    todo_map = document.todo_map

    if not todo_map:
        console.print(f"[dim]No todo items in {file}[/dim]")
        return

    tree = Tree(Text(str(file), style="bold"))

    def add(branch: Tree, item: TodoItem) -> None:
        node = branch.add(item_label(item, todo_map, show_metadata))
        for child in todo_map.children_of(item):
            add(node, child)

    for root in todo_map.roots():
        add(tree, root)
    console.print(tree)
