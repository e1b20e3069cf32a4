"""
checkmate meta - add and remove metadata tags.
"""

from pathlib import Path

import typer

from checkmate.cli.common import (
    console,
    fail_on_errors,
    item_for_row,
    open_document,
    report_failures,
    save_document,
)
from checkmate.cli.errors import ExitCode, print_error
from checkmate.core import transaction
from checkmate.core.metadata import MetadataEngine

app = typer.Typer(help="Add and remove metadata tags")


@app.command(name="add")
def add(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file to edit"),
    row: int = typer.Argument(..., help="1-based row of the item"),
    tag: str = typer.Argument(..., help="Tag name, without the @"),
    value: str | None = typer.Argument(
        None,
        help="Tag value (defaults to the tag's configured value)",
    ),
) -> None:
    """
    Add TAG to the item at ROW, or update its value.

    Examples:
        checkmate meta add notes.md 3 priority high
        checkmate meta add notes.md 3 started
    """
    document = open_document(ctx, file)
    item = item_for_row(document, row)
    engine = MetadataEngine(document.config)
    tag = tag.lstrip("@")

    if value is None and engine.props(tag) is None:
        print_error(
            f"Unknown metadata tag @{tag}",
            reason="Only configured tags have a default value",
            solution=f"checkmate meta add {file} {row} {tag} VALUE",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    result = transaction.run(document, lambda tx: tx.add_op(engine.add, item.id, tag, value))
    report_failures(result)
    save_document(document)

    if result.hunks_applied:
        console.print(f"[green]Tagged[/green] row {row} with @{tag}")
    else:
        console.print("[dim]Nothing to change[/dim]")
    fail_on_errors(result)


@app.command(name="remove")
def remove(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file to edit"),
    row: int = typer.Argument(..., help="1-based row of the item"),
    tag: str | None = typer.Argument(None, help="Tag name, without the @"),
    remove_all: bool = typer.Option(False, "--all", help="Remove every tag of the item"),
) -> None:
    """Remove TAG (or every tag, with --all) from the item at ROW."""
    if tag is None and not remove_all:
        print_error("Missing tag", solution=f"checkmate meta remove {file} {row} TAG")
        raise typer.Exit(ExitCode.USER_ERROR)

    document = open_document(ctx, file)
    item = item_for_row(document, row)
    engine = MetadataEngine(document.config)

    def body(tx) -> None:
        if remove_all:
            tx.add_op(engine.remove_all, item.id)
        else:
            tx.add_op(engine.remove, item.id, tag.lstrip("@"))

    result = transaction.run(document, body)
    report_failures(result)
    save_document(document)

    if result.hunks_applied:
        console.print(f"[green]Removed[/green] metadata from row {row}")
    else:
        console.print("[dim]Nothing to change[/dim]")
    fail_on_errors(result)
