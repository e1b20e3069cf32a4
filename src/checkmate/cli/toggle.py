"""
checkmate toggle - check or uncheck todo items.
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
from checkmate.core.states import CHECKED, UNCHECKED
from checkmate.core.toggle import cycle, toggle


def toggle_items(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file to edit"),
    rows: list[int] = typer.Argument(..., help="1-based rows of the items to toggle"),
    check: bool = typer.Option(False, "--check", help="Check every item"),
    uncheck: bool = typer.Option(False, "--uncheck", help="Uncheck every item"),
    next_state: bool = typer.Option(
        False,
        "--cycle",
        help="Move each item to the next configured state instead",
    ),
) -> None:
    """
    Toggle the todo items at ROWS of FILE.

    A checked item becomes unchecked and anything else becomes checked.
    Parents and children follow the smart toggle settings.

    Examples:
        checkmate toggle notes.md 3
        checkmate toggle notes.md 3 4 7 --check
    """
    if sum((check, uncheck, next_state)) > 1:
        print_error(
            "Conflicting options",
            reason="--check, --uncheck and --cycle cannot be combined",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    document = open_document(ctx, file)
    ids = tuple(dict.fromkeys(item_for_row(document, row).id for row in rows))

    target = CHECKED if check else UNCHECKED if uncheck else None

    def body(tx) -> None:
        if next_state:
            tx.add_op(cycle, ids)
        else:
            tx.add_op(toggle, ids, target)

    result = transaction.run(document, body)
    report_failures(result)
    save_document(document)

    if result.hunks_applied:
        console.print(f"[green]Updated[/green] {len(ids)} item(s) in {file}")
    else:
        console.print("[dim]Nothing to change[/dim]")
    fail_on_errors(result)
