"""
checkmate create - turn lines into todo items.
"""

from pathlib import Path

import typer

from checkmate.cli.common import (
    console,
    fail_on_errors,
    open_document,
    report_failures,
    save_document,
)
from checkmate.cli.errors import ExitCode, print_row_out_of_range_error
from checkmate.core import items, transaction


def create_items(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file to edit"),
    row: int = typer.Argument(..., help="1-based row to convert"),
    end_row: int | None = typer.Option(
        None,
        "--to",
        help="Convert every line from ROW through this row",
    ),
) -> None:
    """
    Create a todo at ROW of FILE.

    A plain line or list item becomes an unchecked todo. On a line that
    already holds a todo, a new empty todo is opened below it.
    """
    document = open_document(ctx, file)
    last = end_row if end_row is not None else row
    for r in (row, last):
        if r < 1 or r > len(document.lines):
            print_row_out_of_range_error(str(file), r, len(document.lines))
            raise typer.Exit(ExitCode.USER_ERROR)

    def body(tx) -> None:
        if end_row is None:
            tx.add_op(items.create, row - 1)
        else:
            tx.add_op(items.create_range, min(row, last) - 1, max(row, last) - 1)

    result = transaction.run(document, body)
    report_failures(result)
    save_document(document)

    if result.hunks_applied:
        console.print(f"[green]Created[/green] todo(s) in {file}")
    else:
        console.print("[dim]Nothing to change[/dim]")
    fail_on_errors(result)
