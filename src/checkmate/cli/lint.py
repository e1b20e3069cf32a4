"""
checkmate lint - check list indentation.
"""

from pathlib import Path

import typer
from rich.table import Table

from checkmate.cli.common import console, open_document
from checkmate.cli.errors import ExitCode
from checkmate.core.linter import Linter

SEVERITY_STYLES = {
    "error": "red",
    "warning": "yellow",
    "info": "blue",
    "hint": "dim",
}


def lint_file(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file to check"),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Include the expected column in each message",
    ),
) -> None:
    """
    Check the list indentation of FILE.

    Exits with status 1 when any warning or error is found.
    """
    document = open_document(ctx, file)
    settings = document.config.linter
    if verbose:
        settings = settings.model_copy(update={"verbose": True})
    diagnostics = Linter(settings).lint(document.lines)

    if not diagnostics:
        console.print(f"[green]✓[/green] {file}: no issues")
        return

    table = Table(title=str(file))
    table.add_column("Row", justify="right")
    table.add_column("Col", justify="right")
    table.add_column("Severity")
    table.add_column("Rule", style="cyan")
    table.add_column("Message")
    for d in diagnostics:
        style = SEVERITY_STYLES.get(d.severity, "")
        table.add_row(
            str(d.row + 1),
            str(d.col + 1),
            f"[{style}]{d.severity}[/{style}]" if style else d.severity,
            d.rule,
            d.message,
        )
    console.print(table)

    if any(d.severity in ("warning", "error") for d in diagnostics):
        raise typer.Exit(ExitCode.GENERAL_ERROR)
