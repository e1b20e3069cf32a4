"""
checkmate archive - move completed todos under the archive heading.
"""

from pathlib import Path

import typer

from checkmate.cli.common import console, open_document, save_document
from checkmate.core.archive import archive, heading_text


def archive_todos(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file to edit"),
) -> None:
    """Move the checked root todos of FILE, with their children, into its archive section."""
    document = open_document(ctx, file)
    if not archive(document):
        console.print("[dim]No completed todos to archive[/dim]")
        return
    save_document(document)
    console.print(
        f"[green]Archived[/green] completed todos under "
        f"'{heading_text(document.config.archive)}' in {file}"
    )
