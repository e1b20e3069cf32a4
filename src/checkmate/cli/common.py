"""
Shared helpers for checkmate commands.

Loading a document with the configuration of the project it lives in,
resolving 1-based command line rows, saving, and reporting the failures
a transaction contained.
"""

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from checkmate.cli.errors import (
    ExitCode,
    print_error,
    print_no_item_error,
    print_row_out_of_range_error,
)
from checkmate.core.config import load_config
from checkmate.core.document import Document
from checkmate.core.exceptions import DocumentReadError, DocumentWriteError
from checkmate.core.parser import TodoItem
from checkmate.core.transaction import TransactionResult
from checkmate.utils import project_dir_for

console = Console()
err_console = Console(stderr=True)


def setup_logging(level: str = "warning") -> None:
    """
    Configure logging for checkmate commands.

    Args:
        level: Minimum level name (debug, info, warning, error)
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )
    logging.getLogger().setLevel(level.upper())


def is_debug(ctx: typer.Context) -> bool:
    obj = ctx.find_root().obj or {}
    return bool(obj.get("debug"))


def open_document(ctx: typer.Context, path: Path) -> Document:
    """
    Load ``path`` with its project configuration, or exit with an error.

    Raises:
        typer.Exit: USER_ERROR on invalid configuration or an unreadable file
    """
    try:
        config = load_config(project_dir=project_dir_for(path))
    except ValidationError as e:
        print_error(
            "Invalid checkmate configuration",
            reason=str(e),
            solution="check .checkmate.json and CHECKMATE_* variables",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    if not is_debug(ctx):
        logging.getLogger().setLevel(config.logging.level.upper())

    try:
        return Document.load(path, config=config)
    except DocumentReadError as e:
        print_error(f"Cannot open {path}", reason=str(e.__cause__ or e))
        raise typer.Exit(ExitCode.USER_ERROR)


def item_for_row(document: Document, row: int) -> TodoItem:
    """
    The todo item covering 1-based ``row``.

    Raises:
        typer.Exit: USER_ERROR if the row is out of range or holds no item
    """
    if row < 1 or row > len(document.lines):
        print_row_out_of_range_error(document.name, row, len(document.lines))
        raise typer.Exit(ExitCode.USER_ERROR)
    item = document.item_at(row - 1)
    if item is None:
        print_no_item_error(document.name, row)
        raise typer.Exit(ExitCode.USER_ERROR)
    return item


def save_document(document: Document) -> None:
    """Save ``document`` if it changed, or exit with GENERAL_ERROR."""
    if not document.modified:
        return
    try:
        document.save()
    except DocumentWriteError as e:
        print_error(f"Cannot save {document.name}", reason=str(e.__cause__ or e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def report_failures(result: TransactionResult) -> None:
    """Print the contained failures of a transaction as warnings."""
    for failure in result.errors:
        err_console.print(
            f"[yellow]Warning:[/yellow] {escape(failure.kind)} "
            f"{escape(failure.name)} failed: {escape(str(failure.error))}"
        )


def fail_on_errors(result: TransactionResult) -> None:
    """Exit with GENERAL_ERROR when a transaction recorded failures."""
    if not result.ok:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
