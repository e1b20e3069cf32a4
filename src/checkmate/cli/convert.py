"""
checkmate convert - print a document with its markers converted.
"""

from enum import Enum
from pathlib import Path

import typer

from checkmate.cli.common import open_document
from checkmate.core.convert import to_markdown


class MarkerForm(str, Enum):
    unicode = "unicode"
    markdown = "markdown"


def convert_file(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file to read"),
    to: MarkerForm = typer.Option(
        MarkerForm.unicode,
        "--to",
        help="Marker form to write: unicode (□ ✔) or markdown ([ ] [x])",
    ),
) -> None:
    """Print FILE to stdout with every todo marker in the chosen form."""
    document = open_document(ctx, file)
    # loading already produced the Unicode form
    lines = document.lines
    if to is MarkerForm.markdown:
        lines = to_markdown(lines, document.states)
    text = "\n".join(lines)
    if document.trailing_newline:
        text += "\n"
    typer.echo(text, nl=False)
