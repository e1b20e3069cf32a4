"""
checkmate CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import typer
from rich.console import Console

from checkmate import __version__
from checkmate.cli import archive, convert, create, lint, list_cmd, meta, toggle
from checkmate.cli.common import setup_logging
from checkmate.cli.errors import ExitCode
from checkmate.core.config.env import load_layered_env

# Help panel names for command grouping
PANEL_TODOS = "Work with Todos"
PANEL_DOCUMENT = "Whole Documents"

app = typer.Typer(
    name="checkmate",
    help="Checklists in plain markdown files",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    checkmate - checklists in plain markdown files.

    Todo items are list items with a checkbox. Files keep the
    ``[ ]`` / ``[x]`` form on disk; rows on the command line start at 1.

    Common Workflows:
        checkmate list notes.md            # Show the todo tree
        checkmate toggle notes.md 4        # Check or uncheck row 4
        checkmate meta add notes.md 4 due 2024-05-01
        checkmate archive notes.md         # Move finished work away
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging("debug" if debug else "warning")
    ctx.obj = {"debug": debug}


# =============================================================================
# Work with Todos
# =============================================================================

app.command(name="list", rich_help_panel=PANEL_TODOS)(list_cmd.list_todos)
app.command(name="toggle", rich_help_panel=PANEL_TODOS)(toggle.toggle_items)
app.command(name="create", rich_help_panel=PANEL_TODOS)(create.create_items)
app.add_typer(meta.app, name="meta", rich_help_panel=PANEL_TODOS)

# =============================================================================
# Whole Documents
# =============================================================================

app.command(name="archive", rich_help_panel=PANEL_DOCUMENT)(archive.archive_todos)
app.command(name="lint", rich_help_panel=PANEL_DOCUMENT)(lint.lint_file)
app.command(name="convert", rich_help_panel=PANEL_DOCUMENT)(convert.convert_file)


@app.command()
def version() -> None:
    """Show checkmate version and exit."""
    console.print(f"checkmate version {__version__}")
    raise typer.Exit(ExitCode.SUCCESS)


def cli_main() -> None:
    """Main CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        raise SystemExit(ExitCode.SIGINT)


__all__ = ["app", "cli_main"]
