"""
Standardized error handling and exit codes for the checkmate CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for checkmate CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, or lint warnings were found."""

    USER_ERROR = 2
    """Bad input the user can fix (unknown row, unknown tag, bad config)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "No todo item at row 4",
        ...     reason="Row 4 of notes.md is plain text",
        ...     solution="checkmate create notes.md 4",
        ... )
    """
    console.print(f"[red]Error:[/red] {escape(problem)}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {escape(solution)}")


def print_no_item_error(path: str, row: int) -> None:
    """Print error when a command row does not hold a todo item."""
    print_error(
        f"No todo item at row {row}",
        reason=f"Row {row} of {path} is not part of a todo item",
        solution=f"checkmate list {path}",
    )


def print_row_out_of_range_error(path: str, row: int, line_count: int) -> None:
    """Print error when a command row is past the end of the document."""
    print_error(
        f"Row {row} is out of range",
        reason=f"{path} has {line_count} line(s); rows start at 1",
    )
