"""
Error output and exit codes for the adb CLI.
"""

from enum import IntEnum

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for adb CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """A task operation failed."""

    USER_ERROR = 2
    """Invalid arguments or configuration (actionable by user)."""


def print_error(problem: str, *, solution: str | None = None) -> None:
    """
    Print a standardized error message.

    Example:
        >>> print_error("task TASK-00009 not found", solution="adb list")
    """
    console.print(f"[red]Error:[/red] {problem}")
    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")
