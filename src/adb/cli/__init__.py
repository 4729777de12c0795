"""
adb CLI - Main application entry point.

This module sets up the Typer CLI application and registers the task
lifecycle commands.
"""

import logging
import sys

import typer
from rich.console import Console

from adb import __version__
from adb.cli import task
from adb.core.config.env import load_layered_env
from adb.utils.project import get_workspace_root

app = typer.Typer(
    name="adb",
    help="Task lifecycle for AI-assisted development",
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
    adb - tickets, backlog and worktrees for AI-assisted development.

    The workspace is $ADB_HOME, or the nearest directory above the current
    one holding .taskconfig, backlog.yaml or tickets/.

    Quick Start:
        adb new feat add-login        # Create a task
        adb resume TASK-00001         # Start working on it
        adb archive TASK-00001        # Write a handoff and archive it
    """
    # Precedence: OS env > workspace .env > user .env
    load_layered_env(workspace_dir=get_workspace_root())

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
            stream=sys.stderr,
        )
    ctx.obj = {"debug": debug}


app.command(name="new")(task.new)
app.command(name="resume")(task.resume)
app.command(name="show")(task.show)
app.command(name="list")(task.list_tasks)
app.command(name="status")(task.status)
app.command(name="priority")(task.priority)
app.command(name="reorder")(task.reorder)
app.command(name="archive")(task.archive)
app.command(name="unarchive")(task.unarchive)
app.command(name="cleanup")(task.cleanup)


@app.command()
def version() -> None:
    """Show adb version."""
    console.print(f"adb version {__version__}")


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
