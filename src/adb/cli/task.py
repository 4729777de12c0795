"""
adb CLI - task lifecycle commands.

Every command builds a TaskManager for the current workspace, runs one
operation and prints the result. Task errors are printed in red and exit
with status 1.
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.table import Table

from adb.cli.errors import ExitCode, print_error
from adb.core.backlog import BacklogStore
from adb.core.bootstrap import BootstrapSystem, TemplateManager
from adb.core.config import load_config
from adb.core.context import ContextError, ContextManager
from adb.core.ids import TaskIDGenerator
from adb.core.tasks import (
    Task,
    TaskError,
    TaskNotFoundError,
    TaskPriority,
    TaskStatus,
    TaskType,
    resolve_ticket_dir,
)
from adb.core.tasks.manager import CreateTaskOptions, TaskManager
from adb.core.worktree import WorktreeManager
from adb.utils import EventLog, get_workspace_root

console = Console()

PRIORITY_STYLES = {
    TaskPriority.P0: "bold red",
    TaskPriority.P1: "yellow",
    TaskPriority.P2: "white",
    TaskPriority.P3: "dim",
}


def get_manager() -> TaskManager:
    """Wire a TaskManager for the workspace the command runs in."""
    base = get_workspace_root()
    config = load_config(base)
    worktrees = WorktreeManager(base)
    bootstrap = BootstrapSystem(
        base,
        TaskIDGenerator(base, config.task_id.prefix, config.task_id.pad_width),
        TemplateManager(base),
        worktree_creator=worktrees,
    )
    return TaskManager(
        base,
        bootstrap,
        BacklogStore(base),
        ContextManager(base),
        worktrees,
        default_priority=config.defaults.priority,
        event_log=EventLog.for_workspace(base),
    )


@contextmanager
def _handle_errors() -> Iterator[None]:
    try:
        yield
    except TaskNotFoundError as e:
        print_error(str(e), solution="adb list")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except (TaskError, ContextError) as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)


def _print_tasks(tasks: list[Task], title: str) -> None:
    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Pri")
    table.add_column("Status", style="green")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Branch", style="blue")

    for task in sorted(tasks, key=lambda t: (t.priority.numeric_value, t.id)):
        table.add_row(
            task.id,
            f"[{PRIORITY_STYLES[task.priority]}]{task.priority.value}[/]",
            task.status.value,
            task.type.value,
            task.title,
            task.branch,
        )
    console.print(table)


def new(
    task_type: str = typer.Argument(..., help="Task type: feat, bug, spike, refactor"),
    branch: str = typer.Argument(..., help="Branch name / short description"),
    repo: str = typer.Option("", "--repo", "-r", help="Repository to create a worktree from"),
    priority: str | None = typer.Option(None, "--priority", "-p", help="P0-P3"),
    owner: str | None = typer.Option(None, "--owner", "-o", help="Owner handle"),
    tags: list[str] | None = typer.Option(None, "--tag", "-t", help="Tag (can be repeated)"),
    prefix: str = typer.Option(
        "", "--prefix", help="Path-style ID prefix, e.g. github.com/acme/api"
    ),
    title: str = typer.Option("", "--title", help="Title (defaults to the branch)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Create a new task.

    Examples:
        adb new feat add-login
        adb new bug fix-timeout --priority P0 --tag backend
        adb new feat add-login --prefix github.com/acme/api --repo ~/src/api
    """
    with _handle_errors():
        manager = get_manager()
        config = load_config(manager.base_path)
        options = CreateTaskOptions(
            priority=TaskPriority.parse(priority) if priority else None,
            owner=owner if owner is not None else config.defaults.owner,
            tags=tags or [],
            title=title,
            source="cli",
            prefix=prefix,
            branch_pattern=config.branch.pattern,
        )
        task = manager.create_task(TaskType(task_type), branch, repo, options)

    if json_output:
        console.print(json.dumps(task.model_dump(by_alias=True, mode="json"), indent=2))
        return
    console.print(f"[green]Created:[/green] {task.id}")
    console.print(f"  Branch: {task.branch}")
    console.print(f"  Ticket: {resolve_ticket_dir(manager.base_path, task.id)}")
    if task.worktree_path:
        console.print(f"  Worktree: {task.worktree_path}")


def resume(task_id: str = typer.Argument(..., help="Task ID to resume")) -> None:
    """Mark a task in progress and show where work left off."""
    ai = None
    with _handle_errors():
        manager = get_manager()
        task = manager.resume_task(task_id)
        if isinstance(manager.context_store, ContextManager):
            ai = manager.context_store.get_context_for_ai(task.id)

    console.print(f"[green]Resumed:[/green] {task.id} ({task.status.value})")
    if task.worktree_path:
        console.print(f"  Worktree: {task.worktree_path}")
    if ai is not None:
        if ai.summary:
            console.print(f"  Summary: {ai.summary}")
        for question in ai.open_questions:
            console.print(f"  [yellow]?[/yellow] {question}")


def show(
    task_id: str = typer.Argument(..., help="Task ID to display"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show detailed information about a task."""
    with _handle_errors():
        manager = get_manager()
        task = manager.get_task(task_id)

    if json_output:
        console.print(json.dumps(task.model_dump(by_alias=True, mode="json"), indent=2))
        return

    console.print(f"[bold]{task.id}[/bold]: {task.title}")
    console.print(f"  Type: {task.type.value}")
    console.print(f"  Status: {task.status.value}")
    console.print(f"  Priority: {task.priority.value}")
    if task.owner:
        console.print(f"  Owner: {task.owner}")
    if task.branch:
        console.print(f"  Branch: {task.branch}")
    if task.worktree_path:
        console.print(f"  Worktree: {task.worktree_path}")
    if task.tags:
        console.print(f"  Tags: {', '.join(task.tags)}")
    console.print(f"  Ticket: {resolve_ticket_dir(manager.base_path, task.id)}")


def list_tasks(
    status: str | None = typer.Option(None, "--status", "-s", help="Only tasks in this status"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    List tasks from the backlog.

    Examples:
        adb list
        adb list --status in_progress
    """
    with _handle_errors():
        manager = get_manager()
        if status:
            tasks = manager.get_tasks_by_status(TaskStatus(status))
        else:
            tasks = manager.get_all_tasks()

    if json_output:
        data = [t.model_dump(by_alias=True, mode="json") for t in tasks]
        console.print(json.dumps(data, indent=2))
        return
    _print_tasks(tasks, f"Tasks ({status})" if status else "Tasks")


def status(
    task_id: str = typer.Argument(..., help="Task ID"),
    new_status: str = typer.Argument(..., help="backlog, in_progress, blocked, review or done"),
) -> None:
    """Change a task's status."""
    with _handle_errors():
        task = get_manager().update_task_status(task_id, TaskStatus(new_status))
    console.print(f"[green]Updated:[/green] {task.id} is now {task.status.value}")


def priority(
    task_id: str = typer.Argument(..., help="Task ID"),
    new_priority: str = typer.Argument(..., help="P0-P3"),
) -> None:
    """Change a task's priority."""
    with _handle_errors():
        task = get_manager().update_task_priority(task_id, new_priority)
    console.print(f"[green]Updated:[/green] {task.id} is now {task.priority.value}")


def reorder(
    task_ids: list[str] = typer.Argument(..., help="Task IDs, highest priority first"),
) -> None:
    """
    Assign priorities by position (P0, P1, P2, then P3).

    Example:
        adb reorder TASK-00003 TASK-00001 TASK-00002
    """
    with _handle_errors():
        tasks = get_manager().reorder_priorities(task_ids)
    for task in tasks:
        console.print(f"  {task.priority.value}  {task.id}")


def archive(task_id: str = typer.Argument(..., help="Task ID to archive")) -> None:
    """Write handoff.md and move the ticket to tickets/_archived/."""
    with _handle_errors():
        manager = get_manager()
        handoff = manager.archive_task(task_id)

    console.print(f"[green]Archived:[/green] {handoff.task_id}")
    console.print(f"  Handoff: {resolve_ticket_dir(manager.base_path, handoff.task_id)}/handoff.md")
    if handoff.open_items:
        console.print(f"  Open items: {len(handoff.open_items)}")


def unarchive(task_id: str = typer.Argument(..., help="Task ID to restore")) -> None:
    """Move an archived ticket back and restore its previous status."""
    with _handle_errors():
        task = get_manager().unarchive_task(task_id)
    console.print(f"[green]Restored:[/green] {task.id} ({task.status.value})")


def cleanup(task_id: str = typer.Argument(..., help="Task ID")) -> None:
    """Remove the task's git worktree."""
    with _handle_errors():
        task = get_manager().cleanup_worktree(task_id)
    console.print(f"[green]Removed worktree for[/green] {task.id}")
