"""
Collaborator protocols used by the TaskManager.

The lifecycle manager depends only on these narrow interfaces, so the
concrete backlog, context, bootstrap and worktree implementations can be
swapped (or, for the optional ones, left out by passing None).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from adb.core.backlog.models import BacklogEntry, BacklogFilter

from .models import Task, TaskPriority, TaskType


@runtime_checkable
class BacklogStore(Protocol):
    """
    Central registry of task summaries (see adb.core.backlog.BacklogStore).

    The manager always calls ``load`` before and ``save`` after mutating.
    """

    def load(self) -> None: ...

    def save(self) -> None: ...

    def add_task(self, entry: BacklogEntry) -> None:
        """Add an entry. Raises if the ID is already present."""
        ...

    def update_task(self, task_id: str, **fields: Any) -> BacklogEntry:
        """Merge non-empty fields into an existing entry. Raises if the ID is absent."""
        ...

    def get_task(self, task_id: str) -> BacklogEntry | None: ...

    def get_all_tasks(self) -> list[BacklogEntry]: ...

    def filter_tasks(self, criteria: BacklogFilter) -> list[BacklogEntry]: ...


@runtime_checkable
class ContextStore(Protocol):
    """Loads prior AI-session context for a task. Optional."""

    def load_context(self, task_id: str) -> Any: ...


@runtime_checkable
class WorktreeRemover(Protocol):
    """Removes the git worktree attached to a task. Optional."""

    def remove_worktree(self, worktree_path: str) -> None: ...


@runtime_checkable
class WorktreeCreator(Protocol):
    """Creates a git worktree for a new task. Optional."""

    def create_worktree(
        self,
        repo_path: str,
        branch: str,
        task_id: str,
        base_branch: str | None = None,
    ) -> str: ...


@dataclass
class BootstrapConfig:
    """Parameters for bootstrapping a new task."""

    type: TaskType
    branch: str
    title: str = ""
    repo_path: str = ""
    priority: TaskPriority = TaskPriority.P2
    owner: str = ""
    tags: list[str] = field(default_factory=list)
    source: str = ""
    # Path-style ID prefix (e.g. "github.com/org/repo"); empty uses the counter.
    prefix: str = ""
    branch_pattern: str = ""
    base_branch: str | None = None


# Called with the freshly bootstrapped task and its ticket directory.
BootstrapHook = Callable[[Task, Any], None]


@runtime_checkable
class BootstrapStep(Protocol):
    """
    Creates a ticket directory for a new task and seeds its documents.

    Must refuse an ID that already has a ticket, and be safe to call again
    after a partial failure.
    """

    def bootstrap(self, config: BootstrapConfig) -> Task: ...
