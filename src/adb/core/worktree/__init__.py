"""Git worktrees for tasks."""

from .manager import (
    Worktree,
    WorktreeError,
    WorktreeLockError,
    WorktreeManager,
    WorktreeNotFoundError,
)

__all__ = [
    "Worktree",
    "WorktreeError",
    "WorktreeLockError",
    "WorktreeManager",
    "WorktreeNotFoundError",
]
