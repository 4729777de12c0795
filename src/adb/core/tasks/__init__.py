"""
Task lifecycle for adb.

A task is a ticket directory (``tickets/<id>/``) whose ``status.yaml`` is the
authoritative record. The backlog mirrors a summary of it. Archiving moves
the directory under ``tickets/_archived/`` and unarchiving moves it back.

This package re-exports the models and helpers only. Import the manager
from ``adb.core.tasks.manager``:

    >>> from adb.core.tasks.manager import TaskManager
"""

from .errors import (
    CollaboratorError,
    TaskError,
    TaskNotFoundError,
    TaskParseError,
    TaskPreconditionError,
    TaskStateError,
    TaskStorageError,
    wrap_errors,
)
from .models import HandoffDocument, Task, TaskPriority, TaskStatus, TaskType
from .ticketpath import (
    ARCHIVED_DIR,
    TICKETS_DIR,
    active_ticket_dir,
    archived_ticket_dir,
    is_archived_dir,
    resolve_ticket_dir,
)

__all__ = [
    # Models
    "Task",
    "TaskType",
    "TaskStatus",
    "TaskPriority",
    "HandoffDocument",
    # Errors
    "TaskError",
    "TaskNotFoundError",
    "TaskStateError",
    "TaskStorageError",
    "TaskParseError",
    "TaskPreconditionError",
    "CollaboratorError",
    "wrap_errors",
    # Ticket directories
    "ARCHIVED_DIR",
    "TICKETS_DIR",
    "active_ticket_dir",
    "archived_ticket_dir",
    "resolve_ticket_dir",
    "is_archived_dir",
]
