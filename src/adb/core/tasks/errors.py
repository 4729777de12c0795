"""
Errors raised by the task lifecycle.

Every public TaskManager operation reports failures as a TaskError subclass
whose message is prefixed with the operation that failed, e.g.
``archiving task TASK-00001: writing handoff.md: [Errno 13] Permission denied``.
The original exception is always kept as ``__cause__``.
"""

from collections.abc import Iterator
from contextlib import contextmanager


class TaskError(Exception):
    """Base class for task lifecycle errors."""

    pass


class TaskNotFoundError(TaskError):
    """Raised when a task ID has no ticket directory or status record."""

    pass


class TaskStateError(TaskError):
    """Raised when a task is already in (or not in) the state an operation needs."""

    pass


class TaskStorageError(TaskError):
    """Raised when reading, writing or moving ticket files fails."""

    pass


class TaskParseError(TaskError):
    """Raised when a status record or marker file is malformed."""

    pass


class TaskPreconditionError(TaskError):
    """Raised when an operation's preconditions are not met (e.g. no worktree)."""

    pass


class CollaboratorError(TaskError):
    """Raised when the backlog, context store, bootstrap or worktree remover fails."""

    pass


@contextmanager
def wrap_errors(context: str) -> Iterator[None]:
    """
    Prefix any error raised inside the block with ``context``.

    TaskErrors keep their class so callers can still tell a missing task from
    a storage failure. OSErrors become TaskStorageError and anything else a
    collaborator raised becomes CollaboratorError.

    Example:
        >>> with wrap_errors("archiving task TASK-00001"):
        ...     with wrap_errors("writing handoff.md"):
        ...         raise PermissionError("denied")
        Traceback (most recent call last):
        TaskStorageError: archiving task TASK-00001: writing handoff.md: denied
    """
    try:
        yield
    except TaskError as e:
        raise type(e)(f"{context}: {e}") from e
    except OSError as e:
        raise TaskStorageError(f"{context}: {e}") from e
    except Exception as e:
        raise CollaboratorError(f"{context}: {e}") from e
