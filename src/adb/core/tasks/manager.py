"""
Task lifecycle manager.

Orchestrates the public task operations over two independently persisted
stores: the ticket directory (authoritative) and the backlog (a mirror used
for listing and status filtering). Every mutation follows the same shape:

    load status.yaml -> mutate -> save status.yaml -> mirror into backlog

None of the multi-step sequences are transactional. A failure partway
through is reported, earlier side effects stay in place, and re-running the
operation completes the remaining steps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from adb.core.backlog.models import BacklogEntry, BacklogFilter
from adb.core.ids.paths import is_legacy_task_id, normalize_task_id, validate_path_task_id
from adb.utils.logging import EventLog, EventType

from .errors import (
    CollaboratorError,
    TaskNotFoundError,
    TaskParseError,
    TaskPreconditionError,
    TaskStateError,
    TaskStorageError,
    wrap_errors,
)
from .handoff import build_handoff, write_handoff
from .models import HandoffDocument, Task, TaskPriority, TaskStatus, TaskType
from .record import load_task, save_task, write_task
from .stores import (
    BacklogStore,
    BootstrapConfig,
    BootstrapStep,
    ContextStore,
    WorktreeRemover,
)
from .ticketpath import (
    active_ticket_dir,
    archived_ticket_dir,
    is_archived_dir,
    resolve_ticket_dir,
)

logger = logging.getLogger(__name__)

PRE_ARCHIVE_MARKER = ".pre_archive_status"


@dataclass
class CreateTaskOptions:
    """Optional settings for a new task."""

    # None means the manager's default priority.
    priority: TaskPriority | None = None
    owner: str = ""
    tags: list[str] = field(default_factory=list)
    title: str = ""
    source: str = ""
    # Path-style ID prefix such as "github.com/acme/api"; empty uses the counter.
    prefix: str = ""
    branch_pattern: str = ""


class TaskManager:
    """
    Creates, resumes, re-prioritizes, archives and cleans up tasks.

    The context store and worktree remover are optional; passing None
    disables the corresponding feature.

    Example:
        >>> manager = TaskManager(base, bootstrap, BacklogStore(base))
        >>> task = manager.create_task(TaskType.FEAT, "add-login")
        >>> manager.resume_task(task.id).status
        <TaskStatus.IN_PROGRESS: 'in_progress'>
        >>> handoff = manager.archive_task(task.id)
    """

    def __init__(
        self,
        base_path: Path,
        bootstrap: BootstrapStep,
        backlog: BacklogStore,
        context_store: ContextStore | None = None,
        worktree_remover: WorktreeRemover | None = None,
        *,
        default_priority: TaskPriority = TaskPriority.P2,
        event_log: EventLog | None = None,
    ) -> None:
        self.base_path = Path(base_path)
        self.bootstrap = bootstrap
        self.backlog = backlog
        self.context_store = context_store
        self.worktree_remover = worktree_remover
        self.default_priority = default_priority
        self.event_log = event_log

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize(task_id: str) -> str:
        """
        Normalize a caller-supplied ID and reject path-style IDs that would
        escape the ticket tree.

        Raises:
            InvalidTaskIDError: For empty, absolute or ``.``/``..`` segments
        """
        task_id = normalize_task_id(task_id)
        if not is_legacy_task_id(task_id):
            validate_path_task_id(task_id)
        return task_id

    def _emit(self, event_type: EventType, data: dict[str, Any]) -> None:
        if self.event_log is not None:
            self.event_log.log_event(event_type, data)

    def _mirror(self, task: Task) -> None:
        """Copy status and priority into the backlog entry. Safe to repeat."""
        with wrap_errors("updating backlog"):
            self.backlog.load()
            self.backlog.update_task(task.id, status=task.status, priority=task.priority)
            self.backlog.save()

    def _register(self, task: Task) -> None:
        """Add the backlog entry for a new task. An existing entry is an error."""
        entry = BacklogEntry(
            id=task.id,
            title=task.title,
            source=task.source,
            status=task.status,
            priority=task.priority,
            owner=task.owner,
            repo=task.repo,
            branch=task.branch,
            created=task.created.isoformat() if task.created else "",
            tags=list(task.tags),
            blocked_by=list(task.blocked_by),
            related=list(task.related),
        )
        with wrap_errors("adding to backlog"):
            self.backlog.load()
            self.backlog.add_task(entry)
            self.backlog.save()

    def _read_marker(self, ticket_dir: Path) -> TaskStatus:
        """Status recorded by archive_task. A missing marker restores to backlog."""
        marker = ticket_dir / PRE_ARCHIVE_MARKER
        try:
            text = marker.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            logger.warning("No %s in %s; restoring to backlog", PRE_ARCHIVE_MARKER, ticket_dir)
            return TaskStatus.BACKLOG

        try:
            status = TaskStatus(text)
        except ValueError as e:
            raise TaskParseError(f"invalid pre-archive status {text!r}") from e
        if status == TaskStatus.ARCHIVED:
            raise TaskParseError("pre-archive status must not be 'archived'")
        return status

    def _load_listed(self, entries: list[BacklogEntry]) -> list[Task]:
        tasks: list[Task] = []
        for entry in entries:
            try:
                tasks.append(load_task(self.base_path, entry.id))
            except (TaskNotFoundError, TaskParseError, TaskStorageError) as e:
                logger.debug("Skipping backlog entry %s: %s", entry.id, e)
        return tasks

    # ------------------------------------------------------------------
    # Creation and lookup
    # ------------------------------------------------------------------

    def create_task(
        self,
        task_type: TaskType | str,
        branch: str,
        repo_path: str = "",
        options: CreateTaskOptions | None = None,
    ) -> Task:
        """
        Bootstrap a new ticket, persist its record and register it in the backlog.

        Args:
            task_type: feat, bug, spike or refactor
            branch: Branch name (also the default title)
            repo_path: Repository the task works against, if any
            options: Priority, owner, tags and ID prefix

        Returns:
            The created Task, status backlog

        Raises:
            ValueError: If task_type is not a known type
            TaskError: If the ID already has a ticket or backlog entry, or if
                bootstrap, the record write or the backlog fails
        """
        task_type = TaskType(task_type)
        opts = options or CreateTaskOptions()
        priority = opts.priority if opts.priority is not None else self.default_priority

        config = BootstrapConfig(
            type=task_type,
            branch=branch,
            title=opts.title or branch,
            repo_path=repo_path,
            priority=priority,
            owner=opts.owner,
            tags=list(opts.tags),
            source=opts.source,
            prefix=opts.prefix,
            branch_pattern=opts.branch_pattern,
        )

        with wrap_errors("creating task"):
            with wrap_errors("bootstrapping"):
                task = self.bootstrap.bootstrap(config)

            task.status = TaskStatus.BACKLOG
            task.priority = priority
            if opts.owner:
                task.owner = opts.owner
            if opts.tags:
                task.tags = list(opts.tags)
            task.touch()

            with wrap_errors(f"saving task {task.id}"):
                save_task(self.base_path, task)
            self._register(task)

        logger.info("Created task %s (%s)", task.id, task.type.value)
        self._emit(
            EventType.TASK_CREATED,
            {"task_id": task.id, "type": task.type.value, "branch": task.branch},
        )
        return task

    def get_task(self, task_id: str) -> Task:
        """
        Load a task from its ticket directory (active or archived).

        Raises:
            TaskNotFoundError: If the task has no status.yaml
            TaskParseError: If status.yaml is malformed
        """
        task_id = self._normalize(task_id)
        with wrap_errors(f"getting task {task_id}"):
            return load_task(self.base_path, task_id)

    def get_all_tasks(self) -> list[Task]:
        """Every task registered in the backlog. Orphaned entries are skipped."""
        with wrap_errors("listing tasks"):
            self.backlog.load()
            entries = self.backlog.get_all_tasks()
        return self._load_listed(entries)

    def get_tasks_by_status(self, status: TaskStatus | str) -> list[Task]:
        """Tasks whose backlog entry has ``status``. Orphaned entries are skipped."""
        status = TaskStatus(status)
        with wrap_errors(f"listing {status.value} tasks"):
            self.backlog.load()
            entries = self.backlog.filter_tasks(BacklogFilter(status={status}))
        return self._load_listed(entries)

    # ------------------------------------------------------------------
    # In-place transitions
    # ------------------------------------------------------------------

    def resume_task(self, task_id: str) -> Task:
        """
        Move a task to in_progress and load its prior session context.

        Resuming a task that is already in progress re-saves and re-mirrors
        it, which is harmless.

        Raises:
            TaskNotFoundError: If the task does not exist
            TaskStateError: If the task is archived
            CollaboratorError: If the context store or backlog fails
        """
        task_id = self._normalize(task_id)
        with wrap_errors(f"resuming task {task_id}"):
            task = load_task(self.base_path, task_id)
            if task.is_archived:
                raise TaskStateError("task is archived; unarchive it first")

            previous = task.status
            if task.status != TaskStatus.IN_PROGRESS:
                task.status = TaskStatus.IN_PROGRESS

            if self.context_store is not None:
                with wrap_errors("loading context"):
                    self.context_store.load_context(task_id)

            task.touch()
            with wrap_errors("saving status"):
                save_task(self.base_path, task)
            self._mirror(task)

        logger.info("Resumed task %s", task_id)
        self._emit(
            EventType.TASK_RESUMED,
            {"task_id": task_id, "previous_status": previous.value},
        )
        return task

    def update_task_status(self, task_id: str, status: TaskStatus | str) -> Task:
        """
        Set a task's status.

        Archiving and restoring move the ticket directory, so they go through
        archive_task and unarchive_task instead.

        Raises:
            TaskNotFoundError: If the task does not exist
            TaskStateError: If the task is archived or ``status`` is archived
        """
        task_id = self._normalize(task_id)
        status = TaskStatus(status)
        with wrap_errors(f"updating status of task {task_id}"):
            if status == TaskStatus.ARCHIVED:
                raise TaskStateError("use archive_task to archive a task")
            task = load_task(self.base_path, task_id)
            if task.is_archived:
                raise TaskStateError("task is archived; use unarchive_task to restore it")

            previous = task.status
            task.status = status
            task.touch()
            with wrap_errors("saving status"):
                save_task(self.base_path, task)
            self._mirror(task)

        logger.info("Task %s status %s -> %s", task_id, previous.value, status.value)
        self._emit(
            EventType.TASK_STATUS_CHANGED,
            {"task_id": task_id, "from": previous.value, "to": status.value},
        )
        return task

    def update_task_priority(self, task_id: str, priority: TaskPriority | str | int) -> Task:
        """
        Set a task's priority.

        Raises:
            ValueError: If ``priority`` is not P0..P3
            TaskNotFoundError: If the task does not exist
        """
        task_id = self._normalize(task_id)
        priority = TaskPriority.parse(priority)
        with wrap_errors(f"updating priority of task {task_id}"):
            task = load_task(self.base_path, task_id)
            previous = task.priority
            task.priority = priority
            task.touch()
            with wrap_errors("saving status"):
                save_task(self.base_path, task)
            self._mirror(task)

        self._emit(
            EventType.TASK_PRIORITY_CHANGED,
            {"task_id": task_id, "from": previous.value, "to": priority.value},
        )
        return task

    def reorder_priorities(self, task_ids: list[str]) -> list[Task]:
        """
        Assign priorities by position: P0, P1, P2, then P3 for the rest.

        Stops at the first failure. Tasks updated before it keep their new
        priority.
        """
        updated: list[Task] = []
        with wrap_errors("reordering priorities"):
            for index, task_id in enumerate(task_ids):
                priority = TaskPriority.from_position(index)
                updated.append(self.update_task_priority(task_id, priority))
        return updated

    # ------------------------------------------------------------------
    # Archive / unarchive
    # ------------------------------------------------------------------

    def archive_task(self, task_id: str) -> HandoffDocument:
        """
        Write a handoff and move the ticket to tickets/_archived/.

        Order: pre-archive marker, handoff.md, status.yaml, rename, backlog.
        Everything up to the rename happens in the active directory. If a
        previous attempt stopped after saving the archived status, calling
        this again rewrites the handoff and finishes the move.

        Returns:
            The generated HandoffDocument

        Raises:
            TaskNotFoundError: If the task does not exist
            TaskStateError: If the ticket is already in the archive
            TaskStorageError: If any file write or the rename fails
        """
        task_id = self._normalize(task_id)
        with wrap_errors(f"archiving task {task_id}"):
            task = load_task(self.base_path, task_id)
            ticket_dir = resolve_ticket_dir(self.base_path, task_id)
            if is_archived_dir(self.base_path, ticket_dir):
                raise TaskStateError("task is already archived")

            if task.is_archived:
                logger.info("Completing interrupted archive of %s", task_id)
                previous = self._read_marker(ticket_dir)
            else:
                previous = task.status
                with wrap_errors("writing pre-archive marker"):
                    (ticket_dir / PRE_ARCHIVE_MARKER).write_text(previous.value, encoding="utf-8")

            with wrap_errors("building handoff"):
                handoff = build_handoff(task, ticket_dir)
            with wrap_errors("writing handoff.md"):
                write_handoff(ticket_dir, handoff)

            if not task.is_archived:
                task.status = TaskStatus.ARCHIVED
                task.touch()
                with wrap_errors("saving status"):
                    write_task(ticket_dir, task)

            target = archived_ticket_dir(self.base_path, task_id)
            with wrap_errors("moving ticket directory"):
                if target.exists():
                    raise TaskStateError(f"archive destination {target} already exists")
                target.parent.mkdir(parents=True, exist_ok=True)
                ticket_dir.rename(target)

            self._mirror(task)

        logger.info("Archived task %s (was %s)", task_id, previous.value)
        self._emit(
            EventType.TASK_ARCHIVED,
            {"task_id": task_id, "previous_status": previous.value},
        )
        return handoff

    def unarchive_task(self, task_id: str) -> Task:
        """
        Move an archived ticket back and restore its pre-archive status.

        The directory is moved before the record is touched, so a failed
        rename leaves the task fully archived. handoff.md stays with the
        ticket; the pre-archive marker is removed once the backlog agrees.

        Raises:
            TaskNotFoundError: If the task does not exist
            TaskStateError: If the task is not archived
            TaskParseError: If the pre-archive marker is invalid
        """
        task_id = self._normalize(task_id)
        with wrap_errors(f"unarchiving task {task_id}"):
            task = load_task(self.base_path, task_id)
            ticket_dir = resolve_ticket_dir(self.base_path, task_id)
            in_archive = is_archived_dir(self.base_path, ticket_dir)
            if not in_archive and not task.is_archived:
                raise TaskStateError("task is not archived")

            with wrap_errors("reading pre-archive marker"):
                restored = self._read_marker(ticket_dir)

            active = active_ticket_dir(self.base_path, task_id)
            if in_archive:
                with wrap_errors("moving ticket directory"):
                    if active.exists():
                        raise TaskStateError(f"active ticket directory {active} already exists")
                    active.parent.mkdir(parents=True, exist_ok=True)
                    ticket_dir.rename(active)
            else:
                logger.info("Completing interrupted unarchive of %s", task_id)

            task.status = restored
            task.touch()
            with wrap_errors("saving status"):
                write_task(active, task)
            self._mirror(task)

            with wrap_errors("removing pre-archive marker"):
                (active / PRE_ARCHIVE_MARKER).unlink(missing_ok=True)

        logger.info("Unarchived task %s to %s", task_id, restored.value)
        self._emit(
            EventType.TASK_UNARCHIVED,
            {"task_id": task_id, "restored_status": restored.value},
        )
        return task

    # ------------------------------------------------------------------
    # Worktrees
    # ------------------------------------------------------------------

    def cleanup_worktree(self, task_id: str) -> Task:
        """
        Remove the task's git worktree and clear ``worktree_path``.

        If the remover fails the path is left on the record so the cleanup
        can be retried.

        Raises:
            TaskPreconditionError: If the task has no worktree or no remover is configured
            CollaboratorError: If the remover fails
            TaskStorageError: If the worktree was removed but the record could not be saved
        """
        task_id = self._normalize(task_id)
        with wrap_errors(f"cleaning up worktree for task {task_id}"):
            task = load_task(self.base_path, task_id)
            if not task.worktree_path:
                raise TaskPreconditionError("task has no worktree")
            if self.worktree_remover is None:
                raise TaskPreconditionError("no worktree remover configured")

            path = task.worktree_path
            try:
                self.worktree_remover.remove_worktree(path)
            except Exception as e:
                raise CollaboratorError(f"removing worktree {path}: {e}") from e

            task.worktree_path = ""
            task.touch()
            with wrap_errors("saving status after worktree removal"):
                save_task(self.base_path, task)

        logger.info("Removed worktree %s for task %s", path, task_id)
        self._emit(EventType.WORKTREE_REMOVED, {"task_id": task_id, "worktree": path})
        return task
