"""
Bootstrap step: turn a BootstrapConfig into a populated ticket directory.

Creates, in order:

    tickets/<id>/                    ticket directory
    tickets/<id>/communications/     saved messages
    tickets/<id>/notes.md            type-specific template
    tickets/<id>/design.md           type-specific template
    tickets/<id>/context.md          context scaffold
    <worktree>                       optional git worktree
    tickets/<id>/status.yaml         task record

An ID that already has a ticket, active or archived, is rejected before
anything is written. A directory left behind by a failed run has no
status.yaml and is reused.
"""

from __future__ import annotations

import logging
from pathlib import Path

from adb.core.context.store import CONTEXT_FILE, render_context_scaffold
from adb.core.ids.generator import TaskIDError, TaskIDGenerator
from adb.core.ids.paths import (
    InvalidTaskIDError,
    build_path_task_id,
    format_branch_name,
    normalize_repo_to_prefix,
    validate_path_task_id,
)
from adb.core.tasks.models import Task, TaskStatus, TaskType, utc_now
from adb.core.tasks.record import STATUS_FILE, write_task
from adb.core.tasks.stores import BootstrapConfig, BootstrapHook, WorktreeCreator
from adb.core.tasks.ticketpath import active_ticket_dir, archived_ticket_dir

from .templates import TemplateError, TemplateManager

logger = logging.getLogger(__name__)

COMMUNICATIONS_DIR = "communications"


class BootstrapError(Exception):
    """Raised when a ticket directory cannot be bootstrapped."""

    pass


class BootstrapSystem:
    """
    Creates new tickets.

    Args:
        base_path: Workspace root
        id_generator: Allocates legacy IDs when no prefix is given
        template_manager: Writes notes.md and design.md
        worktree_creator: Creates a git worktree when a repo path is given (optional)
        hook: Called as ``hook(task, ticket_dir)`` after status.yaml is written (optional)
    """

    def __init__(
        self,
        base_path: Path,
        id_generator: TaskIDGenerator,
        template_manager: TemplateManager,
        worktree_creator: WorktreeCreator | None = None,
        hook: BootstrapHook | None = None,
    ) -> None:
        self.base_path = Path(base_path)
        self.id_generator = id_generator
        self.template_manager = template_manager
        self.worktree_creator = worktree_creator
        self.hook = hook

    def generate_task_id(self) -> str:
        return self.id_generator.generate_task_id()

    def apply_template(self, task_id: str, task_type: TaskType) -> list[Path]:
        """Write missing template files for an existing task."""
        return self.template_manager.apply_template(
            active_ticket_dir(self.base_path, task_id), task_type, task_id
        )

    def _allocate_id(self, config: BootstrapConfig) -> str:
        if config.prefix:
            task_id = build_path_task_id(config.prefix, config.branch)
            try:
                validate_path_task_id(task_id)
            except InvalidTaskIDError as e:
                raise BootstrapError(f"building task ID: {e}") from e
            return task_id
        try:
            task_id = self.id_generator.generate_task_id()
        except (TaskIDError, OSError) as e:
            raise BootstrapError(f"generating task ID: {e}") from e
        return task_id

    def _check_unused(self, task_id: str) -> None:
        """
        Refuse an ID that already has a ticket.

        An active directory without status.yaml is left over from a failed
        bootstrap and may be reused.
        """
        for existing in (
            active_ticket_dir(self.base_path, task_id) / STATUS_FILE,
            archived_ticket_dir(self.base_path, task_id),
        ):
            if existing.exists():
                raise BootstrapError(f"task {task_id} already exists ({existing.parent})")

    def bootstrap(self, config: BootstrapConfig) -> Task:
        """
        Create the ticket for a new task.

        Returns:
            The Task written to status.yaml

        Raises:
            BootstrapError: If the ID already has a ticket or any step fails
        """
        task_type = TaskType(config.type)
        task_id = self._allocate_id(config)
        self._check_unused(task_id)
        ticket_dir = active_ticket_dir(self.base_path, task_id)

        branch = config.branch
        if config.branch_pattern:
            branch = format_branch_name(config.branch_pattern, task_type.value, task_id, branch)

        try:
            (ticket_dir / COMMUNICATIONS_DIR).mkdir(parents=True, exist_ok=True)
            self.template_manager.apply_template(ticket_dir, task_type, task_id)
            context = render_context_scaffold(task_id)
            (ticket_dir / CONTEXT_FILE).write_text(context, encoding="utf-8")
        except (OSError, TemplateError) as e:
            raise BootstrapError(f"bootstrapping {task_id}: {e}") from e

        now = utc_now()
        task = Task(
            id=task_id,
            title=config.title or config.branch,
            type=task_type,
            status=TaskStatus.BACKLOG,
            priority=config.priority,
            owner=config.owner,
            repo=normalize_repo_to_prefix(config.repo_path, str(self.base_path))
            or config.repo_path,
            branch=branch,
            created=now,
            updated=now,
            tags=list(config.tags),
            source=config.source,
        )

        if config.repo_path and branch and self.worktree_creator is not None:
            try:
                task.worktree_path = self.worktree_creator.create_worktree(
                    config.repo_path, branch, task_id, config.base_branch
                )
            except Exception as e:
                raise BootstrapError(f"creating worktree for {task_id}: {e}") from e

        try:
            write_task(ticket_dir, task)
        except OSError as e:
            raise BootstrapError(f"writing {STATUS_FILE} for {task_id}: {e}") from e

        if self.hook is not None:
            try:
                self.hook(task, ticket_dir)
            except Exception as e:
                raise BootstrapError(f"running bootstrap hook for {task_id}: {e}") from e

        logger.debug("Bootstrapped %s in %s", task_id, ticket_dir)
        return task
