"""
File-backed context store.

Context lives beside the task record in its ticket directory:

    tickets/<id>/context.md          AI-maintained running summary
    tickets/<id>/notes.md            free-form notes
    tickets/<id>/communications/     saved messages, one markdown file each

Loaded contexts are cached per manager instance; update_context edits the
cached copy and persist_context writes it back.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from adb.core.tasks.models import utc_now
from adb.core.tasks.ticketpath import resolve_ticket_dir
from adb.utils.markdown import (
    extract_first_paragraph,
    extract_list_items,
    extract_section,
    extract_section_items,
)

from .models import AIContext, Communication, TaskContext

logger = logging.getLogger(__name__)

CONTEXT_FILE = "context.md"
NOTES_FILE = "notes.md"
COMMUNICATIONS_DIR = "communications"

CONTEXT_TEMPLATE = """# Task Context: {task_id}

## Summary
[AI-maintained summary of current task state]

## Current Focus
[What we're working on right now]

## Recent Progress
- [Chronological list of completed items]

## Open Questions
- [ ] [Questions needing answers]

## Decisions Made
- [Key decisions with rationale]

## Blockers
- [Current blockers and who can help]

## Next Steps
- [ ] [Planned next actions]

## Related Resources
- [Links to relevant docs, PRs, etc.]
"""

NOTES_TEMPLATE = "# Notes: {task_id}\n\n"


class ContextError(Exception):
    """Raised when context files cannot be read or written."""

    pass


def render_context_scaffold(task_id: str) -> str:
    """Initial context.md for a new task."""
    return CONTEXT_TEMPLATE.format(task_id=task_id)


def parse_communication(content: str) -> Communication:
    """
    Parse a saved communication.

    Expected layout::

        **Date:** 2026-01-15
        **Source:** slack
        **Contact:** @alice
        **Topic:** API limits

        ## Content
        ...

        ## Tags
        - requirement
    """
    fields: dict[str, Any] = {}
    for line in content.splitlines():
        line = line.strip()
        for label, key in (
            ("**Date:**", "sent"),
            ("**Source:**", "source"),
            ("**Contact:**", "contact"),
            ("**Topic:**", "topic"),
        ):
            if line.startswith(label):
                fields[key] = line[len(label) :].strip()

    sent = fields.pop("sent", "")
    if sent:
        try:
            fields["sent"] = datetime.strptime(sent, "%Y-%m-%d").date()
        except ValueError:
            logger.debug("Ignoring unparseable communication date %r", sent)

    body = extract_section(content, "Content")
    if body is not None:
        fields["content"] = body.strip()
    tags = extract_section(content, "Tags")
    if tags is not None:
        fields["tags"] = extract_list_items(tags)

    return Communication(**fields)


class ContextManager:
    """
    Loads and saves the context documents of tasks in one workspace.

    Example:
        >>> contexts = ContextManager(Path("~/adb").expanduser())
        >>> ai = contexts.get_context_for_ai("TASK-00001")
        >>> ai.open_questions
        ['Which OAuth provider?']
    """

    def __init__(self, base_path: Path) -> None:
        self.base_path = Path(base_path)
        self._contexts: dict[str, TaskContext] = {}

    def _ticket_dir(self, task_id: str) -> Path:
        return resolve_ticket_dir(self.base_path, task_id)

    def initialize_context(self, task_id: str) -> TaskContext:
        """
        Write fresh context.md and notes.md scaffolds and create communications/.

        Raises:
            ContextError: If any file or directory cannot be created
        """
        ticket_dir = self._ticket_dir(task_id)
        context = render_context_scaffold(task_id)
        notes = NOTES_TEMPLATE.format(task_id=task_id)
        try:
            (ticket_dir / COMMUNICATIONS_DIR).mkdir(parents=True, exist_ok=True)
            (ticket_dir / CONTEXT_FILE).write_text(context, encoding="utf-8")
            (ticket_dir / NOTES_FILE).write_text(notes, encoding="utf-8")
        except OSError as e:
            raise ContextError(f"initializing context for {task_id}: {e}") from e

        ctx = TaskContext(task_id=task_id, notes=notes, context=context)
        self._contexts[task_id] = ctx
        return ctx

    def load_context(self, task_id: str) -> TaskContext:
        """
        Read context.md, notes.md and communications from disk.

        Raises:
            ContextError: If context.md or notes.md is missing or unreadable
        """
        ticket_dir = self._ticket_dir(task_id)
        try:
            context = (ticket_dir / CONTEXT_FILE).read_text(encoding="utf-8")
            notes = (ticket_dir / NOTES_FILE).read_text(encoding="utf-8")
        except OSError as e:
            raise ContextError(f"loading context for {task_id}: {e}") from e

        ctx = TaskContext(
            task_id=task_id,
            notes=notes,
            context=context,
            communications=self._load_communications(ticket_dir),
        )
        self._contexts[task_id] = ctx
        return ctx

    def _load_communications(self, ticket_dir: Path) -> list[Communication]:
        comms_dir = ticket_dir / COMMUNICATIONS_DIR
        if not comms_dir.is_dir():
            return []
        communications = []
        for path in sorted(comms_dir.glob("*.md")):
            try:
                communications.append(parse_communication(path.read_text(encoding="utf-8")))
            except OSError as e:
                logger.debug("Skipping unreadable communication %s: %s", path, e)
        return communications

    def _cached(self, task_id: str) -> TaskContext:
        ctx = self._contexts.get(task_id)
        if ctx is None:
            ctx = self.load_context(task_id)
        return ctx

    def update_context(
        self, task_id: str, notes: str | None = None, context: str | None = None
    ) -> TaskContext:
        """Replace the cached notes and/or context text. Call persist_context to save."""
        ctx = self._cached(task_id)
        if notes is not None:
            ctx.notes = notes
        if context is not None:
            ctx.context = context
        ctx.last_updated = utc_now()
        return ctx

    def persist_context(self, task_id: str) -> None:
        """
        Write the cached context back to disk.

        Raises:
            ContextError: If nothing is cached for the task or a write fails
        """
        ctx = self._contexts.get(task_id)
        if ctx is None:
            raise ContextError(f"persisting context for {task_id}: no context loaded")

        ticket_dir = self._ticket_dir(task_id)
        try:
            ticket_dir.mkdir(parents=True, exist_ok=True)
            (ticket_dir / CONTEXT_FILE).write_text(ctx.context, encoding="utf-8")
            (ticket_dir / NOTES_FILE).write_text(ctx.notes, encoding="utf-8")
        except OSError as e:
            raise ContextError(f"persisting context for {task_id}: {e}") from e

    def get_context_for_ai(self, task_id: str) -> AIContext:
        """Summarize context.md into the fields an assistant needs first."""
        ctx = self._cached(task_id)
        summary_section = extract_section(ctx.context, "Summary") or ""
        return AIContext(
            summary=extract_first_paragraph(summary_section),
            recent_activity=extract_section_items(ctx.context, "Recent Progress"),
            open_questions=extract_section_items(ctx.context, "Open Questions"),
            decisions=extract_section_items(ctx.context, "Decisions Made"),
            blockers=extract_section_items(ctx.context, "Blockers"),
        )
