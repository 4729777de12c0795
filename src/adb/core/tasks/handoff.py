"""
Handoff document generation.

When a task is archived its notes.md and context.md are condensed into a
HandoffDocument and written to handoff.md, so whoever picks the work up
later (person or assistant) does not have to re-read the whole ticket.
"""

from __future__ import annotations

import logging
from pathlib import Path

import frontmatter

from adb.utils.markdown import (
    extract_first_paragraph,
    extract_links,
    extract_section,
    extract_section_items,
)

from .models import HandoffDocument, Task
from .ticketpath import ARCHIVED_DIR, TICKETS_DIR

logger = logging.getLogger(__name__)

HANDOFF_FILE = "handoff.md"

COMPLETED_HEADINGS = ("Completed", "Completed Work", "Recent Progress", "Progress")
OPEN_HEADINGS = ("Open Questions", "Open Items", "Next Steps")
LEARNING_HEADINGS = ("Learnings", "Key Learnings", "Lessons Learned")
RELATED_HEADINGS = ("Related Resources", "Related Documentation", "Related Docs", "References")


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def _collect(documents: list[str], headings: tuple[str, ...]) -> list[str]:
    """Items under every heading in ``headings`` across all documents, de-duplicated."""
    seen: set[str] = set()
    items: list[str] = []
    for content in documents:
        for heading in headings:
            for item in extract_section_items(content, heading):
                if item not in seen:
                    seen.add(item)
                    items.append(item)
    return items


def _summary(task: Task, context: str) -> str:
    line = f"Task {task.id} ({task.type.value}): {task.title or task.branch}"
    section = extract_section(context, "Summary")
    if section:
        paragraph = extract_first_paragraph(section)
        if paragraph:
            return f"{line}\n\n{paragraph}"
    return line


def _related_docs(task: Task, ticket_dir: Path, documents: list[str]) -> list[str]:
    docs: list[str] = []
    if (ticket_dir / "design.md").exists():
        # Points at the location the ticket is about to be moved to.
        docs.append(f"{TICKETS_DIR}/{ARCHIVED_DIR}/{task.id}/design.md")
    for content in documents:
        for heading in RELATED_HEADINGS:
            section = extract_section(content, heading)
            if section is None:
                continue
            for ref in extract_links(section):
                if ref not in docs:
                    docs.append(ref)
            for item in extract_section_items(content, heading):
                if item.startswith(f"{TICKETS_DIR}/") and item not in docs:
                    docs.append(item)
    return docs


def build_handoff(task: Task, ticket_dir: Path) -> HandoffDocument:
    """
    Build a HandoffDocument from the ticket's notes.md and context.md.

    Missing documents simply contribute nothing.

    Args:
        task: The task being archived
        ticket_dir: Ticket directory (still in its active location)

    Returns:
        HandoffDocument with summary, completed work, open items,
        learnings and related docs filled in
    """
    notes = _read(ticket_dir / "notes.md")
    context = _read(ticket_dir / "context.md")
    documents = [context, notes]

    handoff = HandoffDocument(
        task_id=task.id,
        summary=_summary(task, context),
        completed_work=_collect(documents, COMPLETED_HEADINGS),
        open_items=_collect(documents, OPEN_HEADINGS),
        learnings=_collect(documents, LEARNING_HEADINGS),
        related_docs=_related_docs(task, ticket_dir, documents),
    )
    logger.debug(
        "Built handoff for %s: %d completed, %d open, %d learnings",
        task.id,
        len(handoff.completed_work),
        len(handoff.open_items),
        len(handoff.learnings),
    )
    return handoff


def _bullets(items: list[str], empty: str, checkbox: bool = False) -> list[str]:
    if not items:
        return [f"- {empty}"]
    marker = "- [ ] " if checkbox else "- "
    return [f"{marker}{item}" for item in items]


def render_handoff(doc: HandoffDocument) -> str:
    """Render a HandoffDocument as markdown with YAML front matter."""
    lines = [
        f"# Handoff: {doc.task_id}",
        "",
        "## Summary",
        doc.summary,
        "",
        "## Completed Work",
        *_bullets(doc.completed_work, "No completed work items recorded"),
        "",
        "## Open Items",
        *_bullets(doc.open_items, "No open items", checkbox=True),
        "",
        "## Key Learnings",
        *_bullets(doc.learnings, "No learnings recorded"),
        "",
        "## Related Documentation",
        *_bullets(doc.related_docs, "No related documentation"),
        "",
        "## Provenance",
        f"This handoff was generated from {doc.task_id} notes and context.",
    ]
    post = frontmatter.Post(
        "\n".join(lines),
        task_id=doc.task_id,
        generated_at=doc.generated_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        status="archived",
    )
    return frontmatter.dumps(post) + "\n"


def write_handoff(ticket_dir: Path, doc: HandoffDocument) -> Path:
    """Write handoff.md into ``ticket_dir``, replacing any previous one."""
    path = ticket_dir / HANDOFF_FILE
    path.write_text(render_handoff(doc), encoding="utf-8")
    return path


def read_handoff(ticket_dir: Path) -> frontmatter.Post | None:
    """Load handoff.md if the ticket has one."""
    path = ticket_dir / HANDOFF_FILE
    if not path.exists():
        return None
    return frontmatter.load(path)
