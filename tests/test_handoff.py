"""
Tests for handoff document generation.
"""

import pytest

from adb.core.tasks.handoff import (
    HANDOFF_FILE,
    build_handoff,
    read_handoff,
    render_handoff,
    write_handoff,
)
from adb.core.tasks.models import HandoffDocument

CONTEXT = """# Task Context: TASK-00001

## Summary
Login form is wired to the OAuth provider.

## Recent Progress
- Built the login form
- [x] Added token refresh

## Open Questions
- [ ] Should sessions expire after 24h?

## Next Steps
- [ ] Add logout button

## Related Resources
- [OAuth notes](https://example.com/oauth)
- tickets/TASK-00002/design.md
"""

NOTES = """# Feature Notes

## Completed
- Built the login form
- Wrote integration tests

## Open Questions
- Should sessions expire after 24h?

## Learnings
- The provider rate-limits token refresh
"""


@pytest.fixture
def ticket_dir(tmp_path):
    path = tmp_path / "tickets" / "TASK-00001"
    path.mkdir(parents=True)
    return path


class TestBuildHandoff:
    def test_summary_line_and_paragraph(self, ticket_dir, sample_task):
        (ticket_dir / "context.md").write_text(CONTEXT)

        handoff = build_handoff(sample_task, ticket_dir)

        assert handoff.summary == (
            "Task TASK-00001 (feat): Add login page\n\n"
            "Login form is wired to the OAuth provider."
        )

    def test_summary_falls_back_to_branch(self, ticket_dir, sample_task):
        sample_task.title = ""

        handoff = build_handoff(sample_task, ticket_dir)

        assert handoff.summary == "Task TASK-00001 (feat): feat/TASK-00001-add-login"

    def test_collects_items_from_both_documents(self, ticket_dir, sample_task):
        (ticket_dir / "context.md").write_text(CONTEXT)
        (ticket_dir / "notes.md").write_text(NOTES)

        handoff = build_handoff(sample_task, ticket_dir)

        assert handoff.completed_work == [
            "Built the login form",
            "Added token refresh",
            "Wrote integration tests",
        ]
        assert handoff.open_items == [
            "Should sessions expire after 24h?",
            "Add logout button",
        ]
        assert handoff.learnings == ["The provider rate-limits token refresh"]

    def test_learnings_only_from_learning_headings(self, ticket_dir, sample_task):
        (ticket_dir / "notes.md").write_text("## Findings\n- Something found\n")

        handoff = build_handoff(sample_task, ticket_dir)

        assert handoff.learnings == []

    def test_related_docs(self, ticket_dir, sample_task):
        (ticket_dir / "context.md").write_text(CONTEXT)
        (ticket_dir / "design.md").write_text("# Design\n")

        handoff = build_handoff(sample_task, ticket_dir)

        assert handoff.related_docs == [
            "tickets/_archived/TASK-00001/design.md",
            "https://example.com/oauth",
            "tickets/TASK-00002/design.md",
        ]

    def test_empty_ticket(self, ticket_dir, sample_task):
        handoff = build_handoff(sample_task, ticket_dir)

        assert handoff.task_id == "TASK-00001"
        assert handoff.completed_work == []
        assert handoff.open_items == []
        assert handoff.learnings == []
        assert handoff.related_docs == []


class TestRenderHandoff:
    def test_sections_and_front_matter(self):
        doc = HandoffDocument(
            task_id="TASK-00001",
            summary="Task TASK-00001 (feat): Add login page",
            completed_work=["Built the login form"],
            open_items=["Add logout button"],
        )

        text = render_handoff(doc)

        assert text.startswith("---\n")
        assert "task_id: TASK-00001" in text
        assert "status: archived" in text
        assert "# Handoff: TASK-00001" in text
        assert "- Built the login form" in text
        assert "- [ ] Add logout button" in text
        assert "- No learnings recorded" in text
        assert "- No related documentation" in text

    def test_write_and_read(self, ticket_dir):
        doc = HandoffDocument(task_id="TASK-00001", summary="done")

        path = write_handoff(ticket_dir, doc)
        post = read_handoff(ticket_dir)

        assert path == ticket_dir / HANDOFF_FILE
        assert post is not None
        assert post["task_id"] == "TASK-00001"
        assert "## Summary\ndone" in post.content

    def test_read_missing(self, ticket_dir):
        assert read_handoff(ticket_dir) is None
