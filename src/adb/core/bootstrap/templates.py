"""
Built-in notes.md / design.md templates per task type.

Templates use ``str.format`` placeholders; only ``{task_id}`` is provided.
A custom notes template can be registered per type from a file.
"""

from __future__ import annotations

from pathlib import Path

from adb.core.tasks.models import TaskType

NOTES_TEMPLATES: dict[TaskType, str] = {
    TaskType.FEAT: """# Feature Notes

## Requirements
- [ ] Requirement 1
- [ ] Requirement 2

## Acceptance Criteria
- [ ] Criterion 1
- [ ] Criterion 2

## Implementation Notes

## Open Questions

## Learnings
""",
    TaskType.BUG: """# Bug Notes

## Description

## Steps to Reproduce
1.
2.
3.

## Expected Behavior

## Actual Behavior

## Root Cause Analysis

## Fix Notes

## Learnings
""",
    TaskType.SPIKE: """# Spike Notes

## Objective

## Research Questions
- [ ] Question 1
- [ ] Question 2

## Findings

## Recommendations

## Time-Box

## Learnings
""",
    TaskType.REFACTOR: """# Refactor Notes

## Motivation

## Current State

## Target State

## Affected Components

## Risks

## Rollback Plan

## Learnings
""",
}

_DECISIONS_TABLE = """## Decisions
| Decision | Rationale | Date |
|----------|-----------|------|
|          |           |      |
"""

DESIGN_TEMPLATES: dict[TaskType, str] = {
    TaskType.FEAT: "# Technical Design: {task_id}\n\n## Overview\n\n## Architecture\n\n"
    "## API Changes\n\n## Data Model Changes\n\n## Dependencies\n\n## Testing Strategy\n\n"
    + _DECISIONS_TABLE,
    TaskType.BUG: "# Technical Design: {task_id}\n\n## Root Cause\n\n## Fix Approach\n\n"
    "## Affected Components\n\n## Regression Testing\n\n" + _DECISIONS_TABLE,
    TaskType.SPIKE: "# Technical Design: {task_id}\n\n## Investigation Scope\n\n"
    "## Approaches Evaluated\n\n## Proof of Concept\n\n## Recommendations\n\n" + _DECISIONS_TABLE,
    TaskType.REFACTOR: "# Technical Design: {task_id}\n\n## Current Architecture\n\n"
    "## Target Architecture\n\n## Migration Plan\n\n## Breaking Changes\n\n"
    "## Performance Impact\n\n" + _DECISIONS_TABLE,
}


class TemplateError(Exception):
    """Raised when a template cannot be found, read or applied."""

    pass


class TemplateManager:
    """
    Renders and writes the type-specific ticket documents.

    Example:
        >>> templates = TemplateManager(base)
        >>> templates.apply_template(ticket_dir, TaskType.BUG, "TASK-00007")
        [PosixPath('.../notes.md'), PosixPath('.../design.md')]
    """

    def __init__(self, base_path: Path | None = None) -> None:
        self.base_path = Path(base_path) if base_path else Path.cwd()
        self._custom: dict[TaskType, Path] = {}

    def register_template(self, task_type: TaskType, template_path: Path | str) -> None:
        """
        Use the file at ``template_path`` as the notes template for ``task_type``.

        Relative paths are resolved against the workspace root.

        Raises:
            TemplateError: If the file does not exist
        """
        path = Path(template_path)
        if not path.is_absolute():
            path = self.base_path / path
        if not path.is_file():
            raise TemplateError(f"custom template file {path} does not exist")
        self._custom[TaskType(task_type)] = path

    def get_template(self, task_type: TaskType, kind: str = "notes") -> str:
        """Raw template text for ``kind`` ("notes" or "design")."""
        task_type = TaskType(task_type)
        if kind == "notes" and task_type in self._custom:
            path = self._custom[task_type]
            try:
                return path.read_text(encoding="utf-8")
            except OSError as e:
                raise TemplateError(f"reading custom template {path}: {e}") from e
        if kind == "notes":
            return NOTES_TEMPLATES[task_type]
        if kind == "design":
            return DESIGN_TEMPLATES[task_type]
        raise TemplateError(f"unknown template kind {kind!r}")

    def render(self, task_type: TaskType, kind: str, task_id: str) -> str:
        template = self.get_template(task_type, kind)
        if kind == "notes" and TaskType(task_type) in self._custom:
            # Custom templates are copied as-is.
            return template
        return template.format(task_id=task_id)

    def apply_template(
        self,
        ticket_dir: Path,
        task_type: TaskType,
        task_id: str,
        overwrite: bool = False,
    ) -> list[Path]:
        """
        Write notes.md and design.md into ``ticket_dir``.

        Existing files are left alone unless ``overwrite`` is set, so
        retrying a failed bootstrap never clobbers notes already taken.

        Returns:
            Paths of the files written
        """
        ticket_dir = Path(ticket_dir)
        written: list[Path] = []
        try:
            ticket_dir.mkdir(parents=True, exist_ok=True)
            for kind in ("notes", "design"):
                path = ticket_dir / f"{kind}.md"
                if path.exists() and not overwrite:
                    continue
                path.write_text(self.render(task_type, kind, task_id), encoding="utf-8")
                written.append(path)
        except OSError as e:
            raise TemplateError(f"applying {task_type} template in {ticket_dir}: {e}") from e
        return written
