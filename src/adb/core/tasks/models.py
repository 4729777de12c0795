"""
Task data models for adb.

Defines the Task record persisted as ``status.yaml`` inside each ticket
directory, the enums that describe its lifecycle, and the transient
HandoffDocument produced when a task is archived.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Current time in UTC, second precision (matches the YAML files on disk)."""
    return datetime.now(timezone.utc).replace(microsecond=0)


class TaskType(str, Enum):
    """Kind of work a task represents. Selects the ticket templates."""

    FEAT = "feat"
    BUG = "bug"
    SPIKE = "spike"
    REFACTOR = "refactor"


class TaskStatus(str, Enum):
    """Task lifecycle states.

    backlog -> in_progress -> {blocked, review} -> done; any active
    state may be archived, and archived restores to the pre-archive state.
    """

    BACKLOG = "backlog"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    REVIEW = "review"
    DONE = "done"
    ARCHIVED = "archived"


class TaskPriority(str, Enum):
    """Task priority levels.

    P0 = Critical (highest priority)
    P1 = High
    P2 = Medium (default)
    P3 = Low
    """

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"

    @property
    def numeric_value(self) -> int:
        """Get numeric value for sorting (0 = highest priority)."""
        return int(self.value[1])

    @classmethod
    def from_position(cls, index: int) -> "TaskPriority":
        """Priority for a position in an ordered list; index 3 and beyond clamp to P3."""
        if index < 0:
            raise ValueError(f"position must be non-negative, got {index}")
        return list(cls)[min(index, 3)]

    @classmethod
    def parse(cls, value: "int | str | TaskPriority") -> "TaskPriority":
        """Accept P0..P3, 0..3 or "0".."3"."""
        if isinstance(value, TaskPriority):
            return value
        if isinstance(value, int):
            return cls(f"P{value}")
        text = str(value).strip().upper()
        if text.startswith("P"):
            return cls(text)
        return cls(f"P{text}")


class Task(BaseModel):
    """
    The authoritative record for a task, stored in ``tickets/<id>/status.yaml``.

    The ticket directory is the source of truth for every field; the backlog
    only mirrors a summary of it.

    Example:
        >>> task = Task(id="TASK-00001", type=TaskType.FEAT, branch="add-login")
        >>> task.status
        <TaskStatus.BACKLOG: 'backlog'>
        >>> task.has_worktree
        False
    """

    id: str = Field(..., min_length=1, description="Task identifier (TASK-00001 or org/repo/desc)")
    title: str = Field(default="", description="Human readable title")
    type: TaskType = Field(default=TaskType.FEAT, description="Task type")
    status: TaskStatus = Field(default=TaskStatus.BACKLOG, description="Lifecycle state")
    priority: TaskPriority = Field(default=TaskPriority.P2, description="Priority level")
    owner: str = Field(default="", description="Owner handle, e.g. @alice")
    repo: str = Field(default="", description="Repository the task works against")
    branch: str = Field(default="", description="Git branch name")
    worktree_path: str = Field(
        default="",
        alias="worktree",
        description="Attached git worktree; empty means no worktree",
    )
    created: datetime | None = Field(default=None, description="When the task was created")
    updated: datetime | None = Field(default=None, description="When the task was last changed")
    tags: list[str] = Field(default_factory=list)
    blocked_by: list[str] = Field(default_factory=list)
    related: list[str] = Field(default_factory=list)
    source: str = Field(default="", description="Where the task came from (cli, channel, ...)")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: int | str | TaskPriority) -> TaskPriority:
        """Convert numeric priority (0-3) to TaskPriority enum."""
        return TaskPriority.parse(v)

    @field_validator("tags", "blocked_by", "related", mode="before")
    @classmethod
    def none_to_list(cls, v: list[str] | None) -> list[str]:
        """YAML writes empty sequences as null."""
        return [] if v is None else v

    @field_validator("title", "owner", "repo", "branch", "worktree_path", "source", mode="before")
    @classmethod
    def none_to_empty(cls, v: str | None) -> str:
        return "" if v is None else v

    @property
    def has_worktree(self) -> bool:
        return bool(self.worktree_path)

    @property
    def is_archived(self) -> bool:
        return self.status == TaskStatus.ARCHIVED

    def touch(self) -> None:
        """Stamp the record as modified now."""
        self.updated = utc_now()


class HandoffDocument(BaseModel):
    """
    Summary generated when a task is archived.

    Rendered into ``handoff.md``; never persisted in any other form.
    """

    task_id: str
    generated_at: datetime = Field(default_factory=utc_now)
    summary: str = ""
    completed_work: list[str] = Field(default_factory=list)
    open_items: list[str] = Field(default_factory=list)
    learnings: list[str] = Field(default_factory=list)
    related_docs: list[str] = Field(default_factory=list)
