"""
Models for the central backlog registry (backlog.yaml).
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from adb.core.tasks.models import TaskPriority, TaskStatus


class BacklogEntry(BaseModel):
    """
    Denormalized summary of a task, kept so listings don't have to open
    every ticket directory.

    Status and priority always mirror the task's status.yaml.
    """

    id: str = Field(..., min_length=1)
    title: str = ""
    source: str = ""
    status: TaskStatus = TaskStatus.BACKLOG
    priority: TaskPriority = TaskPriority.P2
    owner: str = ""
    repo: str = ""
    branch: str = ""
    created: str = ""
    tags: list[str] = Field(default_factory=list)
    blocked_by: list[str] = Field(default_factory=list)
    related: list[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: int | str | TaskPriority) -> TaskPriority:
        return TaskPriority.parse(v)

    @field_validator("tags", "blocked_by", "related", mode="before")
    @classmethod
    def none_to_list(cls, v: list[str] | None) -> list[str]:
        return [] if v is None else v

    @field_validator("title", "source", "owner", "repo", "branch", "created", mode="before")
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        if v is None:
            return ""
        # safe_load turns unquoted timestamps into datetime objects
        if isinstance(v, (date, datetime)):
            return v.isoformat()
        return v


class BacklogFile(BaseModel):
    """Root model of backlog.yaml."""

    version: str = "1.0"
    tasks: dict[str, BacklogEntry] = Field(default_factory=dict)

    @field_validator("tasks", mode="before")
    @classmethod
    def none_to_dict(cls, v: dict | None) -> dict:
        return {} if v is None else v


class BacklogFilter(BaseModel):
    """
    Criteria for filtering backlog entries.

    Every criterion that is set must match (AND). Within ``status`` and
    ``priority`` any listed value matches; ``tags`` requires all of them.
    """

    status: set[TaskStatus] = Field(default_factory=set)
    priority: set[TaskPriority] = Field(default_factory=set)
    owner: str = ""
    repo: str = ""
    tags: list[str] = Field(default_factory=list)

    def matches(self, entry: BacklogEntry) -> bool:
        if self.status and entry.status not in self.status:
            return False
        if self.priority and entry.priority not in self.priority:
            return False
        if self.owner and entry.owner != self.owner:
            return False
        if self.repo and entry.repo != self.repo:
            return False
        if self.tags and not set(self.tags).issubset(entry.tags):
            return False
        return True
