"""
Configuration data models for adb.

These models define the structure of the workspace ``.taskconfig`` and the
user's ``~/.config/adb/config.yaml``, with validation via Pydantic.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from adb.core.tasks.models import TaskPriority

_PREFIX = re.compile(r"^[A-Z0-9]{1,10}$")


class TaskIdConfig(BaseModel):
    """
    Legacy task ID format.

    IDs are ``<prefix>-<counter>``, the counter zero-padded to ``pad_width``.
    """

    prefix: str = Field(default="TASK", description="ID prefix, 1-10 of A-Z and 0-9")
    pad_width: int = Field(default=5, ge=0, le=20, description="Zero padding; 0 disables")

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not _PREFIX.match(v):
            raise ValueError(f"task ID prefix must match {_PREFIX.pattern}, got {v!r}")
        return v


class DefaultsConfig(BaseModel):
    """Values applied to new tasks when the caller doesn't give one."""

    priority: TaskPriority = Field(default=TaskPriority.P2)
    owner: str = Field(default="", description="Default owner handle, e.g. @alice")

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: int | str | TaskPriority) -> TaskPriority:
        return TaskPriority.parse(v)

    @field_validator("owner", mode="before")
    @classmethod
    def none_to_empty(cls, v: str | None) -> str:
        return "" if v is None else v


class BranchConfig(BaseModel):
    """Branch naming."""

    pattern: str = Field(
        default="{type}/{id}-{description}",
        description="Placeholders: {type} {id} {description} {repo} {prefix}",
    )


class AdbConfig(BaseModel):
    """
    Top-level adb configuration.

    Example:
        >>> config = AdbConfig(task_id=TaskIdConfig(prefix="PROJ", pad_width=3))
        >>> config.task_id.prefix
        'PROJ'
        >>> config.defaults.priority
        <TaskPriority.P2: 'P2'>
    """

    task_id: TaskIdConfig = Field(default_factory=TaskIdConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    branch: BranchConfig = Field(default_factory=BranchConfig)

    model_config = ConfigDict(
        extra="allow",  # Unknown sections from other tools are kept
        validate_assignment=True,
    )
