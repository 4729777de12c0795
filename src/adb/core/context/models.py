"""
Models for a task's AI-session context.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from adb.core.tasks.models import utc_now


class Communication(BaseModel):
    """A message saved under ``tickets/<id>/communications/``."""

    sent: date | None = None
    source: str = ""
    contact: str = ""
    topic: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)


class TaskContext(BaseModel):
    """Raw documents backing a task's context: context.md, notes.md and communications."""

    task_id: str
    notes: str = ""
    context: str = ""
    communications: list[Communication] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utc_now)


class AIContext(BaseModel):
    """
    Summary of context.md handed to an assistant at the start of a session.

    Template placeholders are never included.
    """

    summary: str = ""
    recent_activity: list[str] = Field(default_factory=list)
    open_questions: list[str] = Field(default_factory=list)
    decisions: list[str] = Field(default_factory=list)
    blockers: list[str] = Field(default_factory=list)
