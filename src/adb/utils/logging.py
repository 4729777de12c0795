"""
Structured JSONL event log for adb.

Lifecycle operations append one event per successful state change to
``<workspace>/.adb_events.jsonl``. Each line is valid JSON:

{
  "timestamp": "2026-01-15T12:34:56.789000Z",
  "event_type": "task_archived",
  "data": {"task_id": "TASK-00001", "previous_status": "done"}
}

The log is an audit trail only; nothing reads it back to make decisions.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

EVENT_LOG_FILE = ".adb_events.jsonl"


class EventType(str, Enum):
    """Types of events that can be logged."""

    TASK_CREATED = "task_created"
    TASK_RESUMED = "task_resumed"
    TASK_STATUS_CHANGED = "task_status_changed"
    TASK_PRIORITY_CHANGED = "task_priority_changed"
    TASK_ARCHIVED = "task_archived"
    TASK_UNARCHIVED = "task_unarchived"
    WORKTREE_REMOVED = "worktree_removed"


class LogEntry(BaseModel):
    """A single structured log entry in JSONL format."""

    model_config = ConfigDict(use_enum_values=True)

    timestamp: datetime = Field(..., description="When the event occurred (ISO 8601 format)")
    event_type: EventType = Field(..., description="Type of event")
    data: dict[str, Any] = Field(default_factory=dict, description="Event-specific data")


class EventLog:
    """
    Append-only JSONL event log.

    Example:
        log = EventLog.for_workspace(Path("~/adb").expanduser())
        log.log_event(EventType.TASK_CREATED, {"task_id": "TASK-00001"})
    """

    def __init__(self, log_file: Path):
        """
        Args:
            log_file: Path to the JSONL file (created on first write)
        """
        self.log_file = Path(log_file)

    @staticmethod
    def for_workspace(base_path: Path) -> "EventLog":
        """Event log stored at the root of the workspace."""
        return EventLog(Path(base_path) / EVENT_LOG_FILE)

    def log_event(self, event_type: EventType, data: dict[str, Any] | None = None) -> None:
        """
        Append an event.

        Write failures are reported as a warning and otherwise ignored; an
        event that cannot be recorded never fails the operation it describes.
        """
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc),
            event_type=event_type,
            data=data or {},
        )
        line = entry.model_dump_json(exclude_none=True) + "\n"

        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.warning("Failed to write event log %s: %s", self.log_file, e)

    def read_events(self) -> list[LogEntry]:
        """All events in the log, oldest first. Malformed lines are skipped."""
        if not self.log_file.exists():
            return []
        entries: list[LogEntry] = []
        with open(self.log_file, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(LogEntry.model_validate_json(line))
                except ValueError:
                    logger.debug("Skipping malformed event log line: %s", line)
        return entries

    def get_log_file(self) -> Path:
        """Get the path to the log file."""
        return self.log_file
