"""Utility modules for adb."""

from .logging import EventLog, EventType, LogEntry
from .project import find_workspace_root, get_workspace_root

__all__ = [
    "EventLog",
    "EventType",
    "LogEntry",
    "find_workspace_root",
    "get_workspace_root",
]
