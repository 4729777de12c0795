"""
adb - AI dev brain

Task lifecycle, backlog and worktree management for AI-assisted development.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from adb.core.config.models import AdbConfig
from adb.core.tasks.models import Task, TaskPriority, TaskStatus, TaskType

__all__ = ["AdbConfig", "Task", "TaskStatus", "TaskPriority", "TaskType", "__version__"]
