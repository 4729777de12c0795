"""
Task context persistence.

context.md and notes.md carry what an AI session learned about a task so
the next session can pick up where the last one stopped.
"""

from .models import AIContext, Communication, TaskContext
from .store import ContextError, ContextManager

__all__ = [
    "AIContext",
    "Communication",
    "ContextError",
    "ContextManager",
    "TaskContext",
]
