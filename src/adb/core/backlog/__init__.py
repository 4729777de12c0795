"""
Central task registry.

backlog.yaml mirrors a summary of every task so listings and status
filters don't have to walk the tickets/ tree.
"""

from .models import BacklogEntry, BacklogFile, BacklogFilter
from .store import BacklogStore, BacklogStoreError

__all__ = [
    "BacklogEntry",
    "BacklogFile",
    "BacklogFilter",
    "BacklogStore",
    "BacklogStoreError",
]
