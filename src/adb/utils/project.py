"""
Workspace root discovery for adb.

A workspace is the directory that holds backlog.yaml, .taskconfig and the
tickets/ tree. ADB_HOME overrides discovery entirely.
"""

import os
from pathlib import Path

# Markers that indicate a workspace root, in order of priority
WORKSPACE_MARKERS = [
    ".taskconfig",  # Workspace configuration
    "backlog.yaml",  # Central task registry
    "tickets",  # Ticket directories
]

ADB_HOME_ENV = "ADB_HOME"


def find_workspace_root(start: Path | None = None) -> Path | None:
    """
    Find the workspace root by searching upward for marker files.

    Args:
        start: Directory to start searching from. Defaults to current working directory.

    Returns:
        Path to the workspace root, or None if no marker was found.

    Example:
        >>> find_workspace_root(Path("/home/me/adb/tickets/TASK-00001"))
        PosixPath('/home/me/adb')
    """
    if start is None:
        start = Path.cwd()

    current = start.resolve()
    while True:
        for marker in WORKSPACE_MARKERS:
            if (current / marker).exists():
                return current
        if current == current.parent:
            return None
        current = current.parent


def get_workspace_root(start: Path | None = None) -> Path:
    """
    Resolve the workspace root.

    ADB_HOME wins when set; otherwise the nearest directory (from ``start``
    upward) holding a workspace marker; otherwise ``start`` itself.
    """
    env_home = os.environ.get(ADB_HOME_ENV)
    if env_home:
        return Path(env_home).expanduser().resolve()

    root = find_workspace_root(start)
    if root is not None:
        return root
    return (start or Path.cwd()).resolve()
