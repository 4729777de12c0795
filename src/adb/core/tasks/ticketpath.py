"""
Ticket directory resolution.

Each task owns ``tickets/<id>`` while active and ``tickets/_archived/<id>``
while archived. Path-style IDs (``github.com/org/repo/feature``) nest
accordingly; legacy IDs (``TASK-00042``) are a single directory.
"""

from pathlib import Path

# Subdirectory of tickets/ holding archived task folders.
ARCHIVED_DIR = "_archived"

TICKETS_DIR = "tickets"


def active_ticket_dir(base_path: Path, task_id: str) -> Path:
    """Location of an active (non-archived) ticket."""
    return Path(base_path) / TICKETS_DIR / task_id


def archived_ticket_dir(base_path: Path, task_id: str) -> Path:
    """Location of an archived ticket."""
    return Path(base_path) / TICKETS_DIR / ARCHIVED_DIR / task_id


def resolve_ticket_dir(base_path: Path, task_id: str) -> Path:
    """
    Find the directory for a task's ticket.

    Checks the active location first, then the archived one. When neither
    exists the active path is returned, so callers that need the directory
    to exist must check for themselves.

    Args:
        base_path: Workspace root containing tickets/
        task_id: Legacy or path-style task ID

    Returns:
        Path to the ticket directory
    """
    active = active_ticket_dir(base_path, task_id)
    if active.is_dir():
        return active
    archived = archived_ticket_dir(base_path, task_id)
    if archived.is_dir():
        return archived
    return active


def is_archived_dir(base_path: Path, ticket_dir: Path) -> bool:
    """True if ``ticket_dir`` lives under tickets/_archived/."""
    archive_root = Path(base_path) / TICKETS_DIR / ARCHIVED_DIR
    try:
        Path(ticket_dir).relative_to(archive_root)
    except ValueError:
        return False
    return True
