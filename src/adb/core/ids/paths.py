"""
Helpers for the two task ID schemes.

Legacy IDs:      TASK-00042           (prefix, hyphen, counter)
Path-style IDs:  github.com/org/repo/add-login  (repo hierarchy + description)

All functions here are pure; nothing touches the filesystem.
"""

from __future__ import annotations

import posixpath
import re
from pathlib import PureWindowsPath

LEGACY_TASK_ID = re.compile(r"^[A-Z0-9]+-\d+$")

_UNSAFE_SEGMENT = re.compile(r"[^a-z0-9-]+")
_UNSAFE_BRANCH = re.compile(r"[^a-zA-Z0-9._/-]+")
_DASHES = re.compile(r"-{2,}")


class InvalidTaskIDError(ValueError):
    """Raised when a path-style task ID is malformed."""

    pass


def normalize_task_id(task_id: str) -> str:
    """
    Convert backslashes to forward slashes and strip trailing slashes.

    Example:
        >>> normalize_task_id("github.com\\\\org\\\\repo\\\\feature\\\\")
        'github.com/org/repo/feature'
    """
    return task_id.replace("\\", "/").rstrip("/")


def is_legacy_task_id(task_id: str) -> bool:
    """True for counter IDs such as ``TASK-00001``."""
    return bool(LEGACY_TASK_ID.match(task_id))


def validate_path_task_id(task_id: str) -> None:
    """
    Check a path-style task ID.

    Rejects empty IDs, leading or trailing slashes, empty segments and
    ``.`` / ``..`` segments.

    Raises:
        InvalidTaskIDError: If the ID is not usable as a ticket path
    """
    if not task_id:
        raise InvalidTaskIDError("task ID must not be empty")
    if task_id.startswith("/") or task_id.endswith("/"):
        raise InvalidTaskIDError(f"task ID {task_id!r} must not start or end with /")
    for segment in task_id.split("/"):
        if segment == "":
            raise InvalidTaskIDError(f"task ID {task_id!r} contains empty segment")
        if segment in (".", ".."):
            raise InvalidTaskIDError(f"task ID {task_id!r} contains invalid segment {segment!r}")


def sanitize_segment(text: str) -> str:
    """
    Lowercase ``text`` and collapse anything outside [a-z0-9-] into single hyphens.

    Example:
        >>> sanitize_segment("  Fix Login: OAuth!! ")
        'fix-login-oauth'
    """
    text = _UNSAFE_SEGMENT.sub("-", text.lower())
    text = _DASHES.sub("-", text)
    return text.strip("-")


def build_path_task_id(prefix: str, description: str) -> str:
    """
    Join a normalized prefix and a sanitized description.

    Example:
        >>> build_path_task_id("github.com/acme/api/", "Add Login Page")
        'github.com/acme/api/add-login-page'
    """
    desc = sanitize_segment(description)
    prefix = normalize_task_id(prefix)
    if not prefix:
        return desc
    return f"{prefix}/{desc}"


def prefix_from_task_id(task_id: str) -> str:
    """Everything but the last segment; empty for legacy and single-segment IDs."""
    if is_legacy_task_id(task_id) or "/" not in task_id:
        return ""
    return task_id.rsplit("/", 1)[0]


def repo_from_task_id(task_id: str) -> str:
    """
    Short repo name: the second-to-last segment.

    Example:
        >>> repo_from_task_id("github.com/acme/api/add-login")
        'api'
    """
    if is_legacy_task_id(task_id):
        return ""
    parts = task_id.split("/")
    if len(parts) < 2:
        return ""
    return parts[-2]


def description_from_task_id(task_id: str) -> str:
    """Last segment of the ID, or the whole ID when it has no slash."""
    return task_id.rsplit("/", 1)[-1]


def normalize_repo_to_prefix(repo_path: str, base_path: str = "") -> str:
    """
    Turn a repository location into a task ID prefix.

    Strips ``base_path`` and a leading ``repos/`` so that
    ``<base>/repos/github.com/acme/api`` becomes ``github.com/acme/api``.
    Returns an empty string for repositories outside the workspace.
    """
    if not repo_path:
        return ""
    cleaned = posixpath.normpath(repo_path.replace("\\", "/"))

    if base_path:
        base = base_path.replace("\\", "/").rstrip("/")
        if cleaned.startswith(base + "/"):
            cleaned = cleaned[len(base) + 1 :]

    if cleaned.startswith("repos/"):
        cleaned = cleaned[len("repos/") :]
    cleaned = cleaned.rstrip("/")

    if cleaned in ("", ".") or cleaned.startswith("/") or PureWindowsPath(cleaned).drive:
        return ""
    return cleaned


def format_branch_name(pattern: str, task_type: str, task_id: str, description: str) -> str:
    """
    Expand a branch naming pattern.

    Supported placeholders: {type} {id} {description} {repo} {prefix}.
    An empty pattern returns the description unchanged.

    Example:
        >>> format_branch_name("{type}/{id}-{description}", "feat", "TASK-00001", "Add Login")
        'feat/TASK-00001-add-login'
    """
    if not pattern:
        return description
    desc = _DASHES.sub("-", _UNSAFE_BRANCH.sub("-", description.lower())).strip("-")
    return (
        pattern.replace("{type}", task_type)
        .replace("{id}", task_id)
        .replace("{description}", desc)
        .replace("{repo}", repo_from_task_id(task_id))
        .replace("{prefix}", prefix_from_task_id(task_id))
    )
