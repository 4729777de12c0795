"""
Task identifiers.

Two schemes are supported:

    Legacy:      TASK-00042                  (counter, see generator)
    Path-style:  github.com/acme/api/login   (repo hierarchy, see paths)

Public API:
    Generator:
        - TaskIDGenerator: counter-backed ID allocation under a file lock
        - format_task_id: prefix/number formatting
        - TaskIDError, CounterReadError, CounterParseError, CounterWriteError

    Path helpers:
        - normalize_task_id, is_legacy_task_id, validate_path_task_id
        - build_path_task_id, sanitize_segment
        - prefix_from_task_id, repo_from_task_id, description_from_task_id
        - normalize_repo_to_prefix, format_branch_name

Example:
    >>> from adb.core.ids import TaskIDGenerator, build_path_task_id
    >>> TaskIDGenerator(base, "TASK", 5).generate_task_id()
    'TASK-00001'
    >>> build_path_task_id("github.com/acme/api", "Add login")
    'github.com/acme/api/add-login'
"""

from adb.core.ids.generator import (
    CounterParseError,
    CounterReadError,
    CounterWriteError,
    TaskIDError,
    TaskIDGenerator,
    format_task_id,
)
from adb.core.ids.lock import LockError, file_lock
from adb.core.ids.paths import (
    InvalidTaskIDError,
    build_path_task_id,
    description_from_task_id,
    format_branch_name,
    is_legacy_task_id,
    normalize_repo_to_prefix,
    normalize_task_id,
    prefix_from_task_id,
    repo_from_task_id,
    sanitize_segment,
    validate_path_task_id,
)

__all__ = [
    # Generator
    "TaskIDGenerator",
    "format_task_id",
    "TaskIDError",
    "CounterReadError",
    "CounterParseError",
    "CounterWriteError",
    # Locking
    "file_lock",
    "LockError",
    # Path helpers
    "InvalidTaskIDError",
    "normalize_task_id",
    "is_legacy_task_id",
    "validate_path_task_id",
    "sanitize_segment",
    "build_path_task_id",
    "prefix_from_task_id",
    "repo_from_task_id",
    "description_from_task_id",
    "normalize_repo_to_prefix",
    "format_branch_name",
]
