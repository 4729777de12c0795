"""
Reading and writing the per-task ``status.yaml`` record.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import TaskNotFoundError, TaskParseError, TaskStorageError
from .models import Task
from .ticketpath import resolve_ticket_dir

STATUS_FILE = "status.yaml"


def status_path(base_path: Path, task_id: str) -> Path:
    """Path of the status record for ``task_id`` in its current location."""
    return resolve_ticket_dir(base_path, task_id) / STATUS_FILE


def task_to_dict(task: Task) -> dict[str, Any]:
    """Serialize a Task for YAML, using the on-disk key names."""
    return task.model_dump(by_alias=True, mode="json")


def load_task(base_path: Path, task_id: str) -> Task:
    """
    Load a task from its status.yaml, checking active then archived locations.

    Raises:
        TaskNotFoundError: If there is no status.yaml for the task
        TaskStorageError: If the file exists but cannot be read
        TaskParseError: If the file is not a valid task record
    """
    path = status_path(base_path, task_id)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise TaskNotFoundError(f"task {task_id} not found ({path})") from e
    except OSError as e:
        raise TaskStorageError(f"reading {STATUS_FILE} for {task_id}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise TaskParseError(f"parsing {STATUS_FILE} for {task_id}: {e}") from e

    if not isinstance(data, dict):
        raise TaskParseError(f"parsing {STATUS_FILE} for {task_id}: expected a mapping")

    try:
        return Task.model_validate(data)
    except ValidationError as e:
        raise TaskParseError(f"parsing {STATUS_FILE} for {task_id}: {e}") from e


def write_task(ticket_dir: Path, task: Task) -> Path:
    """
    Write ``task`` to ``ticket_dir/status.yaml`` atomically.

    Uses a temporary file and atomic rename so a crash never leaves a
    half-written record behind.
    """
    target = Path(ticket_dir) / STATUS_FILE
    content = yaml.safe_dump(
        task_to_dict(task),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )

    fd, temp_path = tempfile.mkstemp(dir=ticket_dir, prefix=".status_", suffix=".yaml.tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(temp_path, target)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise
    return target


def save_task(base_path: Path, task: Task) -> Path:
    """Write ``task`` back into whichever ticket directory currently holds it."""
    ticket_dir = resolve_ticket_dir(base_path, task.id)
    if not ticket_dir.is_dir():
        raise TaskNotFoundError(f"ticket directory for {task.id} does not exist ({ticket_dir})")
    try:
        return write_task(ticket_dir, task)
    except OSError as e:
        raise TaskStorageError(f"writing {STATUS_FILE} for {task.id}: {e}") from e
