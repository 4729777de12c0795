"""
Backlog store for reading/writing backlog.yaml.

Holds the registry in memory between ``load`` and ``save``; callers follow
a load -> mutate -> save discipline. Writes are atomic (temp file + rename)
but not locked, so concurrent writers are last-writer-wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from adb.core.ids.paths import normalize_task_id

from .models import BacklogEntry, BacklogFile, BacklogFilter

logger = logging.getLogger(__name__)

# Fields update_task() may change. The ID itself is immutable.
_UPDATABLE = (
    "title",
    "source",
    "status",
    "priority",
    "owner",
    "repo",
    "branch",
    "created",
    "tags",
    "blocked_by",
    "related",
)


class BacklogStoreError(Exception):
    """Error from backlog store operations."""

    pass


class BacklogStore:
    """
    Store for the central task registry.

    Example:
        >>> store = BacklogStore(Path("~/adb").expanduser())
        >>> store.load()
        >>> store.add_task(BacklogEntry(id="TASK-00001", title="add-login"))
        >>> store.save()
    """

    BACKLOG_FILE = "backlog.yaml"

    def __init__(self, base_path: Path | None = None) -> None:
        """
        Initialize BacklogStore.

        Args:
            base_path: Workspace root holding backlog.yaml (defaults to cwd)
        """
        self.base_path = Path(base_path) if base_path else Path.cwd()
        self._file_path = self.base_path / self.BACKLOG_FILE
        self._data = BacklogFile()

    @property
    def file_path(self) -> Path:
        """Get the path to the backlog.yaml file."""
        return self._file_path

    def load(self) -> None:
        """
        (Re)load the registry from disk. A missing file is an empty backlog.

        Raises:
            BacklogStoreError: If the file cannot be read or parsed
        """
        try:
            content = self._file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._data = BacklogFile()
            return
        except OSError as e:
            raise BacklogStoreError(f"loading backlog: {e}") from e

        try:
            data = yaml.safe_load(content) or {}
            if not isinstance(data, dict):
                raise BacklogStoreError("loading backlog: expected a mapping at top level")
            self._data = BacklogFile.model_validate(data)
        except yaml.YAMLError as e:
            raise BacklogStoreError(f"loading backlog: parsing YAML: {e}") from e
        except ValidationError as e:
            raise BacklogStoreError(f"loading backlog: invalid entry: {e}") from e

    def save(self) -> None:
        """
        Write the registry to backlog.yaml atomically.

        Raises:
            BacklogStoreError: If the file cannot be written
        """
        data = self._data.model_dump(mode="json")
        content = yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.base_path, prefix=".backlog_", suffix=".yaml.tmp"
            )
        except OSError as e:
            raise BacklogStoreError(f"saving backlog: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(temp_path, self._file_path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise BacklogStoreError(f"saving backlog: writing file: {e}") from e

    def add_task(self, entry: BacklogEntry) -> None:
        """
        Register a new entry.

        Raises:
            BacklogStoreError: If an entry with the same ID exists
        """
        task_id = normalize_task_id(entry.id)
        if not task_id:
            raise BacklogStoreError("adding task: ID must not be empty")
        if task_id in self._data.tasks:
            raise BacklogStoreError(f"adding task: task {task_id} already exists")
        self._data.tasks[task_id] = entry.model_copy(update={"id": task_id})

    def update_task(self, task_id: str, **fields: Any) -> BacklogEntry:
        """
        Merge non-empty fields into an existing entry.

        None, empty strings and empty lists leave the stored value alone;
        non-empty lists replace the stored list. Re-applying the same update
        is a no-op.

        Raises:
            BacklogStoreError: If the task is not registered or a field is unknown
        """
        task_id = normalize_task_id(task_id)
        existing = self._data.tasks.get(task_id)
        if existing is None:
            raise BacklogStoreError(f"updating task: task {task_id} not found")

        unknown = set(fields) - set(_UPDATABLE)
        if unknown:
            raise BacklogStoreError(f"updating task: unknown fields {sorted(unknown)}")

        changes = {k: v for k, v in fields.items() if v not in (None, "", [])}
        merged = existing.model_dump()
        merged.update(changes)
        try:
            updated = BacklogEntry.model_validate(merged)
        except ValidationError as e:
            raise BacklogStoreError(f"updating task {task_id}: {e}") from e

        self._data.tasks[task_id] = updated
        return updated

    def remove_task(self, task_id: str) -> None:
        """
        Remove an entry.

        Raises:
            BacklogStoreError: If the task is not registered
        """
        task_id = normalize_task_id(task_id)
        if task_id not in self._data.tasks:
            raise BacklogStoreError(f"removing task: task {task_id} not found")
        del self._data.tasks[task_id]

    def get_task(self, task_id: str) -> BacklogEntry | None:
        """Get an entry by ID, or None."""
        return self._data.tasks.get(normalize_task_id(task_id))

    def get_all_tasks(self) -> list[BacklogEntry]:
        """All entries, sorted by ID."""
        return [self._data.tasks[k] for k in sorted(self._data.tasks)]

    def filter_tasks(self, criteria: BacklogFilter) -> list[BacklogEntry]:
        """Entries matching ``criteria``, sorted by ID."""
        return [entry for entry in self.get_all_tasks() if criteria.matches(entry)]
