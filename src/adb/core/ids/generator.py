"""
Counter-based task ID generation.

IDs look like ``TASK-00042``. The counter lives in ``<base>/.task_counter``
as plain decimal text and is shared by every process working in the same
workspace. A read-increment-write cycle runs entirely under an exclusive
lock on ``.task_counter.lock``, so two concurrent ``adb`` invocations can
never hand out the same number.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from .lock import file_lock

logger = logging.getLogger(__name__)

COUNTER_FILE = ".task_counter"
LOCK_FILE = ".task_counter.lock"


class TaskIDError(Exception):
    """Base exception for task ID generation."""

    pass


class CounterReadError(TaskIDError):
    """The counter file exists but could not be read."""

    pass


class CounterParseError(TaskIDError):
    """The counter file does not contain an integer."""

    pass


class CounterWriteError(TaskIDError):
    """The incremented counter could not be persisted."""

    pass


def format_task_id(prefix: str, value: int, pad_width: int) -> str:
    """
    Format ``value`` as ``<prefix>-<value>``, zero-padded to ``pad_width``.

    A width of 0 disables padding; values wider than the width are kept whole.

    Example:
        >>> format_task_id("TASK", 7, 5)
        'TASK-00007'
        >>> format_task_id("TASK", 123456, 5)
        'TASK-123456'
    """
    if pad_width > 0:
        return f"{prefix}-{value:0{pad_width}d}"
    return f"{prefix}-{value}"


class TaskIDGenerator:
    """
    Hands out unique, monotonically increasing task IDs.

    Example:
        >>> gen = TaskIDGenerator(Path("/tmp/adb"), "TASK", 5)
        >>> gen.generate_task_id()
        'TASK-00001'
        >>> gen.generate_task_id()
        'TASK-00002'
    """

    def __init__(self, base_path: Path, prefix: str = "TASK", pad_width: int = 5) -> None:
        """
        Args:
            base_path: Directory holding .task_counter and its lock file
            prefix: ID prefix (e.g. "TASK")
            pad_width: Zero-padding width of the number; 0 for none
        """
        if pad_width < 0:
            raise ValueError(f"pad_width must be >= 0, got {pad_width}")
        self.base_path = Path(base_path)
        self.prefix = prefix
        self.pad_width = pad_width

    @property
    def counter_path(self) -> Path:
        return self.base_path / COUNTER_FILE

    @property
    def lock_path(self) -> Path:
        return self.base_path / LOCK_FILE

    def _read_counter(self) -> int:
        try:
            text = self.counter_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return 0
        except OSError as e:
            raise CounterReadError(f"reading task counter file: {e}") from e

        try:
            value = int(text)
        except ValueError as e:
            raise CounterParseError(f"parsing task counter {text!r}: {e}") from e
        if value < 0:
            raise CounterParseError(f"parsing task counter {text!r}: negative value")
        return value

    def _write_counter(self, value: int) -> None:
        """Replace the counter file atomically; a failed write keeps the old value."""
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=self.base_path, prefix=".task_counter_", suffix=".tmp"
            )
        except OSError as e:
            raise CounterWriteError(f"writing task counter file: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(str(value))
            os.replace(temp_path, self.counter_path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise CounterWriteError(f"writing task counter file: {e}") from e

    def current_value(self) -> int:
        """Last number handed out (0 if none). Reads under the lock."""
        with file_lock(self.lock_path):
            return self._read_counter()

    def generate_task_id(self) -> str:
        """
        Allocate the next task ID.

        Returns:
            Formatted ID such as "TASK-00001"

        Raises:
            CounterReadError: If the counter file cannot be read
            CounterParseError: If the counter file is not an integer
            CounterWriteError: If the new value cannot be written
            LockError: If the lock cannot be taken
        """
        self.base_path.mkdir(parents=True, exist_ok=True)
        with file_lock(self.lock_path):
            value = self._read_counter() + 1
            self._write_counter(value)
        task_id = format_task_id(self.prefix, value, self.pad_width)
        logger.debug("Allocated task ID %s", task_id)
        return task_id
