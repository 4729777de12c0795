"""
Exclusive advisory file locking.

Only the task counter is protected this way. The lock file is created on
first use and left in place; holding a lock on an open descriptor is what
matters, not the file's existence.
"""

from __future__ import annotations

import fcntl
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


class LockError(OSError):
    """Raised when the lock file cannot be opened or locked."""

    pass


@contextmanager
def file_lock(lock_path: Path) -> Iterator[None]:
    """
    Hold an exclusive ``flock`` on ``lock_path`` for the duration of the block.

    Blocks until the lock is acquired. Works across processes; within one
    process each ``open`` gets its own descriptor, so threads exclude each
    other too.

    Raises:
        LockError: If the lock file cannot be opened or locked
    """
    lock_path = Path(lock_path)
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        handle = lock_path.open("a+", encoding="utf-8")
    except OSError as e:
        raise LockError(f"opening lock file {lock_path}: {e}") from e

    with handle:
        try:
            logger.debug("Waiting for lock %s", lock_path)
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        except OSError as e:
            raise LockError(f"acquiring file lock {lock_path}: {e}") from e
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
