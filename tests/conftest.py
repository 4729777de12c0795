"""
Pytest configuration and shared fixtures.

Provides fixtures for temporary workspaces, a fully wired TaskManager,
sample tasks and an isolated configuration environment.
"""

import os

import pytest

from adb.core.backlog import BacklogEntry, BacklogStore
from adb.core.bootstrap import BootstrapSystem, TemplateManager
from adb.core.config import clear_cache
from adb.core.context import ContextManager
from adb.core.ids import TaskIDGenerator
from adb.core.tasks.manager import TaskManager
from adb.core.tasks.models import Task, TaskPriority, TaskStatus, TaskType
from adb.utils.logging import EventLog

# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def workspace(tmp_path):
    """
    Provide an empty adb workspace.

    Creates:
    - tickets/
    """
    base = tmp_path / "workspace"
    (base / "tickets").mkdir(parents=True)
    return base


# ==============================================================================
# Manager Fixtures
# ==============================================================================


@pytest.fixture
def backlog(workspace):
    """BacklogStore backed by workspace/backlog.yaml."""
    return BacklogStore(workspace)


@pytest.fixture
def bootstrap(workspace):
    """BootstrapSystem with a real counter and built-in templates, no worktrees."""
    return BootstrapSystem(
        workspace,
        TaskIDGenerator(workspace, "TASK", 5),
        TemplateManager(workspace),
    )


@pytest.fixture
def event_log(workspace):
    return EventLog.for_workspace(workspace)


@pytest.fixture
def manager(workspace, bootstrap, backlog, event_log):
    """TaskManager wired with real collaborators and no worktree remover."""
    return TaskManager(
        workspace,
        bootstrap,
        backlog,
        ContextManager(workspace),
        None,
        event_log=event_log,
    )


# ==============================================================================
# Sample Data Fixtures
# ==============================================================================


@pytest.fixture
def sample_task():
    """Provide a sample Task object."""
    return Task(
        id="TASK-00001",
        title="Add login page",
        type=TaskType.FEAT,
        status=TaskStatus.BACKLOG,
        priority=TaskPriority.P1,
        owner="@alice",
        branch="feat/TASK-00001-add-login",
        tags=["frontend", "auth"],
    )


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """
    Provide a clean environment without ADB_* env vars.

    Removes all ADB_* environment variables to ensure tests
    don't inherit configuration from the system.
    """
    for key in list(os.environ.keys()):
        if key.startswith("ADB_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def isolated_config(clean_env, tmp_path, monkeypatch):
    """
    Provide completely isolated config environment.

    Points XDG_CONFIG_HOME at a temporary directory and clears the
    config cache before and after the test.
    """
    config_home = tmp_path / "config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    clear_cache()
    yield config_home
    clear_cache()


@pytest.fixture
def add_orphan(workspace):
    """
    Factory that registers a backlog entry with no ticket directory.

    Usage:
        def test_something(add_orphan):
            add_orphan("TASK-09999", TaskStatus.BACKLOG)
    """

    def _add(task_id: str, status: TaskStatus = TaskStatus.BACKLOG) -> None:
        store = BacklogStore(workspace)
        store.load()
        store.add_task(BacklogEntry(id=task_id, title="orphan", status=status))
        store.save()

    return _add
