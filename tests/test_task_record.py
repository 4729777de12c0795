"""
Tests for reading and writing status.yaml.
"""

import pytest
import yaml

from adb.core.tasks.errors import TaskNotFoundError, TaskParseError, TaskStorageError
from adb.core.tasks.models import TaskPriority
from adb.core.tasks.record import STATUS_FILE, load_task, save_task, write_task


@pytest.fixture
def ticket_dir(workspace):
    path = workspace / "tickets" / "TASK-00001"
    path.mkdir()
    return path


class TestWriteTask:
    def test_writes_yaml_with_disk_keys(self, ticket_dir, sample_task):
        sample_task.worktree_path = "/work/TASK-00001"

        path = write_task(ticket_dir, sample_task)

        data = yaml.safe_load(path.read_text())
        assert path == ticket_dir / STATUS_FILE
        assert data["id"] == "TASK-00001"
        assert data["status"] == "backlog"
        assert data["priority"] == "P1"
        assert data["worktree"] == "/work/TASK-00001"

    def test_leaves_no_temp_files(self, ticket_dir, sample_task):
        write_task(ticket_dir, sample_task)

        assert [p.name for p in ticket_dir.iterdir()] == [STATUS_FILE]


class TestLoadTask:
    def test_round_trip(self, workspace, ticket_dir, sample_task):
        write_task(ticket_dir, sample_task)

        assert load_task(workspace, "TASK-00001") == sample_task

    def test_loads_from_archive(self, workspace, sample_task):
        archived = workspace / "tickets" / "_archived" / "TASK-00001"
        archived.mkdir(parents=True)
        write_task(archived, sample_task)

        assert load_task(workspace, "TASK-00001").id == "TASK-00001"

    def test_missing(self, workspace):
        with pytest.raises(TaskNotFoundError):
            load_task(workspace, "TASK-00404")

    def test_malformed_yaml(self, workspace, ticket_dir):
        (ticket_dir / STATUS_FILE).write_text("id: [unclosed\n")

        with pytest.raises(TaskParseError):
            load_task(workspace, "TASK-00001")

    def test_not_a_mapping(self, workspace, ticket_dir):
        (ticket_dir / STATUS_FILE).write_text("- just\n- a list\n")

        with pytest.raises(TaskParseError):
            load_task(workspace, "TASK-00001")

    def test_invalid_field(self, workspace, ticket_dir):
        (ticket_dir / STATUS_FILE).write_text("id: TASK-00001\nstatus: sleeping\n")

        with pytest.raises(TaskParseError):
            load_task(workspace, "TASK-00001")

    def test_unreadable(self, workspace, ticket_dir):
        (ticket_dir / STATUS_FILE).mkdir()

        with pytest.raises(TaskStorageError):
            load_task(workspace, "TASK-00001")


class TestSaveTask:
    def test_saves_into_existing_ticket(self, workspace, ticket_dir, sample_task):
        save_task(workspace, sample_task)
        sample_task.priority = TaskPriority.P0
        save_task(workspace, sample_task)

        assert load_task(workspace, "TASK-00001").priority == TaskPriority.P0

    def test_missing_ticket_directory(self, workspace, sample_task):
        with pytest.raises(TaskNotFoundError):
            save_task(workspace, sample_task)
