"""
Tests for the task lifecycle manager.

Covers creation, lookup, in-place transitions, priority reordering,
archive/unarchive (including interrupted runs) and worktree cleanup.
"""

from unittest.mock import MagicMock

import pytest
import yaml

from adb.core.backlog import BacklogStore
from adb.core.ids.paths import InvalidTaskIDError
from adb.core.tasks.errors import (
    CollaboratorError,
    TaskNotFoundError,
    TaskParseError,
    TaskPreconditionError,
    TaskStateError,
    TaskStorageError,
)
from adb.core.tasks.handoff import HANDOFF_FILE
from adb.core.tasks.manager import PRE_ARCHIVE_MARKER, CreateTaskOptions, TaskManager
from adb.core.tasks.models import TaskPriority, TaskStatus, TaskType
from adb.core.tasks.record import STATUS_FILE, load_task, save_task, write_task
from adb.utils.logging import EventType


def _backlog_entry(workspace, task_id):
    store = BacklogStore(workspace)
    store.load()
    return store.get_task(task_id)


# ==============================================================================
# Creation and lookup
# ==============================================================================


class TestCreateTask:
    def test_first_task_gets_first_id(self, manager, workspace):
        task = manager.create_task(TaskType.FEAT, "add-login")

        assert task.id == "TASK-00001"
        assert task.status == TaskStatus.BACKLOG
        assert task.priority == TaskPriority.P2
        assert task.title == "add-login"
        assert (workspace / "tickets" / "TASK-00001" / STATUS_FILE).is_file()

    def test_ids_increase(self, manager):
        first = manager.create_task(TaskType.FEAT, "one")
        second = manager.create_task(TaskType.BUG, "two")

        assert (first.id, second.id) == ("TASK-00001", "TASK-00002")

    def test_scaffolds_ticket(self, manager, workspace):
        manager.create_task(TaskType.SPIKE, "try-cache")

        ticket = workspace / "tickets" / "TASK-00001"
        assert (ticket / "notes.md").read_text().startswith("# Spike Notes")
        assert (ticket / "design.md").is_file()
        assert (ticket / "context.md").is_file()
        assert (ticket / "communications").is_dir()

    def test_registers_in_backlog(self, manager, workspace):
        manager.create_task(
            TaskType.FEAT,
            "add-login",
            options=CreateTaskOptions(
                priority=TaskPriority.P0, owner="@alice", tags=["auth"], source="cli"
            ),
        )

        entry = _backlog_entry(workspace, "TASK-00001")
        assert entry is not None
        assert entry.status == TaskStatus.BACKLOG
        assert entry.priority == TaskPriority.P0
        assert entry.owner == "@alice"
        assert entry.tags == ["auth"]
        assert entry.source == "cli"

    def test_default_priority(self, workspace, bootstrap, backlog):
        manager = TaskManager(workspace, bootstrap, backlog, default_priority=TaskPriority.P3)

        assert manager.create_task(TaskType.FEAT, "x").priority == TaskPriority.P3

    def test_path_style_prefix(self, manager, workspace):
        task = manager.create_task(
            "feat",
            "Add OAuth Login",
            options=CreateTaskOptions(prefix="github.com/acme/api"),
        )

        assert task.id == "github.com/acme/api/add-oauth-login"
        assert (workspace / "tickets" / "github.com" / "acme" / "api" / "add-oauth-login").is_dir()

    def test_branch_pattern(self, manager):
        task = manager.create_task(
            TaskType.BUG,
            "fix-timeout",
            options=CreateTaskOptions(branch_pattern="{type}/{id}-{description}"),
        )

        assert task.branch == "bug/TASK-00001-fix-timeout"

    def test_unknown_type(self, manager):
        with pytest.raises(ValueError):
            manager.create_task("chore", "x")

    def test_emits_event(self, manager, event_log):
        manager.create_task(TaskType.FEAT, "add-login")

        events = event_log.read_events()
        assert [e.event_type for e in events] == [EventType.TASK_CREATED.value]
        assert events[0].data["task_id"] == "TASK-00001"

    def test_backlog_failure_is_prefixed(self, workspace, bootstrap):
        backlog = MagicMock()
        backlog.save.side_effect = RuntimeError("disk full")
        manager = TaskManager(workspace, bootstrap, backlog)

        with pytest.raises(CollaboratorError) as exc_info:
            manager.create_task(TaskType.FEAT, "add-login")

        assert str(exc_info.value) == "creating task: adding to backlog: disk full"
        # The ticket itself was written before the backlog failed.
        assert load_task(workspace, "TASK-00001").status == TaskStatus.BACKLOG

    def test_bootstrap_failure_is_prefixed(self, workspace, backlog):
        bootstrap = MagicMock()
        bootstrap.bootstrap.side_effect = RuntimeError("no templates")
        manager = TaskManager(workspace, bootstrap, backlog)

        with pytest.raises(CollaboratorError, match="^creating task: bootstrapping: no templates$"):
            manager.create_task(TaskType.FEAT, "add-login")

    def test_duplicate_path_id_rejected(self, manager, workspace):
        prefix = CreateTaskOptions(prefix="github.com/acme/api", priority=TaskPriority.P0)
        task = manager.create_task(TaskType.FEAT, "add-login", options=prefix)
        manager.resume_task(task.id)

        with pytest.raises(CollaboratorError, match="^creating task: bootstrapping: "):
            manager.create_task(TaskType.BUG, "add-login", options=prefix)

        record = load_task(workspace, task.id)
        assert record.type == TaskType.FEAT
        assert record.status == TaskStatus.IN_PROGRESS
        assert record.priority == TaskPriority.P0
        assert _backlog_entry(workspace, task.id).status == TaskStatus.IN_PROGRESS

    def test_duplicate_of_archived_id_rejected(self, manager, workspace):
        prefix = CreateTaskOptions(prefix="github.com/acme/api")
        task = manager.create_task(TaskType.FEAT, "add-login", options=prefix)
        manager.archive_task(task.id)

        with pytest.raises(CollaboratorError, match="already exists"):
            manager.create_task(TaskType.FEAT, "add-login", options=prefix)

        assert not (workspace / "tickets" / "github.com" / "acme" / "api" / "add-login").exists()
        assert load_task(workspace, task.id).status == TaskStatus.ARCHIVED

    def test_existing_backlog_entry_rejected(self, manager, add_orphan):
        add_orphan("TASK-00001", TaskStatus.IN_PROGRESS)

        with pytest.raises(CollaboratorError) as exc_info:
            manager.create_task(TaskType.FEAT, "add-login")

        assert str(exc_info.value) == (
            "creating task: adding to backlog: adding task: task TASK-00001 already exists"
        )


class TestGetTask:
    def test_round_trip(self, manager):
        created = manager.create_task(TaskType.FEAT, "add-login")

        loaded = manager.get_task(created.id)

        assert loaded.id == created.id
        assert loaded.title == created.title
        assert loaded.branch == created.branch
        assert loaded.priority == created.priority

    def test_normalizes_separators(self, manager):
        manager.create_task(
            TaskType.FEAT, "add-login", options=CreateTaskOptions(prefix="github.com/acme/api")
        )

        task = manager.get_task("github.com\\acme\\api\\add-login\\")

        assert task.id == "github.com/acme/api/add-login"

    def test_missing(self, manager):
        with pytest.raises(TaskNotFoundError, match="^getting task TASK-00404: "):
            manager.get_task("TASK-00404")


class TestTaskIdValidation:
    def test_archive_rejects_parent_segment(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")

        with pytest.raises(InvalidTaskIDError):
            manager.archive_task("../tickets/TASK-00001")

        assert load_task(workspace, "TASK-00001").status == TaskStatus.BACKLOG
        assert not (workspace / "tickets" / "_archived").exists()
        assert not (workspace / "tickets" / "tickets").exists()

    @pytest.mark.parametrize("task_id", ["/abs/x", "a/../b", "a//b", "./x", ""])
    def test_lookups_reject_malformed_ids(self, manager, task_id):
        with pytest.raises(InvalidTaskIDError):
            manager.get_task(task_id)
        with pytest.raises(InvalidTaskIDError):
            manager.resume_task(task_id)

    def test_mutations_reject_before_io(self, manager, workspace):
        bad = "github.com/acme/../../TASK-00001"
        manager.create_task(TaskType.FEAT, "add-login")

        for call in (
            lambda: manager.update_task_status(bad, TaskStatus.DONE),
            lambda: manager.update_task_priority(bad, TaskPriority.P0),
            lambda: manager.unarchive_task(bad),
            lambda: manager.cleanup_worktree(bad),
        ):
            with pytest.raises(ValueError):
                call()

        task = load_task(workspace, "TASK-00001")
        assert task.status == TaskStatus.BACKLOG
        assert task.priority == TaskPriority.P2

    def test_legacy_ids_skip_path_checks(self, manager):
        created = manager.create_task(TaskType.FEAT, "add-login")

        assert manager.get_task(created.id).id == "TASK-00001"


class TestListing:
    def test_all_tasks(self, manager):
        manager.create_task(TaskType.FEAT, "one")
        manager.create_task(TaskType.BUG, "two")

        assert [t.id for t in manager.get_all_tasks()] == ["TASK-00001", "TASK-00002"]

    def test_by_status(self, manager):
        manager.create_task(TaskType.FEAT, "one")
        manager.create_task(TaskType.BUG, "two")
        manager.resume_task("TASK-00002")

        in_progress = manager.get_tasks_by_status(TaskStatus.IN_PROGRESS)
        backlog = manager.get_tasks_by_status("backlog")

        assert [t.id for t in in_progress] == ["TASK-00002"]
        assert [t.id for t in backlog] == ["TASK-00001"]

    def test_skips_orphans(self, manager, add_orphan):
        manager.create_task(TaskType.FEAT, "one")
        add_orphan("TASK-09999", TaskStatus.BACKLOG)

        assert [t.id for t in manager.get_all_tasks()] == ["TASK-00001"]
        assert [t.id for t in manager.get_tasks_by_status(TaskStatus.BACKLOG)] == ["TASK-00001"]

    def test_includes_archived_tasks(self, manager):
        manager.create_task(TaskType.FEAT, "one")
        manager.archive_task("TASK-00001")

        archived = manager.get_tasks_by_status(TaskStatus.ARCHIVED)

        assert [t.id for t in archived] == ["TASK-00001"]


# ==============================================================================
# In-place transitions
# ==============================================================================


class TestResumeTask:
    def test_sets_in_progress_and_mirrors(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")

        task = manager.resume_task("TASK-00001")

        assert task.status == TaskStatus.IN_PROGRESS
        assert load_task(workspace, "TASK-00001").status == TaskStatus.IN_PROGRESS
        assert _backlog_entry(workspace, "TASK-00001").status == TaskStatus.IN_PROGRESS

    def test_idempotent(self, manager):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.resume_task("TASK-00001")

        assert manager.resume_task("TASK-00001").status == TaskStatus.IN_PROGRESS

    def test_loads_context(self, workspace, bootstrap, backlog):
        contexts = MagicMock()
        manager = TaskManager(workspace, bootstrap, backlog, contexts)
        manager.create_task(TaskType.FEAT, "add-login")

        manager.resume_task("TASK-00001")

        contexts.load_context.assert_called_once_with("TASK-00001")

    def test_context_failure_leaves_status(self, workspace, bootstrap, backlog):
        contexts = MagicMock()
        contexts.load_context.side_effect = RuntimeError("unreadable")
        manager = TaskManager(workspace, bootstrap, backlog, contexts)
        manager.create_task(TaskType.FEAT, "add-login")

        with pytest.raises(CollaboratorError) as exc_info:
            manager.resume_task("TASK-00001")

        assert str(exc_info.value) == "resuming task TASK-00001: loading context: unreadable"
        assert load_task(workspace, "TASK-00001").status == TaskStatus.BACKLOG

    def test_without_context_store(self, workspace, bootstrap, backlog):
        manager = TaskManager(workspace, bootstrap, backlog)
        manager.create_task(TaskType.FEAT, "add-login")

        assert manager.resume_task("TASK-00001").status == TaskStatus.IN_PROGRESS

    def test_archived_task(self, manager):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.archive_task("TASK-00001")

        with pytest.raises(TaskStateError):
            manager.resume_task("TASK-00001")

    def test_missing(self, manager):
        with pytest.raises(TaskNotFoundError, match="^resuming task TASK-00404: "):
            manager.resume_task("TASK-00404")


class TestUpdateTaskStatus:
    def test_updates_record_and_backlog(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")

        manager.update_task_status("TASK-00001", TaskStatus.REVIEW)

        assert load_task(workspace, "TASK-00001").status == TaskStatus.REVIEW
        assert _backlog_entry(workspace, "TASK-00001").status == TaskStatus.REVIEW

    def test_rejects_archived_target(self, manager):
        manager.create_task(TaskType.FEAT, "add-login")

        with pytest.raises(TaskStateError):
            manager.update_task_status("TASK-00001", TaskStatus.ARCHIVED)

    def test_rejects_archived_task(self, manager):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.archive_task("TASK-00001")

        with pytest.raises(TaskStateError):
            manager.update_task_status("TASK-00001", TaskStatus.DONE)

    def test_unknown_status(self, manager):
        manager.create_task(TaskType.FEAT, "add-login")

        with pytest.raises(ValueError):
            manager.update_task_status("TASK-00001", "sleeping")

    def test_emits_event(self, manager, event_log):
        manager.create_task(TaskType.FEAT, "add-login")

        manager.update_task_status("TASK-00001", TaskStatus.BLOCKED)

        event = event_log.read_events()[-1]
        assert event.event_type == EventType.TASK_STATUS_CHANGED.value
        assert event.data == {"task_id": "TASK-00001", "from": "backlog", "to": "blocked"}


class TestPriorities:
    def test_update_priority(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")

        task = manager.update_task_priority("TASK-00001", "p0")

        assert task.priority == TaskPriority.P0
        assert load_task(workspace, "TASK-00001").priority == TaskPriority.P0
        assert _backlog_entry(workspace, "TASK-00001").priority == TaskPriority.P0

    def test_invalid_priority(self, manager):
        manager.create_task(TaskType.FEAT, "add-login")

        with pytest.raises(ValueError):
            manager.update_task_priority("TASK-00001", "P7")

    def test_reorder(self, manager, workspace):
        t1 = manager.create_task(TaskType.FEAT, "one").id
        t2 = manager.create_task(TaskType.FEAT, "two").id
        t3 = manager.create_task(TaskType.FEAT, "three").id

        manager.reorder_priorities([t3, t1, t2])

        assert load_task(workspace, t3).priority == TaskPriority.P0
        assert load_task(workspace, t1).priority == TaskPriority.P1
        assert load_task(workspace, t2).priority == TaskPriority.P2
        assert _backlog_entry(workspace, t3).priority == TaskPriority.P0

    def test_reorder_tail_is_p3(self, manager, workspace):
        ids = [manager.create_task(TaskType.FEAT, f"t{i}").id for i in range(5)]

        updated = manager.reorder_priorities(ids)

        assert [t.priority for t in updated] == [
            TaskPriority.P0,
            TaskPriority.P1,
            TaskPriority.P2,
            TaskPriority.P3,
            TaskPriority.P3,
        ]

    def test_reorder_stops_at_missing_task(self, manager, workspace):
        t1 = manager.create_task(TaskType.FEAT, "one").id

        with pytest.raises(TaskNotFoundError) as exc_info:
            manager.reorder_priorities([t1, "TASK-00404"])

        assert str(exc_info.value).startswith("reordering priorities: ")
        assert load_task(workspace, t1).priority == TaskPriority.P0


# ==============================================================================
# Archive / unarchive
# ==============================================================================


class TestArchiveTask:
    def test_resumed_task_records_in_progress(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.resume_task("TASK-00001")

        manager.archive_task("TASK-00001")

        archived = workspace / "tickets" / "_archived" / "TASK-00001"
        assert (archived / PRE_ARCHIVE_MARKER).read_text() == "in_progress"
        assert not (workspace / "tickets" / "TASK-00001").exists()

    def test_writes_handoff_and_status(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")

        handoff = manager.archive_task("TASK-00001")

        archived = workspace / "tickets" / "_archived" / "TASK-00001"
        assert handoff.task_id == "TASK-00001"
        assert (archived / HANDOFF_FILE).is_file()
        assert load_task(workspace, "TASK-00001").status == TaskStatus.ARCHIVED
        assert _backlog_entry(workspace, "TASK-00001").status == TaskStatus.ARCHIVED

    def test_handoff_reads_ticket_documents(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")
        notes = workspace / "tickets" / "TASK-00001" / "notes.md"
        notes.write_text("## Learnings\n- Cookies need SameSite=Lax\n")

        handoff = manager.archive_task("TASK-00001")

        assert handoff.learnings == ["Cookies need SameSite=Lax"]
        assert "tickets/_archived/TASK-00001/design.md" in handoff.related_docs

    def test_archive_twice(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.update_task_status("TASK-00001", TaskStatus.DONE)
        manager.archive_task("TASK-00001")
        archived = workspace / "tickets" / "_archived" / "TASK-00001"
        status_before = (archived / STATUS_FILE).read_text()
        handoff_before = (archived / HANDOFF_FILE).read_text()

        with pytest.raises(TaskStateError, match="^archiving task TASK-00001: "):
            manager.archive_task("TASK-00001")

        assert (archived / STATUS_FILE).read_text() == status_before
        assert (archived / HANDOFF_FILE).read_text() == handoff_before
        assert (archived / PRE_ARCHIVE_MARKER).read_text() == "done"

    def test_path_style_id(self, manager, workspace):
        task = manager.create_task(
            TaskType.FEAT, "add-login", options=CreateTaskOptions(prefix="github.com/acme/api")
        )

        manager.archive_task(task.id)

        assert (
            workspace / "tickets" / "_archived" / "github.com" / "acme" / "api" / "add-login"
        ).is_dir()

    def test_completes_interrupted_archive(self, manager, workspace):
        task = manager.create_task(TaskType.FEAT, "add-login")
        ticket = workspace / "tickets" / "TASK-00001"
        # Simulate a run that stopped after saving the archived status.
        (ticket / PRE_ARCHIVE_MARKER).write_text("review")
        task.status = TaskStatus.ARCHIVED
        write_task(ticket, task)

        manager.archive_task("TASK-00001")

        archived = workspace / "tickets" / "_archived" / "TASK-00001"
        assert (archived / PRE_ARCHIVE_MARKER).read_text() == "review"
        assert _backlog_entry(workspace, "TASK-00001").status == TaskStatus.ARCHIVED

    def test_destination_exists(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")
        (workspace / "tickets" / "_archived" / "TASK-00001").mkdir(parents=True)

        with pytest.raises(TaskStateError):
            manager.archive_task("TASK-00001")

        assert (workspace / "tickets" / "TASK-00001").is_dir()

    def test_missing(self, manager):
        with pytest.raises(TaskNotFoundError):
            manager.archive_task("TASK-00404")

    def test_emits_event(self, manager, event_log):
        manager.create_task(TaskType.FEAT, "add-login")

        manager.archive_task("TASK-00001")

        event = event_log.read_events()[-1]
        assert event.event_type == EventType.TASK_ARCHIVED.value
        assert event.data["previous_status"] == "backlog"


class TestUnarchiveTask:
    def test_restores_previous_status(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.update_task_status("TASK-00001", TaskStatus.REVIEW)
        manager.archive_task("TASK-00001")

        task = manager.unarchive_task("TASK-00001")

        active = workspace / "tickets" / "TASK-00001"
        assert task.status == TaskStatus.REVIEW
        assert active.is_dir()
        assert not (workspace / "tickets" / "_archived" / "TASK-00001").exists()
        assert load_task(workspace, "TASK-00001").status == TaskStatus.REVIEW
        assert _backlog_entry(workspace, "TASK-00001").status == TaskStatus.REVIEW

    def test_keeps_handoff_and_removes_marker(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.archive_task("TASK-00001")

        manager.unarchive_task("TASK-00001")

        active = workspace / "tickets" / "TASK-00001"
        assert (active / HANDOFF_FILE).is_file()
        assert not (active / PRE_ARCHIVE_MARKER).exists()

    def test_missing_marker_restores_backlog(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.update_task_status("TASK-00001", TaskStatus.DONE)
        manager.archive_task("TASK-00001")
        (workspace / "tickets" / "_archived" / "TASK-00001" / PRE_ARCHIVE_MARKER).unlink()

        assert manager.unarchive_task("TASK-00001").status == TaskStatus.BACKLOG

    def test_invalid_marker(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.archive_task("TASK-00001")
        archived = workspace / "tickets" / "_archived" / "TASK-00001"
        (archived / PRE_ARCHIVE_MARKER).write_text("archived")

        with pytest.raises(TaskParseError):
            manager.unarchive_task("TASK-00001")

        assert archived.is_dir()

    def test_not_archived(self, manager):
        manager.create_task(TaskType.FEAT, "add-login")

        with pytest.raises(TaskStateError, match="^unarchiving task TASK-00001: "):
            manager.unarchive_task("TASK-00001")

    def test_completes_interrupted_unarchive(self, manager, workspace):
        manager.create_task(TaskType.FEAT, "add-login")
        manager.resume_task("TASK-00001")
        manager.archive_task("TASK-00001")
        # Simulate a run that moved the directory back but stopped there.
        (workspace / "tickets" / "_archived" / "TASK-00001").rename(
            workspace / "tickets" / "TASK-00001"
        )

        task = manager.unarchive_task("TASK-00001")

        assert task.status == TaskStatus.IN_PROGRESS
        assert not (workspace / "tickets" / "TASK-00001" / PRE_ARCHIVE_MARKER).exists()

    def test_round_trip_keeps_record(self, manager, workspace):
        created = manager.create_task(
            TaskType.BUG,
            "fix-timeout",
            options=CreateTaskOptions(priority=TaskPriority.P1, owner="@bob", tags=["api"]),
        )
        manager.resume_task(created.id)

        manager.archive_task(created.id)
        restored = manager.unarchive_task(created.id)

        assert restored.status == TaskStatus.IN_PROGRESS
        assert restored.priority == TaskPriority.P1
        assert restored.owner == "@bob"
        assert restored.tags == ["api"]
        assert restored.branch == created.branch


# ==============================================================================
# Worktree cleanup
# ==============================================================================


class TestCleanupWorktree:
    @pytest.fixture
    def remover(self):
        return MagicMock()

    @pytest.fixture
    def manager_with_remover(self, workspace, bootstrap, backlog, remover):
        return TaskManager(workspace, bootstrap, backlog, None, remover)

    def _with_worktree(self, manager, workspace):
        task = manager.create_task(TaskType.FEAT, "add-login")
        task.worktree_path = "/work/TASK-00001"
        save_task(workspace, task)
        return task

    def test_no_worktree(self, manager_with_remover, workspace, remover):
        manager_with_remover.create_task(TaskType.FEAT, "add-login")
        status_path = workspace / "tickets" / "TASK-00001" / STATUS_FILE
        before = status_path.read_text()

        with pytest.raises(TaskPreconditionError, match="no worktree"):
            manager_with_remover.cleanup_worktree("TASK-00001")

        assert status_path.read_text() == before
        remover.remove_worktree.assert_not_called()

    def test_removes_and_clears_path(self, manager_with_remover, workspace, remover):
        self._with_worktree(manager_with_remover, workspace)

        task = manager_with_remover.cleanup_worktree("TASK-00001")

        remover.remove_worktree.assert_called_once_with("/work/TASK-00001")
        assert task.worktree_path == ""
        data = yaml.safe_load((workspace / "tickets" / "TASK-00001" / STATUS_FILE).read_text())
        assert not data.get("worktree")

    def test_remover_failure_keeps_path(self, manager_with_remover, workspace, remover):
        self._with_worktree(manager_with_remover, workspace)
        remover.remove_worktree.side_effect = RuntimeError("locked")

        with pytest.raises(CollaboratorError, match="removing worktree /work/TASK-00001: locked"):
            manager_with_remover.cleanup_worktree("TASK-00001")

        assert load_task(workspace, "TASK-00001").worktree_path == "/work/TASK-00001"

    def test_no_remover(self, manager, workspace):
        self._with_worktree(manager, workspace)

        with pytest.raises(TaskPreconditionError, match="no worktree remover"):
            manager.cleanup_worktree("TASK-00001")

    def test_save_failure_after_removal(self, manager_with_remover, workspace, remover, monkeypatch):
        self._with_worktree(manager_with_remover, workspace)

        def fail(*args, **kwargs):
            raise PermissionError("read-only")

        monkeypatch.setattr("adb.core.tasks.manager.save_task", fail)

        with pytest.raises(TaskStorageError, match="saving status after worktree removal"):
            manager_with_remover.cleanup_worktree("TASK-00001")

        remover.remove_worktree.assert_called_once()


class TestStorageErrors:
    def test_unwritable_ticket(self, manager, workspace, monkeypatch):
        manager.create_task(TaskType.FEAT, "add-login")

        def fail(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr("adb.core.tasks.manager.write_handoff", fail)

        with pytest.raises(TaskStorageError) as exc_info:
            manager.archive_task("TASK-00001")

        assert str(exc_info.value) == "archiving task TASK-00001: writing handoff.md: denied"
        assert isinstance(exc_info.value.__cause__, TaskStorageError)
        # Nothing was moved.
        assert (workspace / "tickets" / "TASK-00001").is_dir()
        assert load_task(workspace, "TASK-00001").status == TaskStatus.BACKLOG
