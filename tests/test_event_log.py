"""
Tests for the JSONL event log.
"""

import json

from adb.utils.logging import EVENT_LOG_FILE, EventLog, EventType


class TestEventLog:
    """Test appending and reading events."""

    def test_for_workspace(self, tmp_path):
        log = EventLog.for_workspace(tmp_path)

        assert log.get_log_file() == tmp_path / EVENT_LOG_FILE

    def test_appends_json_lines(self, tmp_path):
        log = EventLog(tmp_path / "events.jsonl")

        log.log_event(EventType.TASK_CREATED, {"task_id": "TASK-00001"})
        log.log_event(EventType.TASK_ARCHIVED, {"task_id": "TASK-00001"})

        lines = (tmp_path / "events.jsonl").read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["event_type"] == "task_created"
        assert first["data"] == {"task_id": "TASK-00001"}
        assert "timestamp" in first

    def test_read_events(self, tmp_path):
        log = EventLog(tmp_path / "events.jsonl")
        log.log_event(EventType.TASK_RESUMED, {"task_id": "TASK-00002"})

        events = log.read_events()

        assert len(events) == 1
        assert events[0].event_type == EventType.TASK_RESUMED.value
        assert events[0].data["task_id"] == "TASK-00002"

    def test_read_missing_log(self, tmp_path):
        assert EventLog(tmp_path / "none.jsonl").read_events() == []

    def test_skips_malformed_lines(self, tmp_path):
        path = tmp_path / "events.jsonl"
        log = EventLog(path)
        log.log_event(EventType.TASK_CREATED)
        with open(path, "a") as f:
            f.write("not json\n\n")
        log.log_event(EventType.WORKTREE_REMOVED)

        assert [e.event_type for e in log.read_events()] == [
            EventType.TASK_CREATED.value,
            EventType.WORKTREE_REMOVED.value,
        ]

    def test_write_failure_is_a_warning(self, tmp_path, caplog):
        """An unwritable log never fails the caller."""
        (tmp_path / "blocker").write_text("")
        log = EventLog(tmp_path / "blocker" / "events.jsonl")

        log.log_event(EventType.TASK_CREATED)

        assert "Failed to write event log" in caplog.text
