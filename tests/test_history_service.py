"""Tests for the worktree history file"""
import json
from unittest.mock import patch

import pytest

from worktree_manager.services.history_service import HistoryService


class TestHistoryService:
    def test_missing_file(self, temp_dir, test_logger):
        assert HistoryService(temp_dir / "h.json", test_logger).load() == []

    def test_records_are_appended(self, temp_dir, test_logger):
        path = temp_dir / "state" / "worktrees.json"
        history = HistoryService(path, test_logger)

        first = history.save_worktree("/trees/a", {"issueNumber": 1})
        history.save_worktree("/trees/b", {"issueNumber": 2})

        records = json.loads(path.read_text())
        assert [r["path"] for r in records] == ["/trees/a", "/trees/b"]
        assert records[0] == first
        assert first["createdAt"].endswith("+00:00")

    def test_existing_records_survive(self, temp_dir, test_logger):
        path = temp_dir / "worktrees.json"
        path.write_text(json.dumps([{"path": "/old", "createdAt": "2024-01-01T00:00:00+00:00"}]))

        HistoryService(path, test_logger).save_worktree("/new", {})

        assert [r["path"] for r in json.loads(path.read_text())] == ["/old", "/new"]

    def test_malformed_file_is_backed_up_before_saving(self, temp_dir, test_logger):
        path = temp_dir / "worktrees.json"
        original = '[{"path": "/a", "issueNumber": 1},]'
        path.write_text(original)
        history = HistoryService(path, test_logger)

        assert history.load() == []
        history.save_worktree("/b", {"issueNumber": 2})

        assert history.backup_path.read_text() == original
        assert [r["path"] for r in history.load()] == ["/b"]

    def test_unreadable_file_is_not_overwritten(self, temp_dir, test_logger):
        path = temp_dir / "worktrees.json"
        path.write_text('[{"path": "/a"}]')
        history = HistoryService(path, test_logger)

        with patch("worktree_manager.services.history_service.open", create=True,
                   side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(OSError):
                history.save_worktree("/b", {})

        assert json.loads(path.read_text()) == [{"path": "/a"}]

    def test_non_list_content(self, temp_dir, test_logger):
        path = temp_dir / "worktrees.json"
        path.write_text('{"path": "/x"}')
        assert HistoryService(path, test_logger).load() == []

    def test_find_by_path_returns_latest(self, temp_dir, test_logger):
        history = HistoryService(temp_dir / "worktrees.json", test_logger)
        history.save_worktree(str(temp_dir / "a"), {"issueNumber": 1})
        history.save_worktree(str(temp_dir / "a"), {"issueNumber": 2})

        assert history.find_by_path(str(temp_dir / "a"))["issueNumber"] == 2
        assert history.find_by_path(str(temp_dir / "b")) is None
