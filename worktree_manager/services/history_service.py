"""Append-only history of created worktrees."""

import json
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from worktree_manager.constants import APP_DIR_NAME, HISTORY_FILE_NAME
from worktree_manager.logging_config import get_logger


def default_history_path() -> Path:
    return Path.home() / APP_DIR_NAME / HISTORY_FILE_NAME


class HistoryService:
    """Records each created worktree in a JSON array on disk.

    The file is read, extended and rewritten in full on every save. There is
    no locking, so concurrent invocations can lose records.
    """

    def __init__(self, history_path: Optional[Union[str, Path]] = None, logger=None):
        self.history_path = Path(history_path) if history_path else default_history_path()
        self.logger = logger or get_logger(__name__)

    def _read(self) -> List[Dict[str, Any]]:
        """Read the history file.

        Raises:
            OSError: If the file cannot be read
            ValueError: If it is not a JSON array
        """
        if not self.history_path.exists():
            return []

        with open(self.history_path, "r", encoding="utf-8") as f:
            history = json.load(f)
        if not isinstance(history, list):
            raise ValueError("expected a JSON array")
        return history

    def load(self) -> List[Dict[str, Any]]:
        """Load all history records. A missing or unreadable file yields an empty list."""
        try:
            return self._read()
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not read worktree history {self.history_path}: {e}")
            return []

    @property
    def backup_path(self) -> Path:
        return self.history_path.with_name(self.history_path.name + ".bak")

    def save_worktree(self, worktree_path: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Append a record for worktree_path and write the file back.

        An existing file that cannot be parsed is copied to backup_path first
        and a new history is started.

        Returns:
            The record that was written

        Raises:
            OSError: If the file cannot be backed up or written
        """
        try:
            history = self._read()
        except ValueError as e:
            self.logger.warning(
                f"Worktree history {self.history_path} is malformed ({e}), "
                f"saving a copy to {self.backup_path}"
            )
            shutil.copy2(self.history_path, self.backup_path)
            history = []

        record = {
            "path": worktree_path,
            "createdAt": datetime.now(timezone.utc).isoformat(),
            **metadata,
        }
        history.append(record)

        self.history_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.history_path, "w", encoding="utf-8") as f:
            json.dump(history, f, indent=2)

        self.logger.debug(f"Saved worktree to history {self.history_path}")
        return record

    def find_by_path(self, worktree_path: str) -> Optional[Dict[str, Any]]:
        """Most recent record for worktree_path, if any."""
        target = os.path.realpath(worktree_path)
        for record in reversed(self.load()):
            path = record.get("path") if isinstance(record, dict) else None
            if path and os.path.realpath(path) == target:
                return record
        return None
