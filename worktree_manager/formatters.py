"""Formatting helpers for worktree-manager output."""

from datetime import datetime
from typing import Optional

from worktree_manager.constants import STATUS_ACTIVE, STATUS_LOCKED, STATUS_PRUNABLE
from worktree_manager.models.worktree import WorktreeInfo


def format_worktree_status(worktree: WorktreeInfo) -> str:
    """Rich markup for a worktree's state; locked wins over prunable."""
    if worktree.locked:
        return STATUS_LOCKED
    if worktree.prunable:
        return STATUS_PRUNABLE
    return STATUS_ACTIVE


def format_duration(seconds: float) -> str:
    """Format an elapsed time as 250ms, 4.2s or 1.5m."""
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    return f"{seconds / 60:.1f}m"


def format_timestamp(value: Optional[str]) -> str:
    """Format an ISO-8601 timestamp as YYYY-MM-DD HH:MM, passing other strings through."""
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value
