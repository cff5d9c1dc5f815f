"""Git-related services for worktree-manager."""

from .operations import GitOperations
from .worktrees import WorktreeService, parse_worktree_list

__all__ = [
    "GitOperations",
    "WorktreeService",
    "parse_worktree_list",
]
