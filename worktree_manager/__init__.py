"""
worktree-manager - Create git worktrees from GitHub issues
"""

from .__version__ import __version__
from .core import WorktreeManager
from .cli import main

__all__ = ["WorktreeManager", "main", "__version__"]
