"""Services used by the worktree manager."""

from .command_runner import CommandResult, CommandRunner
from .git import GitOperations, WorktreeService
from .github_service import IssueFetcher
from .branch_namer import BranchNamer
from .env_file_service import EnvFileService
from .package_manager_service import PackageManagerService
from .terminal_launcher import TerminalLauncher
from .history_service import HistoryService

__all__ = [
    "CommandResult",
    "CommandRunner",
    "GitOperations",
    "WorktreeService",
    "IssueFetcher",
    "BranchNamer",
    "EnvFileService",
    "PackageManagerService",
    "TerminalLauncher",
    "HistoryService",
]
