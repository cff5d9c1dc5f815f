"""Worktree data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass
class WorktreeInfo:
    """Information about a git worktree, rebuilt from `git worktree list` on every call."""

    path: str
    branch: str
    commit: str
    locked: bool = False
    prunable: bool = False
    is_main: bool = False  # The repository's primary working tree
    created: str = ""
    last_accessed: Optional[str] = None
    issue_url: Optional[str] = None

    @property
    def short_commit(self) -> str:
        return self.commit[:8]

    def __str__(self) -> str:
        """String representation of worktree."""
        if self.locked:
            status = "locked"
        elif self.prunable:
            status = "prunable"
        else:
            status = "active"
        return f"{self.branch} @ {self.path} [{status}]"


@dataclass
class WorktreeResult:
    """Outcome of a single create operation."""

    success: bool
    worktree_path: Optional[str] = None
    branch_name: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, error: str) -> "WorktreeResult":
        return cls(success=False, error=error)


@dataclass
class CleanupResult:
    """Outcome of a clean operation."""

    removed: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def total_cleaned(self) -> int:
        return len(self.removed)


@dataclass(frozen=True)
class PackageManagerInfo:
    """A package manager and the lockfile that selects it."""

    name: str
    lock_file: str
    install_command: str


@dataclass(frozen=True)
class BranchName:
    """A generated branch name tagged with the strategy that produced it."""

    value: str
    via: str  # "assistant" or "heuristic"


class CreationStage(Enum):
    """Steps of the create pipeline, in order."""

    VALIDATING_REPO = "validating repository"
    FETCHING_ISSUE = "fetching issue"
    NAMING_BRANCH = "naming branch"
    CREATING_WORKTREE = "creating worktree"
    COPYING_ENV = "copying environment files"
    INSTALLING_DEPS = "installing dependencies"
    LAUNCHING_TERMINAL = "launching terminal"
    RECORDING_HISTORY = "recording history"
    DONE = "done"
