"""Data models for worktree-manager."""

from .issue import IssueReference, IssueMetadata
from .worktree import (
    BranchName,
    CleanupResult,
    CreationStage,
    PackageManagerInfo,
    WorktreeInfo,
    WorktreeResult,
)

__all__ = [
    "IssueReference",
    "IssueMetadata",
    "BranchName",
    "CleanupResult",
    "CreationStage",
    "PackageManagerInfo",
    "WorktreeInfo",
    "WorktreeResult",
]
