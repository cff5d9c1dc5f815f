"""Worktree operations service for worktree-manager."""

import os
import shutil
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import git

from worktree_manager.exceptions import GitOperationError
from worktree_manager.logging_config import get_logger
from worktree_manager.models.worktree import WorktreeInfo
from worktree_manager.services.git.operations import GitOperations, describe_git_error


def _to_info(entry: Dict[str, Any], listed_at: str) -> Optional[WorktreeInfo]:
    """Build a WorktreeInfo, or None when path, branch or commit is missing."""
    path = entry.get("path")
    branch = entry.get("branch")
    commit = entry.get("HEAD")
    if not (path and branch and commit):
        return None
    return WorktreeInfo(
        path=path,
        branch=branch,
        commit=commit,
        locked=entry.get("locked", False),
        prunable=entry.get("prunable", False),
        is_main=entry.get("is_main", False),
        created=listed_at,
    )


def parse_worktree_list(output: str) -> List[WorktreeInfo]:
    """Parse `git worktree list --porcelain` output.

    Format, one block per worktree separated by blank lines:
        worktree /path/to/worktree
        HEAD commit_sha
        branch refs/heads/branch-name   (or "detached", or "bare")
        locked [reason]
        prunable [reason]

    Entries without a path, branch and commit (bare, detached) are dropped.
    """
    listed_at = datetime.now(timezone.utc).isoformat()
    worktrees: List[WorktreeInfo] = []
    entry: Dict[str, Any] = {}
    first = True

    def flush():
        nonlocal entry
        if entry:
            info = _to_info(entry, listed_at)
            if info:
                worktrees.append(info)
        entry = {}

    for raw_line in output.split("\n"):
        line = raw_line.strip()

        if not line:
            flush()
            continue

        if line.startswith("worktree "):
            flush()
            entry["path"] = line.split(" ", 1)[1]
            # The first block is always the main working tree
            entry["is_main"] = first
            first = False
        elif line.startswith("HEAD "):
            entry["HEAD"] = line.split(" ", 1)[1]
        elif line.startswith("branch "):
            entry["branch"] = line.split(" ", 1)[1].replace("refs/heads/", "", 1)
        elif line == "locked" or line.startswith("locked "):
            entry["locked"] = True
        elif line == "prunable" or line.startswith("prunable "):
            entry["prunable"] = True

    # Last entry when there is no trailing blank line
    flush()
    return worktrees


def same_path(a: str, b: str) -> bool:
    """Compare two paths after resolving symlinks (/tmp vs /private/tmp)."""
    return os.path.realpath(a) == os.path.realpath(b)


class WorktreeService:
    """Service for managing git worktrees."""

    def __init__(self, repo_path: Optional[str] = None, logger=None):
        """Initialize the worktree service.

        Args:
            repo_path: Path inside the git repository, defaults to the current directory
            logger: Logger to report through
        """
        self.repo_path = repo_path or os.getcwd()
        self.logger = logger or get_logger(__name__)
        self.operations = GitOperations(self.repo_path, logger=self.logger)

    def _get_repo(self) -> git.Repo:
        return self.operations._get_repo()

    def list_worktrees(self) -> List[WorktreeInfo]:
        """Get all registered worktrees. Returns an empty list if git fails."""
        try:
            repo = self._get_repo()
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            self.logger.error(f"Failed to list worktrees: {describe_git_error(e, 'git worktree list')}")
            return []

        worktrees = parse_worktree_list(output)
        self.logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            self.logger.debug(f"  {wt}")
        return worktrees

    def find_worktree(self, path: str) -> Optional[WorktreeInfo]:
        """Registered worktree at path, if any."""
        for wt in self.list_worktrees():
            if same_path(wt.path, path):
                return wt
        return None

    def registered_paths(self) -> List[str]:
        """Every path in the worktree registry, detached and bare entries included."""
        try:
            repo = self._get_repo()
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            self.logger.error(f"Failed to list worktrees: {describe_git_error(e, 'git worktree list')}")
            return []

        return [
            line.split(" ", 1)[1]
            for line in output.splitlines()
            if line.startswith("worktree ")
        ]

    def worktree_exists(self, path: str) -> bool:
        """Check the registry for path, including entries list_worktrees drops."""
        return any(same_path(registered, path) for registered in self.registered_paths())

    def create_worktree(self, path: str, branch_name: str, base_branch: Optional[str] = None) -> None:
        """Create a worktree at path on branch_name.

        A worktree already registered at path is force-removed first, discarding
        anything uncommitted in it. A new branch is created from base_branch (or
        HEAD); if the branch already exists it is checked out as is.

        Raises:
            GitOperationError: If `git worktree add` fails
        """
        self.logger.info(f"Creating worktree: {path}")
        self.logger.debug(f"Branch: {branch_name}, base: {base_branch or 'HEAD'}")

        if self.worktree_exists(path):
            self.logger.warning(f"Worktree already exists at {path}, removing it")
            self.remove_worktree(path, force=True)

        if self.operations.branch_exists(branch_name):
            holder = next(
                (wt for wt in self.list_worktrees() if wt.branch == branch_name),
                None,
            )
            if holder is not None:
                raise GitOperationError(
                    "create_worktree",
                    path,
                    f"Branch '{branch_name}' is already checked out at {holder.path}",
                )
            self.logger.info(f"Branch {branch_name} already exists, checking it out")
            args = ["add", path, branch_name]
        else:
            args = ["add", "-b", branch_name, path]
            if base_branch:
                args.append(base_branch)

        try:
            repo = self._get_repo()
            repo.git.worktree(*args)
        except git.exc.GitCommandError as e:
            error_msg = describe_git_error(e, "git worktree add")
            self.logger.error(f"Failed to create worktree at {path}: {error_msg}")
            raise GitOperationError("create_worktree", path, error_msg)

        self.logger.info(f"Worktree created: {path}")

    def remove_worktree(self, path: str, force: bool = True) -> None:
        """Remove a worktree at the specified path.

        Falls back to deleting the directory when git refuses; that fallback
        never raises. The registry entry left behind is cleared by prune.
        """
        self.logger.info(f"Removing worktree: {path}")
        args = ["remove", path]
        if force:
            args.append("--force")

        try:
            repo = self._get_repo()
            repo.git.worktree(*args)
            self.logger.info(f"Worktree removed: {path}")
            return
        except git.exc.GitCommandError as e:
            self.logger.debug(describe_git_error(e, "git worktree remove"))

        if os.path.exists(path):
            self.logger.warning(f"git worktree remove failed, deleting {path} manually")
            shutil.rmtree(path, ignore_errors=True)

    def prune_worktrees(self) -> None:
        """Prune registry entries whose directories are gone. Logs on failure."""
        self.logger.info("Pruning worktrees...")
        try:
            repo = self._get_repo()
            repo.git.worktree("prune")
            self.logger.info("Worktrees pruned")
        except git.exc.GitCommandError as e:
            self.logger.error(f"Failed to prune worktrees: {describe_git_error(e, 'git worktree prune')}")
