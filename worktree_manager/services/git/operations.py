"""Repository-level git operations."""

import os
from typing import Optional

import git

from worktree_manager.constants import FALLBACK_DEFAULT_BRANCH
from worktree_manager.exceptions import GitOperationError, NotARepositoryError
from worktree_manager.logging_config import get_logger


def describe_git_error(e: git.exc.GitCommandError, command: str) -> str:
    """Build a readable message from a GitCommandError."""
    stderr = (e.stderr if hasattr(e, "stderr") and e.stderr else str(e)).strip()
    status = e.status if hasattr(e, "status") else "unknown"

    # GitPython prefixes captured stderr with "stderr: '...'"
    if stderr.startswith("stderr: "):
        stderr = stderr[len("stderr: "):].strip("'").strip()

    if stderr:
        return f"{command} failed (exit {status}): {stderr}"
    return f"{command} failed with exit code {status}"


class GitOperations:
    """Queries and mutations on the repository that hosts the worktrees."""

    def __init__(self, repo_path: Optional[str] = None, logger=None):
        """Initialize the service.

        Args:
            repo_path: Any path inside the repository, defaults to the current directory
            logger: Logger to report through
        """
        self.repo_path = repo_path or os.getcwd()
        self.logger = logger or get_logger(__name__)

    def _get_repo(self) -> git.Repo:
        """Open the repository containing repo_path.

        Raises:
            NotARepositoryError: If repo_path is not inside a git repository
        """
        try:
            return git.Repo(self.repo_path, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise NotARepositoryError(self.repo_path)

    def is_repository(self, path: Optional[str] = None) -> bool:
        """Check whether path (default: repo_path) is inside a git repository. Never raises."""
        target = path or self.repo_path
        try:
            repo = git.Repo(target, search_parent_directories=True)
            repo.git.rev_parse("--git-dir")
            return True
        except Exception as e:
            self.logger.debug(f"{target} is not a git repository: {e}")
            return False

    def current_branch(self) -> str:
        """Name of the checked out branch, empty when HEAD is detached."""
        repo = self._get_repo()
        return repo.git.branch("--show-current").strip()

    def default_branch(self, fallback: str = FALLBACK_DEFAULT_BRANCH) -> str:
        """Resolve the remote's default branch from refs/remotes/origin/HEAD.

        Returns fallback when the symbolic ref is not set.
        """
        try:
            repo = self._get_repo()
            ref = repo.git.symbolic_ref("refs/remotes/origin/HEAD").strip()
        except (git.exc.GitCommandError, NotARepositoryError) as e:
            self.logger.debug(f"Could not resolve origin/HEAD, using '{fallback}': {e}")
            return fallback

        branch = ref.replace("refs/remotes/origin/", "", 1)
        return branch or fallback

    def repository_root(self) -> str:
        """Absolute path of the working tree root."""
        repo = self._get_repo()
        try:
            return repo.git.rev_parse("--show-toplevel").strip()
        except git.exc.GitCommandError as e:
            raise GitOperationError(
                "rev-parse", self.repo_path, describe_git_error(e, "git rev-parse --show-toplevel")
            )

    def repository_name(self) -> str:
        """Directory name of the repository root."""
        return os.path.basename(self.repository_root().rstrip("/")) or "unknown"

    def ref_exists(self, ref: str) -> bool:
        """Check if a ref (branch, remote branch, tag, sha) resolves."""
        try:
            repo = self._get_repo()
            repo.git.rev_parse("--verify", "--quiet", ref)
            return True
        except (git.exc.GitCommandError, NotARepositoryError):
            return False

    def branch_exists(self, branch_name: str) -> bool:
        """Check if a local branch exists."""
        return self.ref_exists(f"refs/heads/{branch_name}")

    def resolve_commit(self, ref: str) -> Optional[str]:
        """Commit sha a ref points to, or None if it does not resolve."""
        try:
            repo = self._get_repo()
            return repo.git.rev_parse("--verify", "--quiet", f"{ref}^{{commit}}").strip() or None
        except (git.exc.GitCommandError, NotARepositoryError):
            return None

    def is_dirty(self, worktree_path: str) -> bool:
        """Check for uncommitted or untracked changes in a working tree.

        A working tree that cannot be inspected counts as dirty.
        """
        try:
            repo = git.Repo(worktree_path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            self.logger.debug(f"Could not open {worktree_path}: {e}")
            return True

        try:
            return repo.is_dirty(untracked_files=True)
        except git.exc.GitCommandError as e:
            self.logger.debug(f"Could not check {worktree_path} for changes: {e}")
            return True
        finally:
            repo.close()

    def delete_branch(self, branch_name: str, force: bool = False) -> None:
        """Delete a local branch. Without force git refuses unmerged branches.

        Raises:
            GitOperationError: If git refuses or fails
        """
        repo = self._get_repo()
        flag = "-D" if force else "-d"
        try:
            repo.git.branch(flag, branch_name)
            self.logger.info(f"Deleted branch {branch_name}")
        except git.exc.GitCommandError as e:
            raise GitOperationError(
                "delete_branch", branch_name, describe_git_error(e, f"git branch {flag}")
            )

    def merged_branches(self, base_branch: str) -> set[str]:
        """Local branches fully merged into base_branch. Empty on failure."""
        try:
            repo = self._get_repo()
            output = repo.git.branch("--merged", base_branch, "--format=%(refname:short)")
        except (git.exc.GitCommandError, NotARepositoryError) as e:
            self.logger.debug(f"Could not list branches merged into {base_branch}: {e}")
            return set()

        return {line.strip() for line in output.splitlines() if line.strip()}
