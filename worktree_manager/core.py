"""Core functionality for worktree-manager"""

import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from worktree_manager.config import Config
from worktree_manager.exceptions import GitOperationError
from worktree_manager.formatters import format_duration
from worktree_manager.logging_config import get_logger
from worktree_manager.models.issue import IssueMetadata
from worktree_manager.models.worktree import (
    CleanupResult,
    CreationStage,
    WorktreeInfo,
    WorktreeResult,
)
from worktree_manager.services.branch_namer import BranchNamer
from worktree_manager.services.command_runner import CommandRunner
from worktree_manager.services.env_file_service import EnvFileService
from worktree_manager.services.git import GitOperations, WorktreeService
from worktree_manager.services.github_service import IssueFetcher
from worktree_manager.services.history_service import HistoryService
from worktree_manager.services.package_manager_service import PackageManagerService
from worktree_manager.services.terminal_launcher import TerminalLauncher, build_terminal_command


def _parse_timestamp(value) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class WorktreeManager:
    """Creates, lists and cleans worktrees for the repository at repo_path."""

    def __init__(
        self,
        repo_path: Optional[str] = None,
        runner: Optional[CommandRunner] = None,
        history_path: Optional[Union[str, Path]] = None,
        scripts_dir: Optional[Union[str, Path]] = None,
        logger: Optional[logging.Logger] = None,
        debug: bool = False,
    ):
        """Initialize WorktreeManager.

        Args:
            repo_path: Path inside the git repository, defaults to the current directory
            runner: Command runner shared by every external CLI adapter
            history_path: History file, defaults to ~/.worktree-manager/worktrees.json
            scripts_dir: Directory holding terminals/launcher.sh
            logger: Logger injected into every component
            debug: Lower the logger to DEBUG
        """
        self.repo_path = repo_path or os.getcwd()
        self.runner = runner or CommandRunner()
        self.logger = logger or get_logger(__name__)
        self.debug_mode = debug
        if debug:
            self.logger.setLevel(logging.DEBUG)

        self.git = GitOperations(self.repo_path, logger=self.logger)
        self.worktrees = WorktreeService(self.repo_path, logger=self.logger)
        self.issues = IssueFetcher(self.runner, logger=self.logger)
        self.branch_namer = BranchNamer(self.runner, logger=self.logger)
        self.env_files = EnvFileService(logger=self.logger)
        self.package_manager = PackageManagerService(self.runner, logger=self.logger)
        self.terminal = TerminalLauncher(scripts_dir, self.runner, logger=self.logger)
        self.history = HistoryService(history_path, logger=self.logger)

        self.stage: Optional[CreationStage] = None

    def _enter(self, stage: CreationStage) -> None:
        self.stage = stage
        self.logger.debug(f"Stage: {stage.name}")
        self.logger.info(f"==> {stage.value.capitalize()}")

    def create_worktree(
        self,
        issue_url: str,
        config: Config,
        branch_name: Optional[str] = None,
    ) -> WorktreeResult:
        """Create a worktree for a GitHub issue.

        Only an invalid repository, an unfetchable issue or a failing
        `git worktree add` fail the operation. Every step after the worktree
        exists is best-effort: failures are logged and the pipeline moves on.

        Args:
            issue_url: https://github.com/<owner>/<repo>/issues/<number>
            config: Effective configuration
            branch_name: Use this branch name instead of generating one
        """
        start_time = time.monotonic()

        self._enter(CreationStage.VALIDATING_REPO)
        if not self.git.is_repository():
            return WorktreeResult.failure(
                "Not a git repository. Run this command from inside a git repository."
            )

        self._enter(CreationStage.FETCHING_ISSUE)
        issue = self._resolve_issue(issue_url, config)
        if issue is None:
            return WorktreeResult.failure(
                "Failed to fetch GitHub issue. Check the URL and your gh auth status."
            )

        self._enter(CreationStage.NAMING_BRANCH)
        if branch_name:
            self.logger.info(f"Using branch name from --branch: {branch_name}")
        else:
            use_assistant = (
                config.integrations.claude.enabled
                and config.integrations.claude.auto_generate_branch_name
            )
            generated = self.branch_namer.generate(issue, use_assistant)
            branch_name = generated.value
            self.logger.info(f"Branch name: {branch_name} (via {generated.via})")

        self._enter(CreationStage.CREATING_WORKTREE)
        try:
            repo_root = self.git.repository_root()
            repository_name = os.path.basename(repo_root.rstrip("/")) or "unknown"
            worktree_parent = config.base_path / f"{repository_name}-worktree"
            worktree_dir = str(worktree_parent / branch_name)

            self.logger.info(f"Repository: {repository_name}")
            self.logger.info(f"Branch:     {branch_name}")
            self.logger.info(f"Path:       {worktree_dir}")
            self.logger.info(f"Issue:      {issue}")

            self._run_hook("preCreate", config.hooks.pre_create, repo_root)

            worktree_parent.mkdir(parents=True, exist_ok=True)
            base_branch = self._resolve_base_branch(config)
            self.worktrees.create_worktree(worktree_dir, branch_name, base_branch)
        except GitOperationError as e:
            self.logger.error(f"Failed to create worktree: {e}")
            return WorktreeResult.failure(str(e))
        except OSError as e:
            self.logger.error(f"Failed to prepare worktree directory: {e}")
            return WorktreeResult.failure(f"Could not create worktree directory: {e}")

        if config.copy_env_files:
            self._enter(CreationStage.COPYING_ENV)
            self._copy_env_files(repo_root, worktree_dir)

        if config.auto_install_deps:
            self._enter(CreationStage.INSTALLING_DEPS)
            self._install_dependencies(worktree_dir, config)

        self._run_hook("postCreate", config.hooks.post_create, worktree_dir)

        if config.open_terminal:
            self._enter(CreationStage.LAUNCHING_TERMINAL)
            self._open_terminal(worktree_dir, branch_name, issue_url, config)

        self._enter(CreationStage.RECORDING_HISTORY)
        metadata = {
            "branchName": branch_name,
            "issueUrl": issue_url,
            "issueNumber": issue.number,
            "repository": repository_name,
        }
        try:
            self.history.save_worktree(worktree_dir, metadata)
        except OSError as e:
            self.logger.warning(f"Could not record worktree in history: {e}")

        self._enter(CreationStage.DONE)
        self.logger.info(f"Worktree created in {format_duration(time.monotonic() - start_time)}")

        return WorktreeResult(
            success=True,
            worktree_path=worktree_dir,
            branch_name=branch_name,
            metadata={
                "issueUrl": issue_url,
                "issueNumber": issue.number,
                "repository": repository_name,
                "createdAt": datetime.now(timezone.utc).isoformat(),
            },
        )

    def _resolve_issue(self, issue_url: str, config: Config) -> Optional[IssueMetadata]:
        github = config.integrations.github
        if github.enabled and github.auto_fetch_issue:
            return self.issues.fetch_issue(issue_url)

        self.logger.info("Issue fetching is disabled, using the issue number from the URL")
        return self.issues.issue_from_reference(issue_url)

    def _resolve_base_branch(self, config: Config) -> Optional[str]:
        """Default branch as a ref git can start from: local, then origin/, else HEAD."""
        default_branch = self.git.default_branch(fallback=config.default_branch)
        if self.git.branch_exists(default_branch):
            return default_branch

        remote_ref = f"origin/{default_branch}"
        if self.git.ref_exists(remote_ref):
            return remote_ref

        self.logger.warning(f"Default branch '{default_branch}' not found, branching from HEAD")
        return None

    def _copy_env_files(self, repo_root: str, worktree_dir: str) -> None:
        try:
            self.env_files.copy_env_files(repo_root, worktree_dir)
        except Exception as e:
            self.logger.warning(f"Copying .env files failed: {e}")

    def _install_dependencies(self, worktree_dir: str, config: Config) -> None:
        try:
            manager = self.package_manager.detect(worktree_dir, config.package_manager)
            if manager is None:
                self.logger.info("No package.json found, skipping dependency installation")
                return
            if not self.package_manager.install(worktree_dir, manager):
                self.logger.warning("Continuing without installed dependencies")
        except Exception as e:
            self.logger.warning(f"Dependency installation failed: {e}")

    def _open_terminal(self, worktree_dir: str, branch_name: str, issue_url: str, config: Config) -> None:
        app = config.terminal_app
        try:
            if not self.terminal.is_installed(app):
                installed = self.terminal.get_installed_terminals()
                self.logger.warning(
                    f"{app} is not installed, skipping terminal opening "
                    f"(available: {', '.join(installed) or 'none'})"
                )
                return

            claude = config.integrations.claude
            command = build_terminal_command(
                worktree_dir,
                branch_name,
                issue_url,
                start_assistant=claude.enabled,
                auto_plan_mode=claude.auto_start_plan_mode,
            )
            if self.terminal.launch(app, worktree_dir, command):
                self.logger.info(f"Opened {app} terminal")
            else:
                self.logger.warning(f"Failed to open {app}, please navigate manually: cd {worktree_dir}")
        except Exception as e:
            self.logger.warning(f"Failed to open {app}, please navigate manually: {e}")

    def _run_hook(self, name: str, command: Optional[str], cwd: str) -> None:
        """Run a configured hook with `sh -c`. Failures are logged, never raised."""
        if not command:
            return
        self.logger.info(f"Running {name} hook: {command}")
        result = self.runner.run("sh", ["-c", command], cwd=cwd, capture=False)
        if not result.ok:
            self.logger.warning(f"{name} hook exited with code {result.exit_code}")

    def list_worktrees(self) -> List[WorktreeInfo]:
        """Registered worktrees, annotated with history and last access time."""
        worktrees = self.worktrees.list_worktrees()
        for wt in worktrees:
            record = self.history.find_by_path(wt.path)
            if record:
                wt.issue_url = record.get("issueUrl")
                wt.created = record.get("createdAt") or wt.created
            try:
                accessed = os.stat(wt.path).st_atime
                wt.last_accessed = datetime.fromtimestamp(accessed, tz=timezone.utc).isoformat()
            except OSError:
                wt.last_accessed = None
        return worktrees

    def cleanup_worktrees(self, force: bool = False, config: Optional[Config] = None) -> CleanupResult:
        """Remove prunable worktrees, or every non-primary one with force, then prune.

        With cleanup.autoCleanMerged, worktrees on merged branches or older than
        cleanup.maxAge days are removed too, keeping the cleanup.keepRecent newest.
        The policy never touches a worktree with uncommitted changes.
        """
        config = config or Config()
        result = CleanupResult()

        try:
            repo_root = self.git.repository_root()
        except GitOperationError as e:
            result.errors.append(str(e))
            return result

        self._run_hook("preCleanup", config.hooks.pre_cleanup, repo_root)

        candidates = [wt for wt in self.worktrees.list_worktrees() if not wt.is_main]
        policy_removals: Dict[str, str] = {}
        if config.cleanup.auto_clean_merged and not force:
            policy_removals = self._select_policy_removals(candidates, config)

        for wt in candidates:
            if not (wt.prunable or force or wt.path in policy_removals):
                continue

            reason = "forced" if force else ("prunable" if wt.prunable else policy_removals[wt.path])
            self.logger.debug(f"Removing {wt.path} ({reason})")
            try:
                self.worktrees.remove_worktree(wt.path, force=True)
            except GitOperationError as e:
                result.errors.append(f"{wt.path}: {e}")
                self.logger.error(f"Failed to remove: {wt.path}: {e}")
                continue

            result.removed.append(wt.path)
            self.logger.info(f"Removed: {wt.path}")

            if policy_removals.get(wt.path) == "merged":
                try:
                    self.git.delete_branch(wt.branch)
                except GitOperationError as e:
                    self.logger.warning(f"Kept branch {wt.branch}: {e}")

        self.worktrees.prune_worktrees()
        self._run_hook("postCleanup", config.hooks.post_cleanup, repo_root)

        return result

    def _select_policy_removals(self, candidates: List[WorktreeInfo], config: Config) -> Dict[str, str]:
        """Map path -> reason for worktrees the cleanup policy removes.

        A branch still at the default branch's tip has no work yet and does
        not count as merged. Dirty worktrees are never selected.
        """
        policy = config.cleanup
        default_branch = self.git.default_branch(fallback=config.default_branch)
        merged = self.git.merged_branches(default_branch) - {default_branch}
        default_tip = self.git.resolve_commit(default_branch)
        now = datetime.now(timezone.utc)

        eligible = []
        for wt in candidates:
            if wt.prunable or wt.locked:
                continue

            record = self.history.find_by_path(wt.path)
            created = _parse_timestamp(record.get("createdAt")) if record else None

            if wt.branch in merged and wt.commit != default_tip:
                reason = "merged"
            elif policy.max_age and created and (now - created).days > policy.max_age:
                reason = f"older than {policy.max_age} days"
            else:
                continue

            if self.git.is_dirty(wt.path):
                self.logger.warning(f"Keeping {wt.path} ({reason}): it has uncommitted changes")
                continue
            eligible.append((created, wt, reason))

        # Newest first; worktrees without a history record count as oldest
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        eligible.sort(key=lambda item: item[0] or oldest, reverse=True)

        kept = eligible[:policy.keep_recent]
        for _, wt, reason in kept:
            self.logger.info(f"Keeping recent worktree {wt.path} ({reason})")

        return {wt.path: reason for _, wt, reason in eligible[policy.keep_recent:]}
