"""Package manager detection and dependency installation."""

import os
from typing import List, Optional

from worktree_manager.constants import PACKAGE_MANAGERS, PACKAGE_MANIFEST
from worktree_manager.logging_config import get_logger
from worktree_manager.models.worktree import PackageManagerInfo
from worktree_manager.services.command_runner import CommandRunner


def get_package_manager(name: str) -> Optional[PackageManagerInfo]:
    return next((pm for pm in PACKAGE_MANAGERS if pm.name == name), None)


class PackageManagerService:
    """Picks a package manager from lockfiles and runs its install command."""

    def __init__(self, runner: Optional[CommandRunner] = None, logger=None):
        self.runner = runner or CommandRunner()
        self.logger = logger or get_logger(__name__)

    def detect(self, project_path: str, preference: str = "auto") -> Optional[PackageManagerInfo]:
        """Detect the package manager for project_path.

        Lockfiles are checked in a fixed order (pnpm, bun, yarn, npm). Without a
        lockfile but with a package.json, npm is used. A preference other than
        "auto" wins whenever a package.json exists.

        Returns:
            PackageManagerInfo, or None when there is no package.json (nothing to install)
        """
        has_manifest = os.path.exists(os.path.join(project_path, PACKAGE_MANIFEST))

        if preference != "auto":
            preferred = get_package_manager(preference)
            if preferred and has_manifest:
                self.logger.debug(f"Using configured package manager: {preferred.name}")
                return preferred

        for manager in PACKAGE_MANAGERS:
            lock_path = os.path.join(project_path, manager.lock_file)
            if os.path.exists(lock_path):
                self.logger.debug(f"Detected package manager: {manager.name} ({lock_path})")
                return manager

        if has_manifest:
            fallback = PACKAGE_MANAGERS[-1]
            self.logger.debug(f"No lock file found, defaulting to {fallback.name}")
            return fallback

        return None

    def is_installed(self, name: str) -> bool:
        return self.runner.which(name) is not None

    def get_installed_managers(self) -> List[str]:
        return [pm.name for pm in PACKAGE_MANAGERS if self.is_installed(pm.name)]

    def install(self, project_path: str, package_manager: PackageManagerInfo) -> bool:
        """Run `<manager> install` in project_path. Returns False instead of raising."""
        if not self.is_installed(package_manager.name):
            installed = self.get_installed_managers()
            self.logger.warning(
                f"{package_manager.name} is not installed, skipping dependency installation "
                f"(installed: {', '.join(installed) or 'none'})"
            )
            return False

        self.logger.info(f"Installing dependencies with {package_manager.name}...")
        command, *args = package_manager.install_command.split()
        result = self.runner.run(command, args, cwd=project_path, capture=False)

        if result.ok:
            self.logger.info(f"Dependencies installed with {package_manager.name}")
            return True

        self.logger.error(f"Failed to install dependencies (exit code: {result.exit_code})")
        return False
