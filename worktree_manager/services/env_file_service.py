"""Copies .env files from the source checkout into a new worktree."""

import os
import shutil
from fnmatch import fnmatch
from typing import List

from worktree_manager.constants import ENV_FILE_PATTERN, ENV_SEARCH_EXCLUDED_DIRS
from worktree_manager.logging_config import get_logger


class EnvFileService:
    """Finds and copies environment files, preserving their relative paths."""

    def __init__(self, logger=None):
        self.logger = logger or get_logger(__name__)

    def find_env_files(self, source_path: str) -> List[str]:
        """Find .env* files under source_path, skipping VCS and dependency directories.

        Returns:
            Sorted absolute paths; empty if the search fails
        """
        env_files: List[str] = []

        def on_error(error: OSError):
            self.logger.warning(f"Could not search {error.filename} for .env files: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(source_path, onerror=on_error):
            # Prune in place so os.walk does not descend
            dirnames[:] = [d for d in dirnames if d not in ENV_SEARCH_EXCLUDED_DIRS]
            for filename in filenames:
                if fnmatch(filename, ENV_FILE_PATTERN):
                    full_path = os.path.join(dirpath, filename)
                    if os.path.isfile(full_path):
                        env_files.append(full_path)

        return sorted(env_files)

    def copy_env_files(self, source_path: str, target_path: str) -> int:
        """Copy every env file to the same relative location under target_path.

        Files that fail to copy are logged and skipped.

        Returns:
            Number of files copied
        """
        env_files = self.find_env_files(source_path)

        if not env_files:
            self.logger.debug("No .env files found to copy")
            return 0

        self.logger.info(f"Found {len(env_files)} .env file(s) to copy")

        copied = 0
        for env_file in env_files:
            relative_path = os.path.relpath(env_file, source_path)
            target_file = os.path.join(target_path, relative_path)
            try:
                os.makedirs(os.path.dirname(target_file), exist_ok=True)
                shutil.copy2(env_file, target_file)
            except OSError as e:
                self.logger.warning(f"Failed to copy {relative_path}: {e}")
                continue

            self.logger.debug(f"Copied: {relative_path}")
            copied += 1

        self.logger.info(f"Copied {copied} .env file(s)")
        return copied
