"""Custom exceptions for worktree-manager"""

from typing import Optional


class WorktreeManagerError(Exception):
    """Base exception for all worktree-manager errors."""
    pass


class ConfigError(WorktreeManagerError):
    """Exception raised when configuration cannot be loaded or is invalid."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        self.message = message

        error_msg = message
        if path:
            error_msg = f"{message} ({path})"

        super().__init__(error_msg)


class GitOperationError(WorktreeManagerError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, path: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.path = path
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if path:
            error_msg += f" for '{path}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class NotARepositoryError(GitOperationError):
    """Exception raised when the working directory is not inside a git repository."""

    def __init__(self, path: str):
        super().__init__("open_repository", path, "Not a git repository")
