"""Thin wrapper around subprocess for the external CLIs the manager drives."""

import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from worktree_manager.logging_config import get_logger

logger = get_logger(__name__)

# Exit code reported when the executable cannot be started
COMMAND_NOT_FOUND = 127


@dataclass
class CommandResult:
    """Exit code and captured output of one process."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner:
    """Runs external commands and reports failures as results, not exceptions."""

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Optional[str] = None,
        capture: bool = True,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            command: Executable name or path
            args: Arguments passed to the executable
            cwd: Working directory, defaults to the current one
            capture: Capture stdout/stderr; when False the output goes to the terminal

        Returns:
            CommandResult. A missing executable yields exit code 127.
        """
        argv = [command, *args]
        logger.debug(f"Running: {' '.join(argv)}" + (f" (cwd={cwd})" if cwd else ""))
        try:
            completed = subprocess.run(
                argv,
                cwd=cwd,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            logger.debug(f"Command not found: {command}: {e}")
            return CommandResult(COMMAND_NOT_FOUND, "", str(e))
        except OSError as e:
            logger.debug(f"Could not start {command}: {e}")
            return CommandResult(COMMAND_NOT_FOUND, "", str(e))

        return CommandResult(
            completed.returncode,
            completed.stdout or "",
            completed.stderr or "",
        )

    def which(self, name: str) -> Optional[str]:
        """Return the full path of an executable on PATH, or None."""
        return shutil.which(name)
