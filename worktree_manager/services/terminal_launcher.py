"""Launches terminal applications through the bundled launcher script."""

import os
import shlex
from pathlib import Path
from typing import List, Optional, Union

from worktree_manager.constants import NATIVE_TERMINAL, TERMINAL_APP_NAMES, TERMINAL_APPS
from worktree_manager.logging_config import get_logger
from worktree_manager.services.command_runner import CommandRunner

# Scripts shipped with the package
PACKAGED_SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


def build_terminal_command(
    worktree_dir: str,
    branch_name: str,
    issue_url: str,
    start_assistant: bool = True,
    auto_plan_mode: bool = False,
) -> str:
    """Shell command that enters the worktree, prints the issue and optionally starts claude."""
    steps = [
        f"cd {shlex.quote(worktree_dir)}",
        f"echo {shlex.quote(f'Branch: {branch_name}')}",
        f"echo {shlex.quote(f'Issue: {issue_url}')}",
        "echo",
    ]

    if start_assistant and auto_plan_mode:
        steps.append(
            "claude --dangerously-skip-permissions --permission-mode plan "
            + shlex.quote(f"/run-tasks {issue_url}")
        )
    elif start_assistant:
        steps.append("claude --permission-mode plan")

    return " && ".join(steps)


class TerminalLauncher:
    """Opens a terminal app running a command, via scripts/terminals/launcher.sh."""

    def __init__(
        self,
        scripts_dir: Optional[Union[str, Path]] = None,
        runner: Optional[CommandRunner] = None,
        logger=None,
    ):
        self.scripts_dir = Path(scripts_dir) if scripts_dir else PACKAGED_SCRIPTS_DIR
        self.runner = runner or CommandRunner()
        self.logger = logger or get_logger(__name__)

    @property
    def launcher_script(self) -> Path:
        return self.scripts_dir / "terminals" / "launcher.sh"

    def is_installed(self, terminal_app: str) -> bool:
        """The native Terminal is always available; others are probed with `open -Ra`."""
        if terminal_app == NATIVE_TERMINAL:
            return True

        app_name = TERMINAL_APP_NAMES.get(terminal_app)
        if app_name is None:
            return False
        return self.runner.run("open", ["-Ra", app_name]).ok

    def get_installed_terminals(self) -> List[str]:
        return [app for app in TERMINAL_APPS if self.is_installed(app)]

    def launch(self, terminal_app: str, worktree_dir: str, command: str) -> bool:
        """Run the launcher script. Returns False on a missing script or non-zero exit."""
        script = self.launcher_script
        if not script.exists():
            self.logger.error(f"Terminal launcher script not found: {script}")
            return False

        self.logger.debug(f"Launching {terminal_app} for {worktree_dir} with {script}")
        if os.access(script, os.X_OK):
            result = self.runner.run(str(script), [terminal_app, command])
        else:
            result = self.runner.run("bash", [str(script), terminal_app, command])

        if result.ok:
            self.logger.info(f"Launched {terminal_app} successfully")
            return True

        detail = (result.stderr or result.stdout).strip()
        self.logger.error(
            f"Failed to launch {terminal_app} (exit code: {result.exit_code})"
            + (f": {detail}" if detail else "")
        )
        return False
