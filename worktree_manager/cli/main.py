"""Command-line entry point for worktree-manager"""

import os
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from worktree_manager.cli.args import parse_args
from worktree_manager.config import ConfigManager
from worktree_manager.core import WorktreeManager
from worktree_manager.logging_config import setup_logging
from worktree_manager.services.display_service import DisplayService
from worktree_manager.services.github_service import parse_issue_url

console = Console()


def _print_config(config) -> None:
    console.print("[yellow]Configuration:[/yellow]")
    for key, value in config.to_dict().items():
        console.print(f"  {key}: {escape(str(value))}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = None
    try:
        parsed_args = parse_args(argv)
        if parsed_args is None:
            return 0

        setup_logging(quiet=parsed_args.quiet, debug=parsed_args.debug)
        display = DisplayService(console)
        config_manager = ConfigManager()
        manager = WorktreeManager(os.getcwd(), debug=parsed_args.debug)

        if parsed_args.command == "list":
            if not manager.git.is_repository():
                console.print("[red]Error: Not a git repository[/red]")
                return 1
            display.display_worktree_table(manager.list_worktrees())
            return 0

        if parsed_args.command == "clean":
            config = config_manager.build_config(profile=parsed_args.profile, debug=parsed_args.debug)
            result = manager.cleanup_worktrees(force=parsed_args.force, config=config)
            display.display_cleanup_result(result)
            return 0 if result.success else 1

        # create
        if parse_issue_url(parsed_args.url) is None:
            console.print("[red]Error: Invalid GitHub issue URL format[/red]")
            console.print("Expected: https://github.com/owner/repo/issues/123")
            return 1

        config = config_manager.build_config(
            profile=parsed_args.profile,
            output=parsed_args.output,
            no_deps=parsed_args.no_deps,
            no_terminal=parsed_args.no_terminal,
            terminal=parsed_args.terminal,
            debug=parsed_args.debug,
        )
        if config.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")
            _print_config(config)

        result = manager.create_worktree(parsed_args.url, config, branch_name=parsed_args.branch)
        display.display_worktree_result(result)
        return 0 if result.success else 1

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
