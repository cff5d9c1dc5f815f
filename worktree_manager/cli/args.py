"""Command-line argument parsing for worktree-manager."""

import argparse
import sys
from typing import List, Optional

from worktree_manager.__version__ import __version__
from worktree_manager.constants import TERMINAL_APPS

COMMANDS = ("create", "list", "clean")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    # SUPPRESS keeps a subcommand's unset flag from overwriting one given before it
    common.add_argument(
        "--debug",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Enable debug logging (also written to ~/.worktree-manager)",
    )
    common.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Only show warnings and errors",
    )

    parser = argparse.ArgumentParser(
        prog="worktree",
        parents=[common],
        description="Create git worktrees from GitHub issues",
        epilog="Setup: requires the GitHub CLI (gh auth login) or a GITHUB_TOKEN environment "
        "variable. Configuration is read from config/default.json and config/profiles/<name>.json "
        "(override the directory with WORKTREE_MANAGER_CONFIG_DIR).",
    )
    parser.add_argument("--version", action="version", version=f"worktree-manager {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="{create,list,clean}")

    create = subparsers.add_parser(
        "create", parents=[common], help="Create a worktree from a GitHub issue URL"
    )
    create.add_argument("url", help="GitHub issue URL, e.g. https://github.com/owner/repo/issues/123")
    create.add_argument("-b", "--branch", help="Custom branch name (overrides auto-generation)")
    create.add_argument("-o", "--output", help="Custom worktree base directory")
    create.add_argument("-p", "--profile", help="Use a configuration profile")
    create.add_argument(
        "-t",
        "--terminal",
        help=f"Terminal app ({', '.join(TERMINAL_APPS)}); invalid values are ignored with a warning",
    )
    create.add_argument("--no-deps", action="store_true", help="Skip dependency installation")
    create.add_argument("--no-terminal", action="store_true", help="Don't open a terminal automatically")

    subparsers.add_parser("list", parents=[common], help="List all existing worktrees")

    clean = subparsers.add_parser("clean", parents=[common], help="Clean up prunable worktrees")
    clean.add_argument(
        "-f", "--force", action="store_true", help="Remove all worktrees except the main one"
    )
    clean.add_argument("-p", "--profile", help="Use a configuration profile for the cleanup policy")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> Optional[argparse.Namespace]:
    """Parse command-line arguments.

    `worktree <url> [options]` is accepted as shorthand for `worktree create <url>`.

    Returns:
        Parsed namespace, or None when no command was given (help is printed)
    """
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)

    # Global options are all flags, so the first bare word is the command
    first_word = next((i for i, arg in enumerate(argv) if not arg.startswith("-")), None)
    if first_word is not None and argv[first_word] not in COMMANDS:
        argv.insert(first_word, "create")

    args = parser.parse_args(argv)
    args.debug = getattr(args, "debug", False)
    args.quiet = getattr(args, "quiet", False)

    if args.command is None:
        parser.print_help()
        return None
    return args
