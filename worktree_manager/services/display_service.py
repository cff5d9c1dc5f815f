"""Console rendering of worktree listings and operation results"""
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from worktree_manager.formatters import format_timestamp, format_worktree_status
from worktree_manager.models.worktree import CleanupResult, WorktreeInfo, WorktreeResult


class DisplayService:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_worktree_table(self, worktrees: List[WorktreeInfo]) -> None:
        """Display all worktrees, or a notice when there are none."""
        if not worktrees:
            self.console.print("No worktrees found.")
            return

        table = Table(title="Git Worktrees")
        table.add_column("Status")
        table.add_column("Branch")
        table.add_column("Commit")
        table.add_column("Path")
        table.add_column("Issue")
        table.add_column("Created")
        table.add_column("Last accessed")

        for wt in worktrees:
            branch = escape(wt.branch) + (" [dim](main)[/dim]" if wt.is_main else "")
            table.add_row(
                format_worktree_status(wt),
                branch,
                wt.short_commit,
                escape(wt.path),
                wt.issue_url or "",
                format_timestamp(wt.created) if wt.issue_url else "",
                format_timestamp(wt.last_accessed),
            )

        self.console.print(table)

    def display_worktree_result(self, result: WorktreeResult) -> None:
        if not result.success:
            self.console.print(f"[red]Error: {escape(result.error or 'Unknown error')}[/red]")
            return

        metadata = result.metadata
        self.console.print("\n[green]Worktree created successfully![/green]\n")
        self.console.print(f"Branch:     {result.branch_name}")
        self.console.print(f"Path:       {result.worktree_path}")
        if metadata.get("issueUrl"):
            self.console.print(f"Issue:      {metadata['issueUrl']}")
        if metadata.get("repository"):
            self.console.print(f"Repository: {metadata['repository']}")
        self.console.print(f"\nCreated at: {format_timestamp(metadata.get('createdAt'))}")
        self.console.print(f"\n[dim]cd {result.worktree_path}[/dim]")

    def display_cleanup_result(self, result: CleanupResult) -> None:
        if result.total_cleaned == 0 and result.success:
            self.console.print("[green]No worktrees to clean[/green]")
            return

        if result.success:
            self.console.print(
                f"[green]Cleanup completed: {result.total_cleaned} worktree(s) removed[/green]"
            )
        else:
            self.console.print(
                f"[red]Cleanup finished with {len(result.errors)} error(s), "
                f"{result.total_cleaned} worktree(s) removed[/red]"
            )

        if result.removed:
            self.console.print("\nRemoved:")
            for path in result.removed:
                self.console.print(f"  - {path}")

        if result.errors:
            self.console.print("\nErrors:")
            for error in result.errors:
                self.console.print(f"  [yellow]{escape(error)}[/yellow]")
