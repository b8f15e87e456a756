"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status lines, a spinner for long operations and the per-workspace
backup summary. Diagnostics go through logging; this is what the user reads.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner

from notion_mirror.mirror.models import BackupSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Backup completed")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(escape(message))

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a workspace is being backed up.

        Example:
            >>> with handler.spinner("Backing up workspace..."):
            ...     runner.run()
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_backup_summary(self, summary: BackupSummary) -> None:
        """Display the result of one workspace backup with color coding.

        Args:
            summary: BackupSummary returned by BackupRunner.run()
        """
        self.console.print(f"\n[bold]Backup Summary ({summary.workspace}):[/bold]")
        self.console.print(f"  [blue]↓[/blue] Found: {summary.found} object(s)")
        self.console.print(f"  [green]✓[/green] Backed up: {summary.succeeded} object(s)")

        if summary.failed > 0:
            self.console.print(f"  [red]✗[/red] Failed: {summary.failed} object(s)")
            for object_id in summary.failed_ids:
                self.console.print(f"    • {object_id}")

        reconcile = summary.reconcile
        if reconcile is None:
            self.console.print("  [dim]─[/dim] Cleanup skipped")
        else:
            verb = "Would delete" if reconcile.dry_run else "Deleted"
            self.console.print(f"  [red]✗[/red] {verb}: {len(reconcile.deleted)} orphaned entr(y/ies)")
            if reconcile.dry_run or self.verbosity >= 1:
                for name in reconcile.deleted:
                    self.console.print(f"    • {name}")
            if reconcile.skipped:
                self.console.print(
                    f"  [yellow]⚠[/yellow] Skipped: {len(reconcile.skipped)} entr(y/ies) without readable metadata"
                )
            if reconcile.failed:
                self.console.print(f"  [red]✗[/red] Delete failed: {len(reconcile.failed)} entr(y/ies)")

        if summary.failed > 0:
            self.console.print("\n[yellow]Backup completed with failures[/yellow]")
        else:
            self.console.print("\n[green]Backup completed successfully[/green]")

    def print_pruned_workspaces(self, names: List[str], dry_run: bool = False) -> None:
        """Display workspace folders removed by --prune-workspaces."""
        if not names:
            self.info("No unconfigured workspace folders to prune")
            return

        verb = "Would delete" if dry_run else "Deleted"
        self.console.print(f"\n[bold]{verb} {len(names)} unconfigured workspace folder(s):[/bold]")
        for name in names:
            self.console.print(f"  • {name}")
