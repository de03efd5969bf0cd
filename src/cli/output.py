"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
progress bars, spinners, colored messages and the export summary. Supports
verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console
from rich.live import Live
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.spinner import Spinner

from src.cli.models import ExportSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Export completed")
        >>> with handler.spinner("Connecting..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single operations."""
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10):
            yield

    @contextmanager
    def progress_bar(self, total: int, description: str = "Processing") -> Iterator[Progress]:
        """Display progress bar for multi-item operations.

        Args:
            total: Total number of items to process
            description: Description text for progress bar

        Yields:
            Progress instance for updating progress

        Example:
            >>> with handler.progress_bar(10, "Exporting notes") as progress:
            ...     task = progress.add_task("Exporting notes", total=10)
            ...     progress.update(task, advance=1)
        """
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )
        with progress:
            yield progress

    def print_export_summary(self, summary: ExportSummary) -> None:
        """Display export summary with color coding."""
        self.console.print("\n[bold]Export Summary:[/bold]")

        if summary.created:
            self.console.print(f"  [green]+[/green] Created: {len(summary.created)} page(s)")

        if summary.updated:
            self.console.print(f"  [blue]↑[/blue] Updated: {len(summary.updated)} page(s)")

        if summary.created_folders or summary.created_collections:
            self.console.print(
                f"  [dim]─[/dim] New folders: {len(summary.created_folders)}, "
                f"new journals: {summary.created_collections}"
            )

        assets = summary.assets
        if assets.uploaded or assets.skipped:
            self.console.print(
                f"  [green]↑[/green] Images: {len(assets.uploaded)} uploaded, "
                f"{len(assets.skipped)} already present"
            )
        if assets.failed:
            self.console.print(f"  [yellow]⚠[/yellow] Images failed: {len(assets.failed)}")

        if summary.links is not None:
            self.console.print(
                f"  [blue]↔[/blue] Links: {len(summary.links.updated)} page(s) rewritten, "
                f"{summary.links.unresolved} unresolved"
            )

        if summary.failed:
            self.console.print(f"  [red]✗[/red] Failed: {len(summary.failed)} document(s)")
            for path, reason in summary.failed:
                self.console.print(f"    • {path}: {reason}")

        if summary.exported_count == 0 and not summary.failed:
            self.console.print("\n[yellow]No notes to export[/yellow]")
        elif summary.failed:
            self.console.print("\n[red]Export completed with failures[/red]")
        else:
            self.console.print("\n[green]Export completed successfully[/green]")
