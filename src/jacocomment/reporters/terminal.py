"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from jacocomment.reporters.markdown import display_path, format_percentage

if TYPE_CHECKING:
    from collections.abc import Sequence

    from jacocomment.models.coverage import FileCoverageReport

# Status output goes to stderr so the markdown on stdout stays pipeable.
console = Console(stderr=True)


class CLIReporter:
    """Rich terminal output for status messages and coverage previews."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_coverage_table(
        self,
        coverage_types: Sequence[str],
        reports: Sequence[FileCoverageReport],
        source_root: str = "",
    ) -> None:
        """Show the filtered coverage as a rich table."""
        table = Table(title="Coverage of changed files", show_lines=False)
        table.add_column("File", style="cyan")
        for coverage_type in coverage_types:
            table.add_column(coverage_type, justify="right")

        for report in reports:
            table.add_row(
                display_path(report.file_path, source_root),
                *(format_percentage(report.counter(t)) for t in coverage_types),
            )

        self.console.print(table)


reporter = CLIReporter()
