"""Terminal reporter with rich output formatting.

Everything is written to stderr: stdout is reserved for the file list the
CI job consumes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from splitter.sharding.partitioner import ShardPlan

console = Console(stderr=True)

_SECONDS_PER_MINUTE = 60.0
_BALANCED_SPREAD = 0.1
_FAIR_SPREAD = 0.25


def _format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string."""
    if seconds >= _SECONDS_PER_MINUTE:
        return f"{seconds / _SECONDS_PER_MINUTE:.1f}m"
    return f"{seconds:.1f}s"


def _spread_color(spread: float) -> str:
    """Return a Rich color name for the relative max/min bucket spread."""
    if spread <= _BALANCED_SPREAD:
        return "green"
    if spread <= _FAIR_SPREAD:
        return "yellow"
    return "red"


def plan_spread(plan: ShardPlan) -> float:
    """Relative gap between the heaviest and the lightest bucket."""
    totals = plan.totals
    if not totals or max(totals) <= 0:
        return 0.0
    return (max(totals) - min(totals)) / max(totals)


class CLIReporter:
    """Rich terminal output reporter for shard plans."""

    def __init__(self, output: Console | None = None) -> None:
        """Initialize the CLI reporter."""
        self.console = output or console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_plan(self, plan: ShardPlan, *, highlight: int | None = None) -> None:
        """Print one row per bucket with file count and expected time."""
        table = Table(title=f"Shard Plan ({plan.node_count} nodes)", title_style="bold cyan")
        table.add_column("Node", justify="right", style="bold")
        table.add_column("Files", justify="right")
        table.add_column("Expected Time", justify="right")

        for bucket in plan.buckets:
            marker = " ◂" if bucket.index == highlight else ""
            table.add_row(
                f"{bucket.index}{marker}",
                str(len(bucket.files)),
                _format_duration(bucket.total_time),
            )

        self.console.print(table)

        spread = plan_spread(plan)
        color = _spread_color(spread)
        self.console.print(
            f"{plan.file_count} files, "
            f"max {_format_duration(max(plan.totals, default=0.0))}, "
            f"spread [{color}]{spread * 100:.1f}%[/{color}]"
        )


# Singleton instance for easy import
reporter = CLIReporter()
