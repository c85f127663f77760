"""
Display module for printing analysis results in the terminal.

This module renders the issues of a one-shot check as a table, together with
a short note on whether the engine or the fallback rules produced them.
"""

import logging
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..analysis.engine import EngineOutcome, EngineState
from ..core.models import Issue, Severity

# Configure logging
logger = logging.getLogger(__name__)

# Initialize console with soft-wrapping and highlighting
console = Console(soft_wrap=True, highlight=True)

SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
    Severity.HINT: "dim",
}


def print_outcome(path: str, outcome: EngineOutcome, out: Optional[Console] = None) -> None:
    """Display the issues of one check with a header describing their source."""
    out = out or console

    if outcome.state == EngineState.SUCCESS:
        source = f"[green]{outcome.executable}[/green]"
    else:
        reason = escape(outcome.error.message) if outcome.error else "engine unavailable"
        source = f"[yellow]fallback rules[/yellow] [dim]({reason})[/dim]"

    out.print(
        Panel(
            renderable=f"{escape(path)}\nAnalyzed with {source}",
            border_style="blue",
            padding=(0, 1),
            expand=True,
        ),
        soft_wrap=False,
    )

    if not outcome.issues:
        out.print("[bold green]No issues found[/bold green]")
        return

    out.print(_issue_table(outcome.issues))
    out.print(f"[bold]{len(outcome.issues)}[/bold] issue(s) found")


def _issue_table(issues: List[Issue]) -> Table:
    """Build a table with one row per issue."""
    table = Table(show_header=True, header_style="bold", expand=True)
    table.add_column("Location", no_wrap=True)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Rule", no_wrap=True)
    table.add_column("Message")

    for issue in issues:
        style = SEVERITY_STYLES.get(issue.severity, "")
        message = escape(issue.message)
        if issue.fix:
            message += f"\n[dim]fix: {escape(issue.fix.description)}[/dim]"
        table.add_row(
            f"{issue.location.line}:{issue.location.column}",
            f"[{style}]{issue.severity.value}[/{style}]" if style else issue.severity.value,
            issue.rule,
            message,
        )
    return table
