# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Rich console output for remediation outcomes."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ghasfix import __version__
from ghasfix.core.constants import Severity
from ghasfix.remediation.models import AttemptStatus, RemediationOutcome, RepositoryResult

console = Console()

SEVERITY_COLORS = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}

STATUS_COLORS = {
    AttemptStatus.FIXED: "bold green",
    AttemptStatus.REQUESTED: "dim",
    AttemptStatus.OUTDATED: "yellow",
    AttemptStatus.TIMED_OUT: "yellow",
    AttemptStatus.FAILED: "red",
    AttemptStatus.REQUEST_FAILED: "red",
    AttemptStatus.ERROR: "red",
}


def format_dry_run(
    outcome: RemediationOutcome,
    *,
    verbose: bool = False,
    out: Console | None = None,
) -> None:
    """Print what a run would process, grouped by repository."""
    out = out or console
    table = Table(title="Dry Run Results")
    table.add_column("Repository", style="bold")
    table.add_column("Alerts to fix", justify="right")
    for result in outcome.repositories:
        table.add_row(result.repository, str(result.selected_count))
    out.print(table)

    if verbose:
        for result in outcome.repositories:
            out.print(f"\n[bold]{result.repository}[/bold]")
            for finding in result.selected:
                sev = finding.security_severity
                color = SEVERITY_COLORS.get(sev, "white")
                out.print(
                    f"  #{finding.number}: {finding.rule.name or finding.title} "
                    f"([{color}]{sev}[/{color}])",
                    highlight=False,
                )

    out.print(f"\nTotal alerts that would be fixed: [bold]{outcome.total_selected}[/bold]")
    out.print("Run without --dry-run to apply fixes", style="dim")


def _repository_panel(result: RepositoryResult) -> Table:
    table = Table(title=f"{result.repository}", show_lines=False)
    table.add_column("Alert", style="cyan", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Rule", style="bold")
    table.add_column("Status")
    table.add_column("Detail")

    for attempt in result.attempts:
        finding = attempt.finding
        sev = finding.security_severity
        sev_color = SEVERITY_COLORS.get(sev, "white")
        status_color = STATUS_COLORS.get(attempt.status, "white")
        if attempt.fixed and attempt.commit is not None:
            detail = attempt.commit.target_ref or ""
        elif result.declined and attempt.status == AttemptStatus.REQUESTED:
            detail = "not committed (declined)"
        else:
            detail = attempt.reason or ""
        table.add_row(
            f"#{finding.number}",
            f"[{sev_color}]{sev}[/{sev_color}]",
            finding.rule.name or finding.title,
            f"[{status_color}]{attempt.status}[/{status_color}]",
            escape(detail),
        )
    return table


def format_outcome(outcome: RemediationOutcome, out: Console | None = None) -> None:
    """Print the end-of-run summary."""
    out = out or console
    out.print()
    out.print(f"[bold]ghasfix v{__version__}[/bold] - Code Scanning Autofix")
    out.print()

    if not outcome.repositories:
        out.print("[bold green]No code scanning alerts found![/bold green]")
        return

    for result in outcome.repositories:
        if result.attempts:
            out.print(_repository_panel(result))
        if result.error:
            out.print(f"[red]Error:[/red] {escape(result.error)}", highlight=False)
        if result.branch_error:
            out.print(f"[yellow]Branch warning:[/yellow] {escape(result.branch_error)}", highlight=False)
        review = result.review
        if review is not None:
            if review.created:
                out.print(f"Pull request: [bold]{review.url}[/bold]")
            else:
                if review.error:
                    out.print(f"[red]Pull request failed:[/red] {escape(review.error)}", highlight=False)
                out.print(f"Create a PR for fixes: [bold]{review.manual_url}[/bold]")
        out.print()

    repo_count = len(outcome.repositories)
    suffix = f" in {repo_count} repositories" if repo_count > 1 else ""
    out.print(
        Panel(
            f"Fixed [bold]{outcome.total_fixed}[/bold] of {outcome.total_selected} selected "
            f"alerts{suffix} ({outcome.total_found} found)",
            style="bold green" if outcome.total_fixed else "yellow",
        )
    )
