# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Rich-based interactive prompts for the fix command."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TypeVar

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from ghasfix.cli.formatters.console import SEVERITY_COLORS
from ghasfix.core.constants import BRANCH_NAME_PATTERN
from ghasfix.core.exceptions import CancelledError, ConfigurationError
from ghasfix.forge.models import Finding, Repository
from ghasfix.remediation.prompts import BranchExistsCheck, Selection
from ghasfix.remediation.scope import parse_target

T = TypeVar("T")

_BRANCH_RE = re.compile(BRANCH_NAME_PATTERN)


def _ask(ask: Callable[[], T]) -> T:
    try:
        return ask()
    except (KeyboardInterrupt, EOFError):
        raise CancelledError("Operation cancelled") from None


def parse_indices(text: str, size: int) -> list[int] | None:
    """Parse "1,3,5" style input into zero-based indices.

    Returns ``None`` for "all". Out-of-range and non-numeric entries are
    ignored; duplicates are dropped.
    """
    text = text.strip().lower()
    if text == "all":
        return None
    indices: list[int] = []
    for part in text.split(","):
        part = part.strip()
        if part.isdigit():
            idx = int(part) - 1
            if 0 <= idx < size and idx not in indices:
                indices.append(idx)
    return indices


class ConsolePrompter:
    """Asks the operator through the terminal and reports progress lines."""

    def __init__(self, console: Console | None = None, *, quiet: bool = False) -> None:
        self.console = console or Console(stderr=True)
        self.quiet = quiet

    def progress(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message, style="dim", markup=False, highlight=False)

    def warn(self, message: str) -> None:
        if not self.quiet:
            self.console.print(f"[yellow]{escape(message)}[/yellow]", highlight=False)

    def choose_target(self) -> tuple[str, str | None]:
        mode = _ask(lambda: Prompt.ask(
            "Select repository mode: [bold]org[/bold] (all repositories) or [bold]repo[/bold] (specific repository)",
            choices=["org", "repo"],
            default="repo",
            console=self.console,
        ))
        while True:
            if mode == "org":
                org = _ask(lambda: Prompt.ask("Enter organization name", console=self.console)).strip()
                if org and "/" not in org:
                    return org, None
                self.warn("Organization name is required")
            else:
                token = _ask(lambda: Prompt.ask("Enter repository (owner/repo)", console=self.console))
                if "/" in token:
                    try:
                        owner, repo = parse_target(token)
                    except ConfigurationError as exc:
                        self.warn(str(exc))
                        continue
                    return owner, repo
                self.warn("Repository must be in format owner/repo")

    def select_repositories(self, repositories: list[Repository]) -> Selection[Repository]:
        table = Table(title="Repositories", show_lines=False)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Repository", style="bold")
        table.add_column("Updated", style="dim")
        for i, repo in enumerate(repositories, start=1):
            table.add_row(str(i), repo.name, (repo.updated_at or "")[:10])
        self.console.print(table)
        return self._multiselect(
            repositories,
            f"Select repositories to scan (comma-separated numbers, or 'all' for all {len(repositories)})",
        )

    def select_findings(self, findings: list[Finding]) -> Selection[Finding]:
        table = Table(title="Code scanning alerts", show_lines=False)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Severity", width=9)
        table.add_column("Alert", style="bold")
        table.add_column("Number", justify="right")
        table.add_column("Location", style="dim")
        for i, finding in enumerate(findings, start=1):
            sev = finding.rule.security_severity_level
            color = SEVERITY_COLORS.get(sev, "white") if sev else "dim"
            table.add_row(
                str(i),
                f"[{color}]{sev or 'none'}[/{color}]",
                finding.title,
                f"#{finding.number}",
                finding.location_label,
            )
        self.console.print(table)
        return self._multiselect(
            findings,
            f"Select alerts to fix (comma-separated numbers, or 'all' for all {len(findings)})",
        )

    def _multiselect(self, items: list[T], message: str) -> Selection[T]:
        while True:
            answer = _ask(lambda: Prompt.ask(message, default="all", console=self.console))
            indices = parse_indices(answer, len(items))
            if indices is None:
                return Selection(items=list(items), select_all=True)
            if indices:
                return Selection(items=[items[i] for i in indices])
            self.warn("Select at least one item")

    def confirm_commit(self, count: int) -> bool:
        return _ask(lambda: Confirm.ask(
            f"Ready to commit autofixes for {count} alert{'s' if count != 1 else ''}?",
            default=True,
            console=self.console,
        ))

    async def choose_branch_name(self, proposed: str, exists: BranchExistsCheck) -> str:
        name = proposed
        while True:
            answer = _ask(lambda: Prompt.ask(
                "Enter branch name for autofixes", default=name, console=self.console
            )).strip()
            candidate = answer or name
            if not _BRANCH_RE.match(candidate):
                self.warn("Branch name contains invalid characters")
                continue
            if await exists(candidate):
                self.warn(f"Branch already exists: {candidate}")
                name = candidate
                continue
            return candidate

    def confirm_review_request(self, count: int) -> bool:
        return _ask(lambda: Confirm.ask(
            f"Create a pull request with {count} autofix{'es' if count != 1 else ''}?",
            default=True,
            console=self.console,
        ))

    def review_title(self, proposed: str) -> str:
        return _ask(lambda: Prompt.ask("Enter PR title", default=proposed, console=self.console)).strip()
