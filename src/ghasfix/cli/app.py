# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Typer CLI application root."""

from __future__ import annotations

import asyncio
import sys
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from ghasfix.cli.exit_codes import ExitCode
from ghasfix.core.exceptions import CancelledError, ConfigurationError, GhasfixError, describe_error

app = typer.Typer(
    name="ghasfix",
    help="Fix GitHub code scanning alerts in bulk with the autofix service",
    no_args_is_help=True,
)

err_console = Console(stderr=True)


class OutputFormat(StrEnum):
    CONSOLE = "console"
    JSON = "json"


def _prompt_for_token(console: Console) -> str:
    while True:
        try:
            token = Prompt.ask("Enter your GitHub token", password=True, console=console).strip()
        except (KeyboardInterrupt, EOFError):
            raise CancelledError("Operation cancelled") from None
        if not token:
            console.print("[yellow]GitHub token is required[/yellow]")
        elif not token.startswith(("ghp_", "github_pat_")):
            console.print("[yellow]Token should start with ghp_ or github_pat_[/yellow]")
        else:
            return token


@app.command()
def fix(
    target: Annotated[
        str | None,
        typer.Argument(help="Organization or owner/repo to remediate"),
    ] = None,
    org: Annotated[
        str | None, typer.Option("--org", "-o", help="GitHub organization name")
    ] = None,
    repo: Annotated[
        str | None, typer.Option("--repo", "-r", help="Single repository name")
    ] = None,
    repos: Annotated[
        list[str] | None,
        typer.Option("--repos", help="Comma-separated list of repositories"),
    ] = None,
    branch: Annotated[
        str | None,
        typer.Option("--branch", "-b", help="Branch name for fixes (default: autofixes)"),
    ] = None,
    alerts: Annotated[
        list[str] | None,
        typer.Option("--alerts", "-a", help="Comma-separated list of alert IDs to fix"),
    ] = None,
    severity: Annotated[
        list[str] | None,
        typer.Option(
            "--severity",
            "-s",
            help="Filter by severity (critical,high,medium,low,error,warning,note)",
        ),
    ] = None,
    state: Annotated[
        str | None, typer.Option("--state", help="Filter by state (open,dismissed,fixed)")
    ] = None,
    tool: Annotated[
        str | None, typer.Option("--tool", help="Filter by tool name (default: CodeQL)")
    ] = None,
    create_pr: Annotated[
        bool, typer.Option("--create-pr", help="Automatically create a pull request")
    ] = False,
    no_pr: Annotated[
        bool, typer.Option("--no-pr", help="Skip pull request creation")
    ] = False,
    pr_title: Annotated[
        str | None, typer.Option("--pr-title", help="Pull request title")
    ] = None,
    pr_body: Annotated[
        str | None, typer.Option("--pr-body", help="Pull request body")
    ] = None,
    timeout: Annotated[
        int | None,
        typer.Option("--timeout", help="Autofix status checks before giving up (default: 60)"),
    ] = None,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip all prompts and use defaults")
    ] = False,
    token: Annotated[
        str | None, typer.Option("--token", "-t", help="GitHub personal access token")
    ] = None,
    config: Annotated[
        Path | None, typer.Option("--config", help="Load options from a YAML file")
    ] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Show what would be fixed without making changes")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Enable verbose logging")
    ] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", help="Suppress non-error output")
    ] = False,
    fmt: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Summary output format"),
    ] = OutputFormat.CONSOLE,
    output: Annotated[
        Path | None,
        typer.Option("--output", help="Write the summary to a file"),
    ] = None,
) -> None:
    """Request, commit and consolidate autofixes for code scanning alerts."""
    from ghasfix.cli.options import resolve_fix_parameters
    from ghasfix.core.config import get_settings
    from ghasfix.core.logging import setup_logging

    settings = get_settings()
    try:
        params = resolve_fix_parameters(
            target=target,
            org=org,
            repo=repo,
            repos=repos,
            alerts=alerts,
            severity=severity,
            state=state,
            tool=tool,
            branch=branch,
            create_pr=create_pr,
            no_pr=no_pr,
            pr_title=pr_title,
            pr_body=pr_body,
            timeout=timeout,
            yes=yes,
            dry_run=dry_run,
            verbose=verbose,
            quiet=quiet,
            token=token,
            config=config,
            settings=settings,
        )
    except ConfigurationError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(ExitCode.ERROR) from None

    if params.verbose:
        setup_logging("DEBUG", settings.log_format)
    elif params.quiet:
        setup_logging("ERROR", settings.log_format)
    else:
        setup_logging(settings.log_level, settings.log_format)

    try:
        outcome = asyncio.run(_async_fix(params, settings))
    except (CancelledError, KeyboardInterrupt):
        err_console.print("[yellow]Operation cancelled[/yellow]")
        raise typer.Exit(ExitCode.CANCELLED) from None
    except GhasfixError as exc:
        err_console.print(f"[red]{escape(describe_error(exc))}[/red]", highlight=False)
        raise typer.Exit(ExitCode.ERROR) from None

    if fmt == OutputFormat.JSON:
        from ghasfix.cli.formatters.json_fmt import format_json

        _write_output(format_json(outcome), output)
    elif not params.quiet:
        if outcome.dry_run:
            from ghasfix.cli.formatters.console import format_dry_run

            format_dry_run(outcome, verbose=params.verbose)
        else:
            from ghasfix.cli.formatters.console import format_outcome

            format_outcome(outcome)


async def _async_fix(params, settings):
    from ghasfix.cli.prompts import ConsolePrompter
    from ghasfix.forge.client import GitHubClient
    from ghasfix.remediation.orchestrator import run

    token = params.token
    if not token:
        if params.options.headless:
            raise ConfigurationError(
                "GitHub token required: set GITHUB_TOKEN or pass --token"
            )
        token = _prompt_for_token(err_console)

    client = GitHubClient(
        token,
        api_url=settings.api_url,
        web_url=settings.web_url,
        timeout=settings.request_timeout,
        rate_limit_max_wait=settings.rate_limit_max_wait,
    )
    prompter = ConsolePrompter(err_console, quiet=params.quiet)
    return await run(
        client,
        params.org,
        params.repositories,
        params.finding_numbers,
        params.options,
        prompter=prompter,
    )


def _write_output(text: str, output: Path | None) -> None:
    if output:
        output.write_text(text)
        typer.echo(f"Output written to {output}")
    else:
        sys.stdout.write(text + "\n")


@app.command()
def version() -> None:
    """Show version information."""
    from ghasfix import __version__

    typer.echo(f"ghasfix v{__version__}")
