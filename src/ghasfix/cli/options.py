# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Merge command-line flags, a YAML config file and settings into run parameters."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ghasfix.core.config import Settings, load_config_file
from ghasfix.core.constants import AlertState, ReviewRequestMode, Severity, ToolSeverity
from ghasfix.core.exceptions import ConfigurationError
from ghasfix.remediation.models import RunOptions
from ghasfix.remediation.scope import parse_target

VALID_SEVERITIES = [s.value for s in Severity] + [s.value for s in ToolSeverity]


@dataclass
class FixParameters:
    """Everything the fix command needs once flags are resolved."""

    org: str | None
    repositories: list[str]
    finding_numbers: list[int]
    token: str
    options: RunOptions
    verbose: bool = False
    quiet: bool = False


def split_csv(values: list[str] | str | None) -> list[str]:
    """Flatten repeated and comma-separated option values."""
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    items: list[str] = []
    for value in values:
        items.extend(v.strip() for v in str(value).split(",") if v.strip())
    return items


def parse_alert_numbers(values: list[str]) -> list[int]:
    numbers = []
    for value in values:
        try:
            numbers.append(int(value))
        except ValueError:
            raise ConfigurationError(f"Invalid alert ID: {value}") from None
    return numbers


def parse_severities(values: list[str]) -> tuple[frozenset[Severity], frozenset[ToolSeverity]]:
    """Split severities into the security and tool-native vocabularies."""
    invalid = [v for v in values if v.lower() not in VALID_SEVERITIES]
    if invalid:
        raise ConfigurationError(f"Invalid severity levels: {', '.join(invalid)}")
    security_values = {s.value for s in Severity}
    security = frozenset(Severity(v.lower()) for v in values if v.lower() in security_values)
    tool = frozenset(ToolSeverity(v.lower()) for v in values if v.lower() not in security_values)
    return security, tool


def resolve_fix_parameters(
    *,
    target: str | None = None,
    org: str | None = None,
    repo: str | None = None,
    repos: list[str] | None = None,
    alerts: list[str] | None = None,
    severity: list[str] | None = None,
    state: str | None = None,
    tool: str | None = None,
    branch: str | None = None,
    create_pr: bool = False,
    no_pr: bool = False,
    pr_title: str | None = None,
    pr_body: str | None = None,
    timeout: int | None = None,
    yes: bool = False,
    dry_run: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    token: str | None = None,
    config: Path | None = None,
    settings: Settings | None = None,
) -> FixParameters:
    """Resolve the fix command's inputs.

    Precedence: command-line flags, then the ``--config`` file, then
    settings and environment. The token is left empty when none is
    configured so the caller can ask for it.
    """
    settings = settings or Settings()
    file_opts = load_config_file(config) if config else {}

    def pick(flag: Any, key: str, default: Any = None) -> Any:
        if flag not in (None, [], ""):
            return flag
        value = file_opts.get(key)
        if value not in (None, [], ""):
            return value
        return default

    yes = yes or bool(file_opts.get("yes", False))
    dry_run = dry_run or bool(file_opts.get("dry_run", False))
    verbose = verbose or bool(file_opts.get("verbose", False))
    quiet = quiet or bool(file_opts.get("quiet", False))
    create_pr = create_pr or bool(file_opts.get("create_pr", False))
    no_pr = no_pr or bool(file_opts.get("no_pr", False))

    target_org, target_repo = parse_target(target) if target else (None, None)
    org = pick(org or target_org, "org", settings.github_org or None)
    repo = pick(repo or target_repo, "repo")
    repo_list = split_csv(pick(repos, "repos"))
    if repo and repo_list:
        raise ConfigurationError("Cannot use both --repo and --repos")
    if not repo and not repo_list:
        repo_list = list(settings.github_repos)
        if not repo_list and settings.github_repo:
            repo = settings.github_repo
    if repo and "/" in repo:
        repo_owner, repo = parse_target(repo)
        org = org or repo_owner

    if create_pr and no_pr:
        raise ConfigurationError("Cannot use both --create-pr and --no-pr")
    if verbose and quiet:
        raise ConfigurationError("Cannot use both --verbose and --quiet")

    timeout = pick(timeout, "timeout", settings.poll_attempts)
    try:
        timeout = int(timeout)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Timeout must be a positive number: {timeout}") from None
    if timeout <= 0:
        raise ConfigurationError("Timeout must be a positive number")

    raw_state = pick(state, "state", AlertState.OPEN.value)
    try:
        alert_state = AlertState(str(raw_state).lower())
    except ValueError:
        valid = ", ".join(s.value for s in AlertState)
        raise ConfigurationError(f"Invalid state: {raw_state}. Must be one of: {valid}") from None

    security, tool_severity = parse_severities(split_csv(pick(severity, "severity")))

    if create_pr:
        review = ReviewRequestMode.YES
    elif no_pr:
        review = ReviewRequestMode.NO
    else:
        review = ReviewRequestMode.ASK

    options = RunOptions(
        headless=yes,
        severity_filter=security,
        tool_severity_filter=tool_severity,
        state=alert_state,
        tool=pick(tool, "tool", settings.tool),
        # An explicit branch skips the interactive name prompt.
        branch_name=pick(branch, "branch", settings.branch_name or None),
        poll_attempts=timeout,
        poll_interval=settings.poll_interval,
        review_request=review,
        review_title=pick(pr_title, "pr_title"),
        review_body=pick(pr_body, "pr_body"),
        dry_run=dry_run,
    )

    return FixParameters(
        org=org,
        repositories=[repo] if repo else repo_list,
        finding_numbers=parse_alert_numbers(split_csv(pick(alerts, "alerts"))),
        token=token or settings.github_token,
        options=options,
        verbose=verbose,
        quiet=quiet,
    )
