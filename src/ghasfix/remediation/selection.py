# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Filtering, ordering, selection and grouping of findings."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from urllib.parse import urlsplit

from ghasfix.core.constants import SEVERITY_RANK, Severity, ToolSeverity
from ghasfix.core.exceptions import NotFoundError
from ghasfix.forge.models import Finding
from ghasfix.remediation.prompts import Prompter

logger = logging.getLogger("ghasfix.remediation.selection")


def filter_by_severity(
    findings: Iterable[Finding],
    severities: Collection[Severity] = (),
    tool_severities: Collection[ToolSeverity] = (),
) -> list[Finding]:
    """Keep findings whose severities are in the requested sets.

    The security severity (unset counts as low) and the tool-native severity
    are independent dimensions; an empty set does not filter.
    """
    wanted = {str(s) for s in severities}
    wanted_tool = {str(s) for s in tool_severities}
    kept = []
    for finding in findings:
        if wanted and str(finding.security_severity) not in wanted:
            continue
        if wanted_tool and (finding.rule.severity or "") not in wanted_tool:
            continue
        kept.append(finding)
    return kept


def sort_by_severity(findings: Iterable[Finding]) -> list[Finding]:
    """Most severe first; equal severities keep their input order."""
    return sorted(findings, key=lambda f: SEVERITY_RANK[f.security_severity], reverse=True)


def select_by_number(findings: Iterable[Finding], numbers: Collection[int]) -> list[Finding]:
    wanted = set(numbers)
    selected = [f for f in findings if f.number in wanted]
    if not selected:
        ids = ", ".join(str(n) for n in numbers)
        raise NotFoundError(f"No alerts found with IDs: {ids}")
    return selected


def select_findings(
    findings: list[Finding],
    prompter: Prompter,
    *,
    numbers: Collection[int] = (),
    headless: bool = False,
) -> list[Finding]:
    """Choose the findings to remediate: by number, everything, or interactively."""
    if numbers:
        selected = select_by_number(findings, numbers)
        prompter.progress(f"Selected {len(selected)} alerts by ID")
        return selected

    if headless:
        prompter.progress(f"Auto-selecting all {len(findings)} alerts")
        return list(findings)

    selection = prompter.select_findings(findings)
    if selection.select_all:
        return list(findings)
    # Keep the severity ordering regardless of the order items were picked in.
    picked = {f.number for f in selection.items}
    return [f for f in findings if f.number in picked]


def parse_repository(url: str) -> tuple[str, str]:
    """Return ``(owner, repo)`` from an API URL containing ``/repos/{owner}/{repo}``.

    Raises :class:`NotFoundError` when the URL names no repository.
    """
    parts = urlsplit(url).path.split("/")
    try:
        index = parts.index("repos")
        owner, repo = parts[index + 1], parts[index + 2]
    except (ValueError, IndexError):
        raise NotFoundError(f"No repository in alert URL: {url}") from None
    if not owner or not repo:
        raise NotFoundError(f"No repository in alert URL: {url}")
    return owner, repo


def repository_name(url: str) -> str:
    return parse_repository(url)[1]


def group_by_repository(findings: Iterable[Finding]) -> dict[str, list[Finding]]:
    """Group findings by repository name, in first-seen order."""
    groups: dict[str, list[Finding]] = {}
    for finding in findings:
        groups.setdefault(repository_name(finding.url), []).append(finding)
    return groups
