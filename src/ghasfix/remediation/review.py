# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Decide whether to open a pull request for a consolidation branch."""

from __future__ import annotations

import logging

from ghasfix.core.constants import ReviewRequestMode
from ghasfix.core.exceptions import ForgeRequestError, describe_error
from ghasfix.forge.client import GitHubClient
from ghasfix.remediation.models import FixAttempt, ReviewOutcome, RunOptions
from ghasfix.remediation.prompts import Prompter

logger = logging.getLogger("ghasfix.remediation.review")

ATTRIBUTION = (
    "_Suggested fixes powered by Copilot Autofix. Review carefully before merging._\n\n"
    "Automated using ghasfix."
)


def default_title(count: int) -> str:
    return f"Fix {count} security alert{'s' if count != 1 else ''}"


def build_review_body(fixed: list[FixAttempt]) -> str:
    lines = [f"Potential fixes for {len(fixed)} code scanning alert{'s' if len(fixed) != 1 else ''}:"]
    for attempt in fixed:
        finding = attempt.finding
        link = finding.html_url or finding.url
        lines.append(f"- [#{finding.number} {finding.title}]({link})")
    lines.append("")
    lines.append(ATTRIBUTION)
    return "\n".join(lines)


async def request_review(
    client: GitHubClient,
    prompter: Prompter,
    options: RunOptions,
    *,
    org: str,
    repo: str,
    branch: str,
    base: str,
    fixed: list[FixAttempt],
) -> ReviewOutcome:
    """Open a pull request for *branch*, or fall back to a manual compare link.

    Never raises for a rejected pull request: the committed fixes must stay
    discoverable through the link.
    """
    manual_url = client.compare_url(org, repo, branch, base)

    if options.review_request == ReviewRequestMode.NO:
        prompter.progress(f"Create a PR for fixes: {manual_url}")
        return ReviewOutcome(manual_url=manual_url)

    wanted = (
        options.review_request == ReviewRequestMode.YES
        or options.headless
        or prompter.confirm_review_request(len(fixed))
    )
    if not wanted:
        prompter.progress(f"Create a PR for fixes: {manual_url}")
        return ReviewOutcome(manual_url=manual_url)

    title = options.review_title
    if not title:
        title = default_title(len(fixed))
        if not options.headless:
            title = prompter.review_title(title) or title
    body = options.review_body or build_review_body(fixed)

    prompter.progress("Creating pull request...")
    try:
        pr = await client.open_review_request(org, repo, title, body, head=branch, base=base)
    except ForgeRequestError as exc:
        message = describe_error(exc)
        logger.warning("Pull request for %s/%s failed: %s", org, repo, message)
        prompter.warn(f"Failed to create pull request: {message}")
        prompter.progress(f"Create a PR manually: {manual_url}")
        return ReviewOutcome(manual_url=manual_url, error=message)

    prompter.progress(f"View your PR: {pr.html_url}")
    return ReviewOutcome(created=True, number=pr.number, url=pr.html_url)
