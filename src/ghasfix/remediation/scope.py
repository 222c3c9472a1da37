# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Resolve what a run applies to: named repositories or a whole organization."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ghasfix.core.exceptions import ConfigurationError, NotFoundError
from ghasfix.forge.client import GitHubClient
from ghasfix.remediation.prompts import Prompter

logger = logging.getLogger("ghasfix.remediation.scope")


@dataclass(frozen=True)
class RepositoryScope:
    """An explicit, ordered list of repositories in one organization."""

    org: str
    repositories: tuple[str, ...]


@dataclass(frozen=True)
class OrganizationScope:
    """Every repository in the organization visible to the caller."""

    org: str


Scope = RepositoryScope | OrganizationScope


def parse_target(token: str) -> tuple[str, str | None]:
    """Split an ``owner/repo`` or ``owner`` token."""
    token = token.strip().strip("/")
    if not token:
        raise ConfigurationError("Target must be 'owner' or 'owner/repo'")
    if "/" in token:
        owner, _, repo = token.partition("/")
        if not owner or not repo or "/" in repo:
            raise ConfigurationError(f"Invalid repository '{token}', expected owner/repo")
        return owner, repo
    return token, None


async def resolve_scope(
    client: GitHubClient,
    prompter: Prompter,
    *,
    org: str | None,
    repositories: Sequence[str] = (),
    headless: bool = False,
) -> Scope:
    """Turn the operator's intent into a concrete scope.

    Explicit repositories are used verbatim without any API call. Headless
    runs must name them. Interactive runs may pick the organization and then
    choose among its repositories, where "select all" yields the
    organization-wide scope.
    """
    repos = tuple(r.strip() for r in repositories if r and r.strip())

    if org and repos:
        return RepositoryScope(org=org, repositories=repos)

    if headless:
        raise ConfigurationError(
            "Organization and repository information required for headless mode. "
            "Use --org and --repo or --repos flags."
        )

    if not org:
        org, repo = prompter.choose_target()
        if repo:
            return RepositoryScope(org=org, repositories=(repo,))

    prompter.progress(f"Fetching repositories in {org}...")
    available = await client.list_repositories(org)
    if not available:
        raise NotFoundError(f"No repositories found in organization: {org}")
    prompter.progress(f"Found {len(available)} repositories in {org}")

    selection = prompter.select_repositories(available)
    if selection.select_all:
        logger.info("All %d repositories in %s selected", len(available), org)
        return OrganizationScope(org=org)
    if not selection.items:
        raise NotFoundError("No repositories selected.")
    return RepositoryScope(org=org, repositories=tuple(r.name for r in selection.items))
