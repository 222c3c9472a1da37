# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Remediation workflow: request, poll, commit and consolidate autofixes."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Collection, Sequence

from ghasfix.core.constants import DEFAULT_BASE_BRANCH, DEFAULT_BRANCH_NAME
from ghasfix.core.exceptions import (
    CancelledError,
    ForgeRequestError,
    NotFoundError,
    describe_error,
)
from ghasfix.forge.client import GitHubClient
from ghasfix.forge.models import Finding
from ghasfix.remediation.models import (
    AttemptStatus,
    FixAttempt,
    RemediationOutcome,
    RepositoryResult,
    RunOptions,
)
from ghasfix.remediation.polling import (
    AttemptsExhausted,
    Failed,
    Outdated,
    Succeeded,
    poll_fix_status,
)
from ghasfix.remediation.prompts import HeadlessPrompter, Prompter
from ghasfix.remediation.review import request_review
from ghasfix.remediation.scope import OrganizationScope, Scope, resolve_scope
from ghasfix.remediation.selection import (
    filter_by_severity,
    group_by_repository,
    select_findings,
    sort_by_severity,
)

logger = logging.getLogger("ghasfix.remediation.orchestrator")

SleepFunc = Callable[[float], Awaitable[None]]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


class RemediationOrchestrator:
    """Drives one run from scope resolution to per-repository results.

    Findings within a repository are processed one at a time in severity
    order, so merges into the consolidation branch never overlap.
    """

    def __init__(
        self,
        client: GitHubClient,
        options: RunOptions | None = None,
        prompter: Prompter | None = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.client = client
        self.options = options or RunOptions()
        self.prompter = prompter or HeadlessPrompter()
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Whole run
    # ------------------------------------------------------------------

    async def run(
        self,
        org: str | None,
        repositories: Sequence[str] = (),
        finding_numbers: Collection[int] = (),
    ) -> RemediationOutcome:
        options = self.options
        if options.dry_run:
            self.prompter.progress("Running in dry-run mode - no changes will be made")

        scope = await resolve_scope(
            self.client,
            self.prompter,
            org=org,
            repositories=repositories,
            headless=options.headless,
        )
        outcome = RemediationOutcome(organization=scope.org, dry_run=options.dry_run)

        found = await self.fetch_findings(scope)
        matched = sort_by_severity(
            filter_by_severity(found, options.severity_filter, options.tool_severity_filter)
        )
        outcome.total_found = len(found)
        outcome.total_matched = len(matched)
        if not matched:
            self.prompter.progress("No code scanning alerts found!")
            return outcome

        selected = select_findings(
            matched,
            self.prompter,
            numbers=finding_numbers,
            headless=options.headless,
        )
        if not selected:
            raise NotFoundError("No alerts selected.")
        outcome.total_selected = len(selected)

        groups = group_by_repository(selected)
        if options.dry_run:
            outcome.repositories = [
                RepositoryResult(repository=name, selected=findings)
                for name, findings in groups.items()
            ]
            return outcome

        for name, findings in groups.items():
            self.prompter.progress(f"Processing alerts for repository: {name}")
            result = await self.remediate_repository(scope.org, name, findings)
            self.prompter.progress(
                f"Fixed {_plural(result.fixed_count, 'code scanning alert')} in {name}"
            )
            outcome.repositories.append(result)

        return outcome

    async def fetch_findings(self, scope: Scope) -> list[Finding]:
        """Fetch findings for *scope*.

        A failure is fatal for organization and single-repository scopes. For
        a list of repositories, a repository that cannot be read is skipped
        unless every repository fails.
        """
        options = self.options

        def progress(count: int) -> None:
            self.prompter.progress(f"Found {_plural(count, 'code scanning alert')}...")

        if isinstance(scope, OrganizationScope):
            return await self.client.list_findings(
                scope.org, None, state=options.state, tool=options.tool, progress=progress
            )

        if len(scope.repositories) == 1:
            return await self.client.list_findings(
                scope.org,
                scope.repositories[0],
                state=options.state,
                tool=options.tool,
                progress=progress,
            )

        findings: list[Finding] = []
        last_error: ForgeRequestError | None = None
        failures = 0
        total = len(scope.repositories)
        for index, repo in enumerate(scope.repositories, start=1):
            self.prompter.progress(f"Scanning {repo} ({index}/{total})")
            try:
                repo_findings = await self.client.list_findings(
                    scope.org, repo, state=options.state, tool=options.tool
                )
            except ForgeRequestError as exc:
                failures += 1
                last_error = exc
                logger.warning(
                    "Failed to fetch alerts for %s/%s: %s", scope.org, repo, exc,
                    extra={"repository": repo},
                )
                self.prompter.warn(f"{repo}: Failed to fetch alerts - {describe_error(exc)}")
                continue
            self.prompter.progress(f"{repo}: Found {_plural(len(repo_findings), 'alert')}")
            findings.extend(repo_findings)

        if last_error is not None and failures == total:
            raise last_error
        return findings

    # ------------------------------------------------------------------
    # One repository
    # ------------------------------------------------------------------

    async def remediate_repository(
        self,
        org: str,
        repo: str,
        findings: list[Finding],
    ) -> RepositoryResult:
        """Run the fix lifecycle for every finding of one repository.

        Only operator cancellation escapes; forge errors are recorded on the
        result so the next repository can proceed.
        """
        result = RepositoryResult(repository=repo, selected=findings)
        try:
            await self._remediate(org, result)
        except CancelledError:
            raise
        except ForgeRequestError as exc:
            result.error = describe_error(exc)
            logger.warning(
                "Remediation of %s/%s stopped: %s", org, repo, result.error,
                extra={"repository": repo},
            )
            self.prompter.warn(f"{repo}: {result.error}")
        return result

    async def _remediate(self, org: str, result: RepositoryResult) -> None:
        repo = result.repository
        self.prompter.progress(f"Autofixing {_plural(len(result.selected), 'alert')}...")

        # Step A: request fixes
        for finding in result.selected:
            result.attempts.append(await self.request_fix(org, repo, finding))
        requested = [a for a in result.attempts if a.status == AttemptStatus.REQUESTED]
        if not requested:
            return

        # Step B: commit confirmation
        if not (self.options.headless or self.prompter.confirm_commit(len(requested))):
            result.declined = True
            self.prompter.progress("Autofixes were not committed")
            return

        # Step C: consolidation branch
        result.branch = await self.choose_branch(org, repo)
        result.base_branch = await self.resolve_base_branch(org, repo)
        try:
            await self.client.create_branch(org, repo, result.branch, base=result.base_branch)
            self.prompter.progress(f"Created branch: {result.branch}")
        except ForgeRequestError as exc:
            result.branch_error = describe_error(exc)
            logger.warning(
                "Could not create branch %s on %s/%s: %s", result.branch, org, repo, exc,
                extra={"repository": repo},
            )
            self.prompter.warn(f"Could not create branch: {result.branch_error}")

        # Step D: per-finding lifecycle
        for attempt in requested:
            await self.complete_fix(org, repo, attempt, result.branch)

        # Step E: review request
        fixed = result.fixed
        if fixed:
            result.review = await request_review(
                self.client,
                self.prompter,
                self.options,
                org=org,
                repo=repo,
                branch=result.branch,
                base=result.base_branch,
                fixed=fixed,
            )

    async def request_fix(self, org: str, repo: str, finding: Finding) -> FixAttempt:
        attempt = FixAttempt(finding=finding, repository=repo)
        self.prompter.progress(f"#{finding.number}: Creating autofix {finding.rule.name or ''}".rstrip())
        try:
            await self.client.request_fix(org, repo, finding.number)
        except CancelledError:
            raise
        except Exception as exc:
            attempt.status = AttemptStatus.REQUEST_FAILED
            attempt.reason = describe_error(exc)
            logger.warning(
                "Autofix request failed: %s", exc,
                extra={"repository": repo, "alert": finding.number},
            )
            self.prompter.warn(
                f"Failed to create autofix for #{finding.number}: {attempt.reason}"
            )
            return attempt
        self.prompter.progress(f"#{finding.number}: Autofix created")
        return attempt

    async def choose_branch(self, org: str, repo: str) -> str:
        """Name of the consolidation branch for *repo*.

        An explicit name is used as-is. Interactive runs propose the default
        and re-prompt while the name is taken.
        """
        if self.options.branch_name:
            return self.options.branch_name
        if self.options.headless:
            return DEFAULT_BRANCH_NAME

        async def exists(name: str) -> bool:
            return await self.client.branch_exists(org, repo, name)

        return await self.prompter.choose_branch_name(DEFAULT_BRANCH_NAME, exists)

    async def resolve_base_branch(self, org: str, repo: str) -> str:
        if self.options.base_branch:
            return self.options.base_branch
        try:
            return await self.client.get_default_branch(org, repo)
        except ForgeRequestError as exc:
            logger.warning(
                "Could not read default branch of %s/%s, using %s: %s",
                org, repo, DEFAULT_BASE_BRANCH, exc,
            )
            return DEFAULT_BASE_BRANCH

    async def complete_fix(self, org: str, repo: str, attempt: FixAttempt, branch: str) -> None:
        """Poll, commit and merge one fix. Failures stay on *attempt*."""
        number = attempt.finding.number

        def on_pending(polls: int) -> None:
            attempt.poll_attempts = polls
            self.prompter.progress(f"#{number}: Autofix is still pending ({polls})")

        try:
            state = await poll_fix_status(
                lambda: self.client.get_fix_status(org, repo, number),
                max_attempts=self.options.poll_attempts,
                interval=self.options.poll_interval,
                sleep=self._sleep,
                on_pending=on_pending,
            )
            attempt.poll_attempts = state.attempts

            if isinstance(state, Succeeded):
                self.prompter.progress(f"#{number}: Committing autofix")
                commit = await self.client.commit_fix(org, repo, number)
                attempt.commit = commit
                if commit.target_ref and commit.sha:
                    await self.client.merge_branch(org, repo, branch, commit.target_ref)
                attempt.status = AttemptStatus.FIXED
                self.prompter.progress(f"#{number}: Autofix committed ({commit.target_ref})")
            elif isinstance(state, Outdated):
                attempt.status = AttemptStatus.OUTDATED
                attempt.reason = "outdated"
                self.prompter.warn(f"#{number}: Autofix is outdated.")
            elif isinstance(state, Failed):
                attempt.status = AttemptStatus.FAILED
                attempt.reason = state.description or state.status
                self.prompter.warn(
                    f"#{number}: Autofix failed ({state.status}) {state.description or ''}".rstrip()
                )
            elif isinstance(state, AttemptsExhausted):
                attempt.status = AttemptStatus.TIMED_OUT
                attempt.reason = f"still pending after {state.attempts} attempts"
                self.prompter.warn(f"#{number}: Autofix {attempt.reason}")
        except CancelledError:
            raise
        except Exception as exc:
            attempt.status = AttemptStatus.ERROR
            attempt.reason = describe_error(exc)
            if attempt.commit is not None:
                # The fix is committed upstream but not part of the branch.
                attempt.reason = (
                    f"{attempt.reason} (committed to {attempt.commit.target_ref} "
                    f"at {attempt.commit.sha}, not merged)"
                )
            logger.warning(
                "Autofix failed: %s", attempt.reason,
                extra={"repository": repo, "alert": number},
            )
            self.prompter.warn(f"#{number}: Failed to commit autofix - {attempt.reason}")


async def run(
    client: GitHubClient,
    organization: str | None,
    repositories: str | Sequence[str] | None = None,
    finding_numbers: Collection[int] = (),
    options: RunOptions | None = None,
    *,
    prompter: Prompter | None = None,
    sleep: SleepFunc = asyncio.sleep,
) -> RemediationOutcome:
    """Remediate the selected findings of one repository, a list, or an organization."""
    if repositories is None:
        repos: Sequence[str] = ()
    elif isinstance(repositories, str):
        repos = (repositories,)
    else:
        repos = repositories
    orchestrator = RemediationOrchestrator(client, options, prompter, sleep=sleep)
    return await orchestrator.run(organization, repos, finding_numbers)
