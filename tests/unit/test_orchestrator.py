# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Unit tests for the remediation workflow."""

from __future__ import annotations

import pytest

from ghasfix.core.constants import ReviewRequestMode, Severity
from ghasfix.core.exceptions import CancelledError, ForgeRequestError, NotFoundError
from ghasfix.forge.models import AutofixCommit, AutofixStatusReport
from ghasfix.remediation.models import AttemptStatus, RunOptions
from ghasfix.remediation.orchestrator import RemediationOrchestrator, run


def _by_repo(mapping):
    async def list_findings(org, repo=None, **kwargs):
        value = mapping[repo]
        if isinstance(value, Exception):
            raise value
        return value

    return list_findings


def _status_by_number(mapping, default="success"):
    async def get_fix_status(org, repo, number):
        return AutofixStatusReport(status=mapping.get(number, default), description="cannot fix")

    return get_fix_status


HEADLESS = RunOptions(headless=True, poll_interval=0)


class TestRunHeadless:
    @pytest.mark.asyncio
    async def test_commit_failure_is_isolated(self, client, finding, sleep):
        client.list_findings.side_effect = _by_repo({
            "app": [finding(1), finding(2)],
            "web": [finding(3, repo="web")],
        })

        async def commit_fix(org, repo, number):
            if number == 2:
                raise ForgeRequestError("commit rejected", status_code=500)
            return AutofixCommit(target_ref=f"refs/heads/fix-{number}", sha=f"sha{number}")

        client.commit_fix.side_effect = commit_fix

        outcome = await run(client, "acme", ["app", "web"], options=HEADLESS, sleep=sleep)

        app, web = outcome.repositories
        assert [a.finding.number for a in app.fixed] == [1]
        assert [a.finding.number for a in app.not_fixed] == [2]
        assert app.not_fixed[0].status == AttemptStatus.ERROR
        assert "commit rejected" in app.not_fixed[0].reason
        assert [a.finding.number for a in web.fixed] == [3]
        assert outcome.total_fixed == 2
        assert client.merge_branch.await_count == 2

    @pytest.mark.asyncio
    async def test_dry_run_makes_no_changes(self, client, finding, sleep):
        client.list_findings.side_effect = _by_repo({
            "app": [finding(n) for n in range(1, 4)],
            "web": [finding(n, repo="web") for n in range(4, 9)],
        })
        options = RunOptions(headless=True, dry_run=True)

        outcome = await run(client, "acme", ["app", "web"], options=options, sleep=sleep)

        assert outcome.dry_run
        assert outcome.total_selected == 8
        assert [r.selected_count for r in outcome.repositories] == [3, 5]
        assert outcome.total_fixed == 0
        client.request_fix.assert_not_called()
        client.create_branch.assert_not_called()
        client.commit_fix.assert_not_called()
        client.merge_branch.assert_not_called()
        client.open_review_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_request_failure_skips_finding(self, client, finding, sleep):
        client.list_findings.return_value = [finding(1), finding(2)]

        async def request_fix(org, repo, number):
            if number == 1:
                raise ForgeRequestError("not eligible", status_code=422)
            return AutofixStatusReport(status="pending")

        client.request_fix.side_effect = request_fix

        outcome = await run(client, "acme", "app", options=HEADLESS, sleep=sleep)

        result = outcome.repositories[0]
        assert result.attempts[0].status == AttemptStatus.REQUEST_FAILED
        assert result.attempts[0].reason == "Request Error(422) - not eligible"
        assert result.attempts[1].status == AttemptStatus.FIXED
        client.get_fix_status.assert_awaited_once_with("acme", "app", 2)

    @pytest.mark.asyncio
    async def test_all_requests_failing_skips_branch(self, client, finding, sleep):
        client.list_findings.return_value = [finding(1)]
        client.request_fix.side_effect = ForgeRequestError("nope", status_code=403)

        outcome = await run(client, "acme", "app", options=HEADLESS, sleep=sleep)

        assert outcome.repositories[0].branch is None
        client.create_branch.assert_not_called()
        client.open_review_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_branch_creation_failure_is_tolerated(self, client, finding, sleep):
        client.list_findings.return_value = [finding(1)]
        client.create_branch.side_effect = ForgeRequestError("Reference already exists", status_code=422)

        outcome = await run(client, "acme", "app", options=HEADLESS, sleep=sleep)

        result = outcome.repositories[0]
        assert result.branch == "autofixes"
        assert "Reference already exists" in result.branch_error
        assert result.fixed_count == 1
        client.merge_branch.assert_awaited_once_with("acme", "app", "autofixes", "refs/heads/fix-1")

    @pytest.mark.asyncio
    async def test_merge_failure_reports_orphaned_commit(self, client, finding, sleep):
        client.list_findings.return_value = [finding(1)]
        client.merge_branch.side_effect = ForgeRequestError("Merge conflict", status_code=409)

        outcome = await run(client, "acme", "app", options=HEADLESS, sleep=sleep)

        attempt = outcome.repositories[0].attempts[0]
        assert attempt.status == AttemptStatus.ERROR
        assert attempt.commit.target_ref == "refs/heads/fix-1"
        assert "refs/heads/fix-1" in attempt.reason
        assert "abc123" in attempt.reason
        assert outcome.total_fixed == 0
        client.open_review_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_commit_without_ref_is_not_merged(self, client, finding, sleep):
        client.list_findings.return_value = [finding(1)]
        client.commit_fix.return_value = AutofixCommit()

        outcome = await run(client, "acme", "app", options=HEADLESS, sleep=sleep)

        assert outcome.repositories[0].attempts[0].status == AttemptStatus.FIXED
        client.merge_branch.assert_not_called()

    @pytest.mark.asyncio
    async def test_pending_exhaustion_does_not_abort_siblings(self, client, finding, sleep):
        client.list_findings.return_value = [finding(1), finding(2), finding(3), finding(4)]
        client.get_fix_status.side_effect = _status_by_number(
            {1: "pending", 3: "outdated", 4: "failed"}
        )
        options = RunOptions(headless=True, poll_attempts=2, poll_interval=0)

        outcome = await run(client, "acme", "app", options=options, sleep=sleep)

        statuses = [a.status for a in outcome.repositories[0].attempts]
        assert statuses == [
            AttemptStatus.TIMED_OUT,
            AttemptStatus.FIXED,
            AttemptStatus.OUTDATED,
            AttemptStatus.FAILED,
        ]
        attempts = outcome.repositories[0].attempts
        assert attempts[0].poll_attempts == 2
        assert attempts[2].reason == "outdated"
        assert attempts[3].reason == "cannot fix"

    @pytest.mark.asyncio
    async def test_processes_in_severity_order(self, client, finding, sleep):
        client.list_findings.return_value = [
            finding(1, severity="low"),
            finding(2, severity="critical"),
            finding(3, severity=None),
            finding(4, severity="high"),
        ]
        outcome = await run(client, "acme", "app", options=HEADLESS, sleep=sleep)

        assert [a.finding.number for a in outcome.repositories[0].attempts] == [2, 4, 1, 3]

    @pytest.mark.asyncio
    async def test_severity_filter_and_counts(self, client, finding, sleep):
        client.list_findings.return_value = [
            finding(1, severity="low"),
            finding(2, severity="critical"),
        ]
        options = RunOptions(headless=True, severity_filter={Severity.CRITICAL}, poll_interval=0)

        outcome = await run(client, "acme", "app", options=options, sleep=sleep)

        assert outcome.total_found == 2
        assert outcome.total_matched == 1
        assert outcome.total_selected == 1

    @pytest.mark.asyncio
    async def test_no_findings_returns_empty_outcome(self, client, sleep):
        outcome = await run(client, "acme", "app", options=HEADLESS, sleep=sleep)

        assert outcome.total_found == 0
        assert outcome.repositories == []
        client.request_fix.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_alert_numbers(self, client, finding, sleep):
        client.list_findings.return_value = [finding(1)]
        with pytest.raises(NotFoundError, match="No alerts found with IDs: 9"):
            await run(client, "acme", "app", [9], options=HEADLESS, sleep=sleep)

    @pytest.mark.asyncio
    async def test_opens_review_request(self, client, finding, sleep):
        client.list_findings.return_value = [finding(1)]

        outcome = await run(client, "acme", "app", options=HEADLESS, sleep=sleep)

        review = outcome.repositories[0].review
        assert review.created
        assert review.url == "https://github.com/acme/app/pull/42"
        kwargs = client.open_review_request.await_args.kwargs
        assert kwargs["head"] == "autofixes"
        assert kwargs["base"] == "main"

    @pytest.mark.asyncio
    async def test_default_branch_fallback(self, client, finding, sleep):
        client.list_findings.return_value = [finding(1)]
        client.get_default_branch.side_effect = ForgeRequestError("gone", status_code=500)

        outcome = await run(client, "acme", "app", options=HEADLESS, sleep=sleep)

        assert outcome.repositories[0].base_branch == "main"


class TestFetchFindings:
    @pytest.mark.asyncio
    async def test_repository_list_tolerates_failures(self, client, finding, sleep, prompter):
        client.list_findings.side_effect = _by_repo({
            "app": ForgeRequestError("Not Found", status_code=404),
            "web": [finding(3, repo="web")],
        })
        options = RunOptions(headless=True, dry_run=True)

        outcome = await run(client, "acme", ["app", "web"], options=options, prompter=prompter)

        assert [r.repository for r in outcome.repositories] == ["web"]
        assert any("app: Failed to fetch alerts" in w for w in prompter.warnings)

    @pytest.mark.asyncio
    async def test_repository_list_all_failing_raises(self, client):
        client.list_findings.side_effect = ForgeRequestError("Forbidden", status_code=403)

        with pytest.raises(ForgeRequestError, match="Forbidden"):
            await run(client, "acme", ["app", "web"], options=HEADLESS)

    @pytest.mark.asyncio
    async def test_single_repository_failure_is_fatal(self, client):
        client.list_findings.side_effect = ForgeRequestError("Not Found", status_code=404)

        with pytest.raises(ForgeRequestError):
            await run(client, "acme", "app", options=HEADLESS)


class TestRunInteractive:
    @pytest.mark.asyncio
    async def test_declined_commit(self, client, finding, sleep, make_prompter):
        client.list_findings.return_value = [finding(1), finding(2)]
        prompter = make_prompter(commit=False)

        outcome = await run(client, "acme", "app", prompter=prompter, sleep=sleep)

        result = outcome.repositories[0]
        assert result.declined
        assert all(a.status == AttemptStatus.REQUESTED for a in result.attempts)
        client.create_branch.assert_not_called()
        client.commit_fix.assert_not_called()

    @pytest.mark.asyncio
    async def test_prompts_for_branch_and_review(self, client, finding, sleep, make_prompter):
        client.list_findings.return_value = [finding(1)]
        prompter = make_prompter(branch_name="security/fixes", title="Custom title")

        outcome = await run(client, "acme", "app", prompter=prompter, sleep=sleep)

        assert prompter.asked == ["findings", "commit", "branch", "review", "title"]
        assert outcome.repositories[0].branch == "security/fixes"
        args = client.open_review_request.await_args
        assert args.args[2] == "Custom title"

    @pytest.mark.asyncio
    async def test_explicit_branch_skips_prompt(self, client, finding, sleep, make_prompter):
        client.list_findings.return_value = [finding(1)]
        prompter = make_prompter()
        options = RunOptions(
            branch_name="fixes", review_request=ReviewRequestMode.NO, poll_interval=0
        )

        outcome = await run(client, "acme", "app", options=options, prompter=prompter, sleep=sleep)

        assert "branch" not in prompter.asked
        assert outcome.repositories[0].review.manual_url == (
            "https://github.com/acme/app/compare/main...fixes"
        )
        client.open_review_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_select_all_repositories_uses_organization(
        self, client, finding, sleep, make_prompter
    ):
        from ghasfix.forge.models import Repository

        client.list_repositories.return_value = [Repository(name="app"), Repository(name="web")]
        client.list_findings.return_value = [finding(1), finding(2, repo="web")]
        prompter = make_prompter()
        options = RunOptions(dry_run=True)

        outcome = await run(client, "acme", options=options, prompter=prompter, sleep=sleep)

        client.list_findings.assert_awaited_once()
        assert client.list_findings.await_args.args == ("acme", None)
        assert [r.repository for r in outcome.repositories] == ["app", "web"]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, client, finding, sleep, make_prompter):
        client.list_findings.return_value = [finding(1)]
        prompter = make_prompter()

        def cancel(count):
            raise CancelledError("Operation cancelled")

        prompter.confirm_commit = cancel

        with pytest.raises(CancelledError):
            await run(client, "acme", "app", prompter=prompter, sleep=sleep)

    @pytest.mark.asyncio
    async def test_forge_error_stops_only_that_repository(
        self, client, finding, sleep, make_prompter
    ):
        client.list_findings.side_effect = _by_repo({
            "app": [finding(1)],
            "web": [finding(2, repo="web")],
        })
        calls = []

        async def branch_exists(org, repo, name):
            calls.append(repo)
            if repo == "app":
                raise ForgeRequestError("Server Error", status_code=502)
            return False

        client.branch_exists.side_effect = branch_exists

        class CheckingPrompter(make_prompter):
            async def choose_branch_name(self, proposed, exists):
                await exists(proposed)
                return proposed

        outcome = await run(
            client, "acme", ["app", "web"], prompter=CheckingPrompter(), sleep=sleep
        )

        app, web = outcome.repositories
        assert app.error == "Request Error(502) - Server Error"
        assert web.fixed_count == 1
        assert calls == ["app", "web"]


class TestOrchestratorDefaults:
    def test_headless_prompter_by_default(self, client):
        from ghasfix.remediation.prompts import HeadlessPrompter

        orchestrator = RemediationOrchestrator(client)
        assert isinstance(orchestrator.prompter, HeadlessPrompter)
        assert orchestrator.options == RunOptions()
