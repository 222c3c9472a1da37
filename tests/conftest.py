# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared test fixtures and configuration."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ghasfix.forge.client import GitHubClient
from ghasfix.forge.models import AutofixCommit, AutofixStatusReport, Finding, ReviewRequest
from ghasfix.remediation.prompts import Selection

API = "https://api.github.com"


def make_finding(
    number: int,
    repo: str = "app",
    severity: str | None = "high",
    tool_severity: str | None = "error",
    owner: str = "acme",
) -> Finding:
    return Finding.model_validate({
        "number": number,
        "url": f"{API}/repos/{owner}/{repo}/code-scanning/alerts/{number}",
        "html_url": f"https://github.com/{owner}/{repo}/security/code-scanning/{number}",
        "state": "open",
        "rule": {
            "id": f"py/rule-{number}",
            "name": f"Rule {number}",
            "description": f"Problem {number}",
            "severity": tool_severity,
            "security_severity_level": severity,
        },
        "most_recent_instance": {
            "ref": "refs/heads/main",
            "location": {"path": "src/app.py", "start_line": number},
        },
    })


class FakePrompter:
    """Scripted prompter that records everything it was told."""

    def __init__(
        self,
        *,
        target: tuple[str, str | None] = ("acme", None),
        select_all_repositories: bool = True,
        repository_names: tuple[str, ...] = (),
        select_all_findings: bool = True,
        finding_numbers: tuple[int, ...] = (),
        commit: bool = True,
        branch_name: str = "autofixes",
        review: bool = True,
        title: str = "",
    ) -> None:
        self.target = target
        self.select_all_repositories = select_all_repositories
        self.repository_names = repository_names
        self.select_all_findings = select_all_findings
        self.finding_numbers = finding_numbers
        self.commit = commit
        self.branch_name = branch_name
        self.review = review
        self.title = title
        self.messages: list[str] = []
        self.warnings: list[str] = []
        self.asked: list[str] = []

    def progress(self, message: str) -> None:
        self.messages.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def choose_target(self):
        self.asked.append("target")
        return self.target

    def select_repositories(self, repositories):
        self.asked.append("repositories")
        if self.select_all_repositories:
            return Selection(items=list(repositories), select_all=True)
        return Selection(items=[r for r in repositories if r.name in self.repository_names])

    def select_findings(self, findings):
        self.asked.append("findings")
        if self.select_all_findings:
            return Selection(items=list(findings), select_all=True)
        return Selection(items=[f for f in findings if f.number in self.finding_numbers])

    def confirm_commit(self, count):
        self.asked.append("commit")
        return self.commit

    async def choose_branch_name(self, proposed, exists):
        self.asked.append("branch")
        return self.branch_name

    def confirm_review_request(self, count):
        self.asked.append("review")
        return self.review

    def review_title(self, proposed):
        self.asked.append("title")
        return self.title


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def client() -> MagicMock:
    """A GitHub client whose endpoints all succeed."""
    mock = MagicMock(spec=GitHubClient)
    mock.list_findings.return_value = []
    mock.list_repositories.return_value = []
    mock.request_fix.return_value = AutofixStatusReport(status="pending")
    mock.get_fix_status.return_value = AutofixStatusReport(status="success")
    mock.commit_fix.return_value = AutofixCommit(target_ref="refs/heads/fix-1", sha="abc123")
    mock.get_default_branch.return_value = "main"
    mock.branch_exists.return_value = False
    mock.create_branch.return_value = "base-sha"
    mock.merge_branch.return_value = None
    mock.open_review_request.return_value = ReviewRequest(
        number=42, html_url="https://github.com/acme/app/pull/42"
    )
    mock.compare_url.side_effect = (
        lambda org, repo, branch, base=None: f"https://github.com/{org}/{repo}/compare/{base}...{branch}"
    )
    return mock


async def no_sleep(_: float) -> None:
    return None


@pytest.fixture
def finding():
    """Factory for code scanning findings."""
    return make_finding


@pytest.fixture
def make_prompter():
    return FakePrompter


@pytest.fixture
def sleep():
    return no_sleep
