# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Run options and the records produced by a remediation run."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, computed_field

from ghasfix.core.constants import (
    DEFAULT_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_STATE,
    DEFAULT_TOOL,
    AlertState,
    ReviewRequestMode,
    Severity,
    ToolSeverity,
)
from ghasfix.forge.models import AutofixCommit, Finding


class RunOptions(BaseModel):
    """Options recognised by :func:`ghasfix.remediation.orchestrator.run`."""

    headless: bool = False
    severity_filter: frozenset[Severity] = frozenset()
    tool_severity_filter: frozenset[ToolSeverity] = frozenset()
    state: AlertState = DEFAULT_STATE
    tool: str = DEFAULT_TOOL
    branch_name: str | None = None
    base_branch: str | None = None
    poll_attempts: int = Field(default=DEFAULT_POLL_ATTEMPTS, gt=0)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, ge=0.0)
    review_request: ReviewRequestMode = ReviewRequestMode.ASK
    review_title: str | None = None
    review_body: str | None = None
    dry_run: bool = False


class AttemptStatus(StrEnum):
    """Where a finding ended up in the fix lifecycle."""

    REQUESTED = "requested"
    REQUEST_FAILED = "request_failed"
    FIXED = "fixed"
    OUTDATED = "outdated"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    ERROR = "error"


class FixAttempt(BaseModel):
    """Progress of one finding through request, poll, commit and merge."""

    finding: Finding
    repository: str
    status: AttemptStatus = AttemptStatus.REQUESTED
    poll_attempts: int = 0
    commit: AutofixCommit | None = None
    reason: str | None = None

    @property
    def fixed(self) -> bool:
        return self.status == AttemptStatus.FIXED


class ReviewOutcome(BaseModel):
    """What happened to the pull request for one consolidation branch."""

    created: bool = False
    number: int | None = None
    url: str | None = None
    manual_url: str | None = None
    error: str | None = None


class RepositoryResult(BaseModel):
    repository: str
    selected: list[Finding] = Field(default_factory=list)
    attempts: list[FixAttempt] = Field(default_factory=list)
    branch: str | None = None
    base_branch: str | None = None
    branch_error: str | None = None
    declined: bool = False
    error: str | None = None
    review: ReviewOutcome | None = None

    @property
    def fixed(self) -> list[FixAttempt]:
        return [a for a in self.attempts if a.fixed]

    @property
    def not_fixed(self) -> list[FixAttempt]:
        return [a for a in self.attempts if not a.fixed]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def selected_count(self) -> int:
        return len(self.selected)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fixed_count(self) -> int:
        return len(self.fixed)


class RemediationOutcome(BaseModel):
    """Aggregate result of a run, consumed for reporting only."""

    organization: str
    dry_run: bool = False
    total_found: int = 0
    total_matched: int = 0
    total_selected: int = 0
    repositories: list[RepositoryResult] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_fixed(self) -> int:
        return sum(r.fixed_count for r in self.repositories)
