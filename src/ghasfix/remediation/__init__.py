# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Finding selection and the autofix remediation workflow."""

from ghasfix.remediation.models import (
    AttemptStatus,
    FixAttempt,
    RemediationOutcome,
    RepositoryResult,
    ReviewOutcome,
    RunOptions,
)
from ghasfix.remediation.orchestrator import RemediationOrchestrator, run
from ghasfix.remediation.scope import OrganizationScope, RepositoryScope, Scope, resolve_scope

__all__ = [
    "AttemptStatus",
    "FixAttempt",
    "OrganizationScope",
    "RemediationOrchestrator",
    "RemediationOutcome",
    "RepositoryResult",
    "RepositoryScope",
    "ReviewOutcome",
    "RunOptions",
    "Scope",
    "resolve_scope",
    "run",
]
