# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""GitHub REST client and payload models."""

from ghasfix.forge.client import GitHubClient
from ghasfix.forge.models import (
    AutofixCommit,
    AutofixStatusReport,
    Finding,
    Instance,
    Location,
    Repository,
    ReviewRequest,
    Rule,
)

__all__ = [
    "AutofixCommit",
    "AutofixStatusReport",
    "Finding",
    "GitHubClient",
    "Instance",
    "Location",
    "Repository",
    "ReviewRequest",
    "Rule",
]
