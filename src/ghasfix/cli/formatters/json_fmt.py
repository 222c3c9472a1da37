# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""JSON output formatter."""

from __future__ import annotations

from ghasfix.remediation.models import RemediationOutcome


def format_json(outcome: RemediationOutcome) -> str:
    """Return the full run outcome as formatted JSON."""
    return outcome.model_dump_json(indent=2)

