# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""ghasfix - Batch remediation of code scanning alerts via GitHub autofix."""

__version__ = "0.1.0"

from ghasfix.remediation.models import RemediationOutcome, RunOptions
from ghasfix.remediation.orchestrator import run

__all__ = [
    "RemediationOutcome",
    "RunOptions",
    "__version__",
    "run",
]
