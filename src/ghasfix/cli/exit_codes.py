# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Process exit codes for the ghasfix CLI.

Exit codes:
    0 - run completed (including nothing to fix or declined prompts)
    1 - fatal error: bad configuration, nothing found, or a run-fatal API error
    130 - cancelled by the operator at a prompt
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    ERROR = 1
    CANCELLED = 130
