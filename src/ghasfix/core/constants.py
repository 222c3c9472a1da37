# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Enumerations, severity ranks, and default values."""

from enum import StrEnum


class Severity(StrEnum):
    """Security severity of a code scanning rule."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ToolSeverity(StrEnum):
    """Tool-native severity of a rule (independent of security severity)."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


class AlertState(StrEnum):
    OPEN = "open"
    DISMISSED = "dismissed"
    FIXED = "fixed"


class FixStatus(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    OUTDATED = "outdated"
    FAILED = "failed"


class ReviewRequestMode(StrEnum):
    """Whether a pull request is opened for the consolidation branch."""

    YES = "yes"
    NO = "no"
    ASK = "ask"


SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 3,
    Severity.HIGH: 2,
    Severity.MEDIUM: 1,
    Severity.LOW: 0,
}

# Alerts without a security severity sort and filter as low.
DEFAULT_SEVERITY = Severity.LOW
DEFAULT_TOOL = "CodeQL"
DEFAULT_STATE = AlertState.OPEN
DEFAULT_BRANCH_NAME = "autofixes"
DEFAULT_BASE_BRANCH = "main"
DEFAULT_POLL_ATTEMPTS = 60
DEFAULT_POLL_INTERVAL = 1.0

BRANCH_NAME_PATTERN = r"^[a-zA-Z0-9._/-]+$"
