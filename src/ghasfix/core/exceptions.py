# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Custom exception hierarchy for ghasfix."""


class GhasfixError(Exception):
    """Base exception for all ghasfix errors."""


class ConfigurationError(GhasfixError):
    """Invalid, missing, or conflicting configuration."""


class NotFoundError(GhasfixError):
    """The requested scope or selection resolved to nothing."""


class ForgeRequestError(GhasfixError):
    """A GitHub API request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(ForgeRequestError):
    """The API kept rate limiting after the allowed retry."""


class CancelledError(GhasfixError):
    """The operator aborted an interactive prompt."""


def describe_error(exc: BaseException) -> str:
    """Return the one-line message shown to operators for *exc*."""
    if isinstance(exc, ForgeRequestError):
        return f"Request Error({exc.status_code}) - {exc}"
    return f"Error - {exc}"
