# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Operator interaction points used by the remediation workflow."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from ghasfix.core.exceptions import ConfigurationError
from ghasfix.forge.models import Finding, Repository

logger = logging.getLogger("ghasfix.remediation.prompts")

T = TypeVar("T")

BranchExistsCheck = Callable[[str], Awaitable[bool]]


@dataclass(frozen=True)
class Selection(Generic[T]):
    """Items picked from a multi-select; ``select_all`` marks the shortcut."""

    items: list[T] = field(default_factory=list)
    select_all: bool = False


class Prompter(Protocol):
    """Interactive input and progress output.

    Every method that waits for the operator raises
    :class:`~ghasfix.core.exceptions.CancelledError` when the operator aborts.
    """

    def progress(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def choose_target(self) -> tuple[str, str | None]: ...

    def select_repositories(self, repositories: list[Repository]) -> Selection[Repository]: ...

    def select_findings(self, findings: list[Finding]) -> Selection[Finding]: ...

    def confirm_commit(self, count: int) -> bool: ...

    async def choose_branch_name(self, proposed: str, exists: BranchExistsCheck) -> str: ...

    def confirm_review_request(self, count: int) -> bool: ...

    def review_title(self, proposed: str) -> str: ...


class HeadlessPrompter:
    """Prompter for unattended runs: reports through logging, never asks."""

    def progress(self, message: str) -> None:
        logger.info(message)

    def warn(self, message: str) -> None:
        logger.warning(message)

    def _refuse(self, what: str) -> ConfigurationError:
        return ConfigurationError(f"Interactive input required ({what}) but running headless")

    def choose_target(self) -> tuple[str, str | None]:
        raise self._refuse("repository selection")

    def select_repositories(self, repositories: list[Repository]) -> Selection[Repository]:
        raise self._refuse("repository selection")

    def select_findings(self, findings: list[Finding]) -> Selection[Finding]:
        raise self._refuse("alert selection")

    def confirm_commit(self, count: int) -> bool:
        raise self._refuse("commit confirmation")

    async def choose_branch_name(self, proposed: str, exists: BranchExistsCheck) -> str:
        raise self._refuse("branch name")

    def confirm_review_request(self, count: int) -> bool:
        raise self._refuse("pull request confirmation")

    def review_title(self, proposed: str) -> str:
        raise self._refuse("pull request title")
