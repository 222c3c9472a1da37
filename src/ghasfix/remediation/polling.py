# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Autofix status polling as an explicit state machine.

``advance`` is a pure transition function; ``poll_fix_status`` drives it with
an injectable sleep so it can run against a fake clock.

    Pending(n) --pending, n < ceiling--> Pending(n + 1)
    Pending(n) --pending, n >= ceiling--> AttemptsExhausted(n)
    Pending(n) --success--> Succeeded(n)
    Pending(n) --outdated--> Outdated(n)
    Pending(n) --anything else--> Failed(n, status, description)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ghasfix.core.constants import FixStatus
from ghasfix.forge.models import AutofixStatusReport


@dataclass(frozen=True)
class Pending:
    attempts: int = 0


@dataclass(frozen=True)
class Succeeded:
    attempts: int


@dataclass(frozen=True)
class Outdated:
    attempts: int


@dataclass(frozen=True)
class Failed:
    attempts: int
    status: str
    description: str | None = None


@dataclass(frozen=True)
class AttemptsExhausted:
    attempts: int


PollState = Pending | Succeeded | Outdated | Failed | AttemptsExhausted
Terminal = Succeeded | Outdated | Failed | AttemptsExhausted


def advance(state: Pending, report: AutofixStatusReport, max_attempts: int) -> PollState:
    """Return the state that follows *state* after observing *report*."""
    if report.status == FixStatus.SUCCESS:
        return Succeeded(state.attempts)
    if report.status == FixStatus.OUTDATED:
        return Outdated(state.attempts)
    if report.status != FixStatus.PENDING:
        return Failed(state.attempts, report.status, report.description)
    if state.attempts >= max_attempts:
        return AttemptsExhausted(state.attempts)
    return Pending(state.attempts + 1)


async def poll_fix_status(
    fetch: Callable[[], Awaitable[AutofixStatusReport]],
    *,
    max_attempts: int,
    interval: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_pending: Callable[[int], None] | None = None,
) -> Terminal:
    """Poll until the fix leaves ``pending`` or *max_attempts* re-polls are spent.

    Errors raised by *fetch* propagate to the caller.
    """
    state = Pending()
    report = await fetch()
    while True:
        following = advance(state, report, max_attempts)
        if not isinstance(following, Pending):
            return following
        if on_pending is not None:
            on_pending(following.attempts)
        await sleep(interval)
        report = await fetch()
        state = following
