# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Async HTTP client for the GitHub code scanning, git and pulls APIs."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

import httpx

from ghasfix import __version__
from ghasfix.core.constants import DEFAULT_BASE_BRANCH, DEFAULT_STATE, DEFAULT_TOOL
from ghasfix.core.exceptions import ForgeRequestError, RateLimitError
from ghasfix.forge.models import (
    AutofixCommit,
    AutofixStatusReport,
    Finding,
    Repository,
    ReviewRequest,
)

logger = logging.getLogger("ghasfix.forge.client")

API_URL = "https://api.github.com"
WEB_URL = "https://github.com"
API_VERSION = "2022-11-28"
_TIMEOUT = 30.0
_PER_PAGE = 100
_USER_AGENT = f"ghasfix/{__version__}"
_DEFAULT_RATE_LIMIT_WAIT = 60.0

ProgressCallback = Callable[[int], None]
SleepFunc = Callable[[float], Awaitable[None]]


def _is_rate_limited(resp: httpx.Response) -> bool:
    if resp.status_code == 429:
        return True
    if resp.status_code == 403:
        if resp.headers.get("x-ratelimit-remaining") == "0":
            return True
        return "rate limit" in resp.text.lower()
    return False


def _retry_delay(resp: httpx.Response, max_wait: float) -> float:
    """Seconds to wait before retrying a rate-limited request."""
    retry_after = resp.headers.get("retry-after")
    if retry_after is not None:
        try:
            return min(max(float(retry_after), 0.0), max_wait)
        except ValueError:
            pass
    reset = resp.headers.get("x-ratelimit-reset")
    if reset is not None:
        try:
            return min(max(float(reset) - time.time(), 0.0) + 1.0, max_wait)
        except ValueError:
            pass
    return min(_DEFAULT_RATE_LIMIT_WAIT, max_wait)


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return resp.text[:200]


def _check_response(resp: httpx.Response, context: str = "") -> None:
    """Raise a typed error for non-2xx responses."""
    if resp.is_success:
        return
    msg = f"{context}: HTTP {resp.status_code}" if context else f"HTTP {resp.status_code}"
    detail = _error_message(resp)
    if detail:
        msg = f"{msg} - {detail}"
    if _is_rate_limited(resp):
        raise RateLimitError(msg, status_code=resp.status_code)
    raise ForgeRequestError(msg, status_code=resp.status_code)


class GitHubClient:
    """Async client for the GitHub REST API.

    Parameters
    ----------
    token:
        Personal access token used as a bearer token.
    api_url:
        Override the API base URL (GitHub Enterprise Server, tests).
    web_url:
        Base URL used to build browser links such as comparison pages.
    timeout:
        HTTP timeout in seconds.
    rate_limit_max_wait:
        Upper bound for the single wait performed when rate limited.
    sleep:
        Coroutine used to wait before a rate-limit retry.
    """

    def __init__(
        self,
        token: str,
        api_url: str = API_URL,
        web_url: str = WEB_URL,
        timeout: float = _TIMEOUT,
        rate_limit_max_wait: float = _DEFAULT_RATE_LIMIT_WAIT,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.web_url = web_url.rstrip("/")
        self.timeout = timeout
        self.rate_limit_max_wait = rate_limit_max_wait
        self._sleep = sleep

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self.token}",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": _USER_AGENT,
            },
        )

    def _url(self, path: str) -> str:
        return f"{self.api_url}/{path.lstrip('/')}"

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        context: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, waiting out one rate-limit response."""
        logger.debug("%s %s", method, url)
        try:
            resp = await client.request(method, url, **kwargs)
            if _is_rate_limited(resp):
                delay = _retry_delay(resp, self.rate_limit_max_wait)
                logger.warning("Rate limit hit for %s; retrying after %.0f seconds", context, delay)
                await self._sleep(delay)
                resp = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise ForgeRequestError(f"{context}: {exc}") from exc

        _check_response(resp, context)
        return resp

    async def _paginate(
        self,
        path: str,
        params: dict[str, Any],
        context: str,
        progress: ProgressCallback | None = None,
    ) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        url: str | None = self._url(path)
        query: dict[str, Any] | None = {**params, "per_page": _PER_PAGE}

        async with self._client() as client:
            while url:
                resp = await self._request(client, "GET", url, context, params=query)
                items.extend(resp.json())
                if progress is not None:
                    progress(len(items))
                # The next link already carries the query string.
                url = resp.links.get("next", {}).get("url")
                query = None

        return items

    # ------------------------------------------------------------------
    # Code scanning alerts
    # ------------------------------------------------------------------

    async def list_findings(
        self,
        org: str,
        repo: str | None = None,
        *,
        state: str = DEFAULT_STATE,
        tool: str = DEFAULT_TOOL,
        progress: ProgressCallback | None = None,
    ) -> list[Finding]:
        """List code scanning alerts for one repository or a whole organization."""
        params = {"state": state, "tool_name": tool}
        if repo:
            path = f"repos/{org}/{repo}/code-scanning/alerts"
            context = f"list alerts for {org}/{repo}"
        else:
            path = f"orgs/{org}/code-scanning/alerts"
            context = f"list alerts for organization {org}"

        data = await self._paginate(path, params, context, progress)
        return [Finding.model_validate(item) for item in data]

    async def list_repositories(
        self,
        org: str,
        *,
        progress: ProgressCallback | None = None,
    ) -> list[Repository]:
        """List repositories in *org*, most recently updated first."""
        params = {"type": "all", "sort": "updated", "direction": "desc"}
        data = await self._paginate(
            f"orgs/{org}/repos", params, f"list repositories for {org}", progress
        )
        return [Repository.model_validate(item) for item in data]

    # ------------------------------------------------------------------
    # Autofix
    # ------------------------------------------------------------------

    def _autofix_path(self, org: str, repo: str, number: int) -> str:
        return f"repos/{org}/{repo}/code-scanning/alerts/{number}/autofix"

    async def request_fix(self, org: str, repo: str, number: int) -> AutofixStatusReport:
        """Ask the autofix service to generate a fix for alert *number*."""
        async with self._client() as client:
            resp = await self._request(
                client,
                "POST",
                self._url(self._autofix_path(org, repo, number)),
                f"create autofix for {org}/{repo}#{number}",
            )
        return AutofixStatusReport.model_validate(resp.json())

    async def get_fix_status(self, org: str, repo: str, number: int) -> AutofixStatusReport:
        async with self._client() as client:
            resp = await self._request(
                client,
                "GET",
                self._url(self._autofix_path(org, repo, number)),
                f"get autofix status for {org}/{repo}#{number}",
            )
        return AutofixStatusReport.model_validate(resp.json())

    async def commit_fix(self, org: str, repo: str, number: int) -> AutofixCommit:
        """Commit a generated autofix; the service picks the target ref."""
        async with self._client() as client:
            resp = await self._request(
                client,
                "POST",
                self._url(f"{self._autofix_path(org, repo, number)}/commits"),
                f"commit autofix for {org}/{repo}#{number}",
                json={},
            )
        return AutofixCommit.model_validate(resp.json())

    # ------------------------------------------------------------------
    # Branches and merges
    # ------------------------------------------------------------------

    async def get_default_branch(self, org: str, repo: str) -> str:
        async with self._client() as client:
            resp = await self._request(
                client, "GET", self._url(f"repos/{org}/{repo}"), f"get repository {org}/{repo}"
            )
        return resp.json().get("default_branch") or DEFAULT_BASE_BRANCH

    async def branch_exists(self, org: str, repo: str, name: str) -> bool:
        """Return whether branch *name* exists. Errors other than 404 propagate."""
        try:
            async with self._client() as client:
                await self._request(
                    client,
                    "GET",
                    self._url(f"repos/{org}/{repo}/git/ref/heads/{quote(name)}"),
                    f"get branch {name}",
                )
        except ForgeRequestError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    async def create_branch(
        self,
        org: str,
        repo: str,
        name: str,
        base: str | None = None,
    ) -> str:
        """Create *name* from the tip of *base* (default branch when omitted).

        Returns the commit SHA the branch points at.
        """
        base_branch = base or await self.get_default_branch(org, repo)
        async with self._client() as client:
            ref_resp = await self._request(
                client,
                "GET",
                self._url(f"repos/{org}/{repo}/git/ref/heads/{quote(base_branch)}"),
                f"get branch {base_branch}",
            )
            sha = ref_resp.json()["object"]["sha"]
            await self._request(
                client,
                "POST",
                self._url(f"repos/{org}/{repo}/git/refs"),
                f"create branch {name}",
                json={"ref": f"refs/heads/{name}", "sha": sha},
            )
        logger.info("Created branch %s on %s/%s from %s", name, org, repo, base_branch)
        return sha

    async def merge_branch(self, org: str, repo: str, base: str, head: str) -> None:
        """Merge *head* into *base*."""
        async with self._client() as client:
            await self._request(
                client,
                "POST",
                self._url(f"repos/{org}/{repo}/merges"),
                f"merge {head} into {base}",
                json={"base": base, "head": head},
            )

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    async def open_review_request(
        self,
        org: str,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str = DEFAULT_BASE_BRANCH,
    ) -> ReviewRequest:
        async with self._client() as client:
            resp = await self._request(
                client,
                "POST",
                self._url(f"repos/{org}/{repo}/pulls"),
                f"create pull request for {head}",
                json={"title": title, "body": body, "head": head, "base": base},
            )
        return ReviewRequest.model_validate(resp.json())

    def compare_url(self, org: str, repo: str, branch: str, base: str | None = None) -> str:
        """Browser link for opening a pull request by hand."""
        target = f"{base}...{branch}" if base else branch
        return f"{self.web_url}/{org}/{repo}/compare/{target}"
