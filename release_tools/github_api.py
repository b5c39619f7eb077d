"""
Script: release_tools/github_api.py
What: Small GitHub REST client used by the permission and pull-request helpers.
Doing: Sends authenticated `httpx` requests and returns decoded JSON payloads.
Why: Keeps headers, timeouts, and error reporting in one place.
Goal: Give workflow helpers a narrow, testable view of the GitHub API.
"""

from __future__ import annotations

from typing import Any

import httpx

from release_tools.common import ReleaseToolError, optional_env


API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30.0
PAGE_SIZE = 100


class GitHubApiError(ReleaseToolError):
    """Raised when GitHub answers with an error status."""

    def __init__(self, message: str, *, status_code: int | None = None, url: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


def _headers(github_token: str | None = None) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": API_VERSION,
    }
    if github_token:
        headers["Authorization"] = f"Bearer {github_token}"
    return headers


def api_timeout() -> float:
    """Request timeout in seconds, overridable with `GITHUB_API_TIMEOUT`."""
    value = optional_env("GITHUB_API_TIMEOUT").strip()
    if not value:
        return DEFAULT_TIMEOUT
    try:
        return float(value)
    except ValueError as exc:
        raise ReleaseToolError(f"GITHUB_API_TIMEOUT must be a number of seconds, got {value!r}") from exc


def _decode(response: httpx.Response) -> Any:
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise GitHubApiError(
            f"GitHub API request failed: {response.request.method} {response.request.url} "
            f"-> {response.status_code}",
            status_code=response.status_code,
            url=str(response.request.url),
        ) from exc
    return response.json()


class GitHubClient:
    """
    Async GitHub client for one repository scan.

    Use as `async with GitHubClient(token) as client:` so the underlying
    connection pool is closed even when a request fails.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str = API_URL,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=_headers(token),
            timeout=timeout if timeout is not None else api_timeout(),
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        query = {"per_page": PAGE_SIZE}
        query.update(params or {})
        response = await self._client.get(path, params=query)
        return _decode(response)

    async def list_pull_requests(self, owner: str, repo: str, state: str = "open") -> list[dict]:
        return await self._get_json(f"/repos/{owner}/{repo}/pulls", {"state": state})

    async def list_issue_comments(self, owner: str, repo: str, issue_number: int) -> list[dict]:
        return await self._get_json(f"/repos/{owner}/{repo}/issues/{issue_number}/comments")

    async def list_reviews(self, owner: str, repo: str, pull_number: int) -> list[dict]:
        return await self._get_json(f"/repos/{owner}/{repo}/pulls/{pull_number}/reviews")

    async def list_timeline_events(self, owner: str, repo: str, issue_number: int) -> list[dict]:
        return await self._get_json(f"/repos/{owner}/{repo}/issues/{issue_number}/timeline")


def get_collaborator_permission(
    repository: str,
    user: str,
    github_token: str,
    *,
    base_url: str = API_URL,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """Return the permission level (`admin`, `write`, `read`, ...) of `user` on `repository`."""
    url = f"{base_url}/repos/{repository}/collaborators/{user}/permission"
    with httpx.Client(headers=_headers(github_token), timeout=api_timeout(), transport=transport) as client:
        payload = _decode(client.get(url))
    return str(payload.get("permission") or "") if isinstance(payload, dict) else ""
