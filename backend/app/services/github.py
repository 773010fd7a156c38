"""Async GitHub REST client.

Covers the three calls the competition flows need: pull request lookup,
pull request merge and org team membership. No caching and no retries;
every failure surfaces as ``ExternalServiceError``.
"""
from __future__ import annotations
from typing import Any
from urllib.parse import urlparse
import httpx
import structlog
from app.config import Settings
from app.errors import ExternalServiceError, ValidationError

log = structlog.get_logger()


def repo_path_from_url(url: str | None) -> str:
    """'https://github.com/acme/widgets.git' -> 'acme/widgets'"""
    if not url:
        raise ValidationError("Competition has no repository link")
    path = urlparse(url.strip()).path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    if path.count("/") != 1:
        raise ValidationError(f"Cannot derive repository from link: {url}")
    return path


class GitHubClient:
    def __init__(
        self,
        token: str | None = None,
        *,
        org: str = "",
        judge_team: str = "judge-repo1",
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.org = org
        self.judge_team = judge_team
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "GitHubClient":
        return cls(
            settings.github_admin_token or None,
            org=settings.github_org,
            judge_team=settings.github_judge_team,
            base_url=settings.github_api_url,
            timeout=settings.github_timeout_seconds,
            **kwargs,
        )

    async def _request(self, method: str, path: str, json: dict | None = None) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers, transport=self._transport) as client:
                r = await client.request(method, url, json=json)
        except httpx.HTTPError as e:
            log.warning("github_request_failed", method=method, path=path, error=str(e))
            raise ExternalServiceError(f"GitHub request failed: {e}") from e
        if r.status_code >= 400:
            detail = _error_message(r)
            log.warning("github_request_failed", method=method, path=path, status=r.status_code, error=detail)
            raise ExternalServiceError(
                f"GitHub {method} {path} returned {r.status_code}: {detail}",
                upstream_status=r.status_code,
            )
        return r

    async def get_pull_request(self, repo: str, number: int) -> dict[str, Any]:
        r = await self._request("GET", f"/repos/{repo}/pulls/{number}")
        return r.json()

    async def merge_pull_request(self, repo: str, number: int) -> dict[str, Any]:
        r = await self._request("PUT", f"/repos/{repo}/pulls/{number}/merge", json={})
        return r.json() if r.content else {}

    async def add_team_membership(self, username: str, team_slug: str | None = None) -> dict[str, Any]:
        if not self.org:
            raise ExternalServiceError("GitHub organization is not configured")
        slug = team_slug or self.judge_team
        r = await self._request("PUT", f"/orgs/{self.org}/teams/{slug}/memberships/{username}", json={})
        return r.json() if r.content else {}


def _error_message(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text[:200] or r.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return r.reason_phrase
