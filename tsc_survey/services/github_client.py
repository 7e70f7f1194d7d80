"""Async client for the GitHub Issues REST API used as the submission store."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from tsc_survey.config import Settings, get_settings
from tsc_survey.utils.exceptions import ConfigurationError, UpstreamError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

ERROR_DETAIL_MAX_CHARS = 400
ISSUES_PER_PAGE = 100


class GitHubIssueClient:
    """HTTP client for listing, closing and creating issues in one repository."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        timeout: float = 15.0,
        user_agent: str = "tsc-event-survey",
        max_list_pages: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_list_pages = max_list_pages
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": user_agent,
        }
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def issues_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}/issues"

    async def __aenter__(self) -> "GitHubIssueClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        client = await self._ensure_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.error(f"GitHub {method} {path} timed out after {self._timeout}s")
            raise UpstreamUnavailableError(
                f"GitHub API unreachable: timed out after {self._timeout:g}s"
            ) from exc
        except httpx.TransportError as exc:
            logger.error(f"GitHub {method} {path} transport error: {exc}")
            raise UpstreamUnavailableError(f"GitHub API unreachable: {exc}") from exc

        if response.is_success:
            return response.json() if response.content else None

        text = response.text
        message = "GitHub API error"
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and (data.get("message") or data.get("error")):
            message = str(data.get("message") or data.get("error"))
        elif text:
            message = text[:ERROR_DETAIL_MAX_CHARS]

        logger.error(f"GitHub {method} {path} failed with {response.status_code}: {message}")
        raise UpstreamError(
            message,
            github_status=response.status_code,
            detail=text[:ERROR_DETAIL_MAX_CHARS],
        )

    async def list_open_issues(self) -> list[dict[str, Any]]:
        """Return open issues (pull requests excluded), following pagination."""
        issues: list[dict[str, Any]] = []
        for page in range(1, self._max_list_pages + 1):
            batch = await self._request(
                "GET",
                self.issues_path,
                params={"state": "open", "per_page": ISSUES_PER_PAGE, "page": page},
            )
            batch = batch or []
            issues.extend(item for item in batch if "pull_request" not in item)
            if len(batch) < ISSUES_PER_PAGE:
                break
        else:
            logger.warning(f"Stopped listing open issues after {self._max_list_pages} pages")
        return issues

    async def find_open_issues_by_title(self, title: str) -> list[dict[str, Any]]:
        """Open issues whose title matches ``title`` exactly."""
        return [issue for issue in await self.list_open_issues() if issue.get("title") == title]

    async def close_issue(self, number: int) -> dict[str, Any]:
        return await self._request("PATCH", f"{self.issues_path}/{number}", json={"state": "closed"})

    async def create_issue(self, title: str, body: str, labels: list[str] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": title, "body": body}
        if labels:
            payload["labels"] = list(labels)
        return await self._request("POST", self.issues_path, json=payload)


def build_issue_client(settings: Settings | None = None) -> GitHubIssueClient:
    """
    Build a client from configuration.

    Raises:
        ConfigurationError: when the token or repository coordinates are missing.
    """
    settings = settings or get_settings()
    missing = settings.missing_github_settings
    if missing:
        raise ConfigurationError(f"Missing env var: {', '.join(missing)}", missing=missing)
    return GitHubIssueClient(
        token=settings.github_token,
        owner=settings.github_owner,
        repo=settings.github_repo,
        base_url=settings.github_api_url,
        timeout=settings.github_timeout_seconds,
        user_agent=settings.github_user_agent,
        max_list_pages=settings.github_max_list_pages,
    )
