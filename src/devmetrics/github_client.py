"""GitHub REST API client for repository activity retrieval."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ApiError, AuthenticationError
from .models import (
    AnalysisWindow,
    CommitWeek,
    Deployment,
    Failed,
    NotReady,
    Page,
    PullRequest,
    ReadinessResult,
    Ready,
)
from .pagination import fetch_all
from .transport import get_with_retry


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse ISO8601 timestamps into timezone-aware UTC datetimes."""
    if not value:
        return None

    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class GitHubClient:
    """Small, typed client for the GitHub repository statistics APIs."""

    _BASE_URL = "https://api.github.com"
    _API_VERSION = "2022-11-28"
    _PAGE_SIZE = 100

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            config: Validated runtime configuration including owner/repo/token.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._repo_path = f"repos/{config.owner}/{config.repo}"

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {config.github_token}",
                "X-GitHub-Api-Version": self._API_VERSION,
            }
        )

    def _build_url(self, path: str) -> str:
        return f"{self._BASE_URL}/{path.lstrip('/')}"

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Execute a GET request and map error statuses to exceptions.

        Raises:
            AuthenticationError: If GitHub rejects the token (401, or 403 that
                is not a rate limit).
            ApiError: If the request repeatedly fails or returns HTTP >= 400.
        """
        url = self._build_url(path)
        response = get_with_retry(self._session, url, params=params, timeout_seconds=self._timeout_seconds)
        status_code = response.status_code

        if status_code == 401:
            raise AuthenticationError(f"GitHub rejected the configured token: GET {url}")

        if status_code == 403 and response.headers.get("X-RateLimit-Remaining") != "0":
            raise AuthenticationError(
                f"GitHub denied access to '{self._config.owner}/{self._config.repo}': GET {url}"
            )

        if status_code >= 400:
            raise ApiError(
                "GitHub API request failed: "
                f"GET {url} returned {status_code} - {response.text}"
            )

        return response

    def _get_page(self, path: str, params: Dict[str, Any]) -> Page[Dict[str, Any]]:
        response = self._request(path, params=params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError(f"GitHub API returned invalid JSON: GET {path}") from exc

        if not isinstance(payload, list):
            raise ApiError(f"GitHub API returned unexpected payload shape: GET {path}")

        return Page(records=payload, has_more_pages="next" in response.links)

    def commit_activity(self) -> ReadinessResult:
        """Fetch the last year of weekly commit activity.

        GitHub answers ``202 Accepted`` while it computes the statistics in the
        background; that is reported as ``NotReady``.
        """
        response = self._request(f"{self._repo_path}/stats/commit_activity")
        if response.status_code == 202:
            return NotReady("GitHub is computing commit statistics (202 status)")
        if response.status_code == 204:
            return Ready([])

        try:
            payload = response.json()
        except ValueError:
            return NotReady("GitHub returned a non-JSON commit activity body")

        if not isinstance(payload, list):
            return NotReady("GitHub returned commit activity that is not a list")

        weeks: List[CommitWeek] = []
        for item in payload:
            if not isinstance(item, dict):
                return Failed(f"GitHub commit activity entry is not an object: payload={item!r}")
            week = item.get("week")
            total = item.get("total")
            if week is None or total is None:
                return Failed(f"GitHub commit activity payload is missing required fields: payload={item}")
            weeks.append(CommitWeek(weekStartEpochSeconds=int(week), totalCommits=int(total)))

        return Ready(weeks)

    def _pull_request_page(self, page_number: int) -> Page[PullRequest]:
        page = self._get_page(
            f"{self._repo_path}/pulls",
            params={
                "state": "all",
                "sort": "created",
                "direction": "desc",
                "per_page": self._PAGE_SIZE,
                "page": page_number,
            },
        )

        pull_requests: List[PullRequest] = []
        for item in page.records:
            pr_id = item.get("number")
            created_at = parse_timestamp(item.get("created_at"))
            if pr_id is None or created_at is None:
                raise ApiError(
                    f"GitHub pull request payload is missing required fields: payload={item}"
                )

            labels = frozenset(
                label.get("name", "") for label in item.get("labels") or [] if label.get("name")
            )
            pull_requests.append(
                PullRequest(
                    id=int(pr_id),
                    createdAt=created_at,
                    mergedAt=parse_timestamp(item.get("merged_at")),
                    labels=labels,
                )
            )

        return Page(records=pull_requests, has_more_pages=page.has_more_pages)

    def _deployment_page(self, page_number: int) -> Page[Deployment]:
        page = self._get_page(
            f"{self._repo_path}/deployments",
            params={"per_page": self._PAGE_SIZE, "page": page_number},
        )

        deployments: List[Deployment] = []
        for item in page.records:
            deployment_id = item.get("id")
            created_at = parse_timestamp(item.get("created_at"))
            if deployment_id is None or created_at is None:
                raise ApiError(
                    f"GitHub deployment payload is missing required fields: payload={item}"
                )
            deployments.append(Deployment(id=int(deployment_id), createdAt=created_at))

        return Page(records=deployments, has_more_pages=page.has_more_pages)

    def list_pull_requests(self, window: AnalysisWindow) -> List[PullRequest]:
        """List pull requests created within ``window``, newest first."""
        return fetch_all(self._pull_request_page, lambda pr: window.contains(pr.createdAt))

    def list_deployments(self, window: AnalysisWindow) -> List[Deployment]:
        """List deployments created within ``window``."""
        return fetch_all(self._deployment_page, lambda deployment: window.contains(deployment.createdAt))
