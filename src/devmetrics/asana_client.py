"""Asana REST API client for the optional task-tracker source."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ApiError, AuthenticationError, ConfigurationError
from .github_client import parse_timestamp
from .models import AnalysisWindow, Page, Task
from .pagination import fetch_all
from .transport import get_with_retry

logger = logging.getLogger(__name__)


def is_bug_task(name: str) -> bool:
    """A task counts as a bug when its name mentions "bug" in any case."""
    return "bug" in name.lower()


class AsanaClient:
    """Small, typed client for listing the tasks of one Asana project."""

    _BASE_URL = "https://app.asana.com/api/1.0"
    _PAGE_SIZE = 100
    _TASK_FIELDS = "name,created_at,completed_at"

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        if not config.asana_project_id or not config.asana_token:
            raise ConfigurationError("Asana client requires both a project ID and a token.")

        self._project_id = config.asana_project_id
        self._timeout_seconds = timeout_seconds

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Authorization": f"Bearer {config.asana_token}",
            }
        )

    def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a GET request and return the JSON object body.

        Raises:
            AuthenticationError: If Asana rejects the token.
            ApiError: If the request fails or the body is not a JSON object.
        """
        url = f"{self._BASE_URL}/{path.lstrip('/')}"
        response = get_with_retry(self._session, url, params=params, timeout_seconds=self._timeout_seconds)

        if response.status_code in (401, 403):
            raise AuthenticationError(f"Asana rejected the configured token: GET {url}")

        if response.status_code >= 400:
            raise ApiError(
                f"Asana API request failed: GET {url} returned {response.status_code} - {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError(f"Asana API returned invalid JSON: GET {url}") from exc

        if not isinstance(payload, dict):
            raise ApiError(f"Asana API returned unexpected payload shape: GET {url}")

        return payload

    def _parse_task(self, item: Dict[str, Any]) -> Task:
        task_id = item.get("gid")
        if not task_id:
            raise ApiError(f"Asana task payload is missing required fields: payload={item}")

        name = str(item.get("name") or "")
        return Task(
            id=str(task_id),
            name=name,
            createdAt=parse_timestamp(item.get("created_at")),
            completedAt=parse_timestamp(item.get("completed_at")),
            isBug=is_bug_task(name),
        )

    def list_completed_tasks(self, window: AnalysisWindow) -> List[Task]:
        """List project tasks completed within ``window``.

        Asana paginates with opaque offset tokens; the token returned with page
        ``n`` is used to request page ``n + 1``.
        """
        offsets: Dict[int, Optional[str]] = {1: None}

        def task_page(page_number: int) -> Page[Task]:
            params: Dict[str, Any] = {"opt_fields": self._TASK_FIELDS, "limit": self._PAGE_SIZE}
            offset = offsets.get(page_number)
            if offset:
                params["offset"] = offset

            payload = self._get_json(f"projects/{self._project_id}/tasks", params)
            next_page = payload.get("next_page") or {}
            next_offset = next_page.get("offset")
            offsets[page_number + 1] = next_offset

            records = [self._parse_task(item) for item in payload.get("data") or []]
            return Page(records=records, has_more_pages=bool(next_offset))

        tasks = fetch_all(task_page, lambda task: window.contains(task.completedAt))
        logger.info(
            "Fetched completed Asana tasks",
            extra={"project_id": self._project_id, "tasks": len(tasks)},
        )
        return tasks
