"""Configuration parsing and validation for the development metrics analyzer."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

from .errors import AuthenticationError, ConfigurationError
from .models import AnalysisWindow


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the analyzer."""

    owner: str
    repo: str
    window: AnalysisWindow
    github_token: str
    output_dir: Path
    asana_project_id: Optional[str] = None
    asana_token: Optional[str] = None


def _parse_date(name: str, value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid value for '{name}': expected an ISO date (YYYY-MM-DD), got {value!r}."
        ) from exc


def default_window(today: Optional[date] = None) -> AnalysisWindow:
    """Return the one-year window ending on ``today`` (UTC date when omitted)."""
    end = today or datetime.now(timezone.utc).date()
    try:
        start = end.replace(year=end.year - 1)
    except ValueError:
        # Feb 29 has no counterpart in the previous year.
        start = end.replace(year=end.year - 1, day=28)
    return AnalysisWindow(start=start, end=end)


def load_config(
    owner: Optional[str],
    repo: Optional[str],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    asana_project_id: Optional[str] = None,
    output_dir: str = "output",
) -> Config:
    """Build and validate application configuration.

    Tokens are read from the ``GITHUB_TOKEN`` and ``ASANA_TOKEN`` environment
    variables. When either window bound is omitted the window defaults to the
    year ending today.

    Raises:
        ConfigurationError: If the repository identity or window is invalid.
        AuthenticationError: If a required token is not configured.
    """
    owner = (owner or "").strip()
    repo = (repo or "").strip()
    if not owner or not repo:
        raise ConfigurationError(
            "Missing repository identity. Provide --owner/--repo or set "
            "'GITHUB_OWNER' and 'GITHUB_REPO'."
        )

    fallback = default_window()
    start = _parse_date("start_date", start_date) if start_date else fallback.start
    end = _parse_date("end_date", end_date) if end_date else fallback.end
    if start > end:
        raise ConfigurationError(
            f"Invalid analysis window: start date {start} is after end date {end}."
        )

    github_token: str = os.getenv("GITHUB_TOKEN", "").strip()
    if not github_token:
        raise AuthenticationError(
            "Missing required GitHub token. "
            "Set the 'GITHUB_TOKEN' environment variable before running the analyzer."
        )

    project_id = (asana_project_id or "").strip() or None
    asana_token: Optional[str] = None
    if project_id:
        asana_token = os.getenv("ASANA_TOKEN", "").strip()
        if not asana_token:
            raise AuthenticationError(
                "An Asana project was configured but no Asana token is available. "
                "Set the 'ASANA_TOKEN' environment variable."
            )

    return Config(
        owner=owner,
        repo=repo,
        window=AnalysisWindow(start=start, end=end),
        github_token=github_token,
        output_dir=Path(output_dir),
        asana_project_id=project_id,
        asana_token=asana_token,
    )
