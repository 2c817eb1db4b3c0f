"""Command-line argument parsing for the development metrics analyzer."""

from __future__ import annotations

import argparse
import os
from datetime import date
from typing import Optional, Sequence


def _iso_date(value: str) -> str:
    """Validate an ISO ``YYYY-MM-DD`` CLI value.

    Args:
        value: Raw command-line argument value.

    Returns:
        The value unchanged.

    Raises:
        argparse.ArgumentTypeError: If value is not an ISO date.
    """
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a date in YYYY-MM-DD format") from exc

    return value


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for metrics generation.

    Every option falls back to an environment variable so the analyzer can be
    configured entirely through the environment.

    Returns:
        Parsed CLI arguments containing repository identity, analysis window,
        optional Asana project, output directory and verbosity.
    """
    parser = argparse.ArgumentParser(
        prog="dev-metrics",
        description=(
            "Generate weekly development metrics (commits, pull requests, "
            "deployments and optional Asana tasks) for a GitHub repository."
        ),
    )

    parser.add_argument(
        "--owner",
        default=os.getenv("GITHUB_OWNER"),
        help="GitHub repository owner (default: $GITHUB_OWNER).",
    )
    parser.add_argument(
        "--repo",
        default=os.getenv("GITHUB_REPO"),
        help="GitHub repository name (default: $GITHUB_REPO).",
    )
    parser.add_argument(
        "--start-date",
        type=_iso_date,
        default=os.getenv("START_DATE") or None,
        help="First day of the analysis window (default: $START_DATE, or one year ago).",
    )
    parser.add_argument(
        "--end-date",
        type=_iso_date,
        default=os.getenv("END_DATE") or None,
        help="Last day of the analysis window (default: $END_DATE, or today).",
    )
    parser.add_argument(
        "--asana-project",
        default=os.getenv("ASANA_PROJECT_ID") or None,
        help="Optional Asana project ID for task and bug metrics (default: $ASANA_PROJECT_ID).",
    )
    parser.add_argument(
        "--output-dir",
        default=os.getenv("OUTPUT_DIR") or "output",
        help="Directory for report documents and charts (default: $OUTPUT_DIR or 'output').",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser.parse_args(argv)
