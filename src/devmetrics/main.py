"""Entry point orchestrating fetch, aggregation, reporting and chart export."""

from __future__ import annotations

import logging
import sys
from typing import List, Optional, Sequence

from .asana_client import AsanaClient
from .charts import write_charts
from .cli import parse_args
from .config import load_config
from .errors import ApiError, AuthenticationError, ConfigurationError
from .export import export_stats
from .github_client import GitHubClient
from .models import Task
from .retry import compute_with_retry
from .stats import compose_stats, generate_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4


def configure_logging(verbose: bool = False) -> None:
    """Configure root logging; ``verbose`` enables debug output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def orchestrate_analysis(argv: Optional[Sequence[str]] = None) -> int:
    """Run one analysis and map failures to process exit codes.

    Returns:
        ``0`` on success (including degraded runs), ``2`` for configuration
        errors, ``3`` for authentication errors, ``4`` for API errors and ``1``
        for anything unexpected.
    """
    try:
        args = parse_args(argv)
        configure_logging(args.verbose)

        config = load_config(
            owner=args.owner,
            repo=args.repo,
            start_date=args.start_date,
            end_date=args.end_date,
            asana_project_id=args.asana_project,
            output_dir=args.output_dir,
        )
        window = config.window

        github_client = GitHubClient(config=config)

        print(f"Analyzing {config.owner}/{config.repo} from {window.start} to {window.end}...")
        commit_weeks = compute_with_retry(github_client.commit_activity)
        pull_requests = github_client.list_pull_requests(window)
        deployments = github_client.list_deployments(window)

        tasks: Optional[List[Task]] = None
        if config.asana_project_id:
            tasks = AsanaClient(config=config).list_completed_tasks(window)

        report = compose_stats(commit_weeks, pull_requests, deployments, tasks=tasks)
        print(generate_report(report))

        result = export_stats(report, window, config.output_dir)
        write_charts(result.charts, config.output_dir / "charts")
        return EXIT_OK
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        logger.error("Authentication error: %s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION
    except ApiError as exc:
        logger.error("API error: %s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_API
    except Exception:
        logger.exception("Unexpected error while generating development metrics")
        print("ERROR: Unexpected failure; see log output for details.", file=sys.stderr)
        return EXIT_UNEXPECTED


def main() -> int:
    """Console script entry point."""
    return orchestrate_analysis()


if __name__ == "__main__":
    raise SystemExit(main())
