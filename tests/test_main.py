"""Tests for application orchestration in the main module."""

import sys
from argparse import Namespace
from datetime import date
from pathlib import Path
from unittest.mock import Mock, patch

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devmetrics.config import Config
from devmetrics.errors import ApiError, AuthenticationError, ConfigurationError
from devmetrics.main import orchestrate_analysis
from devmetrics.models import AnalysisWindow, NotReady, Ready

WINDOW = AnalysisWindow(start=date(2024, 1, 1), end=date(2024, 12, 31))


def _args(asana_project=None) -> Namespace:
    return Namespace(
        owner="octo",
        repo="widgets",
        start_date="2024-01-01",
        end_date="2024-12-31",
        asana_project=asana_project,
        output_dir="output",
        verbose=False,
    )


def _config(tmp_path, asana_project_id=None) -> Config:
    return Config(
        owner="octo",
        repo="widgets",
        window=WINDOW,
        github_token="secret",
        output_dir=tmp_path,
        asana_project_id=asana_project_id,
        asana_token="asana-secret" if asana_project_id else None,
    )


def test_orchestrate_analysis_success(tmp_path, capsys):
    """Verify orchestration returns 0 and wires components correctly on success."""
    config = _config(tmp_path)
    github_client = Mock()
    github_client.commit_activity.return_value = Ready([])
    github_client.list_pull_requests.return_value = []
    github_client.list_deployments.return_value = []
    export_result = Mock()

    with patch("devmetrics.main.parse_args", return_value=_args()), patch(
        "devmetrics.main.load_config", return_value=config
    ) as load_config_mock, patch(
        "devmetrics.main.GitHubClient", return_value=github_client
    ) as github_ctor_mock, patch(
        "devmetrics.main.AsanaClient"
    ) as asana_ctor_mock, patch(
        "devmetrics.main.generate_report", return_value="REPORT"
    ), patch(
        "devmetrics.main.export_stats", return_value=export_result
    ) as export_mock, patch(
        "devmetrics.main.write_charts"
    ) as charts_mock:
        exit_code = orchestrate_analysis()

    assert exit_code == 0
    load_config_mock.assert_called_once_with(
        owner="octo",
        repo="widgets",
        start_date="2024-01-01",
        end_date="2024-12-31",
        asana_project_id=None,
        output_dir="output",
    )
    github_ctor_mock.assert_called_once_with(config=config)
    github_client.list_pull_requests.assert_called_once_with(WINDOW)
    github_client.list_deployments.assert_called_once_with(WINDOW)
    asana_ctor_mock.assert_not_called()
    export_mock.assert_called_once()
    assert export_mock.call_args.args[1] == WINDOW
    charts_mock.assert_called_once_with(export_result.charts, tmp_path / "charts")
    assert "REPORT" in capsys.readouterr().out


def test_orchestrate_analysis_fetches_tasks_when_asana_configured(tmp_path):
    """Verify the Asana source is used only when a project is configured."""
    config = _config(tmp_path, asana_project_id="1200")
    github_client = Mock()
    github_client.commit_activity.return_value = Ready([])
    github_client.list_pull_requests.return_value = []
    github_client.list_deployments.return_value = []
    asana_client = Mock()
    asana_client.list_completed_tasks.return_value = []

    with patch("devmetrics.main.parse_args", return_value=_args(asana_project="1200")), patch(
        "devmetrics.main.load_config", return_value=config
    ), patch("devmetrics.main.GitHubClient", return_value=github_client), patch(
        "devmetrics.main.AsanaClient", return_value=asana_client
    ), patch("devmetrics.main.compose_stats") as compose_mock, patch(
        "devmetrics.main.generate_report", return_value="REPORT"
    ), patch("devmetrics.main.export_stats"), patch("devmetrics.main.write_charts"):
        exit_code = orchestrate_analysis()

    assert exit_code == 0
    asana_client.list_completed_tasks.assert_called_once_with(WINDOW)
    assert compose_mock.call_args.kwargs["tasks"] == []


def test_orchestrate_analysis_degrades_when_commit_activity_never_ready(tmp_path):
    """Verify exhausted commit activity retries still complete the run with empty commits."""
    config = _config(tmp_path)
    github_client = Mock()
    github_client.commit_activity.return_value = NotReady()
    github_client.list_pull_requests.return_value = []
    github_client.list_deployments.return_value = []

    with patch("devmetrics.main.parse_args", return_value=_args()), patch(
        "devmetrics.main.load_config", return_value=config
    ), patch("devmetrics.main.GitHubClient", return_value=github_client), patch(
        "devmetrics.retry.time.sleep"
    ), patch("devmetrics.main.write_charts"):
        exit_code = orchestrate_analysis()

    assert exit_code == 0
    assert github_client.commit_activity.call_count == 5
    assert (tmp_path / "detailed-metrics-2024-01-01-2024-12-31.json").exists()


def test_orchestrate_analysis_configuration_error_returns_config_exit_code():
    """Verify invalid configuration returns the configuration exit code."""
    with patch("devmetrics.main.parse_args", return_value=_args()), patch(
        "devmetrics.main.load_config", side_effect=ConfigurationError("bad window")
    ):
        exit_code = orchestrate_analysis()

    assert exit_code == 2


def test_orchestrate_analysis_missing_token_returns_auth_error():
    """Verify missing token/authentication failures return the authentication exit code."""
    with patch("devmetrics.main.parse_args", return_value=_args()), patch(
        "devmetrics.main.load_config",
        side_effect=AuthenticationError("Missing required GitHub token."),
    ):
        exit_code = orchestrate_analysis()

    assert exit_code == 3


def test_orchestrate_analysis_api_error_returns_api_exit_code(tmp_path):
    """Verify GitHub API failures return the API error exit code."""
    github_client = Mock()
    github_client.commit_activity.side_effect = ApiError("GitHub API request failed")

    with patch("devmetrics.main.parse_args", return_value=_args()), patch(
        "devmetrics.main.load_config", return_value=_config(tmp_path)
    ), patch("devmetrics.main.GitHubClient", return_value=github_client):
        exit_code = orchestrate_analysis()

    assert exit_code == 4


def test_orchestrate_analysis_unexpected_error_returns_generic_exit_code():
    """Verify unexpected exceptions are mapped to the generic non-zero exit code."""
    with patch("devmetrics.main.parse_args", side_effect=RuntimeError("boom")):
        exit_code = orchestrate_analysis()

    assert exit_code == 1
