"""Tests for HTTP retry behavior with mocked sessions."""

import sys
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import requests

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devmetrics import transport
from devmetrics.errors import ApiError
from devmetrics.transport import extract_backoff_seconds, get_with_retry


def _response(status_code: int, headers: dict | None = None):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    return response


def test_get_with_retry_retries_on_429_and_succeeds():
    """Verify a 429 response is retried after the Retry-After delay."""
    session = Mock()
    session.get.side_effect = [_response(429, headers={"Retry-After": "1"}), _response(200)]

    with patch("devmetrics.transport.time.sleep") as sleep_mock:
        response = get_with_retry(session, "https://example.test/items")

    assert response.status_code == 200
    assert session.get.call_count == 2
    sleep_mock.assert_called_once_with(1)


def test_get_with_retry_returns_last_5xx_after_max_retries():
    """Verify retryable server errors are retried and the final response is returned."""
    session = Mock()
    session.get.side_effect = [_response(503)] * transport.MAX_RETRIES

    with patch("devmetrics.transport.time.sleep") as sleep_mock:
        response = get_with_retry(session, "https://example.test/items")

    assert response.status_code == 503
    assert session.get.call_count == transport.MAX_RETRIES
    assert sleep_mock.call_count == transport.MAX_RETRIES - 1


def test_get_with_retry_does_not_retry_client_errors():
    """Verify non-retryable statuses are returned immediately."""
    session = Mock()
    session.get.return_value = _response(404)

    with patch("devmetrics.transport.time.sleep") as sleep_mock:
        response = get_with_retry(session, "https://example.test/items")

    assert response.status_code == 404
    assert session.get.call_count == 1
    sleep_mock.assert_not_called()


def test_get_with_retry_raises_api_error_when_connection_keeps_failing():
    """Verify repeated connection errors raise ApiError after the retry budget."""
    session = Mock()
    session.get.side_effect = requests.ConnectionError("unreachable")

    with patch("devmetrics.transport.time.sleep"):
        with pytest.raises(ApiError):
            get_with_retry(session, "https://example.test/items")

    assert session.get.call_count == transport.MAX_RETRIES


def test_extract_backoff_seconds_caps_and_falls_back_to_exponential():
    """Verify Retry-After is capped and invalid values use exponential backoff."""
    assert extract_backoff_seconds(_response(429, {"Retry-After": "120"}), 1) == transport.MAX_BACKOFF_SECONDS
    assert extract_backoff_seconds(_response(429, {"Retry-After": "soon"}), 3) == 4
    assert extract_backoff_seconds(_response(503), 1) == 1
