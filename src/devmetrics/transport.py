"""HTTP GET with retry for rate-limited and transiently failing REST APIs."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests

from .errors import ApiError

logger = logging.getLogger(__name__)

MAX_RETRIES = 5
MAX_BACKOFF_SECONDS = 30


def extract_backoff_seconds(response: requests.Response, attempt: int) -> int:
    """Compute exponential backoff seconds, honoring Retry-After when available."""
    retry_after_header = response.headers.get("Retry-After")
    if retry_after_header:
        try:
            retry_after_seconds = int(retry_after_header)
            return min(MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
        except ValueError:
            pass

    return min(MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))


def get_with_retry(
    session: requests.Session,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout_seconds: int = 30,
) -> requests.Response:
    """Execute a GET request, retrying connection errors and 429/5xx responses.

    Returns:
        The final response. Its status code may still be >= 400 when retries
        are exhausted or the error is not retryable; callers map it to errors.

    Raises:
        ApiError: If every attempt fails before a response is received.
    """
    last_error: Optional[Exception] = None

    for attempt in range(1, MAX_RETRIES + 1):
        try:
            response = session.get(url, params=params, timeout=timeout_seconds)
        except requests.RequestException as exc:
            last_error = exc
            if attempt == MAX_RETRIES:
                break
            time.sleep(min(MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
            continue

        status_code = response.status_code
        is_retryable = status_code == 429 or 500 <= status_code <= 599

        if is_retryable and attempt < MAX_RETRIES:
            backoff = extract_backoff_seconds(response, attempt)
            logger.debug(
                "Retrying request after retryable status",
                extra={"url": url, "status_code": status_code, "backoff_seconds": backoff},
            )
            time.sleep(backoff)
            continue

        return response

    raise ApiError(f"Request failed after retries: GET {url}") from last_error
