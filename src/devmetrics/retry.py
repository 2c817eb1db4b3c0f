"""Retry helper for aggregates that remote sources compute lazily."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List

from .errors import ApiError, StatsNotReadyError
from .models import Failed, NotReady, ReadinessResult, Ready

logger = logging.getLogger(__name__)

_BACKOFF_STEP_SECONDS = 2


def compute_with_retry(
    compute_fn: Callable[[], ReadinessResult],
    max_attempts: int = 5,
) -> List[Any]:
    """Call ``compute_fn`` until it reports ``Ready`` or attempts run out.

    Attempt ``i`` (zero-based) that yields ``NotReady`` or raises
    ``StatsNotReadyError`` sleeps ``2 * (i + 1)`` seconds before the next call.

    Returns:
        The ready data as a list, or an empty list when every attempt reported
        that the aggregate is still being computed.

    Raises:
        ApiError: If ``compute_fn`` reports ``Failed``.
    """
    for attempt in range(max_attempts):
        try:
            result = compute_fn()
        except StatsNotReadyError as exc:
            logger.info(
                "Statistics are being computed by the remote source (attempt %d): %s",
                attempt + 1,
                exc,
                extra={"attempt": attempt + 1, "reason": str(exc)},
            )
        else:
            if isinstance(result, Ready):
                return list(result.data)
            if isinstance(result, Failed):
                raise ApiError(result.reason)
            if isinstance(result, NotReady):
                logger.info(
                    "Waiting for remote source to compute statistics (attempt %d): %s",
                    attempt + 1,
                    result.reason,
                    extra={"attempt": attempt + 1, "reason": result.reason},
                )
            else:
                raise ApiError(f"Unexpected readiness result: {result!r}")

        time.sleep(_BACKOFF_STEP_SECONDS * (attempt + 1))

    logger.warning(
        "Maximum retries (%d) reached; continuing with empty statistics",
        max_attempts,
        extra={"max_attempts": max_attempts},
    )
    return []
