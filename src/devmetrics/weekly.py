"""Weekly bucketing of timestamped records.

Weeks start on Sunday at 00:00 UTC. Each record lands in exactly one bucket,
chosen by its governing timestamp: creation time for pull requests and
deployments, completion time for tasks.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from .models import Deployment, PullRequest, Task, WeekBucket

T = TypeVar("T")

_SECONDS_PER_HOUR = 3600.0


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def week_start(timestamp: datetime) -> date:
    """Return the Sunday that starts the UTC calendar week containing ``timestamp``."""
    day = _as_utc(timestamp).date()
    days_since_sunday = (day.weekday() + 1) % 7
    return day - timedelta(days=days_since_sunday)


def week_key(timestamp: datetime) -> str:
    """Return the ``YYYY-MM-DD`` key of the week containing ``timestamp``."""
    return week_start(timestamp).isoformat()


def aggregate(
    records: Iterable[T],
    timestamp_fn: Callable[[T], Optional[datetime]],
    update_fn: Callable[[WeekBucket, T], None],
) -> List[Tuple[str, WeekBucket]]:
    """Accumulate ``records`` into week buckets.

    Args:
        records: Records in any order.
        timestamp_fn: Returns the governing timestamp of a record. Records for
            which it returns ``None`` are skipped.
        update_fn: Mutates the record's bucket in place.

    Returns:
        ``(week_key, bucket)`` pairs sorted by ascending week key. Empty input
        yields an empty list.
    """
    buckets: Dict[str, WeekBucket] = {}

    for record in records:
        timestamp = timestamp_fn(record)
        if timestamp is None:
            continue

        key = week_key(timestamp)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = WeekBucket()
            buckets[key] = bucket
        update_fn(bucket, record)

    return sorted(buckets.items(), key=lambda item: item[0])


def merge_time_hours(pr: PullRequest) -> Optional[float]:
    """Hours from creation to merge, or ``None`` for unmerged pull requests."""
    if pr.mergedAt is None:
        return None
    return (_as_utc(pr.mergedAt) - _as_utc(pr.createdAt)).total_seconds() / _SECONDS_PER_HOUR


def update_pr_bucket(bucket: WeekBucket, pr: PullRequest) -> None:
    """Count ``pr`` and its merge time in ``bucket``."""
    bucket.prCount += 1

    if pr.is_bug:
        bucket.bugPRCount += 1
        if pr.mergedAt is not None:
            bucket.mergedBugPRCount += 1

    hours = merge_time_hours(pr)
    if hours is not None:
        bucket.mergedCount += 1
        bucket.totalMergeTimeHours += hours


def update_deployment_bucket(bucket: WeekBucket, deployment: Deployment) -> None:
    """Count ``deployment`` in ``bucket``."""
    bucket.deploymentCount += 1


def update_task_bucket(bucket: WeekBucket, task: Task) -> None:
    """Count ``task`` in ``bucket``, and as a bug when it is one."""
    bucket.taskCount += 1
    if task.isBug:
        bucket.bugCount += 1
