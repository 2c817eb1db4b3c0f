"""Tests for weekly bucketing."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devmetrics.models import Deployment, PullRequest, Task, WeekBucket
from devmetrics.weekly import (
    aggregate,
    update_deployment_bucket,
    update_pr_bucket,
    update_task_bucket,
    week_key,
    week_start,
)


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _pr(pr_id, created, merged=None, labels=()) -> PullRequest:
    return PullRequest(id=pr_id, createdAt=created, mergedAt=merged, labels=frozenset(labels))


def test_week_key_midweek_uses_preceding_sunday():
    """Verify a Wednesday buckets into the Sunday that starts its week."""
    assert week_key(_utc(2024, 6, 12, 15, 30)) == "2024-06-09"


def test_week_key_sunday_midnight_is_its_own_week():
    """Verify a record exactly at Sunday 00:00:00 UTC buckets into its own date."""
    assert week_key(_utc(2024, 6, 9, 0, 0, 0)) == "2024-06-09"


def test_week_key_saturday_end_of_day_stays_in_week():
    """Verify the last second of Saturday belongs to the week started the prior Sunday."""
    assert week_key(_utc(2024, 6, 15, 23, 59, 59)) == "2024-06-09"


def test_week_start_converts_offsets_to_utc():
    """Verify non-UTC timestamps are bucketed by their UTC date."""
    plus_five = timezone(timedelta(hours=5))
    # 2024-06-09 01:00 +05:00 is Saturday 2024-06-08 20:00 UTC.
    assert week_key(datetime(2024, 6, 9, 1, 0, tzinfo=plus_five)) == "2024-06-02"


def test_week_start_treats_naive_timestamps_as_utc():
    """Verify naive timestamps are interpreted as UTC."""
    assert week_start(datetime(2024, 6, 12, 8, 0)).isoformat() == "2024-06-09"


def test_aggregate_empty_input_returns_empty_sequence():
    """Verify aggregating no records yields an empty sequence."""
    assert aggregate([], lambda record: record.createdAt, update_pr_bucket) == []


def test_aggregate_sorts_weeks_and_counts_prs():
    """Verify out-of-order records produce ascending week buckets with PR counters."""
    prs = [
        _pr(1, _utc(2024, 6, 20, 9), merged=_utc(2024, 6, 20, 13), labels=["bug"]),
        _pr(2, _utc(2024, 6, 3, 9)),
        _pr(3, _utc(2024, 6, 18, 9), merged=_utc(2024, 6, 18, 11)),
        _pr(4, _utc(2024, 6, 17, 9), labels=["bug", "P1"]),
    ]

    buckets = aggregate(prs, lambda pr: pr.createdAt, update_pr_bucket)

    assert [key for key, _ in buckets] == ["2024-06-02", "2024-06-16"]
    first, second = buckets[0][1], buckets[1][1]
    assert first == WeekBucket(prCount=1)
    assert second.prCount == 3
    assert second.mergedCount == 2
    assert second.totalMergeTimeHours == pytest.approx(6.0)
    assert second.bugPRCount == 2
    assert second.mergedBugPRCount == 1


def test_aggregate_skips_records_without_governing_timestamp():
    """Verify open tasks without completion time are not bucketed."""
    tasks = [
        Task(id="1", name="Fix bug", createdAt=None, completedAt=_utc(2024, 6, 12), isBug=True),
        Task(id="2", name="Write docs", createdAt=None, completedAt=None, isBug=False),
        Task(id="3", name="Feature", createdAt=None, completedAt=_utc(2024, 6, 13), isBug=False),
    ]

    buckets = aggregate(tasks, lambda task: task.completedAt, update_task_bucket)

    assert len(buckets) == 1
    key, bucket = buckets[0]
    assert key == "2024-06-09"
    assert bucket.taskCount == 2
    assert bucket.bugCount == 1


def test_aggregate_counts_deployments_per_week():
    """Verify deployments are counted in the week of their creation."""
    deployments = [
        Deployment(id=1, createdAt=_utc(2024, 6, 9)),
        Deployment(id=2, createdAt=_utc(2024, 6, 8, 23, 59)),
        Deployment(id=3, createdAt=_utc(2024, 6, 10)),
    ]

    buckets = aggregate(deployments, lambda deployment: deployment.createdAt, update_deployment_bucket)

    assert [(key, bucket.deploymentCount) for key, bucket in buckets] == [
        ("2024-06-02", 1),
        ("2024-06-09", 2),
    ]
