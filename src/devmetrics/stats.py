"""Statistics composition and text reporting for development metrics.

This module provides utilities for:
- Deriving totals, rates and recency windows from raw commit, pull request,
  deployment and task records.
- Building the immutable ``StatsReport`` tree consumed by the exporter.
- Rendering a human-readable summary of a ``StatsReport``.

Rates and averages that would divide by zero resolve to zero (``"0.00"`` for
string-formatted fields), so NaN and Infinity never reach a report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from .models import CommitWeek, Deployment, PullRequest, Task
from .weekly import (
    aggregate,
    merge_time_hours,
    update_deployment_bucket,
    update_pr_bucket,
    update_task_bucket,
)

logger = logging.getLogger(__name__)

WEEKS_PER_YEAR = 52
WEEKS_PER_MONTH = 4


@dataclass(frozen=True)
class WeeklyCommits:
    """Commit total for one week."""

    week: str
    commits: int


@dataclass(frozen=True)
class WeeklyPRMetrics:
    """Pull request counters and average merge time for one week."""

    week: str
    prCount: int
    mergedCount: int
    averageMergeTime: float
    bugPRCount: int
    mergedBugPRCount: int


@dataclass(frozen=True)
class WeeklyBugPRMetrics:
    """Bug-labelled pull request counters for one week."""

    week: str
    bugPRCount: int
    mergedBugPRCount: int
    averageMergeTime: float


@dataclass(frozen=True)
class WeeklyDeployments:
    """Deployment count for one week."""

    week: str
    deploymentCount: int


@dataclass(frozen=True)
class WeeklyTasks:
    """Completed task and bug counts for one week."""

    week: str
    taskCount: int
    bugCount: int


@dataclass(frozen=True)
class CommitStats:
    """Commit totals and weekly commit trend."""

    totalCommitsLastYear: int
    averageCommitsPerWeek: str
    weeklyCommitTrend: Tuple[WeeklyCommits, ...]


@dataclass(frozen=True)
class BugPRStats:
    """Totals, merge rate and weekly series for bug-labelled pull requests."""

    total: int
    merged: int
    mergeRate: str
    weeklyMetrics: Tuple[WeeklyBugPRMetrics, ...]


@dataclass(frozen=True)
class PRStats:
    """Pull request totals, rates, recency and weekly series."""

    totalPRs: int
    mergedPRs: int
    averagePRsPerWeek: float
    prMergeRate: str
    averageMergeTime: float
    recentPRCount: int
    recentPRsPerWeek: str
    weeklyMetrics: Tuple[WeeklyPRMetrics, ...]
    bugPRs: BugPRStats


@dataclass(frozen=True)
class DeploymentStats:
    """Deployment totals, recency and weekly series."""

    totalDeployments: int
    averageDeploymentsPerWeek: float
    recentDeploymentCount: int
    recentDeploymentsPerWeek: str
    weeklyMetrics: Tuple[WeeklyDeployments, ...]


@dataclass(frozen=True)
class TaskStats:
    """Completed task totals, bug rate and weekly series."""

    totalTasks: int
    totalBugs: int
    bugRate: str
    weeklyMetrics: Tuple[WeeklyTasks, ...]


@dataclass(frozen=True)
class StatsReport:
    """Derived metrics for one analysis run; never mutated after composition."""

    commitStats: CommitStats
    prStats: PRStats
    deploymentStats: DeploymentStats
    taskStats: Optional[TaskStats] = None


def safe_ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator``, or ``0.0`` when the denominator is zero."""
    if not denominator:
        return 0.0
    return numerator / denominator


def format_fixed(value: float) -> str:
    """Format a number with exactly two decimals."""
    return f"{value:.2f}"


def format_percentage(part: int, whole: int) -> str:
    """Format ``part`` as a percentage of ``whole`` with two decimals."""
    return format_fixed(safe_ratio(part, whole) * 100)


def _week_of_epoch(epoch_seconds: int) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).date().isoformat()


def _created_after(timestamp: datetime, cutoff: datetime) -> bool:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp > cutoff


def compose_commit_stats(commit_weeks: Sequence[CommitWeek]) -> CommitStats:
    """Summarize weekly commit activity; non-list input counts as no activity."""
    if not isinstance(commit_weeks, (list, tuple)):
        logger.warning(
            "Commit activity data is %s, not a list; treating it as empty",
            type(commit_weeks).__name__,
            extra={"received_type": type(commit_weeks).__name__},
        )
        commit_weeks = []

    trend = tuple(
        WeeklyCommits(week=_week_of_epoch(week.weekStartEpochSeconds), commits=week.totalCommits)
        for week in commit_weeks
    )
    total = sum(week.commits for week in trend)

    return CommitStats(
        totalCommitsLastYear=total,
        averageCommitsPerWeek=format_fixed(safe_ratio(total, len(trend))),
        weeklyCommitTrend=trend,
    )


def compose_pr_stats(pull_requests: Sequence[PullRequest], cutoff: datetime) -> PRStats:
    """Summarize pull requests; those created after ``cutoff`` count as recent."""
    weekly = tuple(
        WeeklyPRMetrics(
            week=week,
            prCount=bucket.prCount,
            mergedCount=bucket.mergedCount,
            averageMergeTime=round(safe_ratio(bucket.totalMergeTimeHours, bucket.mergedCount), 2),
            bugPRCount=bucket.bugPRCount,
            mergedBugPRCount=bucket.mergedBugPRCount,
        )
        for week, bucket in aggregate(pull_requests, lambda pr: pr.createdAt, update_pr_bucket)
    )

    merge_hours = [hours for hours in map(merge_time_hours, pull_requests) if hours is not None]
    total_prs = len(pull_requests)
    merged_prs = len(merge_hours)
    recent = sum(1 for pr in pull_requests if _created_after(pr.createdAt, cutoff))

    return PRStats(
        totalPRs=total_prs,
        mergedPRs=merged_prs,
        averagePRsPerWeek=total_prs / WEEKS_PER_YEAR,
        prMergeRate=format_percentage(merged_prs, total_prs),
        averageMergeTime=round(safe_ratio(sum(merge_hours), merged_prs), 2),
        recentPRCount=recent,
        recentPRsPerWeek=format_fixed(recent / WEEKS_PER_MONTH),
        weeklyMetrics=weekly,
        bugPRs=compose_bug_pr_stats(pull_requests),
    )


def compose_bug_pr_stats(pull_requests: Iterable[PullRequest]) -> BugPRStats:
    """Summarize the pull requests labelled ``bug``."""
    bug_prs = [pr for pr in pull_requests if pr.is_bug]
    merged = sum(1 for pr in bug_prs if pr.mergedAt is not None)

    weekly = tuple(
        WeeklyBugPRMetrics(
            week=week,
            bugPRCount=bucket.bugPRCount,
            mergedBugPRCount=bucket.mergedBugPRCount,
            averageMergeTime=round(safe_ratio(bucket.totalMergeTimeHours, bucket.mergedCount), 2),
        )
        for week, bucket in aggregate(bug_prs, lambda pr: pr.createdAt, update_pr_bucket)
    )

    return BugPRStats(
        total=len(bug_prs),
        merged=merged,
        mergeRate=format_percentage(merged, len(bug_prs)),
        weeklyMetrics=weekly,
    )


def compose_deployment_stats(deployments: Sequence[Deployment], cutoff: datetime) -> DeploymentStats:
    """Summarize deployments; those created after ``cutoff`` count as recent."""
    weekly = tuple(
        WeeklyDeployments(week=week, deploymentCount=bucket.deploymentCount)
        for week, bucket in aggregate(
            deployments, lambda deployment: deployment.createdAt, update_deployment_bucket
        )
    )
    recent = sum(1 for deployment in deployments if _created_after(deployment.createdAt, cutoff))

    return DeploymentStats(
        totalDeployments=len(deployments),
        averageDeploymentsPerWeek=len(deployments) / WEEKS_PER_YEAR,
        recentDeploymentCount=recent,
        recentDeploymentsPerWeek=format_fixed(recent / WEEKS_PER_MONTH),
        weeklyMetrics=weekly,
    )


def compose_task_stats(tasks: Sequence[Task]) -> TaskStats:
    """Summarize completed tasks bucketed by completion week."""
    weekly = tuple(
        WeeklyTasks(week=week, taskCount=bucket.taskCount, bugCount=bucket.bugCount)
        for week, bucket in aggregate(tasks, lambda task: task.completedAt, update_task_bucket)
    )
    total_bugs = sum(1 for task in tasks if task.isBug)

    return TaskStats(
        totalTasks=len(tasks),
        totalBugs=total_bugs,
        bugRate=format_percentage(total_bugs, len(tasks)),
        weeklyMetrics=weekly,
    )


def compose_stats(
    commit_weeks: Sequence[CommitWeek],
    pull_requests: Sequence[PullRequest],
    deployments: Sequence[Deployment],
    tasks: Optional[Sequence[Task]] = None,
    now: Optional[datetime] = None,
) -> StatsReport:
    """Compose the full ``StatsReport`` from raw records of one analysis run.

    Args:
        commit_weeks: Weekly commit activity; anything other than a list or
            tuple is treated as no activity.
        pull_requests: Pull requests already restricted to the analysis window.
        deployments: Deployments already restricted to the analysis window.
        tasks: Optional task-tracker items; ``taskStats`` is omitted when ``None``.
        now: Reference time for the one-month recency window (defaults to the
            current UTC time).

    Returns:
        An immutable ``StatsReport``.
    """
    reference = now or datetime.now(timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    cutoff = reference - relativedelta(months=1)

    report = StatsReport(
        commitStats=compose_commit_stats(commit_weeks),
        prStats=compose_pr_stats(pull_requests, cutoff),
        deploymentStats=compose_deployment_stats(deployments, cutoff),
        taskStats=compose_task_stats(tasks) if tasks is not None else None,
    )

    logger.info(
        "Composed statistics",
        extra={
            "commit_weeks": len(report.commitStats.weeklyCommitTrend),
            "prs_total": report.prStats.totalPRs,
            "deployments_total": report.deploymentStats.totalDeployments,
            "tasks_total": report.taskStats.totalTasks if report.taskStats else None,
        },
    )
    return report


def generate_report(report: StatsReport) -> str:
    """Generate a human-readable development efficiency summary.

    Args:
        report: Composed statistics.

    Returns:
        Formatted multi-line text report.
    """
    commit_stats = report.commitStats
    pr_stats = report.prStats
    bug_prs = pr_stats.bugPRs
    deployment_stats = report.deploymentStats

    lines: List[str] = [
        "Development Efficiency Report",
        "",
        "1. Commit Activity",
        f"   - Total commits in the last year: {commit_stats.totalCommitsLastYear}",
        f"   - Average commits per week: {commit_stats.averageCommitsPerWeek}",
        "",
        "2. Pull Request Metrics",
        f"   - Total PRs: {pr_stats.totalPRs}",
        f"   - Merged PRs: {pr_stats.mergedPRs}",
        f"   - PR merge rate: {pr_stats.prMergeRate}%",
        f"   - Average PRs per week: {format_fixed(pr_stats.averagePRsPerWeek)}",
        f"   - Average merge time: {format_fixed(pr_stats.averageMergeTime)} hours",
        f"   - Recent PR frequency (last month): {pr_stats.recentPRsPerWeek} PRs/week",
        "",
        "3. Bug PR Metrics",
        f"   - Total bug PRs: {bug_prs.total}",
        f"   - Merged bug PRs: {bug_prs.merged}",
        f"   - Bug PR merge rate: {bug_prs.mergeRate}%",
        "",
        "4. Deployment Metrics",
        f"   - Total deployments: {deployment_stats.totalDeployments}",
        f"   - Average deployments per week: {format_fixed(deployment_stats.averageDeploymentsPerWeek)}",
        "   - Recent deployment frequency (last month): "
        f"{deployment_stats.recentDeploymentsPerWeek} deployments/week",
    ]

    if report.taskStats is not None:
        lines.extend(
            [
                "",
                "5. Task Metrics",
                f"   - Completed tasks: {report.taskStats.totalTasks}",
                f"   - Bugs: {report.taskStats.totalBugs}",
                f"   - Bug rate: {report.taskStats.bugRate}%",
            ]
        )

    return "\n".join(lines)
