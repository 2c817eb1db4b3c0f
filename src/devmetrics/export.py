"""Report documents and chart descriptions derived from a ``StatsReport``."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from .models import AnalysisWindow
from .stats import StatsReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartPoint:
    """One point of a chart series: ISO week date and value."""

    x: str
    y: float


@dataclass(frozen=True)
class ChartSeries:
    """A labelled sequence of chart points."""

    label: str
    points: Tuple[ChartPoint, ...]
    dashed: bool = False


@dataclass(frozen=True)
class ChartSpec:
    """Declarative description of one chart: temporal x axis, quantitative y axis."""

    name: str
    title: str
    filename: str
    mark: str
    y_title: str
    series: Tuple[ChartSeries, ...]


@dataclass
class ExportResult:
    """Documents and chart descriptions from one export, plus the files written."""

    report_document: Dict[str, Any]
    weekly_document: Dict[str, Any]
    charts: Tuple[ChartSpec, ...]
    written: List[Path] = field(default_factory=list)


def build_report_document(report: StatsReport) -> Dict[str, Any]:
    """Serialize the full report; ``taskStats`` is omitted when no task source ran."""
    document = asdict(report)
    if document.get("taskStats") is None:
        document.pop("taskStats", None)
    return document


def build_weekly_document(report: StatsReport) -> Dict[str, Any]:
    """Return the weekly commit and pull request series as one document."""
    return {
        "commits": [asdict(week) for week in report.commitStats.weeklyCommitTrend],
        "pullRequests": [asdict(week) for week in report.prStats.weeklyMetrics],
    }


def _series(label: str, rows: Sequence[Any], y_field: str, dashed: bool = False) -> ChartSeries:
    points = tuple(ChartPoint(x=row.week, y=getattr(row, y_field)) for row in rows)
    return ChartSeries(label=label, points=points, dashed=dashed)


def build_chart_specs(report: StatsReport) -> Tuple[ChartSpec, ...]:
    """Project the weekly series of ``report`` into chart descriptions."""
    pr_weeks = report.prStats.weeklyMetrics
    bug_weeks = report.prStats.bugPRs.weeklyMetrics

    charts = [
        ChartSpec(
            name="pr-trends",
            title="PR Creation and Merge Trends",
            filename="pr-trends.svg",
            mark="line",
            y_title="Count",
            series=(
                _series("Total PRs", pr_weeks, "prCount"),
                _series("Merged PRs", pr_weeks, "mergedCount", dashed=True),
            ),
        ),
        ChartSpec(
            name="merge-time-trend",
            title="Average PR Merge Time Trend",
            filename="merge-time-trend.svg",
            mark="line",
            y_title="Average Time (hours)",
            series=(_series("Average Merge Time", pr_weeks, "averageMergeTime"),),
        ),
        ChartSpec(
            name="commit-activity",
            title="Weekly Commit Activity",
            filename="commit-activity.svg",
            mark="bar",
            y_title="Number of Commits",
            series=(_series("Commits", report.commitStats.weeklyCommitTrend, "commits"),),
        ),
        ChartSpec(
            name="bug-pr-trend",
            title="Bug PR Creation and Merge Trends",
            filename="bug-pr-trend.svg",
            mark="line",
            y_title="Count",
            series=(
                _series("Total Bug PRs", bug_weeks, "bugPRCount"),
                _series("Merged Bug PRs", bug_weeks, "mergedBugPRCount", dashed=True),
            ),
        ),
    ]

    if report.taskStats is not None:
        charts.append(
            ChartSpec(
                name="task-bug-trend",
                title="Bug Trend by Week",
                filename="task-bug-trend.svg",
                mark="line",
                y_title="Count",
                series=(
                    _series("Completed Tasks", report.taskStats.weeklyMetrics, "taskCount"),
                    _series("Bugs", report.taskStats.weeklyMetrics, "bugCount", dashed=True),
                ),
            )
        )

    return tuple(charts)


def _write_json(path: Path, document: Dict[str, Any]) -> None:
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")


def export_stats(report: StatsReport, window: AnalysisWindow, output_dir: Path) -> ExportResult:
    """Build report documents and chart descriptions and persist the documents.

    Writes ``detailed-metrics-<start>-<end>.json`` and
    ``weekly-metrics-<start>-<end>.json`` below ``output_dir``. Write failures
    are logged and leave ``written`` incomplete; they never raise.
    """
    result = ExportResult(
        report_document=build_report_document(report),
        weekly_document=build_weekly_document(report),
        charts=build_chart_specs(report),
    )

    targets = [
        (output_dir / f"detailed-metrics-{window.label}.json", result.report_document),
        (output_dir / f"weekly-metrics-{window.label}.json", result.weekly_document),
    ]

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        for path, document in targets:
            _write_json(path, document)
            result.written.append(path)
    except OSError as exc:
        logger.error(
            "Failed to export statistics documents to %s: %s",
            output_dir,
            exc,
            extra={"output_dir": str(output_dir), "error": str(exc)},
        )
    else:
        logger.info("Exported statistics documents", extra={"paths": [str(p) for p in result.written]})

    return result
