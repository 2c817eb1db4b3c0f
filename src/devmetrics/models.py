"""Domain models for development metrics processing.

These dataclasses intentionally model only the subset of API payload fields that
are required for weekly aggregation and statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, FrozenSet, Generic, List, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(slots=True)
class CommitWeek:
    """One week of repository commit activity."""

    weekStartEpochSeconds: int
    totalCommits: int


@dataclass(slots=True)
class PullRequest:
    """Represents the minimal pull request data required for weekly metrics."""

    id: int
    createdAt: datetime
    mergedAt: Optional[datetime]
    labels: FrozenSet[str] = frozenset()

    @property
    def is_bug(self) -> bool:
        return "bug" in self.labels


@dataclass(slots=True)
class Deployment:
    """Represents a deployment record."""

    id: int
    createdAt: datetime


@dataclass(slots=True)
class Task:
    """Represents a task-tracker item; ``completedAt`` is ``None`` while open."""

    id: str
    name: str
    createdAt: Optional[datetime]
    completedAt: Optional[datetime]
    isBug: bool


@dataclass(slots=True)
class WeekBucket:
    """Per-week counters accumulated by the weekly aggregator."""

    prCount: int = 0
    mergedCount: int = 0
    totalMergeTimeHours: float = 0.0
    bugPRCount: int = 0
    mergedBugPRCount: int = 0
    deploymentCount: int = 0
    taskCount: int = 0
    bugCount: int = 0


@dataclass(slots=True)
class Page(Generic[T]):
    """One page of records returned by a paged data source."""

    records: List[T] = field(default_factory=list)
    has_more_pages: bool = False


@dataclass(frozen=True)
class Ready:
    """A lazily-computed aggregate that is available."""

    data: List[Any]


@dataclass(frozen=True)
class NotReady:
    """A lazily-computed aggregate that the source is still building."""

    reason: str = "computation in progress"


@dataclass(frozen=True)
class Failed:
    """A lazily-computed aggregate that could not be produced."""

    reason: str


ReadinessResult = Union[Ready, NotReady, Failed]


@dataclass(frozen=True)
class AnalysisWindow:
    """Inclusive calendar-day window ``[start, end]`` evaluated in UTC."""

    start: date
    end: date

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.start, time.min, tzinfo=timezone.utc)

    @property
    def end_before(self) -> datetime:
        """Exclusive upper bound: midnight UTC after ``end``."""
        return datetime.combine(self.end + timedelta(days=1), time.min, tzinfo=timezone.utc)

    @property
    def label(self) -> str:
        return f"{self.start.isoformat()}-{self.end.isoformat()}"

    def contains(self, timestamp: Optional[datetime]) -> bool:
        if timestamp is None:
            return False
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return self.start_at <= timestamp < self.end_before
