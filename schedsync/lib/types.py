"""
Shared data types for schedsync.

This module contains the dataclasses passed between the fetch layer, the
reconciliation core and the write layer, kept here to avoid circular imports.
"""

from dataclasses import dataclass, field
from datetime import datetime

from schedsync.lib.constants import (
    DEFAULT_WEEKDAY_HOURS,
    STATE_CLOSED,
    STATUS_ON_HOLD,
    VALID_CLEAR_REASONS,
)


def issue_key(owner: str, repo: str, number: int) -> str:
    """Store key for a real issue, e.g. github.com/octo/app/issues/12."""
    return f"github.com/{owner}/{repo}/issues/{number}"


def draft_key(project_item_id: str) -> str:
    """Store key (and task id) for a draft item, which has no number."""
    return f"draft:{project_item_id}"


def task_id_for(owner: str, repo: str, number: int) -> str:
    """Scheduler task id for a real issue, e.g. octo/app#12."""
    return f"{owner}/{repo}#{number}"


@dataclass(frozen=True)
class IssueRef:
    """A blocked-by/blocking edge endpoint."""
    owner: str
    repo: str
    number: int

    @property
    def key(self) -> str:
        return issue_key(self.owner, self.repo, self.number)

    @property
    def dep_id(self) -> str:
        return task_id_for(self.owner, self.repo, self.number)


@dataclass
class ProjectItemInfo:
    """Where a work item lives in a project, and the ids of its fields."""
    project_id: str
    item_id: str
    field_ids: dict[str, str] = field(default_factory=dict)


@dataclass
class WorkItem:
    """Snapshot of one project item (issue or draft) for a single run.

    Estimates and recorded dates are None when the field is unset; zero is a
    real value.
    """
    owner: str
    repo: str
    number: int | None
    title: str
    state: str = "open"
    assignee: str = ""
    milestone: str = ""
    milestone_due_date: datetime | None = None
    due_date: datetime | None = None
    low_estimate: float | None = None
    high_estimate: float | None = None
    scheduling_status: str = ""
    order: int = 0
    expected_start: datetime | None = None
    expected_completion: datetime | None = None
    completion_98: datetime | None = None
    is_draft: bool = False
    is_private: bool = False
    has_scheduling_dates: bool = False
    has_estimates: bool = False
    inaccessible_blockers: int = 0
    blocked_by: list[IssueRef] = field(default_factory=list)
    blocking: list[IssueRef] = field(default_factory=list)
    project: ProjectItemInfo | None = None
    project_item_id: str = ""

    @property
    def key(self) -> str:
        if self.is_draft:
            return draft_key(self.project_item_id)
        return issue_key(self.owner, self.repo, self.number)

    @property
    def task_id(self) -> str:
        if self.is_draft:
            return draft_key(self.project_item_id)
        return task_id_for(self.owner, self.repo, self.number)

    @property
    def repo_key(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def is_closed(self) -> bool:
        return self.state.lower() == STATE_CLOSED

    @property
    def is_on_hold(self) -> bool:
        """Drafts are always on hold; others only via Scheduling Status."""
        return self.is_draft or self.scheduling_status == STATUS_ON_HOLD


@dataclass
class Task:
    """Scheduler input derived from one work item."""
    id: str
    name: str
    sequence: int
    estimate_low: float = 0.0
    estimate_high: float = 0.0
    done: bool = False
    on_hold: bool = False
    user: str = ""
    package_id: str = ""
    package_order: int = 0
    depends_on: list[str] = field(default_factory=list)
    refs: list[str] = field(default_factory=list)


@dataclass
class User:
    """Scheduler resource with per-weekday working hours."""
    id: str
    monday_hours: float = DEFAULT_WEEKDAY_HOURS
    tuesday_hours: float = DEFAULT_WEEKDAY_HOURS
    wednesday_hours: float = DEFAULT_WEEKDAY_HOURS
    thursday_hours: float = DEFAULT_WEEKDAY_HOURS
    friday_hours: float = DEFAULT_WEEKDAY_HOURS
    saturday_hours: float = 0
    sunday_hours: float = 0


@dataclass
class ScheduleEntry:
    """One row of scheduler output."""
    id: str
    name: str = ""
    is_package: bool = False
    expected_start: datetime | None = None
    mean_completion: datetime | None = None
    completion_98: datetime | None = None
    cycle: list[str] = field(default_factory=list)


@dataclass
class SchedulingIssue:
    """Why a work item cannot be scheduled, or is at risk."""
    issue_ref: str
    issue_num: int | None
    owner: str
    repo: str
    reason: str
    details: list[str] = field(default_factory=list)

    @classmethod
    def for_item(cls, item: WorkItem, reason: str, details: list[str]) -> "SchedulingIssue":
        return cls(
            issue_ref=item.key,
            issue_num=item.number,
            owner=item.owner,
            repo=item.repo,
            reason=reason,
            details=list(details),
        )


@dataclass
class DateUpdate:
    """A write to apply to one work item's project fields.

    Either clear_dates is set (with clear_reason), or the three dates carry the
    values to write. Use clear() / set_dates() to build one.
    """
    owner: str
    repo: str
    issue_num: int | None
    name: str
    issue_ref: str
    project: ProjectItemInfo | None
    expected_start: datetime | None = None
    expected_completion: datetime | None = None
    completion_98: datetime | None = None
    clear_dates: bool = False
    clear_reason: str = ""

    def __post_init__(self):
        if self.clear_dates and self.clear_reason not in VALID_CLEAR_REASONS:
            raise ValueError(f"Invalid clear reason: {self.clear_reason!r}")
        if not self.clear_dates and self.clear_reason:
            raise ValueError("clear_reason given for a set-dates update")

    @property
    def repo_key(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def clear(cls, item: WorkItem, reason: str) -> "DateUpdate":
        return cls(
            owner=item.owner,
            repo=item.repo,
            issue_num=item.number,
            name=item.title,
            issue_ref=item.key,
            project=item.project,
            clear_dates=True,
            clear_reason=reason,
        )

    @classmethod
    def set_dates(cls, item: WorkItem, entry: ScheduleEntry) -> "DateUpdate":
        return cls(
            owner=item.owner,
            repo=item.repo,
            issue_num=item.number,
            name=entry.name or item.title,
            issue_ref=item.key,
            project=item.project,
            expected_start=entry.expected_start,
            expected_completion=entry.mean_completion,
            completion_98=entry.completion_98,
        )


def index_by_task_id(items: dict[str, WorkItem]) -> dict[str, WorkItem]:
    """Map scheduler task id -> work item."""
    return {item.task_id: item for item in items.values()}
