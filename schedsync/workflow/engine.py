"""Sync engine: fetch, schedule, reconcile, write.

plan_sync() is the pure part of a run and needs nothing but a store and a
schedule function. sync_flow() wraps it with the GitHub and scheduler I/O
as a Prefect flow.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import Callable

from prefect import flow

from schedsync.core import (
    PrivacyFilter,
    detect_at_risk_issues,
    extract_cycle_issues,
    group_by_ref,
    merge_scheduling_issues,
    prepare_updates,
    sort_scheduling_issues,
    unschedulable_refs,
    work_items_to_tasks,
)
from schedsync.lib.config import SyncConfig
from schedsync.lib.constants import DATE_FORMAT, EXIT_ERROR, EXIT_OK
from schedsync.lib.github import GitHubClient, GitHubError
from schedsync.lib.types import DateUpdate, ScheduleEntry, SchedulingIssue, Task, User, WorkItem
from schedsync.lib.urls import GitHubTarget
from schedsync.workflow.scheduler import SchedulerError
from schedsync.workflow.tasks import task_apply_update, task_fetch, task_schedule, task_sync_comment

logger = logging.getLogger(__name__)

ScheduleFn = Callable[[list[Task], list[User]], list[ScheduleEntry]]


@dataclass
class SyncPlan:
    updates: list[DateUpdate] = field(default_factory=list)
    issues: list[SchedulingIssue] = field(default_factory=list)


def plan_sync(
    items: dict[str, WorkItem],
    schedule_fn: ScheduleFn,
    privacy: PrivacyFilter | None = None,
) -> SyncPlan:
    """Compute the writes and diagnostics for one run.

    Diagnostics from conversion and cycle detection block date writes for
    their items; at-risk diagnostics are added afterwards and don't.
    """
    tasks, users, issues = work_items_to_tasks(items, privacy)
    entries = schedule_fn(tasks, users)
    issues = extract_cycle_issues(entries, items, issues)
    updates = prepare_updates(entries, items, unschedulable_refs(issues))
    issues = merge_scheduling_issues(issues, detect_at_risk_issues(updates, items))
    return SyncPlan(updates=updates, issues=sort_scheduling_issues(issues))


def _fmt_date(value) -> str:
    return value.strftime(DATE_FORMAT) if value is not None else "-"


def _describe(owner: str, repo: str, number: int | None, title: str, privacy: PrivacyFilter) -> str:
    if number is None:
        return f"draft {title}".rstrip()
    ref = privacy.redact_ref(owner, repo, number)
    title = privacy.redact_title(owner, repo, title)
    return f"{ref} {title}".rstrip()


def format_update(update: DateUpdate, privacy: PrivacyFilter) -> str:
    label = _describe(update.owner, update.repo, update.issue_num, update.name, privacy)
    if update.clear_dates:
        return f"  {label}: clear ({update.clear_reason})"
    return (
        f"  {label}: start {_fmt_date(update.expected_start)}, "
        f"completion {_fmt_date(update.expected_completion)}, "
        f"98% {_fmt_date(update.completion_98)}"
    )


def format_issue(si: SchedulingIssue, privacy: PrivacyFilter) -> str:
    label = _describe(si.owner, si.repo, si.issue_num, "", privacy)
    details = privacy.redact_scheduling_issue(si).details
    suffix = f": {'; '.join(details)}" if details else ""
    return f"  {label}: {si.reason}{suffix}"


def print_summary(plan: SyncPlan, privacy: PrivacyFilter, dry_run: bool = False) -> None:
    verb = "Would update" if dry_run else "Updating"
    if plan.updates:
        print(f"{verb} {len(plan.updates)} item(s):")
        for update in plan.updates:
            print(format_update(update, privacy))
    else:
        print("All project dates are up to date")

    if plan.issues:
        print(f"\n{len(plan.issues)} scheduling issue(s):")
        for si in plan.issues:
            print(format_issue(si, privacy))


def sync_comments(
    client: GitHubClient,
    items: dict[str, WorkItem],
    issues: list[SchedulingIssue],
    privacy: PrivacyFilter,
) -> int:
    """Bring every open issue's scheduling comment in line with its diagnostics.

    Returns the number of issues whose comment could not be synced.
    """
    grouped = group_by_ref(issues)
    failures = 0
    for item in items.values():
        if item.is_draft:
            continue
        item_issues = grouped.get(item.key, [])
        if not item_issues and item.is_closed:
            continue
        try:
            outcome = task_sync_comment(client, item.owner, item.repo, item.number, item_issues, privacy)
        except GitHubError as e:
            failures += 1
            logger.warning(f"Failed to sync scheduling comment on {item.task_id}: {e}")
            continue
        if outcome != "unchanged":
            logger.info(f"Scheduling comment {outcome} on {item.task_id}")
    return failures


@flow(name="schedsync-sync")
def sync_flow(target: GitHubTarget, config: SyncConfig, dry_run: bool = False, comments: bool = False) -> int:
    """Run one sync for target. Returns the process exit code."""
    client = GitHubClient(token=config.github_token, timeout=config.gh_timeout)

    try:
        fetched = task_fetch(client, target, config.field_names)
    except GitHubError as e:
        print(f"Error: failed to fetch project items: {e}", file=sys.stderr)
        return EXIT_ERROR

    if not fetched.projects:
        if target.is_issue:
            print(f"{target.owner}/{target.repo}#{target.issue_num} is not in any project, nothing to schedule")
        else:
            print(f"{target.owner}/{target.repo} has no linked projects, nothing to schedule")
        return EXIT_OK

    if fetched.inaccessible:
        print(f"Skipped {len(fetched.inaccessible)} inaccessible item(s):")
        for title in fetched.inaccessible:
            print(f"  {title}")

    if not fetched.items:
        print("No schedulable items found")
        return EXIT_OK

    privacy = PrivacyFilter(config.current_repo, fetched.items)

    def schedule(tasks: list[Task], users: list[User]) -> list[ScheduleEntry]:
        return task_schedule(tasks, users, config.scheduler_command, config.scheduler_timeout)

    try:
        plan = plan_sync(fetched.items, schedule, privacy)
    except SchedulerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    print_summary(plan, privacy, dry_run)
    if dry_run:
        return EXIT_OK

    failures = 0
    for update in plan.updates:
        failures += task_apply_update(update, client, config.field_names)

    if comments:
        failures += sync_comments(client, fetched.items, plan.issues, privacy)

    if failures:
        print(f"\n{failures} write(s) failed, see log for details", file=sys.stderr)
    return EXIT_OK
