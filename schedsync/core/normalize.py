"""
Work item to scheduler task conversion.

Builds the task list, the user list and the diagnostics for items that can
not be scheduled as they stand. Diagnostics never stop a task from being
handed to the scheduler; they only stop its dates from being written.
"""

import logging

from schedsync.core.packages import order_packages
from schedsync.core.privacy import PrivacyFilter
from schedsync.lib.constants import (
    DEFAULT_HIGH_ESTIMATE,
    DEFAULT_LOW_ESTIMATE,
    REASON_INACCESSIBLE_DEPENDENCY,
    REASON_INVALID_ESTIMATE,
    REASON_MISSING_DEPENDENCY,
    REASON_MISSING_ESTIMATE,
    REASON_ONHOLD_DEPENDENCY,
    UNASSIGNED_USER,
)
from schedsync.lib.types import SchedulingIssue, Task, User, WorkItem

logger = logging.getLogger(__name__)


def sorted_items(items: dict[str, WorkItem]) -> list[WorkItem]:
    """Items in display order; ties keep store order."""
    return sorted(items.values(), key=lambda item: item.order)


def _estimate_issues(item: WorkItem) -> list[SchedulingIssue]:
    issues = []
    missing = []
    if item.low_estimate is None:
        missing.append("Low Estimate")
    if item.high_estimate is None:
        missing.append("High Estimate")
    if missing:
        issues.append(SchedulingIssue.for_item(item, REASON_MISSING_ESTIMATE, missing))

    if (item.low_estimate is not None and item.high_estimate is not None
            and item.high_estimate < item.low_estimate):
        issues.append(SchedulingIssue.for_item(item, REASON_INVALID_ESTIMATE, [
            f"High Estimate ({item.high_estimate:.1f}) must be greater than "
            f"or equal to Low Estimate ({item.low_estimate:.1f})"
        ]))
    return issues


def _build_task(item: WorkItem, sequence: int, package_order: dict[str, int]) -> Task:
    task = Task(
        id=item.task_id,
        name=item.title,
        sequence=sequence,
        refs=[item.key],
        done=item.is_closed,
        on_hold=item.is_on_hold,
        user=item.assignee or UNASSIGNED_USER,
        package_id=item.milestone,
    )
    if item.low_estimate is not None:
        task.estimate_low = item.low_estimate
    if item.high_estimate is not None:
        task.estimate_high = item.high_estimate
    if item.low_estimate is None and item.high_estimate is None and not task.done:
        task.estimate_low = DEFAULT_LOW_ESTIMATE
        task.estimate_high = DEFAULT_HIGH_ESTIMATE

    task.package_order = package_order.get(item.milestone, len(package_order))
    return task


def work_items_to_tasks(
    items: dict[str, WorkItem],
    privacy: PrivacyFilter | None = None,
) -> tuple[list[Task], list[User], list[SchedulingIssue]]:
    """Convert the store into scheduler tasks, users and diagnostics.

    Args:
        items: Store of work items keyed by reference key
        privacy: If given, private repository details are redacted in log output

    Returns: (tasks, users, scheduling_issues)
    """
    ordered = sorted_items(items)
    package_order = order_packages(ordered)

    tasks = []
    user_ids: list[str] = []
    issues: list[SchedulingIssue] = []

    for sequence, item in enumerate(ordered):
        task = _build_task(item, sequence, package_order)
        if task.user not in user_ids:
            user_ids.append(task.user)

        missing_deps = []
        onhold_deps = []
        for blocker in item.blocked_by:
            dep_id = blocker.dep_id
            blocker_item = items.get(blocker.key)

            if blocker_item is None:
                missing_deps.append(dep_id)
                log_dep, log_repo = dep_id, f"{blocker.owner}/{blocker.repo}"
                if privacy is not None:
                    log_dep = privacy.redact_dep_id(dep_id)
                    log_repo = privacy.redact_repo(blocker.owner, blocker.repo)
                logger.warning(
                    f"Skipping dependency {log_dep} for {task.id}: task not accessible "
                    f"(grant access to {log_repo})"
                )
                continue

            if blocker_item.is_closed:
                logger.debug(f"Skipping dependency {dep_id} for {task.id}: blocker is closed")
                continue

            if blocker_item.is_on_hold:
                onhold_deps.append(dep_id)
                logger.debug(f"Dependency {dep_id} for {task.id} is on-hold")
                continue

            task.depends_on.append(dep_id)
            logger.debug(f"Added dependency: {task.id} depends on {dep_id}")

        if not task.on_hold and not task.done:
            if missing_deps:
                issues.append(SchedulingIssue.for_item(item, REASON_MISSING_DEPENDENCY, missing_deps))
            if onhold_deps:
                issues.append(SchedulingIssue.for_item(item, REASON_ONHOLD_DEPENDENCY, onhold_deps))
            if item.inaccessible_blockers > 0:
                issues.append(SchedulingIssue.for_item(item, REASON_INACCESSIBLE_DEPENDENCY, [
                    f"{item.inaccessible_blockers} blocker(s) from inaccessible repositories"
                ]))
            issues.extend(_estimate_issues(item))

        tasks.append(task)

    if not user_ids:
        user_ids.append(UNASSIGNED_USER)
    users = [User(id=user_id) for user_id in user_ids]

    return tasks, users, issues
