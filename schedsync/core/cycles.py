"""Turn scheduler-detected dependency cycles into SchedulingIssues."""

import logging

from schedsync.lib.constants import REASON_CYCLE
from schedsync.lib.types import ScheduleEntry, SchedulingIssue, WorkItem, index_by_task_id

logger = logging.getLogger(__name__)


def extract_cycle_issues(
    entries: list[ScheduleEntry],
    items: dict[str, WorkItem],
    existing: list[SchedulingIssue],
) -> list[SchedulingIssue]:
    """Return existing plus a cycle issue per cyclic entry.

    Items that already have any issue are skipped: one explanation per item
    is enough, and the earlier one is usually the cause of the cycle report.
    """
    has_issue = {si.issue_ref for si in existing}
    by_task_id = index_by_task_id(items)
    result = list(existing)

    for entry in entries:
        if entry.is_package or not entry.cycle:
            continue
        item = by_task_id.get(entry.id)
        if item is None:
            logger.debug(f"Cycle reported for unknown task {entry.id}")
            continue
        if item.key in has_issue:
            continue
        result.append(SchedulingIssue.for_item(item, REASON_CYCLE, entry.cycle))
        has_issue.add(item.key)

    return result
