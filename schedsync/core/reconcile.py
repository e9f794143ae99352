"""
Date reconciliation between scheduler output and project fields.

prepare_updates() decides, for every work item, at most one write:

1. On-hold and closed items get their computed fields cleared (estimates are
   kept for on-hold items, cleared for closed ones).
2. Items with scheduling issues get their dates cleared.
3. Everything else gets the scheduler's dates, unless the recorded dates
   already match.

An item decided in an earlier pass is never looked at again, and nothing is
written when the recorded state already matches, so repeated runs are quiet.
"""

import logging
from datetime import date, datetime

from schedsync.core.normalize import sorted_items
from schedsync.lib.constants import CLEAR_CLOSED, CLEAR_ON_HOLD, CLEAR_UNSCHEDULABLE
from schedsync.lib.types import DateUpdate, ScheduleEntry, WorkItem, index_by_task_id

logger = logging.getLogger(__name__)


def as_date(value: datetime | date | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def same_date(existing: datetime | None, new: datetime | None) -> bool:
    """Compare calendar dates only. An unset field matches an absent value."""
    return as_date(existing) == as_date(new)


def _terminal_clear(item: WorkItem) -> DateUpdate | None:
    """Clear decision for an on-hold or closed item, or None for no write."""
    if item.is_closed:
        if item.has_scheduling_dates or item.low_estimate is not None or item.high_estimate is not None:
            return DateUpdate.clear(item, CLEAR_CLOSED)
        return None
    if item.has_scheduling_dates:
        return DateUpdate.clear(item, CLEAR_ON_HOLD)
    return None


def prepare_updates(
    entries: list[ScheduleEntry],
    items: dict[str, WorkItem],
    unschedulable: set[str],
) -> list[DateUpdate]:
    """Compute the writes needed to bring project fields in line.

    Args:
        entries: Scheduler output, in scheduler order
        items: Store of work items keyed by reference key
        unschedulable: Reference keys that must not receive dates this run

    Returns:
        DateUpdates, at most one per work item
    """
    updates = []
    processed: set[str] = set()
    linked = [item for item in sorted_items(items) if item.project is not None]

    # Pass 1: closed and on-hold, straight from project data
    for item in linked:
        if not (item.is_closed or item.is_on_hold):
            continue
        processed.add(item.key)
        update = _terminal_clear(item)
        if update is not None:
            updates.append(update)

    # Pass 2: items with scheduling issues that still carry dates
    for item in linked:
        if item.key in processed:
            continue
        if item.key in unschedulable and item.has_scheduling_dates:
            processed.add(item.key)
            updates.append(DateUpdate.clear(item, CLEAR_UNSCHEDULABLE))

    # Pass 3: scheduled tasks
    by_task_id = index_by_task_id(items)
    for entry in entries:
        if entry.is_package:
            continue

        item = by_task_id.get(entry.id)
        if item is None:
            logger.debug(f"No issue found for task {entry.id}")
            continue
        if item.project is None:
            logger.debug(f"Issue {entry.id} is not in a project")
            continue
        if item.key in processed or item.key in unschedulable:
            continue

        if (same_date(item.expected_start, entry.expected_start)
                and same_date(item.expected_completion, entry.mean_completion)
                and same_date(item.completion_98, entry.completion_98)):
            logger.debug(f"Dates unchanged for {entry.id}, skipping")
            continue

        processed.add(item.key)
        updates.append(DateUpdate.set_dates(item, entry))

    return updates
