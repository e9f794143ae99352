"""Detect scheduled items projected to finish after their due date."""

from schedsync.core.reconcile import as_date
from schedsync.lib.constants import DATE_FORMAT, REASON_AT_RISK
from schedsync.lib.types import DateUpdate, SchedulingIssue, WorkItem


def detect_at_risk_issues(updates: list[DateUpdate], items: dict[str, WorkItem]) -> list[SchedulingIssue]:
    """Return an at_risk issue for each set-dates update that misses its due date.

    Only strictly later calendar dates count; finishing on the due date is fine.
    """
    at_risk = []
    for update in updates:
        if update.clear_dates:
            continue
        item = items.get(update.issue_ref)
        if item is None:
            continue
        due = as_date(item.due_date)
        expected = as_date(update.expected_completion)
        if due is None or expected is None:
            continue
        if expected > due:
            at_risk.append(SchedulingIssue.for_item(item, REASON_AT_RISK, [
                f"Due Date: {due.strftime(DATE_FORMAT)}",
                f"Expected Completion: {expected.strftime(DATE_FORMAT)}",
            ]))
    return at_risk
