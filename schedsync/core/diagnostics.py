"""Helpers for the run's list of SchedulingIssues."""

from schedsync.lib.constants import REASON_AT_RISK
from schedsync.lib.types import SchedulingIssue


def merge_scheduling_issues(
    existing: list[SchedulingIssue],
    new: list[SchedulingIssue],
) -> list[SchedulingIssue]:
    """Append new issues, keeping at most one per (issue_ref, reason)."""
    seen = {(si.issue_ref, si.reason) for si in existing}
    merged = list(existing)
    for si in new:
        if (si.issue_ref, si.reason) in seen:
            continue
        seen.add((si.issue_ref, si.reason))
        merged.append(si)
    return merged


def sort_scheduling_issues(issues: list[SchedulingIssue]) -> list[SchedulingIssue]:
    return sorted(issues, key=lambda si: (si.issue_ref, si.reason))


def unschedulable_refs(issues: list[SchedulingIssue]) -> set[str]:
    """Refs whose dates must not be written this run.

    At-risk items are still scheduled; every other reason blocks writes.
    """
    return {si.issue_ref for si in issues if si.reason != REASON_AT_RISK}


def group_by_ref(issues: list[SchedulingIssue]) -> dict[str, list[SchedulingIssue]]:
    grouped: dict[str, list[SchedulingIssue]] = {}
    for si in sort_scheduling_issues(issues):
        grouped.setdefault(si.issue_ref, []).append(si)
    return grouped
