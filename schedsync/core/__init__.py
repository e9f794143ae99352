"""Reconciliation core for schedsync.

Pure functions over an in-memory store of work items. Nothing in this
package talks to GitHub or runs the scheduler; callers fetch, call these
in order, and write the results:

    build_reverse_dependencies -> work_items_to_tasks -> (scheduler)
    -> extract_cycle_issues -> prepare_updates -> detect_at_risk_issues
"""

from schedsync.core.at_risk import detect_at_risk_issues
from schedsync.core.cycles import extract_cycle_issues
from schedsync.core.dependencies import build_reverse_dependencies
from schedsync.core.diagnostics import (
    group_by_ref,
    merge_scheduling_issues,
    sort_scheduling_issues,
    unschedulable_refs,
)
from schedsync.core.normalize import sorted_items, work_items_to_tasks
from schedsync.core.packages import order_packages, parse_semver
from schedsync.core.privacy import PrivacyFilter
from schedsync.core.reconcile import prepare_updates, same_date

__all__ = [
    "PrivacyFilter",
    "build_reverse_dependencies",
    "detect_at_risk_issues",
    "extract_cycle_issues",
    "group_by_ref",
    "merge_scheduling_issues",
    "order_packages",
    "parse_semver",
    "prepare_updates",
    "same_date",
    "sort_scheduling_issues",
    "sorted_items",
    "unschedulable_refs",
    "work_items_to_tasks",
]
