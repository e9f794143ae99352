"""Tests for schedsync.core.reconcile, cycles and at_risk modules."""

from datetime import datetime

import pytest

from schedsync.core.at_risk import detect_at_risk_issues
from schedsync.core.cycles import extract_cycle_issues
from schedsync.core.reconcile import prepare_updates, same_date
from schedsync.lib.types import DateUpdate, ProjectItemInfo, ScheduleEntry, SchedulingIssue, WorkItem


def _item(number, repo="app", **kwargs):
    kwargs.setdefault("low_estimate", 1.0)
    kwargs.setdefault("high_estimate", 2.0)
    kwargs.setdefault("order", number)
    kwargs.setdefault("project", ProjectItemInfo(project_id="PVT_1", item_id=f"PVTI_{repo}_{number}"))
    item = WorkItem(owner="octo", repo=repo, number=number, title=f"Issue {number}", **kwargs)
    item.has_scheduling_dates = any(
        d is not None for d in (item.expected_start, item.expected_completion, item.completion_98)
    )
    return item


def _store(*items):
    return {item.key: item for item in items}


def _entry(task_id, start, mean, p98, **kwargs):
    return ScheduleEntry(id=task_id, expected_start=start, mean_completion=mean, completion_98=p98, **kwargs)


D1 = datetime(2025, 3, 10)
D2 = datetime(2025, 3, 14)
D3 = datetime(2025, 3, 20)


class TestSameDate:
    """Tests for same_date()."""

    def test_ignores_time_of_day(self):
        assert same_date(datetime(2025, 3, 10, 0, 0), datetime(2025, 3, 10, 17, 30))

    def test_both_unset(self):
        assert same_date(None, None)

    def test_one_unset(self):
        assert not same_date(None, D1)
        assert not same_date(D1, None)

    def test_different_days(self):
        assert not same_date(D1, D2)


class TestPrepareUpdatesTerminal:
    """Pass 1: closed and on-hold items."""

    def test_closed_with_dates_is_cleared(self):
        item = _item(1, state="closed", expected_start=D1)
        updates = prepare_updates([], _store(item), set())
        assert len(updates) == 1
        assert updates[0].clear_dates
        assert updates[0].clear_reason == "closed"

    def test_closed_with_only_estimates_is_cleared(self):
        item = _item(1, state="closed")
        updates = prepare_updates([], _store(item), set())
        assert [u.clear_reason for u in updates] == ["closed"]

    def test_closed_with_nothing_set_is_quiet(self):
        item = _item(1, state="closed", low_estimate=None, high_estimate=None)
        assert prepare_updates([], _store(item), set()) == []

    def test_on_hold_with_dates_is_cleared(self):
        item = _item(1, scheduling_status="On Hold", expected_completion=D2)
        updates = prepare_updates([], _store(item), set())
        assert [u.clear_reason for u in updates] == ["on hold"]

    def test_on_hold_without_dates_keeps_estimates(self):
        item = _item(1, scheduling_status="On Hold")
        assert prepare_updates([], _store(item), set()) == []

    def test_terminal_items_never_get_dates(self):
        item = _item(1, state="closed")
        updates = prepare_updates([_entry("octo/app#1", D1, D2, D3)], _store(item), set())
        assert len(updates) == 1
        assert updates[0].clear_dates

    def test_items_outside_projects_are_skipped(self):
        item = _item(1, state="closed", expected_start=D1, project=None)
        assert prepare_updates([], _store(item), set()) == []


class TestPrepareUpdatesUnschedulable:
    """Pass 2: items with scheduling issues."""

    def test_clears_dates(self):
        item = _item(1, expected_start=D1, expected_completion=D2, completion_98=D3)
        updates = prepare_updates([_entry("octo/app#1", D1, D2, D3)], _store(item), {item.key})
        assert len(updates) == 1
        assert updates[0].clear_reason == "unschedulable"

    def test_nothing_to_clear(self):
        item = _item(1)
        assert prepare_updates([_entry("octo/app#1", D1, D2, D3)], _store(item), {item.key}) == []

    def test_terminal_takes_precedence(self):
        item = _item(1, state="closed", expected_start=D1)
        updates = prepare_updates([], _store(item), {item.key})
        assert [u.clear_reason for u in updates] == ["closed"]


class TestPrepareUpdatesScheduled:
    """Pass 3: scheduler dates."""

    def test_sets_dates(self):
        item = _item(1)
        updates = prepare_updates([_entry("octo/app#1", D1, D2, D3, name="Sched name")], _store(item), set())
        assert len(updates) == 1
        update = updates[0]
        assert not update.clear_dates
        assert (update.expected_start, update.expected_completion, update.completion_98) == (D1, D2, D3)
        assert update.name == "Sched name"
        assert update.project is item.project

    def test_unchanged_dates_are_skipped(self):
        item = _item(1, expected_start=D1, expected_completion=D2, completion_98=D3)
        assert prepare_updates([_entry("octo/app#1", D1, D2, D3)], _store(item), set()) == []

    def test_one_changed_date_updates(self):
        item = _item(1, expected_start=D1, expected_completion=D2, completion_98=D2)
        updates = prepare_updates([_entry("octo/app#1", D1, D2, D3)], _store(item), set())
        assert len(updates) == 1

    def test_package_entries_ignored(self):
        item = _item(1)
        entries = [_entry("v1.0.0", D1, D2, D3, is_package=True)]
        assert prepare_updates(entries, _store(item), set()) == []

    def test_unknown_task_ignored(self):
        assert prepare_updates([_entry("octo/app#99", D1, D2, D3)], _store(_item(1)), set()) == []

    def test_same_number_in_other_repo_untouched(self):
        a = _item(1, repo="api")
        b = _item(1, repo="web", expected_start=D1, expected_completion=D2, completion_98=D3)
        updates = prepare_updates([_entry("octo/api#1", D1, D2, D3)], _store(a, b), set())
        assert [u.issue_ref for u in updates] == [a.key]

    def test_at_most_one_update_per_item(self):
        item = _item(1)
        entries = [_entry("octo/app#1", D1, D2, D3), _entry("octo/app#1", D2, D3, D3)]
        assert len(prepare_updates(entries, _store(item), set())) == 1

    def test_second_run_is_quiet(self):
        item = _item(1)
        entries = [_entry("octo/app#1", D1, D2, D3)]
        (update,) = prepare_updates(entries, _store(item), set())

        item.expected_start = update.expected_start
        item.expected_completion = update.expected_completion
        item.completion_98 = update.completion_98
        item.has_scheduling_dates = True
        assert prepare_updates(entries, _store(item), set()) == []


class TestDateUpdate:
    """DateUpdate construction checks."""

    def test_rejects_unknown_clear_reason(self):
        with pytest.raises(ValueError):
            DateUpdate(owner="o", repo="r", issue_num=1, name="", issue_ref="x", project=None,
                       clear_dates=True, clear_reason="bored")

    def test_rejects_reason_on_set(self):
        with pytest.raises(ValueError):
            DateUpdate(owner="o", repo="r", issue_num=1, name="", issue_ref="x", project=None,
                       clear_reason="closed")


class TestExtractCycleIssues:
    """Tests for extract_cycle_issues()."""

    def test_adds_cycle_issue(self):
        a, b = _item(1), _item(2)
        entries = [
            ScheduleEntry(id="octo/app#1", cycle=["octo/app#1", "octo/app#2", "octo/app#1"]),
            ScheduleEntry(id="octo/app#2"),
        ]
        issues = extract_cycle_issues(entries, _store(a, b), [])
        assert len(issues) == 1
        assert issues[0].reason == "cycle"
        assert issues[0].issue_ref == a.key
        assert issues[0].details == ["octo/app#1", "octo/app#2", "octo/app#1"]

    def test_keeps_existing_and_skips_items_with_issue(self):
        a = _item(1)
        existing = [SchedulingIssue.for_item(a, "missing_estimate", ["Low Estimate"])]
        entries = [ScheduleEntry(id="octo/app#1", cycle=["octo/app#1", "octo/app#1"])]
        issues = extract_cycle_issues(entries, _store(a), existing)
        assert [si.reason for si in issues] == ["missing_estimate"]

    def test_package_entries_ignored(self):
        entries = [ScheduleEntry(id="v1", is_package=True, cycle=["v1"])]
        assert extract_cycle_issues(entries, _store(_item(1)), []) == []

    def test_one_issue_per_item(self):
        a = _item(1)
        entries = [
            ScheduleEntry(id="octo/app#1", cycle=["octo/app#1", "octo/app#1"]),
            ScheduleEntry(id="octo/app#1", cycle=["octo/app#1", "octo/app#1"]),
        ]
        assert len(extract_cycle_issues(entries, _store(a), [])) == 1


class TestDetectAtRisk:
    """Tests for detect_at_risk_issues()."""

    def _update(self, item, completion):
        return DateUpdate.set_dates(item, _entry(item.task_id, D1, completion, completion))

    def test_late_is_at_risk(self):
        item = _item(1, due_date=datetime(2025, 3, 15))
        issues = detect_at_risk_issues([self._update(item, datetime(2025, 3, 16))], _store(item))
        assert len(issues) == 1
        assert issues[0].reason == "at_risk"
        assert issues[0].details == ["Due Date: 2025-03-15", "Expected Completion: 2025-03-16"]

    def test_on_due_date_is_fine(self):
        item = _item(1, due_date=datetime(2025, 3, 15))
        assert detect_at_risk_issues([self._update(item, datetime(2025, 3, 15, 18))], _store(item)) == []

    def test_milestone_due_date_not_used(self):
        item = _item(1, milestone_due_date=datetime(2025, 3, 15))
        assert detect_at_risk_issues([self._update(item, datetime(2025, 3, 16))], _store(item)) == []

    def test_no_due_date(self):
        item = _item(1)
        assert detect_at_risk_issues([self._update(item, datetime(2030, 1, 1))], _store(item)) == []

    def test_clears_are_ignored(self):
        item = _item(1, due_date=datetime(2025, 3, 15), state="closed")
        assert detect_at_risk_issues([DateUpdate.clear(item, "closed")], _store(item)) == []
