"""Prefect task wrappers for the sync's I/O steps.

Each task wraps a plain function so the run shows up step by step when
connected to a Prefect server. The wrapped functions stay callable on their
own. No retries: a failed run is simply run again.
"""

from prefect import task

from schedsync.core.privacy import PrivacyFilter
from schedsync.lib.fields import FieldNames
from schedsync.lib.github import GitHubClient
from schedsync.lib.types import DateUpdate, ScheduleEntry, SchedulingIssue, Task, User
from schedsync.lib.urls import GitHubTarget
from schedsync.workflow.apply import apply_update
from schedsync.workflow.comments import delete_scheduling_comment, post_or_update_scheduling_comment
from schedsync.workflow.fetch import FetchResult, fetch_items
from schedsync.workflow.scheduler import run_scheduler


@task(name="fetch", description="Fetch project items from GitHub")
def task_fetch(client: GitHubClient, target: GitHubTarget, field_names: FieldNames) -> FetchResult:
    return fetch_items(client, target, field_names)


@task(name="schedule", description="Run the external scheduler")
def task_schedule(tasks: list[Task], users: list[User], command: str, timeout: int) -> list[ScheduleEntry]:
    return run_scheduler(tasks, users, command, timeout)


@task(name="apply_update", description="Write one item's project fields")
def task_apply_update(update: DateUpdate, client: GitHubClient, field_names: FieldNames) -> int:
    return apply_update(update, client, field_names)


@task(name="sync_comment", description="Create, update or delete a scheduling comment")
def task_sync_comment(
    client: GitHubClient,
    owner: str,
    repo: str,
    number: int,
    issues: list[SchedulingIssue],
    privacy: PrivacyFilter | None = None,
) -> str:
    """Post the issue's diagnostics, or delete a stale comment when there are none."""
    if issues:
        return post_or_update_scheduling_comment(client, issues, privacy)
    if delete_scheduling_comment(client, owner, repo, number):
        return "deleted"
    return "unchanged"
