"""
Scheduling notice comments on issues.

Each issue carries at most one comment from schedsync, found again by the
marker on its first line. The comment lists every diagnostic for the issue;
once the issue has none left, the comment is removed.
"""

import logging

from schedsync.core.privacy import PrivacyFilter
from schedsync.lib.constants import (
    REASON_AT_RISK,
    REASON_CYCLE,
    REASON_INACCESSIBLE_DEPENDENCY,
    REASON_INVALID_ESTIMATE,
    REASON_MISSING_DEPENDENCY,
    REASON_MISSING_ESTIMATE,
    REASON_ONHOLD_DEPENDENCY,
)
from schedsync.lib.github import GitHubClient
from schedsync.lib.types import SchedulingIssue

logger = logging.getLogger(__name__)

SCHEDULING_COMMENT_MARKER = "<!-- p2-scheduler-comment -->"
COMMENT_HEADER = "**Scheduling Notice**"
COMMENT_FOOTER = "*This comment is automatically managed by p2-github-scheduler*"


def _bullets(lines: list[str]) -> str:
    return "".join(f"- {line}\n" for line in lines)


def _format_section(si: SchedulingIssue) -> str:
    if si.reason == REASON_CYCLE:
        return (
            "This issue cannot be scheduled because it is part of a dependency cycle.\n\n"
            "**Cycle path:**\n" + " → ".join(si.details) + "\n"
        )
    if si.reason == REASON_MISSING_DEPENDENCY:
        return (
            "This issue cannot be scheduled because it depends on issues not in this project.\n\n"
            "**Missing dependencies:**\n" + _bullets(si.details)
        )
    if si.reason == REASON_ONHOLD_DEPENDENCY:
        return (
            "This issue cannot be scheduled because it depends on issues that are on hold.\n\n"
            "**On-hold dependencies:**\n" + _bullets(si.details)
        )
    if si.reason == REASON_INACCESSIBLE_DEPENDENCY:
        return (
            "This issue cannot be scheduled because it depends on issues from repositories "
            "the scheduler cannot access.\n\n"
            "**Details:**\n" + _bullets(si.details)
            + "\nGrant access to all repositories linked in this project.\n"
        )
    if si.reason == REASON_MISSING_ESTIMATE:
        return (
            "This issue cannot be scheduled because it is missing required estimate fields.\n\n"
            "**Missing fields:**\n" + _bullets(si.details)
        )
    if si.reason == REASON_INVALID_ESTIMATE:
        return (
            "This issue cannot be scheduled because the estimates are invalid.\n\n"
            + "".join(f"{line}\n" for line in si.details)
        )
    if si.reason == REASON_AT_RISK:
        return (
            "This issue is at risk: its expected completion is after its due date.\n\n"
            + _bullets(si.details)
        )
    return f"Scheduling issue: {si.reason}\n\n" + _bullets(si.details)


def format_scheduling_comment(issues: list[SchedulingIssue]) -> str:
    """Comment body for all of one issue's diagnostics."""
    sections = [_format_section(si) for si in issues]
    return (
        f"{SCHEDULING_COMMENT_MARKER}\n{COMMENT_HEADER}\n\n"
        + "\n".join(sections)
        + f"\n---\n{COMMENT_FOOTER}"
    )


def find_scheduling_comment(client: GitHubClient, owner: str, repo: str, number: int) -> dict | None:
    """The existing schedsync comment on an issue, as {"id", "body"}, or None."""
    for comment in client.get_issue_comments(owner, repo, number):
        body = comment.get("body") or ""
        if body.startswith(SCHEDULING_COMMENT_MARKER) and comment.get("id"):
            return comment
    return None


def post_or_update_scheduling_comment(
    client: GitHubClient,
    issues: list[SchedulingIssue],
    privacy: PrivacyFilter | None = None,
) -> str:
    """Create or refresh the comment for one issue's diagnostics.

    Returns "created", "updated" or "unchanged".
    """
    first = issues[0]
    if privacy is not None:
        issues = [privacy.redact_scheduling_issue(si) for si in issues]
    body = format_scheduling_comment(issues)

    existing = find_scheduling_comment(client, first.owner, first.repo, first.issue_num)
    if existing is None:
        client.create_issue_comment(first.owner, first.repo, first.issue_num, body)
        return "created"
    if existing.get("body") == body:
        return "unchanged"
    client.update_issue_comment(first.owner, first.repo, existing["id"], body)
    return "updated"


def delete_scheduling_comment(client: GitHubClient, owner: str, repo: str, number: int) -> bool:
    """Remove a stale comment. Returns True if one was deleted."""
    existing = find_scheduling_comment(client, owner, repo, number)
    if existing is None:
        return False
    client.delete_issue_comment(owner, repo, existing["id"])
    logger.debug(f"Deleted scheduling comment on {owner}/{repo}#{number}")
    return True
