"""
Redaction of private repository details in shared output.

CI logs and issue comments can be read by people who cannot see every
repository linked from a project. Anything that names a private repository
other than the one the run belongs to is replaced with a placeholder.
"""

import re
from dataclasses import replace

from schedsync.lib.constants import PRIVATE_PLACEHOLDER
from schedsync.lib.types import SchedulingIssue, WorkItem

DEP_ID_RE = re.compile(r'^([^/#]+)/([^#]+)#(\d+)$')


class PrivacyFilter:
    """Decides what to hide for a given current repository ("owner/repo")."""

    def __init__(self, current_repo: str, items: dict[str, WorkItem]):
        self.current_repo = current_repo
        self.private_repos = {
            item.repo_key for item in items.values()
            if item.is_private and not item.is_draft
        }

    def should_redact(self, owner: str, repo: str) -> bool:
        key = f"{owner}/{repo}"
        return key in self.private_repos and key != self.current_repo

    def redact_repo(self, owner: str, repo: str) -> str:
        if self.should_redact(owner, repo):
            return PRIVATE_PLACEHOLDER
        return f"{owner}/{repo}"

    def redact_ref(self, owner: str, repo: str, issue_num: int | None) -> str:
        if self.should_redact(owner, repo):
            return f"{PRIVATE_PLACEHOLDER} #{issue_num}"
        return f"{owner}/{repo} #{issue_num}"

    def redact_title(self, owner: str, repo: str, title: str) -> str:
        if self.should_redact(owner, repo):
            return ""
        return title

    def redact_dep_id(self, dep_id: str) -> str:
        """Redact an "owner/repo#N" id. Anything else is returned as-is."""
        match = DEP_ID_RE.match(dep_id)
        if not match:
            return dep_id
        owner, repo, number = match.groups()
        if self.should_redact(owner, repo):
            return f"{PRIVATE_PLACEHOLDER}#{int(number)}"
        return dep_id

    def redact_scheduling_issue(self, issue: SchedulingIssue) -> SchedulingIssue:
        """Copy of issue with dependency ids in details redacted."""
        return replace(issue, details=[self.redact_dep_id(d) for d in issue.details])
