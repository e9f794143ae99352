"""Parse the target given on the command line into a GitHubTarget."""

import re
from dataclasses import dataclass

ORG_PROJECT_RE = re.compile(r'^github\.com/orgs/([^/]+)/projects/(\d+)')
USER_PROJECT_RE = re.compile(r'^github\.com/users/([^/]+)/projects/(\d+)')
ISSUE_RE = re.compile(r'^github\.com/([^/]+)/([^/]+)/issues/(\d+)')
REPO_RE = re.compile(r'^github\.com/([^/]+)/([^/]+)')
SHORT_RE = re.compile(r'^([^/]+)/([^/]+)$')


class URLParseError(ValueError):
    """The target isn't a GitHub project, repository or issue."""


@dataclass
class GitHubTarget:
    owner: str
    repo: str = ""
    is_org: bool = False
    is_project: bool = False
    project_num: int = 0
    issue_num: int = 0

    @property
    def is_issue(self) -> bool:
        return self.issue_num > 0


def parse_github_url(url: str) -> GitHubTarget:
    """
    Parse a project, repository or issue URL, or owner/repo.

    Accepts:
      - https://github.com/orgs/ORG/projects/N
      - https://github.com/users/USER/projects/N
      - https://github.com/OWNER/REPO/issues/N
      - https://github.com/OWNER/REPO
      - OWNER/REPO

    Raises:
        URLParseError: if nothing matches
    """
    cleaned = url.strip().rstrip("/")
    for prefix in ("https://", "http://"):
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):]

    match = ORG_PROJECT_RE.match(cleaned)
    if match:
        return GitHubTarget(owner=match.group(1), is_org=True, is_project=True,
                            project_num=int(match.group(2)))

    match = USER_PROJECT_RE.match(cleaned)
    if match:
        return GitHubTarget(owner=match.group(1), is_project=True,
                            project_num=int(match.group(2)))

    match = ISSUE_RE.match(cleaned)
    if match:
        return GitHubTarget(owner=match.group(1), repo=match.group(2),
                            issue_num=int(match.group(3)))

    match = REPO_RE.match(cleaned) or SHORT_RE.match(cleaned)
    if match:
        return GitHubTarget(owner=match.group(1), repo=match.group(2))

    raise URLParseError(f"could not parse GitHub URL: {url}")
