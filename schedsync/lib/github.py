"""
GitHub access via the gh CLI.

Wraps `gh api` for the GraphQL project queries and mutations and the REST
issue comment endpoints the sync needs. Every call goes through
GitHubClient.run(), which turns gh failures, timeouts and bad JSON into
GitHubError.
"""

import json
import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


# Timeout for GitHub CLI operations (seconds)
GH_TIMEOUT_SECONDS = 30

# Page size for project item queries
ITEMS_PAGE_SIZE = 50


class GitHubError(Exception):
    """A gh invocation failed or returned something unusable."""


PROJECT_FIELDS_QUERY = """
query($owner: String!, $number: Int!) {
  %(owner_type)s(login: $owner) {
    projectV2(number: $number) {
      id
      fields(first: 100) {
        nodes { ... on ProjectV2FieldCommon { id name } }
      }
    }
  }
}
"""

PROJECT_ITEMS_QUERY = """
query($owner: String!, $number: Int!, $cursor: String) {
  %(owner_type)s(login: $owner) {
    projectV2(number: $number) {
      items(first: %(page_size)d, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          fieldValues(first: 30) {
            nodes {
              ... on ProjectV2ItemFieldNumberValue { number field { ... on ProjectV2FieldCommon { name } } }
              ... on ProjectV2ItemFieldDateValue { date field { ... on ProjectV2FieldCommon { name } } }
              ... on ProjectV2ItemFieldSingleSelectValue { name field { ... on ProjectV2FieldCommon { name } } }
              ... on ProjectV2ItemFieldTextValue { text field { ... on ProjectV2FieldCommon { name } } }
            }
          }
          content {
            __typename
            ... on DraftIssue { title }
            ... on Issue {
              number
              title
              state
              repository { name isPrivate owner { login } }
              assignees(first: 1) { nodes { login } }
              milestone { title dueOn }
              blockedBy(first: 50) { totalCount nodes { number repository { name owner { login } } } }
              blocking(first: 50) { nodes { number repository { name owner { login } } } }
            }
          }
        }
      }
    }
  }
}
"""

REPO_PROJECTS_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    projectsV2(first: 20) {
      nodes { number owner { __typename ... on Organization { login } ... on User { login } } }
    }
  }
}
"""

ISSUE_PROJECTS_QUERY = """
query($owner: String!, $repo: String!, $number: Int!) {
  repository(owner: $owner, name: $repo) {
    issue(number: $number) {
      projectItems(first: 20) {
        nodes { project { number owner { __typename ... on Organization { login } ... on User { login } } } }
      }
    }
  }
}
"""

UPDATE_DATE_MUTATION = """
mutation($project: ID!, $item: ID!, $field: ID!, $date: Date!) {
  updateProjectV2ItemFieldValue(input: {projectId: $project, itemId: $item, fieldId: $field, value: {date: $date}}) {
    projectV2Item { id }
  }
}
"""

CLEAR_FIELD_MUTATION = """
mutation($project: ID!, $item: ID!, $field: ID!) {
  clearProjectV2ItemFieldValue(input: {projectId: $project, itemId: $item, fieldId: $field}) {
    projectV2Item { id }
  }
}
"""


@dataclass
class ProjectFields:
    """Project node id and field name -> field id."""
    project_id: str
    field_ids: dict[str, str]


@dataclass
class ProjectLocator:
    """A project to fetch, by owner login and number."""
    owner: str
    number: int
    is_org: bool


def _owner_type(is_org: bool) -> str:
    return "organization" if is_org else "user"


@dataclass
class GitHubClient:
    """gh CLI runner. token, if set, is passed to gh as GH_TOKEN."""
    token: str = ""
    timeout: int = GH_TIMEOUT_SECONDS

    def _env(self) -> dict[str, str] | None:
        if not self.token:
            return None
        env = os.environ.copy()
        env["GH_TOKEN"] = self.token
        return env

    def run(self, args: list[str]) -> str:
        """Run gh with args and return stdout.

        Raises:
            GitHubError: on non-zero exit, timeout or missing gh
        """
        try:
            result = subprocess.run(
                ["gh"] + args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=self._env(),
            )
        except subprocess.TimeoutExpired:
            raise GitHubError(f"gh {args[0]} timed out after {self.timeout}s") from None
        except FileNotFoundError:
            raise GitHubError("GitHub CLI (gh) not found\n  Install: https://cli.github.com/") from None

        if result.returncode != 0:
            raise GitHubError(result.stderr.strip() or f"gh exited with {result.returncode}")
        return result.stdout

    def graphql(self, query: str, variables: dict[str, Any] | None = None, strict: bool = False) -> dict:
        """Run a GraphQL query and return its data.

        Partial data is returned when GitHub reports errors alongside it
        (typically nodes from repositories the token cannot read). With
        strict, any reported error or a failed gh exit raises instead.
        """
        args = ["api", "graphql", "-f", f"query={query}"]
        for name, value in (variables or {}).items():
            if value is None:
                continue
            flag = "-F" if isinstance(value, int) else "-f"
            args.extend([flag, f"{name}={value}"])

        try:
            result = subprocess.run(
                ["gh"] + args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=self._env(),
            )
        except subprocess.TimeoutExpired:
            raise GitHubError(f"GitHub API timeout after {self.timeout}s") from None
        except FileNotFoundError:
            raise GitHubError("GitHub CLI (gh) not found\n  Install: https://cli.github.com/") from None

        try:
            payload = json.loads(result.stdout) if result.stdout.strip() else {}
        except json.JSONDecodeError:
            raise GitHubError("Invalid JSON from gh") from None

        data = payload.get("data")
        errors = payload.get("errors") or []
        if data is None:
            message = "; ".join(e.get("message", "") for e in errors) or result.stderr.strip()
            raise GitHubError(message or "GraphQL query returned no data")
        if strict and (errors or result.returncode != 0):
            message = "; ".join(e.get("message", "") for e in errors) or result.stderr.strip()
            raise GitHubError(message or f"gh exited with {result.returncode}")
        for e in errors:
            logger.debug(f"GraphQL partial error: {e.get('message', e)}")
        return data

    def rest(self, path: str, method: str = "GET", fields: dict[str, str] | None = None,
             jq: str | None = None, paginate: bool = False) -> str:
        args = ["api", path, "-X", method]
        for name, value in (fields or {}).items():
            args.extend(["-f", f"{name}={value}"])
        if paginate:
            args.append("--paginate")
        if jq:
            args.extend(["--jq", jq])
        return self.run(args)

    # Projects

    def get_project_fields(self, project: ProjectLocator) -> ProjectFields:
        data = self.graphql(
            PROJECT_FIELDS_QUERY % {"owner_type": _owner_type(project.is_org)},
            {"owner": project.owner, "number": project.number},
        )
        node = (data.get(_owner_type(project.is_org)) or {}).get("projectV2")
        if not node:
            raise GitHubError(f"Project {project.owner} #{project.number} not found")
        field_ids = {}
        for f in node.get("fields", {}).get("nodes", []):
            if f and f.get("name") and f.get("id"):
                field_ids[f["name"]] = f["id"]
        return ProjectFields(project_id=node["id"], field_ids=field_ids)

    def get_project_items(self, project: ProjectLocator) -> list[dict]:
        """All project items, in project display order."""
        query = PROJECT_ITEMS_QUERY % {
            "owner_type": _owner_type(project.is_org),
            "page_size": ITEMS_PAGE_SIZE,
        }
        items = []
        cursor = None
        while True:
            data = self.graphql(query, {"owner": project.owner, "number": project.number, "cursor": cursor})
            node = (data.get(_owner_type(project.is_org)) or {}).get("projectV2")
            if not node:
                raise GitHubError(f"Project {project.owner} #{project.number} not found")
            page = node["items"]
            items.extend(n for n in page.get("nodes", []) if n)
            if not page["pageInfo"]["hasNextPage"]:
                return items
            cursor = page["pageInfo"]["endCursor"]

    def get_repo_projects(self, owner: str, repo: str) -> list[ProjectLocator]:
        data = self.graphql(REPO_PROJECTS_QUERY, {"owner": owner, "repo": repo})
        repository = data.get("repository")
        if not repository:
            raise GitHubError(f"Repository {owner}/{repo} not found")
        return [_locator(n) for n in repository["projectsV2"]["nodes"] if n]

    def get_issue_projects(self, owner: str, repo: str, number: int) -> list[ProjectLocator]:
        data = self.graphql(ISSUE_PROJECTS_QUERY, {"owner": owner, "repo": repo, "number": number})
        issue = (data.get("repository") or {}).get("issue")
        if not issue:
            raise GitHubError(f"Issue {owner}/{repo}#{number} not found")
        return [_locator(n["project"]) for n in issue["projectItems"]["nodes"] if n and n.get("project")]

    def mutate(self, mutation: str, variables: dict[str, Any], payload: str) -> dict:
        """Run a mutation; an error or a null payload means the write did not happen."""
        data = self.graphql(mutation, variables, strict=True)
        if data.get(payload) is None:
            raise GitHubError(f"{payload} returned no result")
        return data[payload]

    def update_date_field(self, project_id: str, item_id: str, field_id: str, date: str) -> None:
        self.mutate(UPDATE_DATE_MUTATION, {
            "project": project_id, "item": item_id, "field": field_id, "date": date,
        }, "updateProjectV2ItemFieldValue")

    def clear_field(self, project_id: str, item_id: str, field_id: str) -> None:
        self.mutate(CLEAR_FIELD_MUTATION, {
            "project": project_id, "item": item_id, "field": field_id,
        }, "clearProjectV2ItemFieldValue")

    # Issue comments

    def get_issue_comments(self, owner: str, repo: str, number: int) -> list[dict]:
        output = self.rest(
            f"repos/{owner}/{repo}/issues/{number}/comments",
            jq=".[] | {id, body}",
            paginate=True,
        )
        comments = []
        for line in output.splitlines():
            if not line.strip():
                continue
            try:
                comments.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return comments

    def create_issue_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        self.rest(f"repos/{owner}/{repo}/issues/{number}/comments", method="POST", fields={"body": body})

    def update_issue_comment(self, owner: str, repo: str, comment_id: int, body: str) -> None:
        self.rest(f"repos/{owner}/{repo}/issues/comments/{comment_id}", method="PATCH", fields={"body": body})

    def delete_issue_comment(self, owner: str, repo: str, comment_id: int) -> None:
        self.rest(f"repos/{owner}/{repo}/issues/comments/{comment_id}", method="DELETE")


def _locator(project: dict) -> ProjectLocator:
    owner = project.get("owner") or {}
    return ProjectLocator(
        owner=owner.get("login", ""),
        number=project["number"],
        is_org=owner.get("__typename") == "Organization",
    )
