"""
Project item fetching.

Resolves a target to the projects it covers, pulls every item through
GitHubClient and turns the raw GraphQL nodes into the WorkItem store the
reconciliation core works on.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from schedsync.core.dependencies import build_reverse_dependencies
from schedsync.lib.constants import DATE_FORMAT
from schedsync.lib.fields import FieldNames
from schedsync.lib.github import GitHubClient, ProjectFields, ProjectLocator
from schedsync.lib.types import IssueRef, ProjectItemInfo, WorkItem
from schedsync.lib.urls import GitHubTarget

logger = logging.getLogger(__name__)

# Page size of the blockedBy connection in the items query
BLOCKERS_PAGE_SIZE = 50

# Project built-in field holding the item title, readable even when the
# content itself is not
TITLE_FIELD = "Title"


@dataclass
class FetchResult:
    items: dict[str, WorkItem] = field(default_factory=dict)
    inaccessible: list[str] = field(default_factory=list)
    projects: list[ProjectLocator] = field(default_factory=list)


def resolve_projects(client: GitHubClient, target: GitHubTarget) -> list[ProjectLocator]:
    """Projects a target covers: itself, a repo's linked projects, or those holding an issue."""
    if target.is_project:
        return [ProjectLocator(owner=target.owner, number=target.project_num, is_org=target.is_org)]
    if target.is_issue:
        return client.get_issue_projects(target.owner, target.repo, target.issue_num)
    return client.get_repo_projects(target.owner, target.repo)


def parse_date(value: str | None) -> datetime | None:
    """Parse YYYY-MM-DD, ignoring any time part (milestone dueOn is a timestamp)."""
    if not value:
        return None
    return datetime.strptime(value[:10], DATE_FORMAT)


def _field_values(node: dict) -> dict:
    """Field name -> raw value for the item's set fields."""
    values = {}
    for fv in (node.get("fieldValues") or {}).get("nodes", []):
        if not fv or not fv.get("field"):
            continue
        name = fv["field"].get("name")
        if not name:
            continue
        for key in ("number", "date", "name", "text"):
            if key in fv:
                values[name] = fv[key]
                break
    return values


def _number(value) -> float | None:
    if value is None:
        return None
    return float(value)


def _issue_ref(node: dict) -> IssueRef:
    repository = node["repository"]
    return IssueRef(owner=repository["owner"]["login"], repo=repository["name"], number=node["number"])


def _count_inaccessible(blocked_by: dict) -> int:
    """Blockers the token can't read.

    They come back as null nodes, or are left out of nodes while still being
    counted in totalCount.
    """
    nodes = blocked_by.get("nodes") or []
    visible = len([n for n in nodes if n])
    total = blocked_by.get("totalCount", len(nodes))
    if total <= BLOCKERS_PAGE_SIZE:
        return max(total - visible, 0)
    return len(nodes) - visible


def parse_item(
    node: dict,
    project: ProjectFields,
    order: int,
    field_names: FieldNames,
) -> WorkItem | None:
    """Build a WorkItem from an items query node.

    Returns None for content that isn't an issue or draft (pull requests).
    Raises KeyError/ValueError/TypeError on malformed nodes.
    """
    content = node.get("content") or {}
    kind = content.get("__typename")
    values = _field_values(node)

    item_info = ProjectItemInfo(
        project_id=project.project_id,
        item_id=node["id"],
        field_ids=project.field_ids,
    )

    if kind == "DraftIssue":
        item = WorkItem(owner="", repo="", number=None, title=content.get("title", ""), is_draft=True)
    elif kind == "Issue":
        repository = content["repository"]
        assignees = (content.get("assignees") or {}).get("nodes") or []
        milestone = content.get("milestone") or {}
        blocked_by = content.get("blockedBy") or {}
        blocking = content.get("blocking") or {}
        item = WorkItem(
            owner=repository["owner"]["login"],
            repo=repository["name"],
            number=content["number"],
            title=content.get("title", ""),
            state=content.get("state", "OPEN").lower(),
            assignee=assignees[0]["login"] if assignees and assignees[0] else "",
            milestone=milestone.get("title", ""),
            milestone_due_date=parse_date(milestone.get("dueOn")),
            is_private=bool(repository.get("isPrivate")),
            inaccessible_blockers=_count_inaccessible(blocked_by),
            blocked_by=[_issue_ref(n) for n in blocked_by.get("nodes") or [] if n],
            blocking=[_issue_ref(n) for n in blocking.get("nodes") or [] if n],
        )
    else:
        logger.debug(f"Skipping project item {node.get('id')}: unsupported content {kind}")
        return None

    item.order = order
    item.project = item_info
    item.project_item_id = node["id"]
    item.low_estimate = _number(values.get(field_names.low_estimate))
    item.high_estimate = _number(values.get(field_names.high_estimate))
    item.scheduling_status = values.get(field_names.scheduling_status) or ""
    item.due_date = parse_date(values.get(field_names.due_date))
    item.expected_start = parse_date(values.get(field_names.expected_start))
    item.expected_completion = parse_date(values.get(field_names.expected_completion))
    item.completion_98 = parse_date(values.get(field_names.completion_98))
    item.has_scheduling_dates = any(
        d is not None for d in (item.expected_start, item.expected_completion, item.completion_98)
    )
    item.has_estimates = item.low_estimate is not None or item.high_estimate is not None
    return item


def fetch_items(client: GitHubClient, target: GitHubTarget, field_names: FieldNames) -> FetchResult:
    """Fetch every item of every project the target covers.

    Items are numbered in display order across projects. An issue that shows
    up in more than one project keeps its first occurrence.
    """
    result = FetchResult(projects=resolve_projects(client, target))
    order = 0

    for locator in result.projects:
        project = client.get_project_fields(locator)
        nodes = client.get_project_items(locator)
        logger.info(f"Fetched {len(nodes)} items from project {locator.owner} #{locator.number}")

        for node in nodes:
            if not node.get("content"):
                title = _field_values(node).get(TITLE_FIELD) or node.get("id", "")
                result.inaccessible.append(title)
                continue
            try:
                item = parse_item(node, project, order, field_names)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping project item {node.get('id')}: {e}")
                continue
            if item is None:
                continue
            if item.key in result.items:
                logger.debug(f"{item.key} already fetched from another project, skipping")
                continue
            result.items[item.key] = item
            order += 1

    build_reverse_dependencies(result.items)
    return result

