"""Write DateUpdates to project fields."""

import logging
from datetime import datetime

from schedsync.lib.constants import CLEAR_CLOSED, DATE_FORMAT
from schedsync.lib.fields import FieldNames
from schedsync.lib.github import GitHubClient, GitHubError
from schedsync.lib.types import DateUpdate

logger = logging.getLogger(__name__)


def _fields_to_clear(update: DateUpdate, field_names: FieldNames) -> list[str]:
    names = list(field_names.date_fields)
    if update.clear_reason == CLEAR_CLOSED:
        names.extend(field_names.estimate_fields)
    return names


def _dates_to_set(update: DateUpdate, field_names: FieldNames) -> list[tuple[str, datetime]]:
    values = [update.expected_start, update.expected_completion, update.completion_98]
    return [(name, value) for name, value in zip(field_names.date_fields, values) if value is not None]


def apply_update(update: DateUpdate, client: GitHubClient, field_names: FieldNames) -> int:
    """Apply one update field by field.

    A field that fails to write is logged and skipped; the rest of the update
    still goes through.

    Returns:
        Number of fields that failed to write
    """
    project = update.project
    if project is None:
        logger.debug(f"{update.issue_ref} is not in a project, nothing to write")
        return 0

    failures = 0
    if update.clear_dates:
        for name in _fields_to_clear(update, field_names):
            field_id = project.field_ids.get(name)
            if not field_id:
                logger.debug(f"Field '{name}' not in project, skipping clear")
                continue
            try:
                client.clear_field(project.project_id, project.item_id, field_id)
            except GitHubError as e:
                failures += 1
                logger.warning(f"Failed to clear {name} on {update.issue_ref}: {e}")
        return failures

    for name, value in _dates_to_set(update, field_names):
        field_id = project.field_ids.get(name)
        if not field_id:
            logger.debug(f"Field '{name}' not in project, skipping")
            continue
        try:
            client.update_date_field(project.project_id, project.item_id, field_id, value.strftime(DATE_FORMAT))
        except GitHubError as e:
            failures += 1
            logger.warning(f"Failed to set {name} on {update.issue_ref}: {e}")
    return failures
