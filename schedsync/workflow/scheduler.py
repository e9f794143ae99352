"""
Bridge to the external task scheduler.

The scheduler is a separate program: it reads {"tasks": [...], "users": [...]}
as JSON on stdin and writes {"entries": [...]} on stdout. Both documents are
schema-checked here.
"""

import json
import logging
import shlex
import subprocess
from dataclasses import asdict
from datetime import datetime

from schedsync.lib.constants import DATE_FORMAT
from schedsync.lib.types import ScheduleEntry, Task, User
from schedsync.lib.validate import ValidationError, validate

logger = logging.getLogger(__name__)


class SchedulerError(Exception):
    """The scheduler could not be run or produced unusable output."""


def build_request(tasks: list[Task], users: list[User]) -> dict:
    return {
        "tasks": [asdict(t) for t in tasks],
        "users": [asdict(u) for u in users],
    }


def _parse_entry_date(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.strptime(value[:10], DATE_FORMAT)


def parse_result(data: dict) -> list[ScheduleEntry]:
    """Turn a validated scheduler document into ScheduleEntries, in order."""
    entries = []
    for raw in data["entries"]:
        entries.append(ScheduleEntry(
            id=raw["id"],
            name=raw.get("name", ""),
            is_package=raw.get("is_package", False),
            expected_start=_parse_entry_date(raw.get("expected_start")),
            mean_completion=_parse_entry_date(raw.get("mean_completion")),
            completion_98=_parse_entry_date(raw.get("completion_98")),
            cycle=list(raw.get("cycle") or []),
        ))
    return entries


def run_scheduler(tasks: list[Task], users: list[User], command: str, timeout: int) -> list[ScheduleEntry]:
    """Run the scheduler command and return its entries.

    Raises:
        SchedulerError: on launch failure, timeout, non-zero exit, or
            output that isn't valid scheduler JSON
    """
    request = build_request(tasks, users)
    try:
        validate(request, "schedule_request")
    except ValidationError as e:
        raise SchedulerError(f"Refusing to send invalid request: {e}") from None

    argv = shlex.split(command)
    if not argv:
        raise SchedulerError("Scheduler command is empty")

    logger.debug(f"Running scheduler: {command} ({len(tasks)} tasks, {len(users)} users)")
    try:
        result = subprocess.run(
            argv,
            input=json.dumps(request),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise SchedulerError(f"Scheduler timed out after {timeout}s") from None
    except FileNotFoundError:
        raise SchedulerError(f"Scheduler not found: {argv[0]}") from None

    if result.returncode != 0:
        stderr = result.stderr.strip()
        raise SchedulerError(f"Scheduler exited with {result.returncode}" + (f": {stderr}" if stderr else ""))

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise SchedulerError(f"Scheduler output is not JSON: {e}") from None

    try:
        validate(data, "schedule_result")
        return parse_result(data)
    except (ValidationError, ValueError) as e:
        raise SchedulerError(f"Invalid scheduler output: {e}") from None
