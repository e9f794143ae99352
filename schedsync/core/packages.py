"""
Milestone ("package") ordering.

Packages are ranked by due date (earliest first), then by a semantic version
found in the milestone title, then by where the package first appears in the
project. Tasks without a milestone rank after every package.
"""

import functools
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, NamedTuple

from schedsync.lib.types import WorkItem

SEMVER_RE = re.compile(r'v?(\d+)\.(\d+)\.(\d+)', re.IGNORECASE)


class Semver(NamedTuple):
    major: int
    minor: int
    patch: int


def parse_semver(label: str) -> Semver | None:
    """Find MAJOR.MINOR.PATCH (optionally v-prefixed) in a label."""
    match = SEMVER_RE.search(label)
    if not match:
        return None
    return Semver(*(int(g) for g in match.groups()))


@dataclass
class PackageInfo:
    id: str
    first_order: int
    due_date: datetime | None = None
    semver: Semver | None = None


def _compare(a: PackageInfo, b: PackageInfo) -> int:
    if (a.due_date is None) != (b.due_date is None):
        return -1 if a.due_date is not None else 1
    if a.due_date is not None and b.due_date is not None and a.due_date != b.due_date:
        return -1 if a.due_date < b.due_date else 1
    if a.semver is not None and b.semver is not None and a.semver != b.semver:
        return -1 if a.semver < b.semver else 1
    if (a.semver is None) != (b.semver is None):
        return -1 if a.semver is not None else 1
    return a.first_order - b.first_order


def collect_packages(items: Iterable[WorkItem]) -> list[PackageInfo]:
    """Build one PackageInfo per milestone, in first-seen order.

    items must already be in display order.
    """
    packages: dict[str, PackageInfo] = {}
    for index, item in enumerate(items):
        if not item.milestone:
            continue
        info = packages.get(item.milestone)
        if info is None:
            info = PackageInfo(
                id=item.milestone,
                first_order=index,
                semver=parse_semver(item.milestone),
            )
            packages[item.milestone] = info
        due = item.milestone_due_date
        if due is not None and (info.due_date is None or due < info.due_date):
            info.due_date = due
    return list(packages.values())


def order_packages(items: Iterable[WorkItem]) -> dict[str, int]:
    """Return milestone -> rank. Unpackaged tasks use len(result)."""
    ordered = sorted(collect_packages(items), key=functools.cmp_to_key(_compare))
    return {info.id: rank for rank, info in enumerate(ordered)}
