"""Reverse dependency synthesis for the work item store."""

import logging

from schedsync.lib.types import IssueRef, WorkItem

logger = logging.getLogger(__name__)


def build_reverse_dependencies(items: dict[str, WorkItem]) -> None:
    """Add blocked-by edges implied by blocking edges, in place.

    If A is blocking B and B is in the store, B gets A in blocked_by unless
    that edge is already recorded. Targets outside the store are left alone.
    """
    for ref, item in items.items():
        if item.is_draft:
            continue
        source = IssueRef(owner=item.owner, repo=item.repo, number=item.number)
        for blocked in item.blocking:
            target = items.get(blocked.key)
            if target is None:
                continue
            if source in target.blocked_by:
                continue
            target.blocked_by.append(source)
            logger.debug(f"Added reverse dependency: {blocked.key} blocked by {ref} (from blocking field)")
