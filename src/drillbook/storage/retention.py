"""Size-bounded retention: evict superseded plans, oldest first."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Callable

from drillbook.config import RetentionPolicy
from drillbook.models import Plan, PruneReport
from drillbook.storage.backend import Backend, Collection

logger = logging.getLogger(__name__)

# Serializes prune runs across every storage instance in the process.
_PRUNE_LOCK = threading.Lock()


def eviction_order(plans: list[Plan]) -> list[Plan]:
    """Plans that may be evicted, globally oldest first.

    Each command's most recent plan is never a candidate.
    """
    by_command: dict[str, list[Plan]] = defaultdict(list)
    for plan in plans:
        by_command[plan.command_id].append(plan)

    candidates: list[Plan] = []
    for group in by_command.values():
        group.sort(key=lambda p: (p.date, p.created_at, p.id), reverse=True)
        candidates.extend(group[1:])

    candidates.sort(key=lambda p: (p.date, p.created_at, p.id))
    return candidates


def prune(
    backend: Backend,
    policy: RetentionPolicy,
    delete_plan: Callable[[str], bool],
) -> PruneReport:
    """Delete superseded plans until the size estimate is within target.

    Size is re-measured after every deletion and the loop stops as soon as
    it reaches ``policy.target_bytes``.
    """
    target = policy.target_bytes
    with _PRUNE_LOCK:
        size_before = size = backend.estimate_size()
        deleted: list[str] = []

        if size <= target:
            logger.info("Prune skipped: size %d within target %d", size, target)
            return PruneReport(size_before=size, size_after=size, target_bytes=target)

        candidates = eviction_order(backend.find(Collection.PLANS))
        logger.info(
            "Pruning: size %d over target %d, %d candidate plans",
            size, target, len(candidates),
        )
        for plan in candidates:
            if delete_plan(plan.id):
                deleted.append(plan.id)
            size = backend.estimate_size()
            logger.debug("Evicted plan %s dated %s, size now %d", plan.id, plan.date, size)
            if size <= target:
                break

        if size > target:
            logger.warning(
                "Prune exhausted candidates: size %d still over target %d", size, target,
            )
        else:
            logger.info("Pruned %d plans, size %d -> %d", len(deleted), size_before, size)

        return PruneReport(
            size_before=size_before,
            size_after=size,
            target_bytes=target,
            deleted_plan_ids=deleted,
        )
