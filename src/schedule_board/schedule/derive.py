# src/schedule_board/schedule/derive.py

"""
Pure functions over sub-task lists.

Nothing here touches storage: the task store calls these before every write
and after every read, so the derived fields (status, flattened content, order)
can never drift from the sub-task list that produced them.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from .models import ScheduleTask, SubTask, TaskStatus

logger = logging.getLogger(__name__)

LEGACY_SUB_TASK_SUFFIX = "legacy"


def generate_sub_task_id() -> str:
    return str(uuid.uuid4())


def calculate_overall_status(sub_tasks: Sequence[SubTask]) -> TaskStatus:
    """
    - empty list            -> pending
    - all completed         -> completed
    - any completed/started -> in-progress
    - otherwise             -> pending
    """
    if not sub_tasks:
        return TaskStatus.PENDING

    statuses = [s.status for s in sub_tasks]
    if all(st == TaskStatus.COMPLETED for st in statuses):
        return TaskStatus.COMPLETED
    if any(st in (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS) for st in statuses):
        return TaskStatus.IN_PROGRESS
    return TaskStatus.PENDING


def calculate_progress(sub_tasks: Sequence[SubTask]) -> int:
    """Percentage of completed sub-tasks, rounded half-up; 0 for an empty list."""
    total = len(sub_tasks)
    if total == 0:
        return 0
    completed = sum(1 for s in sub_tasks if s.status == TaskStatus.COMPLETED)
    return int(math.floor(100 * completed / total + 0.5))


def format_progress(progress: int | float) -> str:
    return f"{int(max(0, min(100, round(progress))))}%"


def flatten_content(sub_tasks: Iterable[SubTask]) -> str:
    return "\n".join(s.content for s in sub_tasks if s.content.strip())


def resequence(sub_tasks: Iterable[SubTask]) -> list[SubTask]:
    """Copy the list with `order` reassigned to 0..n-1, keeping the current sequence."""
    return [replace(s, order=i) for i, s in enumerate(sub_tasks)]


def max_order(sub_tasks: Iterable[SubTask]) -> int:
    return max((s.order for s in sub_tasks), default=-1)


def legacy_sub_task_id(task: ScheduleTask) -> str:
    # Deterministic so repeated reads of the same legacy document agree on the id.
    return f"{task.id}_{LEGACY_SUB_TASK_SUFFIX}"


def migrate_task_to_sub_tasks(task: ScheduleTask) -> ScheduleTask:
    """
    In-memory upgrade of a pre-sub-task document.

    A document with flat content and no sub-tasks gets exactly one sub-task
    carrying the whole text and the document's status. Anything else is
    returned unchanged, so the function is idempotent. Nothing is persisted.
    """
    if task.sub_tasks:
        return task
    if not task.task_content.strip():
        return task

    synthetic = SubTask(
        id=legacy_sub_task_id(task),
        content=task.task_content,
        status=task.status,
        order=0,
    )
    logger.debug("Migrated legacy task %s into one sub-task", task.id)
    return replace(task, sub_tasks=[synthetic])


def _coerce_order(raw: Any) -> int:
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and math.isfinite(raw):
        return int(raw)
    return 0


def _sanitize_one(raw: Any) -> SubTask | None:
    if isinstance(raw, SubTask):
        raw = raw.to_doc()
    if not isinstance(raw, dict):
        return None

    sub_id = raw.get("id")
    content = raw.get("content")
    return SubTask(
        id=sub_id if isinstance(sub_id, str) and sub_id.strip() else generate_sub_task_id(),
        content=content if isinstance(content, str) else "",
        status=TaskStatus.from_raw(raw.get("status")),
        order=_coerce_order(raw.get("order")),
    )


def sanitize_sub_tasks(raw: Iterable[Any] | None) -> list[SubTask]:
    """
    Normalize caller-supplied sub-tasks instead of rejecting them.

    - entries that are neither SubTask nor mappings are dropped
    - missing id -> fresh id; missing/blank content -> ""; missing status -> pending;
      non-numeric order -> 0
    - result is sorted by `order` (stable for ties), not by list position
    """
    if raw is None:
        return []

    clean: list[SubTask] = []
    dropped = 0
    for item in raw:
        sub = _sanitize_one(item)
        if sub is None:
            dropped += 1
            continue
        clean.append(sub)

    if dropped:
        logger.debug("sanitize_sub_tasks dropped %d malformed entries", dropped)

    clean.sort(key=lambda s: s.order)
    return clean
