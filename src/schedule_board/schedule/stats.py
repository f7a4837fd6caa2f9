# src/schedule_board/schedule/stats.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..core.ports import ScheduleRepo, Unsubscribe
from .derive import calculate_progress, migrate_task_to_sub_tasks
from .models import ScheduleTask, TaskStatus, WorkLocation

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WeeklyStats:
    """Per-employee totals over a date range (counted on sub-tasks)."""

    employee_name: str
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    pending: int = 0
    progress: int = 0
    absent_days: int = 0
    office_days: int = 0
    homeoffice_days: int = 0


def compute_weekly_stats(tasks: Iterable[ScheduleTask]) -> dict[str, WeeklyStats]:
    out: dict[str, WeeklyStats] = {}
    all_subs: dict[str, list] = {}

    for task in tasks:
        task = migrate_task_to_sub_tasks(task)
        name = task.employee_name
        stats = out.get(name)
        if stats is None:
            stats = out[name] = WeeklyStats(employee_name=name)
            all_subs[name] = []

        all_subs[name].extend(task.sub_tasks)
        for s in task.sub_tasks:
            stats.total += 1
            if s.status == TaskStatus.COMPLETED:
                stats.completed += 1
            elif s.status == TaskStatus.IN_PROGRESS:
                stats.in_progress += 1
            else:
                stats.pending += 1

        if task.is_absent:
            stats.absent_days += 1
        if task.work_location == WorkLocation.OFFICE:
            stats.office_days += 1
        elif task.work_location == WorkLocation.HOMEOFFICE:
            stats.homeoffice_days += 1

    for name, stats in out.items():
        stats.progress = calculate_progress(all_subs[name])
    return out


def subscribe_to_weekly_stats(
    repo: ScheduleRepo,
    start_date: str,
    end_date: str,
    callback: Callable[[dict[str, WeeklyStats]], None],
) -> Unsubscribe:
    """Live per-employee stats for [start_date, end_date], recomputed on every snapshot."""

    def on_tasks(tasks: list[ScheduleTask]) -> None:
        stats = compute_weekly_stats(tasks)
        logger.debug("Weekly stats %s..%s employees=%d", start_date, end_date, len(stats))
        callback(stats)

    return repo.subscribe_to_range(start_date, end_date, on_tasks)
