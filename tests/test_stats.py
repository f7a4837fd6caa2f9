# tests/test_stats.py

from __future__ import annotations

import pytest

from schedule_board.schedule.models import ScheduleTask, SubTask, TaskStatus, WorkLocation
from schedule_board.schedule.stats import WeeklyStats, compute_weekly_stats, subscribe_to_weekly_stats
from schedule_board.schedule.task_store import ScheduleTaskStore


def test_compute_weekly_stats_counts_sub_tasks_and_days() -> None:
    tasks = [
        ScheduleTask(
            id="jana_2024-03-04",
            employee_name="Jana",
            task_date="2024-03-04",
            sub_tasks=[
                SubTask(id="1", content="a", status=TaskStatus.COMPLETED),
                SubTask(id="2", content="b", status=TaskStatus.IN_PROGRESS, order=1),
            ],
            work_location=WorkLocation.OFFICE,
        ),
        ScheduleTask(
            id="jana_2024-03-05",
            employee_name="Jana",
            task_date="2024-03-05",
            task_content="legacy",
            status=TaskStatus.COMPLETED,
            work_location=WorkLocation.HOMEOFFICE,
        ),
        ScheduleTask(id="petr_2024-03-05", employee_name="Petr", task_date="2024-03-05", is_absent=True),
    ]

    stats = compute_weekly_stats(tasks)

    assert stats["Jana"] == WeeklyStats(
        employee_name="Jana",
        total=3,
        completed=2,
        in_progress=1,
        pending=0,
        progress=67,
        absent_days=0,
        office_days=1,
        homeoffice_days=1,
    )
    assert stats["Petr"].total == 0
    assert stats["Petr"].progress == 0
    assert stats["Petr"].absent_days == 1


@pytest.mark.asyncio
async def test_subscribe_to_weekly_stats_follows_changes(tasks: ScheduleTaskStore) -> None:
    seen: list[dict[str, WeeklyStats]] = []
    unsubscribe = subscribe_to_weekly_stats(tasks, "2024-03-04", "2024-03-10", seen.append)
    assert seen == [{}]

    await tasks.save_sub_tasks("Jana", "2024-03-04", [{"content": "x", "status": "completed"}, {"content": "y"}])
    assert seen[-1]["Jana"].progress == 50

    unsubscribe()
    await tasks.toggle_absence("Jana", "2024-03-05", True)
    assert seen[-1]["Jana"].absent_days == 0
