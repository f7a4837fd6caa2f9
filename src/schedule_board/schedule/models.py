# src/schedule_board/schedule/models.py

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """Status of a single sub-task, and the derived aggregate of a whole day cell."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except Exception:
            return cls.PENDING


class WorkLocation(StrEnum):
    UNSET = "unset"
    OFFICE = "office"
    HOMEOFFICE = "homeoffice"

    @classmethod
    def from_raw(cls, raw: Any) -> WorkLocation:
        if not raw:
            return cls.UNSET
        try:
            return cls(raw)
        except Exception:
            return cls.UNSET


def make_task_id(employee_name: str, task_date: str) -> str:
    """Document key: `<employee lower-cased>_<yyyy-MM-dd>`."""
    if not employee_name or not employee_name.strip():
        raise ValueError("employee_name is required")
    if not task_date or not task_date.strip():
        raise ValueError("task_date is required")
    return f"{employee_name.lower()}_{task_date}"


@dataclass(slots=True)
class SubTask:
    id: str
    content: str
    status: TaskStatus = TaskStatus.PENDING
    order: int = 0

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "status": TaskStatus.from_raw(self.status).value,
            "order": int(self.order),
        }

    @classmethod
    def from_doc(cls, raw: dict[str, Any]) -> SubTask:
        order = raw.get("order")
        if isinstance(order, bool) or not isinstance(order, (int, float)) or not math.isfinite(order):
            order = 0
        return cls(
            id=str(raw.get("id") or ""),
            content=str(raw.get("content") or ""),
            status=TaskStatus.from_raw(raw.get("status")),
            order=int(order),
        )


@dataclass(slots=True)
class ScheduleTask:
    """
    One employee's day cell.

    `task_content` and `status` are derived from `sub_tasks` on every save;
    only legacy documents carry content without sub-tasks.
    """

    id: str
    employee_name: str
    task_date: str  # yyyy-MM-dd
    task_content: str = ""
    status: TaskStatus = TaskStatus.PENDING
    sub_tasks: list[SubTask] = field(default_factory=list)
    is_absent: bool = False
    work_location: WorkLocation = WorkLocation.UNSET
    updated_at: float | None = None

    @property
    def is_empty(self) -> bool:
        return not self.sub_tasks and not self.task_content.strip()

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "employeeName": self.employee_name,
            "taskDate": self.task_date,
            "taskContent": self.task_content,
            "status": self.status.value,
            "subTasks": [s.to_doc() for s in self.sub_tasks],
            "isAbsent": bool(self.is_absent),
            "workLocation": self.work_location.value,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_doc(cls, raw: dict[str, Any]) -> ScheduleTask:
        """
        Build from a stored document.

        Legacy documents may miss `subTasks`, `isAbsent` and `workLocation`
        entirely (or carry null); those read as empty / False / unset.
        """
        employee_name = str(raw.get("employeeName") or "")
        task_date = str(raw.get("taskDate") or "")
        doc_id = raw.get("id")
        if not doc_id and employee_name and task_date:
            doc_id = make_task_id(employee_name, task_date)

        raw_subs = raw.get("subTasks")
        subs = [SubTask.from_doc(s) for s in raw_subs if isinstance(s, dict)] if isinstance(raw_subs, list) else []
        # display order is `order`, not array position; ties keep the stored sequence
        subs.sort(key=lambda s: s.order)

        updated_at = raw.get("updatedAt")
        return cls(
            id=str(doc_id or ""),
            employee_name=employee_name,
            task_date=task_date,
            task_content=str(raw.get("taskContent") or ""),
            status=TaskStatus.from_raw(raw.get("status")),
            sub_tasks=subs,
            is_absent=bool(raw.get("isAbsent") or False),
            work_location=WorkLocation.from_raw(raw.get("workLocation")),
            updated_at=float(updated_at) if isinstance(updated_at, (int, float)) else None,
        )
