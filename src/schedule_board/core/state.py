# src/schedule_board/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..roster.employees import Employee, EmployeeStore
from ..schedule.task_store import ScheduleTaskStore
from .ports import DocumentStore


@dataclass
class AppState:
    # Settings object (config.Settings or a test double with the same attributes).
    settings: Any

    documents: DocumentStore
    tasks: ScheduleTaskStore
    employees: EmployeeStore

    # Shown when the live roster is empty.
    fallback_roster: list[Employee] = field(default_factory=list)
