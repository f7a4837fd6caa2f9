# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from schedule_board.roster.employees import EmployeeStore
from schedule_board.schedule.task_store import ScheduleTaskStore
from schedule_board.storage.document_store import SqliteDocumentStore

from .fakes import FakeClock, InMemoryDocumentStore

TASKS = "schedule_tasks_test"
EMPLOYEES = "employees_test"


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap.create_initial_state.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment.
    """
    return SimpleNamespace(
        app_name="schedule-test",
        log_level="DEBUG",
        environment="development",
        data_dir=tmp_path / "data",
        db_path=tmp_path / "data" / "schedule.sqlite3",
        roster_path=None,
        tasks_collection="schedule_tasks",
        employees_collection="employees",
        atomic_moves=True,
        collection_name=lambda base: f"{base}_dev",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sqlite_store(tmp_path: Path) -> Iterator[SqliteDocumentStore]:
    store = SqliteDocumentStore(tmp_path / "docs.sqlite3")
    yield store
    store.close()


@pytest.fixture()
def fake_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def tasks(sqlite_store: SqliteDocumentStore, clock: FakeClock) -> ScheduleTaskStore:
    """
    ScheduleTaskStore over a real SQLite document store.

    We keep the real store here because the upsert / range-query semantics
    are part of what we want to test.
    """
    return ScheduleTaskStore(sqlite_store, TASKS, clock=clock)


@pytest.fixture()
def fake_tasks(fake_store: InMemoryDocumentStore, clock: FakeClock) -> ScheduleTaskStore:
    return ScheduleTaskStore(fake_store, TASKS, atomic_moves=False, clock=clock)


@pytest.fixture()
def employees(sqlite_store: SqliteDocumentStore, clock: FakeClock) -> EmployeeStore:
    return EmployeeStore(sqlite_store, EMPLOYEES, clock=clock)
