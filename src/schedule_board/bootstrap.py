# src/schedule_board/bootstrap.py

"""
Composition root.

- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite document store into the schedule and roster stores,
- loads the optional fallback roster.

The embedding application (web handler, desktop shell, ...) calls
`init_logging` once and `create_initial_state` to obtain an AppState.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import get_settings
from .core.state import AppState
from .logging_setup import setup_logging
from .roster.employees import Employee, EmployeeStore, load_roster_file, resolve_roster
from .schedule.task_store import ScheduleTaskStore
from .storage.document_store import SqliteDocumentStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
    Path(settings.db_path).parent.mkdir(parents=True, exist_ok=True)


def init_logging(settings=None) -> Path:
    """Configure logging from settings.log_level / settings.data_dir."""
    if settings is None:
        settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_dir = getattr(settings, "data_dir", ".local/schedule")
    return setup_logging(log_dir=log_dir, console_level=console_level)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    documents = SqliteDocumentStore(settings.db_path)

    tasks_collection = settings.collection_name(settings.tasks_collection)
    employees_collection = settings.collection_name(settings.employees_collection)
    logger.info(
        "Environment %s: collections tasks=%s employees=%s",
        settings.environment,
        tasks_collection,
        employees_collection,
    )

    fallback: list[Employee] = []
    roster_path = getattr(settings, "roster_path", None)
    if roster_path:
        fallback = load_roster_file(roster_path)

    return AppState(
        settings=settings,
        documents=documents,
        tasks=ScheduleTaskStore(
            documents,
            tasks_collection,
            atomic_moves=bool(getattr(settings, "atomic_moves", True)),
        ),
        employees=EmployeeStore(documents, employees_collection),
        fallback_roster=fallback,
    )


async def load_roster(state: AppState) -> list[Employee]:
    """Live roster, or the configured fallback when the live one is empty."""
    live = await state.employees.get_employees()
    return resolve_roster(live, state.fallback_roster)


def shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        close = getattr(state.documents, "close", None)
        if close is not None:
            close()
    except Exception:
        logger.debug("Document store close failed.", exc_info=True)
