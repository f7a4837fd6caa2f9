# src/schedule_board/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every key has a local default.
- Collection names are environment-qualified so dev data never lands in prod collections.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "SCHEDULE"

DEV_COLLECTION_SUFFIX = "_dev"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path | None) -> Path | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    environment: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    roster_path: Path | None

    # ---- Collections (base names, before environment suffix) ----
    tasks_collection: str
    employees_collection: str

    # ---- Behaviour ----
    atomic_moves: bool

    @property
    def is_development(self) -> bool:
        return self.environment != "production"

    def collection_name(self, base: str) -> str:
        """Environment-qualified collection name (`<base>_dev` outside production)."""
        return f"{base}{DEV_COLLECTION_SUFFIX}" if self.is_development else base

    @property
    def tasks_collection_name(self) -> str:
        return self.collection_name(self.tasks_collection)

    @property
    def employees_collection_name(self) -> str:
        return self.collection_name(self.employees_collection)

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "schedule-board")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        # Explicit SCHEDULE_ENVIRONMENT wins; APP_ENV is accepted for deployment tooling.
        environment = (
            _first_env(_k("ENVIRONMENT"), "APP_ENV", default="development") or "development"
        ).strip().lower()

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/schedule")) or Path(".local/schedule")
        db_path = _env_path(_k("DB_PATH"), data_dir / "schedule.sqlite3") or data_dir / "schedule.sqlite3"
        roster_path = _env_path(_k("ROSTER_PATH"), None)

        tasks_collection = _env(_k("TASKS_COLLECTION"), "schedule_tasks").strip() or "schedule_tasks"
        employees_collection = _env(_k("EMPLOYEES_COLLECTION"), "employees").strip() or "employees"

        atomic_moves = _env_bool(_k("ATOMIC_MOVES"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            environment=environment,
            data_dir=data_dir,
            db_path=db_path,
            roster_path=roster_path,
            tasks_collection=tasks_collection,
            employees_collection=employees_collection,
            atomic_moves=atomic_moves,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
