# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Keep machine-specific values in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "SCHEDULE_APP_NAME": "App display name (default: schedule-board).",
    "SCHEDULE_LOG_LEVEL": "Console logging level (default: INFO).",
    # Environment
    "SCHEDULE_ENVIRONMENT": (
        "'production' uses the base collection names; anything else appends '_dev' "
        "(default: development). APP_ENV is read when this is unset."
    ),
    # Paths (gitignored)
    "SCHEDULE_DATA_DIR": "Local data directory, also holds schedule.log (default: .local/schedule).",
    "SCHEDULE_DB_PATH": "Document store SQLite path (default: <data_dir>/schedule.sqlite3).",
    "SCHEDULE_ROSTER_PATH": "Optional JSON fallback roster shown while the live roster is empty.",
    # Collections
    "SCHEDULE_TASKS_COLLECTION": "Base name of the day-cell collection (default: schedule_tasks).",
    "SCHEDULE_EMPLOYEES_COLLECTION": "Base name of the roster collection (default: employees).",
    # Behaviour
    "SCHEDULE_ATOMIC_MOVES": (
        "Write both documents of a sub-task move in one transaction (true/false, default: true). "
        "When false, the destination is written before the source."
    ),
}
