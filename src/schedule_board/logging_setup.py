# src/schedule_board/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

LOG_FILE_NAME = "schedule.log"

# Package loggers that only reach the console at or above the given level.
# The document store logs every create/update at DEBUG.
QUIET_LOGGERS: Mapping[str, int] = {
    "schedule_board.storage.": logging.WARNING,
}


class _ConsoleNoiseFilter(logging.Filter):
    """Console gets the board's own records; captured warnings and other libraries only at ERROR+."""

    def __init__(self, quiet: Mapping[str, int] = QUIET_LOGGERS) -> None:
        super().__init__()
        self._quiet = dict(quiet)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("schedule_board."):
            return record.levelno >= logging.ERROR

        for prefix, level in self._quiet.items():
            if name.startswith(prefix):
                return record.levelno >= level
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/schedule",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all records to stderr (filtered) and to `<log_dir>/schedule.log` (unfiltered).

    Replaces whatever handlers the root logger had, so a second call does not
    double every line. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(_ConsoleNoiseFilter())

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)

    for handler in (console, file_handler):
        handler.setFormatter(fmt)
        root.addHandler(handler)

    # warnings.warn(...) arrives as 'py.warnings' and is filtered like a library.
    logging.captureWarnings(True)

    return log_file
