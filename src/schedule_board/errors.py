# src/schedule_board/errors.py

"""
Error taxonomy.

- Store errors are hard failures: they propagate to the caller untouched by retries.
- Missing documents / sub-tasks are NOT errors here; operations treat them as no-ops.
- Malformed sub-task input is sanitized, never raised.
"""

from __future__ import annotations


class ScheduleBoardError(Exception):
    """Base class for all errors raised by schedule_board."""


class StoreError(ScheduleBoardError):
    """The underlying document store failed."""


class StoreReadError(StoreError):
    pass


class StoreWriteError(StoreError):
    """A write (upsert/set/delete) was rejected; nothing was committed for that call."""


class InvalidTransitionError(ScheduleBoardError):
    """An optimistic cell was driven through a transition its current phase does not allow."""
