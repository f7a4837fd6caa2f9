# src/schedule_board/schedule/cell_state.py

"""
Optimistic state for one grid cell.

The caller shows a new value before the store confirms it:

    Clean --begin--> Pending(prev) --confirm--> Clean
                                   --rollback--> RolledBack --begin--> Pending(...)

Rolling back restores the value captured at `begin`.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, Generic, TypeVar

from ..errors import InvalidTransitionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CellPhase(StrEnum):
    CLEAN = "clean"
    PENDING = "pending"
    ROLLED_BACK = "rolled_back"


class OptimisticCell(Generic[T]):
    def __init__(self, value: T) -> None:
        self.value: T = value
        self.phase = CellPhase.CLEAN
        self._previous: T | None = None

    @property
    def previous(self) -> T | None:
        return self._previous

    def begin(self, new_value: T) -> None:
        if self.phase == CellPhase.PENDING:
            raise InvalidTransitionError("cell already has a pending write")
        self._previous = self.value
        self.value = new_value
        self.phase = CellPhase.PENDING

    def confirm(self) -> T:
        if self.phase != CellPhase.PENDING:
            raise InvalidTransitionError(f"cannot confirm from {self.phase}")
        self._previous = None
        self.phase = CellPhase.CLEAN
        return self.value

    def rollback(self) -> T:
        if self.phase != CellPhase.PENDING:
            raise InvalidTransitionError(f"cannot roll back from {self.phase}")
        self.value = self._previous  # type: ignore[assignment]
        self._previous = None
        self.phase = CellPhase.ROLLED_BACK
        return self.value


async def apply_optimistic(
    cell: OptimisticCell[T],
    new_value: T,
    operation: Callable[[], Awaitable[Any]],
) -> Any:
    """
    Show `new_value` immediately, then run the store mutation.

    Confirms on success; on failure or cancellation restores the previous
    value and re-raises.
    """
    cell.begin(new_value)
    try:
        result = await operation()
    except BaseException:
        cell.rollback()
        logger.warning("Optimistic write rolled back to %r", cell.value)
        raise
    cell.confirm()
    return result
