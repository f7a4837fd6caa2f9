# tests/test_cell_state.py

from __future__ import annotations

import asyncio

import pytest

from schedule_board.errors import InvalidTransitionError, StoreWriteError
from schedule_board.schedule.cell_state import CellPhase, OptimisticCell, apply_optimistic


def test_begin_confirm() -> None:
    cell = OptimisticCell(False)
    cell.begin(True)
    assert cell.phase == CellPhase.PENDING
    assert cell.previous is False
    assert cell.confirm() is True
    assert cell.phase == CellPhase.CLEAN


def test_rollback_restores_previous_value() -> None:
    cell = OptimisticCell("office")
    cell.begin("homeoffice")
    assert cell.rollback() == "office"
    assert cell.phase == CellPhase.ROLLED_BACK

    # a rolled-back cell can take a new write
    cell.begin("homeoffice")
    assert cell.phase == CellPhase.PENDING


def test_invalid_transitions() -> None:
    cell = OptimisticCell(0)
    with pytest.raises(InvalidTransitionError):
        cell.confirm()
    with pytest.raises(InvalidTransitionError):
        cell.rollback()
    cell.begin(1)
    with pytest.raises(InvalidTransitionError):
        cell.begin(2)


@pytest.mark.asyncio
async def test_apply_optimistic_success_and_failure() -> None:
    cell = OptimisticCell(False)

    async def ok() -> str:
        assert cell.value is True  # visible before the store answers
        return "saved"

    assert await apply_optimistic(cell, True, ok) == "saved"
    assert cell.value is True
    assert cell.phase == CellPhase.CLEAN

    async def boom() -> None:
        raise StoreWriteError("offline")

    with pytest.raises(StoreWriteError):
        await apply_optimistic(cell, False, boom)
    assert cell.value is True
    assert cell.phase == CellPhase.ROLLED_BACK


@pytest.mark.asyncio
async def test_cancelled_write_rolls_back_and_cell_stays_usable() -> None:
    cell = OptimisticCell("office")
    started = asyncio.Event()

    async def slow() -> None:
        started.set()
        await asyncio.sleep(3600)

    task = asyncio.create_task(apply_optimistic(cell, "homeoffice", slow))
    await started.wait()
    assert cell.value == "homeoffice"

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert cell.value == "office"
    assert cell.phase == CellPhase.ROLLED_BACK
    cell.begin("homeoffice")
    assert cell.phase == CellPhase.PENDING
