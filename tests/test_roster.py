# tests/test_roster.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from schedule_board.roster.employees import (
    Employee,
    EmployeeStore,
    EmployeeType,
    employee_id_for,
    load_roster_file,
    resolve_roster,
)
from schedule_board.storage.document_store import SqliteDocumentStore

from .conftest import EMPLOYEES


def test_employee_id_for_normalizes_whitespace() -> None:
    assert employee_id_for("Honza  Dočkal") == "honza_dočkal"
    assert employee_id_for("Radim") == "radim"
    with pytest.raises(ValueError):
        employee_id_for("  ")


@pytest.mark.asyncio
async def test_seed_and_list_in_order(employees: EmployeeStore) -> None:
    seeded = await employees.seed_employees(
        [
            Employee(name="Radim", position="Foto", type=EmployeeType.INTERNAL),
            Employee(name="Honza Dočkal", position="DTP", type="external"),
        ]
    )
    assert seeded == 2

    listed = await employees.get_employees()
    assert [(e.id, e.order, e.type) for e in listed] == [
        ("radim", 0, EmployeeType.INTERNAL),
        ("honza_dočkal", 1, EmployeeType.EXTERNAL),
    ]
    assert all(e.created_at is not None for e in listed)


@pytest.mark.asyncio
async def test_save_existing_keeps_created_at(
    employees: EmployeeStore, sqlite_store: SqliteDocumentStore
) -> None:
    await employees.save_employee(Employee(name="Roman", position="DTP"))
    first = await sqlite_store.get(EMPLOYEES, "roman")
    assert first is not None

    await employees.save_employee(Employee(name="Roman", position="Motion"))
    second = await sqlite_store.get(EMPLOYEES, "roman")
    assert second is not None
    assert second["position"] == "Motion"
    assert second["createdAt"] == first["createdAt"]
    assert second["updatedAt"] > first["updatedAt"]


@pytest.mark.asyncio
async def test_reorder_and_delete(employees: EmployeeStore) -> None:
    await employees.seed_employees([Employee(name=n) for n in ("A", "B", "C")])

    await employees.reorder_employees(["c", "ghost", "a", "b"])
    listed = await employees.get_employees()
    assert [e.id for e in listed] == ["c", "a", "b"]

    await employees.delete_employee("a")
    assert [e.id for e in await employees.get_employees()] == ["c", "b"]


@pytest.mark.asyncio
async def test_subscribe_to_employees(employees: EmployeeStore) -> None:
    seen: list[list[Employee]] = []
    unsubscribe = employees.subscribe_to_employees(seen.append)
    assert seen == [[]]

    await employees.save_employee(Employee(name="Yume"))
    assert [e.name for e in seen[-1]] == ["Yume"]
    unsubscribe()


def test_resolve_roster_prefers_live() -> None:
    fallback = [Employee(name="Default")]
    live = [Employee(name="Live")]
    assert resolve_roster(live, fallback) == live
    assert resolve_roster([], fallback) == fallback


def test_load_roster_file(tmp_path: Path) -> None:
    path = tmp_path / "roster.json"
    path.write_text(
        json.dumps(
            [
                {"name": "Radek", "position": "Copy", "type": "internal"},
                {"position": "no name"},
                {"name": "Vlaďka", "position": "Copy", "type": "external"},
            ]
        ),
        "utf-8",
    )

    roster = load_roster_file(path)
    assert [(e.name, e.type) for e in roster] == [
        ("Radek", EmployeeType.INTERNAL),
        ("Vlaďka", EmployeeType.EXTERNAL),
    ]

    assert load_roster_file(tmp_path / "missing.json") == []
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", "utf-8")
    assert load_roster_file(bad) == []
