# src/schedule_board/roster/employees.py

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from ..core.ports import Document, DocumentStore, Unsubscribe
from ..errors import StoreError

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")


class EmployeeType(StrEnum):
    INTERNAL = "internal"
    EXTERNAL = "external"

    @classmethod
    def from_raw(cls, raw: Any) -> EmployeeType:
        try:
            return cls(raw)
        except Exception:
            return cls.INTERNAL


def employee_id_for(name: str) -> str:
    """Roster key: lower-cased name with whitespace runs replaced by '_'."""
    if not name or not name.strip():
        raise ValueError("name is required")
    return _WS_RE.sub("_", name.strip().lower())


@dataclass(slots=True)
class Employee:
    name: str
    position: str = ""
    type: EmployeeType = EmployeeType.INTERNAL
    order: int = 0
    id: str = ""
    created_at: float | None = None
    updated_at: float | None = None

    def __post_init__(self) -> None:
        if not self.id:
            self.id = employee_id_for(self.name)
        self.type = EmployeeType.from_raw(self.type)

    def to_doc(self) -> Document:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position,
            "type": self.type.value,
            "order": int(self.order),
        }

    @classmethod
    def from_doc(cls, raw: Document) -> Employee:
        order = raw.get("order")
        created_at = raw.get("createdAt")
        updated_at = raw.get("updatedAt")
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or raw.get("id") or ""),
            position=str(raw.get("position") or ""),
            type=EmployeeType.from_raw(raw.get("type")),
            order=int(order) if isinstance(order, (int, float)) and not isinstance(order, bool) else 0,
            created_at=float(created_at) if isinstance(created_at, (int, float)) else None,
            updated_at=float(updated_at) if isinstance(updated_at, (int, float)) else None,
        )


def resolve_roster(live: Sequence[Employee], fallback: Sequence[Employee]) -> list[Employee]:
    """The live roster wins; the configured fallback only fills an empty roster."""
    return list(live) if live else list(fallback)


def load_roster_file(path: str | Path) -> list[Employee]:
    """
    Read a fallback roster from JSON: [{"name": ..., "position": ..., "type": ...}, ...].

    Best-effort: an unreadable file yields an empty roster.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Roster file %s does not exist", path)
        return []
    try:
        data = json.loads(path.read_text("utf-8"))
    except Exception:
        logger.exception("Failed to load roster from %s", path)
        return []
    if not isinstance(data, list):
        logger.warning("Roster file %s is not a JSON list", path)
        return []

    out: list[Employee] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict) or not str(item.get("name") or "").strip():
            continue
        out.append(
            Employee(
                name=str(item["name"]).strip(),
                position=str(item.get("position") or ""),
                type=EmployeeType.from_raw(item.get("type")),
                order=i,
            )
        )
    logger.info("Loaded fallback roster: %d employees from %s", len(out), path)
    return out


class EmployeeStore:
    """Roster documents, ordered by `order`."""

    def __init__(
        self,
        store: DocumentStore,
        collection: str = "employees",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._collection = collection
        self._clock = clock

    async def get_employees(self) -> list[Employee]:
        try:
            docs = await self._store.query_range(self._collection, order_by="order")
        except StoreError:
            logger.exception("Error fetching employees from %s", self._collection)
            return []
        return [Employee.from_doc(d) for d in docs]

    def subscribe_to_employees(self, callback: Callable[[list[Employee]], None]) -> Unsubscribe:
        def on_snapshot(docs: list[Document]) -> None:
            callback([Employee.from_doc(d) for d in docs])

        return self._store.subscribe(self._collection, on_snapshot, order_by="order")

    async def save_employee(self, employee: Employee) -> None:
        """Create (stamping createdAt) or merge-update an employee."""
        now = float(self._clock())
        fields = employee.to_doc()
        fields["updatedAt"] = now
        await self._store.upsert(
            self._collection,
            employee.id,
            fields,
            defaults={"createdAt": now},
        )
        logger.info("Employee %s saved", employee.name)

    async def delete_employee(self, employee_id: str) -> None:
        await self._store.delete(self._collection, employee_id)
        logger.info("Employee %s deleted", employee_id)

    async def reorder_employees(self, employee_ids: Sequence[str]) -> None:
        """Assign order = position in `employee_ids`; unknown ids are skipped."""
        known = {e.id for e in await self.get_employees()}
        now = float(self._clock())

        writes: list[tuple[str, Document, Document | None]] = []
        for index, eid in enumerate(employee_ids):
            if eid not in known:
                logger.warning("reorder_employees: unknown employee id %s skipped", eid)
                continue
            writes.append((eid, {"order": index, "updatedAt": now}, None))

        await self._store.upsert_many(self._collection, writes)
        logger.info("Employees reordered n=%d", len(writes))

    async def seed_employees(self, employees: Iterable[Employee]) -> int:
        """One-time import of a roster: ids from names, order from list position."""
        count = 0
        for index, emp in enumerate(employees):
            await self.save_employee(
                Employee(
                    name=emp.name,
                    position=emp.position,
                    type=emp.type,
                    order=index,
                )
            )
            count += 1
        logger.info("Seeded %d employees into %s", count, self._collection)
        return count
