# src/schedule_board/schedule/task_store.py

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

from ..core.ports import Document, DocumentStore, Unsubscribe
from ..util.dates import next_day, parse_date
from .derive import (
    calculate_overall_status,
    flatten_content,
    generate_sub_task_id,
    max_order,
    migrate_task_to_sub_tasks,
    resequence,
    sanitize_sub_tasks,
)
from .models import ScheduleTask, SubTask, TaskStatus, WorkLocation, make_task_id

logger = logging.getLogger(__name__)

TaskSnapshotCallback = Callable[[list[ScheduleTask]], None]

DATE_FIELD = "taskDate"


def _sort_key(task: ScheduleTask) -> tuple[str, str]:
    return task.task_date, task.employee_name


class ScheduleTaskStore:
    """
    Day-cell documents, one per (employee, date).

    Every mutation is a single conditional upsert that writes only the fields
    the operation owns; a missing document is created with defaults for the rest.
    Sub-task writes always rewrite the four derived fields together
    (subTasks, status, taskContent, updatedAt), so they never drift apart.

    Missing documents or sub-tasks make read-modify-write operations a no-op
    (they return False/None); store failures propagate unchanged.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str = "schedule_tasks",
        *,
        atomic_moves: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._collection = collection
        self._atomic_moves = bool(atomic_moves) and hasattr(store, "upsert_many")
        self._clock = clock
        logger.info(
            "ScheduleTaskStore ready collection=%s atomic_moves=%s",
            self._collection,
            self._atomic_moves,
        )

    @property
    def collection(self) -> str:
        return self._collection

    # ---- low-level helpers ----

    @staticmethod
    def _key(employee_name: str, task_date: str) -> str:
        parse_date(task_date)
        return make_task_id(employee_name, task_date)

    @staticmethod
    def _defaults(employee_name: str, task_date: str) -> Document:
        return {
            "id": make_task_id(employee_name, task_date),
            "employeeName": employee_name,
            "taskDate": task_date,
            "taskContent": "",
            "status": TaskStatus.PENDING.value,
            "subTasks": [],
            "isAbsent": False,
            "workLocation": WorkLocation.UNSET.value,
        }

    def _stamp(self, fields: Document) -> Document:
        out = dict(fields)
        out["updatedAt"] = float(self._clock())
        return out

    async def _upsert(self, employee_name: str, task_date: str, fields: Document) -> None:
        doc_id = self._key(employee_name, task_date)
        await self._store.upsert(
            self._collection,
            doc_id,
            self._stamp(fields),
            defaults=self._defaults(employee_name, task_date),
        )
        logger.debug("Upserted %s fields=%s", doc_id, sorted(fields))

    @classmethod
    def _sub_task_fields(cls, sub_tasks: Iterable[Any] | None) -> tuple[list[SubTask], Document]:
        """
        Sanitize, drop empty entries, re-sequence and derive.

        Returns the canonical list and the fields to persist for it.
        """
        clean = resequence(s for s in sanitize_sub_tasks(sub_tasks) if s.content.strip())
        return clean, cls._derived_fields(clean)

    @staticmethod
    def _derived_fields(sub_tasks: list[SubTask]) -> Document:
        """Persisted list plus its derived status and content, taken as given."""
        return {
            "subTasks": [s.to_doc() for s in sub_tasks],
            "status": calculate_overall_status(sub_tasks).value,
            "taskContent": flatten_content(sub_tasks),
        }

    async def _read(self, employee_name: str, task_date: str) -> ScheduleTask | None:
        raw = await self._store.get(self._collection, self._key(employee_name, task_date))
        if raw is None:
            return None
        return migrate_task_to_sub_tasks(ScheduleTask.from_doc(raw))

    def _to_tasks(self, docs: Iterable[Document]) -> list[ScheduleTask]:
        tasks = [migrate_task_to_sub_tasks(ScheduleTask.from_doc(d)) for d in docs]
        tasks.sort(key=_sort_key)
        return tasks

    # ---- reads ----

    async def get_task(self, employee_name: str, task_date: str) -> ScheduleTask | None:
        """Single document, migrated in memory (the migration is not persisted)."""
        return await self._read(employee_name, task_date)

    async def list_range(self, start_date: str, end_date: str) -> list[ScheduleTask]:
        """One-shot variant of subscribe_to_range."""
        parse_date(start_date)
        parse_date(end_date)
        docs = await self._store.query_range(
            self._collection,
            field=DATE_FIELD,
            start=start_date,
            end=end_date,
        )
        return self._to_tasks(docs)

    def subscribe_to_range(
        self,
        start_date: str,
        end_date: str,
        callback: TaskSnapshotCallback,
    ) -> Unsubscribe:
        """
        Live view of every document with start_date <= taskDate <= end_date.

        Each snapshot (initial and after every change) is migrated and sorted by
        (taskDate, employeeName) before delivery. Call the returned handle on
        teardown to release the listener.
        """
        parse_date(start_date)
        parse_date(end_date)

        def on_snapshot(docs: list[Document]) -> None:
            callback(self._to_tasks(docs))

        unsubscribe = self._store.subscribe(
            self._collection,
            on_snapshot,
            field=DATE_FIELD,
            start=start_date,
            end=end_date,
        )
        logger.debug("Subscribed to %s..%s", start_date, end_date)
        return unsubscribe

    # ---- single-field mutations ----

    async def save_text_content(self, employee_name: str, task_date: str, text: str) -> None:
        """Legacy path: flat content only; status and sub-tasks are left untouched."""
        await self._upsert(employee_name, task_date, {"taskContent": text or ""})

    async def set_status(self, employee_name: str, task_date: str, status: TaskStatus | str) -> None:
        """Aggregate status only (cells without sub-tasks)."""
        await self._upsert(employee_name, task_date, {"status": TaskStatus.from_raw(status).value})

    async def toggle_absence(self, employee_name: str, task_date: str, is_absent: bool) -> None:
        await self._upsert(employee_name, task_date, {"isAbsent": bool(is_absent)})

    async def set_work_location(
        self,
        employee_name: str,
        task_date: str,
        location: WorkLocation | str,
    ) -> None:
        await self._upsert(
            employee_name,
            task_date,
            {"workLocation": WorkLocation.from_raw(location).value},
        )

    # ---- sub-task mutations ----

    async def save_sub_tasks(
        self,
        employee_name: str,
        task_date: str,
        sub_tasks: Iterable[Any] | None,
    ) -> list[SubTask]:
        """
        Replace the cell's sub-task list.

        Input is sanitized (never rejected), sorted by `order`, stripped of
        empty entries and re-sequenced to 0..n-1. The list and its derived
        status/content are written in one upsert; on failure nothing changes.
        Returns the list as persisted.
        """
        clean, fields = self._sub_task_fields(sub_tasks)
        await self._upsert(employee_name, task_date, fields)
        logger.debug(
            "Saved %d sub-tasks for %s status=%s",
            len(clean),
            make_task_id(employee_name, task_date),
            fields["status"],
        )
        return clean

    async def set_sub_task_status(
        self,
        employee_name: str,
        task_date: str,
        sub_task_id: str,
        status: TaskStatus | str,
    ) -> bool:
        task = await self._read(employee_name, task_date)
        if task is None:
            logger.debug("set_sub_task_status: no document for %s/%s", employee_name, task_date)
            return False

        new_status = TaskStatus.from_raw(status)
        found = False
        updated: list[SubTask] = []
        for s in task.sub_tasks:
            if s.id == sub_task_id:
                found = True
                updated.append(replace(s, status=new_status))
            else:
                updated.append(s)

        if not found:
            logger.debug("set_sub_task_status: sub-task %s not in %s", sub_task_id, task.id)
            return False

        await self.save_sub_tasks(employee_name, task_date, updated)
        return True

    async def add_sub_task_to_employee(
        self,
        employee_name: str,
        task_date: str,
        sub_task: SubTask | dict[str, Any] | str,
    ) -> SubTask | None:
        """
        Append one sub-task after the current last one (creating the cell if needed).

        Returns the appended sub-task, or None when it has no content.
        """
        if isinstance(sub_task, str):
            sub_task = {"content": sub_task}

        sanitized = sanitize_sub_tasks([sub_task])
        if not sanitized or not sanitized[0].content.strip():
            logger.debug("add_sub_task_to_employee: empty sub-task ignored for %s/%s", employee_name, task_date)
            return None

        task = await self._read(employee_name, task_date)
        existing = list(task.sub_tasks) if task is not None else []
        appended = replace(sanitized[0], order=max_order(existing) + 1)

        saved = await self.save_sub_tasks(employee_name, task_date, [*existing, appended])
        return next((s for s in saved if s.id == appended.id), appended)

    async def delete_sub_task(self, employee_name: str, task_date: str, sub_task_id: str) -> bool:
        task = await self._read(employee_name, task_date)
        if task is None:
            return False

        remaining = [s for s in task.sub_tasks if s.id != sub_task_id]
        if len(remaining) == len(task.sub_tasks):
            logger.debug("delete_sub_task: sub-task %s not in %s", sub_task_id, task.id)
            return False

        await self.save_sub_tasks(employee_name, task_date, remaining)
        return True

    async def duplicate_sub_task(
        self,
        employee_name: str,
        task_date: str,
        sub_task_id: str,
    ) -> SubTask | None:
        """Copy a sub-task to the end of the same cell (fresh id, same status)."""
        task = await self._read(employee_name, task_date)
        if task is None:
            return None

        original = next((s for s in task.sub_tasks if s.id == sub_task_id), None)
        if original is None:
            return None

        copy = replace(original, id=generate_sub_task_id(), order=max_order(task.sub_tasks) + 1)
        await self.save_sub_tasks(employee_name, task_date, [*task.sub_tasks, copy])
        return copy

    async def duplicate_sub_task_to_next_day(
        self,
        employee_name: str,
        task_date: str,
        sub_task_id: str,
    ) -> SubTask | None:
        """
        Copy a sub-task into the same employee's next calendar day as pending.

        The source cell is only read, never written.
        """
        task = await self._read(employee_name, task_date)
        if task is None:
            return None

        original = next((s for s in task.sub_tasks if s.id == sub_task_id), None)
        if original is None:
            return None

        target_date = next_day(task_date)
        target = await self._read(employee_name, target_date)
        existing = list(target.sub_tasks) if target is not None else []

        copy = SubTask(
            id=generate_sub_task_id(),
            content=original.content,
            status=TaskStatus.PENDING,
            order=max_order(existing) + 1,
        )
        await self.save_sub_tasks(employee_name, target_date, [*existing, copy])
        return copy

    # ---- move protocol ----

    async def move_sub_task(
        self,
        employee_name: str,
        from_date: str,
        to_date: str,
        sub_task_id: str,
    ) -> bool:
        """Move a sub-task between two days of the same employee."""
        return await self.move_sub_task_cross_employee(
            employee_name,
            from_date,
            employee_name,
            to_date,
            sub_task_id,
        )

    async def move_sub_task_cross_employee(
        self,
        from_employee: str,
        from_date: str,
        to_employee: str,
        to_date: str,
        sub_task_id: str,
    ) -> bool:
        """
        Relocate one sub-task to another (employee, date) cell.

        The moved sub-task keeps its id and status and is appended after the
        destination's last sub-task; the source list is re-sequenced.

        The destination is written before the source. With a store that can
        commit several documents at once both writes go in one transaction;
        otherwise a failure between the two writes leaves the sub-task in both
        cells, never in neither. Retrying such a move finds the sub-task already
        at the destination and only removes it from the source.

        Returns True when something was moved. Moving onto the same cell, a
        missing source document or an unknown sub-task id is a no-op.
        """
        src_id = self._key(from_employee, from_date)
        dst_id = self._key(to_employee, to_date)
        if src_id == dst_id:
            logger.debug("move_sub_task: source and destination are both %s", src_id)
            return False

        source = await self._read(from_employee, from_date)
        if source is None:
            logger.debug("move_sub_task: no source document %s", src_id)
            return False

        moving = next((s for s in source.sub_tasks if s.id == sub_task_id), None)
        if moving is None:
            logger.debug("move_sub_task: sub-task %s not in %s", sub_task_id, src_id)
            return False

        remaining = resequence(s for s in source.sub_tasks if s.id != sub_task_id)

        destination = await self._read(to_employee, to_date)
        existing = list(destination.sub_tasks) if destination is not None else []
        if any(s.id == sub_task_id for s in existing):
            # left over from an interrupted move; keep the copy already there
            logger.warning("move_sub_task: %s already in %s, finishing earlier move", sub_task_id, dst_id)
            merged = existing
        else:
            merged = [*existing, replace(moving, order=max_order(existing) + 1)]

        # Stored entries move as they are: no sanitizing, nothing dropped.
        dst_fields = self._derived_fields(resequence(merged))
        src_fields = self._derived_fields(remaining)

        if self._atomic_moves:
            await self._store.upsert_many(
                self._collection,
                [
                    (dst_id, self._stamp(dst_fields), self._defaults(to_employee, to_date)),
                    (src_id, self._stamp(src_fields), self._defaults(from_employee, from_date)),
                ],
            )
        else:
            await self._upsert(to_employee, to_date, dst_fields)
            # A failure here leaves the sub-task duplicated; callers see the error.
            await self._upsert(from_employee, from_date, src_fields)

        logger.info(
            "Moved sub-task %s from %s to %s (atomic=%s)",
            sub_task_id,
            src_id,
            dst_id,
            self._atomic_moves,
        )
        return True
