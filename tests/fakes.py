# tests/fakes.py

from __future__ import annotations

import copy
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from schedule_board.core.ports import Document, SnapshotCallback, Unsubscribe
from schedule_board.errors import StoreWriteError


@dataclass(slots=True)
class _Sub:
    collection: str
    callback: SnapshotCallback
    field: str | None
    start: Any
    end: Any
    order_by: str | None
    active: bool = True


@dataclass
class InMemoryDocumentStore:
    """
    Dict-backed DocumentStore for unit tests.

    - `fail_writes_for`: doc ids whose writes raise StoreWriteError
    - `write_log`: (op, doc_id) for every committed write, in commit order
    - `upsert_many` is all-or-nothing, like a transactional backend
    """

    docs: dict[str, dict[str, Document]] = field(default_factory=dict)
    fail_writes_for: set[str] = field(default_factory=set)
    write_log: list[tuple[str, str]] = field(default_factory=list)
    get_calls: int = 0
    _subs: list[_Sub] = field(default_factory=list)

    def _check(self, doc_id: str) -> None:
        if doc_id in self.fail_writes_for:
            raise StoreWriteError(f"injected failure for {doc_id}")

    def _apply_upsert(
        self, collection: str, doc_id: str, fields: Document, defaults: Document | None
    ) -> None:
        coll = self.docs.setdefault(collection, {})
        current = coll.get(doc_id)
        if current is None:
            current = copy.deepcopy(defaults or {})
        current.update(copy.deepcopy(fields))
        coll[doc_id] = current

    def _matching(self, sub: _Sub) -> list[Document]:
        out = []
        for doc in self.docs.get(sub.collection, {}).values():
            if sub.field is not None:
                value = doc.get(sub.field)
                if sub.start is not None and (value is None or value < sub.start):
                    continue
                if sub.end is not None and (value is None or value > sub.end):
                    continue
            out.append(copy.deepcopy(doc))
        if sub.order_by is not None:
            out.sort(key=lambda d: d.get(sub.order_by))
        return out

    def _notify(self, collection: str) -> None:
        for sub in list(self._subs):
            if sub.active and sub.collection == collection:
                sub.callback(self._matching(sub))

    async def get(self, collection: str, doc_id: str) -> Document | None:
        self.get_calls += 1
        doc = self.docs.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        fields: Document,
        *,
        defaults: Document | None = None,
    ) -> None:
        self._check(doc_id)
        self._apply_upsert(collection, doc_id, fields, defaults)
        self.write_log.append(("upsert", doc_id))
        self._notify(collection)

    async def upsert_many(
        self,
        collection: str,
        writes: Sequence[tuple[str, Document, Document | None]],
    ) -> None:
        for doc_id, _, _ in writes:
            self._check(doc_id)
        for doc_id, fields, defaults in writes:
            self._apply_upsert(collection, doc_id, fields, defaults)
            self.write_log.append(("upsert_many", doc_id))
        self._notify(collection)

    async def set(self, collection: str, doc_id: str, data: Document) -> None:
        self._check(doc_id)
        self.docs.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        self.write_log.append(("set", doc_id))
        self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._check(doc_id)
        self.docs.get(collection, {}).pop(doc_id, None)
        self.write_log.append(("delete", doc_id))
        self._notify(collection)

    async def query_range(
        self,
        collection: str,
        *,
        field: str | None = None,
        start: Any = None,
        end: Any = None,
        order_by: str | None = None,
    ) -> list[Document]:
        return self._matching(_Sub(collection, lambda _: None, field, start, end, order_by))

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        *,
        field: str | None = None,
        start: Any = None,
        end: Any = None,
        order_by: str | None = None,
    ) -> Unsubscribe:
        sub = _Sub(collection, callback, field, start, end, order_by)
        self._subs.append(sub)
        callback(self._matching(sub))

        def unsubscribe() -> None:
            sub.active = False
            if sub in self._subs:
                self._subs.remove(sub)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._subs)


class FakeClock:
    """Monotonic fake clock: every call advances by `step` seconds."""

    def __init__(self, start: float = 1_700_000_000.0, step: float = 1.0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now
