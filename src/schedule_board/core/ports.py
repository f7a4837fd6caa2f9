# src/schedule_board/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the schedule and roster stores.

The stores depend on Protocols instead of a concrete database.
This keeps the storage backend swappable and makes testing easier.
"""

from collections.abc import Callable, Sequence
from typing import Any, Protocol

Document = dict[str, Any]
# One JSON-compatible record; the store never interprets its fields except the range field.

SnapshotCallback = Callable[[list[Document]], None]
Unsubscribe = Callable[[], None]


class DocumentStore(Protocol):
    """
    Key/document store with conditional upserts, a single-field range query
    and change subscriptions.

    Every write method either commits fully or raises StoreWriteError.
    """

    async def get(self, collection: str, doc_id: str) -> Document | None: ...

    async def upsert(
            self,
            collection: str,
            doc_id: str,
            fields: Document,
            *,
            defaults: Document | None = None,
    ) -> None:
        """
        Update-or-create in one step:
        - existing document: overwrite only `fields`
        - missing document: create `defaults | fields`
        """
        ...

    async def upsert_many(
            self,
            collection: str,
            writes: Sequence[tuple[str, Document, Document | None]],
    ) -> None:
        """Apply several (doc_id, fields, defaults) upserts atomically, in order."""
        ...

    async def set(self, collection: str, doc_id: str, data: Document) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...

    async def query_range(
            self,
            collection: str,
            *,
            field: str | None = None,
            start: Any = None,
            end: Any = None,
            order_by: str | None = None,
    ) -> list[Document]:
        """Documents where start <= doc[field] <= end (None bounds are open)."""
        ...

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
        """
        Deliver the matching documents now and again after every committed change
        to the collection. The returned handle stops delivery.
        """
        ...


class ScheduleRepo(Protocol):
    """What the weekly stats and UI layer need from the schedule task store."""

    def subscribe_to_range(
            self,
            start_date: str,
            end_date: str,
            callback: Callable[[list[Any]], None],
    ) -> Unsubscribe: ...
