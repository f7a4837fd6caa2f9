# src/schedule_board/storage/document_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import re
import sqlite3
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core.ports import Document, SnapshotCallback, Unsubscribe
from ..errors import StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _json_path(field: str) -> str:
    if not _FIELD_RE.match(field or ""):
        raise ValueError(f"invalid document field name: {field!r}")
    return f"$.{field}"


@dataclass(slots=True)
class _Listener:
    collection: str
    callback: SnapshotCallback
    field: str | None
    start: Any
    end: Any
    order_by: str | None
    active: bool = True


class SqliteDocumentStore:
    """
    SQLite-backed document store.

    Documents are JSON blobs keyed by (collection, doc_id). The schema is one
    table and is created if missing.

    Thread-safety:
    - each method opens its own SQLite connection
    - async reads, writes and change re-queries run in a worker thread

    Change subscriptions are in-process: after every committed write the
    listeners of that collection are re-queried off the loop and called back
    on it. `subscribe` itself is synchronous and reads the initial snapshot
    inline, once.
    """

    def __init__(self, db_path: str | Path = "schedule.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        self._listeners: list[_Listener] = []
        self._listeners_lock = threading.Lock()
        try:
            total = self.count_documents()
        except Exception:
            total = -1
        logger.info("SqliteDocumentStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Drop all listeners (no persistent connections to close)."""
        with self._listeners_lock:
            for listener in self._listeners:
                listener.active = False
            self._listeners.clear()

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    doc_id TEXT NOT NULL,
                    data TEXT NOT NULL DEFAULT '{}',
                    PRIMARY KEY (collection, doc_id)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)")
        finally:
            conn.close()

    @staticmethod
    def _encode(doc: Document) -> str:
        return json.dumps(doc, ensure_ascii=False, sort_keys=True)

    @staticmethod
    def _decode(raw: str | None) -> Document:
        if not raw:
            return {}
        try:
            val = json.loads(raw)
            return val if isinstance(val, dict) else {}
        except Exception:
            logger.warning("Undecodable document payload skipped")
            return {}

    def _upsert_in_tx(
            self,
            cur: sqlite3.Cursor,
            collection: str,
            doc_id: str,
            fields: Document,
            defaults: Document | None,
    ) -> None:
        cur.execute(
            "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        )
        row = cur.fetchone()
        if row is None:
            doc = dict(defaults or {})
            doc.update(fields)
            cur.execute(
                "INSERT INTO documents(collection, doc_id, data) VALUES (?, ?, ?)",
                (collection, doc_id, self._encode(doc)),
            )
            logger.debug("Document created %s/%s", collection, doc_id)
        else:
            doc = self._decode(row["data"])
            doc.update(fields)
            cur.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND doc_id = ?",
                (self._encode(doc), collection, doc_id),
            )
            logger.debug("Document updated %s/%s fields=%s", collection, doc_id, sorted(fields))

    def _write_tx(self, op: str, fn) -> None:
        """Run fn(cursor) inside BEGIN IMMEDIATE ... COMMIT; roll back on any failure."""
        try:
            conn = self._get_conn()
        except sqlite3.Error as exc:
            raise StoreWriteError(f"{op} failed: {exc}") from exc
        try:
            cur = conn.cursor()
            cur.execute("BEGIN IMMEDIATE")
            try:
                fn(cur)
            except BaseException:
                with contextlib.suppress(sqlite3.Error):
                    cur.execute("ROLLBACK")
                raise
            cur.execute("COMMIT")
        except (sqlite3.Error, TypeError) as exc:
            raise StoreWriteError(f"{op} failed: {exc}") from exc
        finally:
            conn.close()

    def _query_sync(
            self,
            collection: str,
            field: str | None,
            start: Any,
            end: Any,
            order_by: str | None,
    ) -> list[Document]:
        where = ["collection = ?"]
        params: list[Any] = [collection]

        if field is not None:
            path = _json_path(field)
            if start is not None:
                where.append("json_extract(data, ?) >= ?")
                params.extend([path, start])
            if end is not None:
                where.append("json_extract(data, ?) <= ?")
                params.extend([path, end])

        sql = f"SELECT data FROM documents WHERE {' AND '.join(where)}"
        if order_by is not None:
            sql += " ORDER BY json_extract(data, ?) ASC, doc_id ASC"
            params.append(_json_path(order_by))
        else:
            sql += " ORDER BY doc_id ASC"

        try:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(sql, params)
                return [self._decode(r["data"]) for r in cur.fetchall()]
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StoreReadError(f"query on {collection} failed: {exc}") from exc

    def _get_sync(self, collection: str, doc_id: str) -> Document | None:
        try:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection, doc_id),
                )
                row = cur.fetchone()
                return self._decode(row["data"]) if row else None
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StoreReadError(f"get {collection}/{doc_id} failed: {exc}") from exc

    def _deliver_docs(self, listener: _Listener, docs: list[Document]) -> None:
        if not listener.active:
            return
        try:
            listener.callback(docs)
        except Exception:
            logger.exception("Snapshot listener failed collection=%s", listener.collection)

    @staticmethod
    def _snapshot_args(listener: _Listener) -> tuple[Any, ...]:
        return (listener.collection, listener.field, listener.start, listener.end, listener.order_by)

    async def _notify(self, collection: str) -> None:
        """Re-query each live listener in a worker thread, then call it back on the loop."""
        with self._listeners_lock:
            targets = [ls for ls in self._listeners if ls.collection == collection and ls.active]
        for listener in targets:
            if not listener.active:
                continue
            try:
                docs = await asyncio.to_thread(self._query_sync, *self._snapshot_args(listener))
            except StoreReadError:
                logger.exception("Snapshot query failed collection=%s", listener.collection)
                continue
            self._deliver_docs(listener, docs)

    # ---- public API ----

    def count_documents(self, collection: str | None = None) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            if collection is None:
                cur.execute("SELECT COUNT(*) FROM documents")
            else:
                cur.execute("SELECT COUNT(*) FROM documents WHERE collection = ?", (collection,))
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    async def get(self, collection: str, doc_id: str) -> Document | None:
        return await asyncio.to_thread(self._get_sync, collection, doc_id)

    async def upsert(
            self,
            collection: str,
            doc_id: str,
            fields: Document,
            *,
            defaults: Document | None = None,
    ) -> None:
        await asyncio.to_thread(
            self._write_tx,
            f"upsert {collection}/{doc_id}",
            lambda cur: self._upsert_in_tx(cur, collection, doc_id, fields, defaults),
        )
        await self._notify(collection)

    async def upsert_many(
            self,
            collection: str,
            writes: Sequence[tuple[str, Document, Document | None]],
    ) -> None:
        if not writes:
            return

        def apply(cur: sqlite3.Cursor) -> None:
            for doc_id, fields, defaults in writes:
                self._upsert_in_tx(cur, collection, doc_id, fields, defaults)

        await asyncio.to_thread(self._write_tx, f"upsert_many {collection} n={len(writes)}", apply)
        await self._notify(collection)

    async def set(self, collection: str, doc_id: str, data: Document) -> None:
        def apply(cur: sqlite3.Cursor) -> None:
            cur.execute(
                """
                INSERT INTO documents(collection, doc_id, data) VALUES (?, ?, ?)
                ON CONFLICT(collection, doc_id) DO UPDATE SET data = excluded.data
                """,
                (collection, doc_id, self._encode(data)),
            )

        await asyncio.to_thread(self._write_tx, f"set {collection}/{doc_id}", apply)
        await self._notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        def apply(cur: sqlite3.Cursor) -> None:
            cur.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            )

        await asyncio.to_thread(self._write_tx, f"delete {collection}/{doc_id}", apply)
        await self._notify(collection)

    async def query_range(
            self,
            collection: str,
            *,
            field: str | None = None,
            start: Any = None,
            end: Any = None,
            order_by: str | None = None,
    ) -> list[Document]:
        return await asyncio.to_thread(self._query_sync, collection, field, start, end, order_by)

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
        if field is not None:
            _json_path(field)
        if order_by is not None:
            _json_path(order_by)

        listener = _Listener(
            collection=collection,
            callback=callback,
            field=field,
            start=start,
            end=end,
            order_by=order_by,
        )
        with self._listeners_lock:
            self._listeners.append(listener)
        logger.debug("Listener attached collection=%s field=%s [%s, %s]", collection, field, start, end)

        # Initial snapshot, read once in the caller's thread so it arrives before subscribe returns.
        try:
            initial = self._query_sync(*self._snapshot_args(listener))
        except StoreReadError:
            logger.exception("Initial snapshot failed collection=%s", collection)
        else:
            self._deliver_docs(listener, initial)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if not listener.active:
                    return
                listener.active = False
                with contextlib.suppress(ValueError):
                    self._listeners.remove(listener)
            logger.debug("Listener detached collection=%s", collection)

        return unsubscribe
