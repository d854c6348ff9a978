"""
SQLite Document Store — JSON documents grouped into databases and containers

Each document is stored as JSON text with its id and a `_ts` modification
timestamp (epoch seconds). Queries use SQLite's JSON1 functions.

One connection is shared by every request; a lock serializes access and
queries run in a worker thread so the event loop is never blocked.
"""

import asyncio
import json
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from docmcp.config import Config
from docmcp.server.logger import get_logger

log = get_logger("db")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS containers (
    database_id     TEXT NOT NULL,
    container_id    TEXT NOT NULL,
    created_at      TEXT DEFAULT (datetime('now')),
    PRIMARY KEY (database_id, container_id)
);

CREATE TABLE IF NOT EXISTS documents (
    database_id     TEXT NOT NULL,
    container_id    TEXT NOT NULL,
    doc_id          TEXT NOT NULL,
    ts              INTEGER NOT NULL,
    body            TEXT NOT NULL,
    PRIMARY KEY (database_id, container_id, doc_id)
);

CREATE INDEX IF NOT EXISTS idx_documents_ts ON documents(database_id, container_id, ts);
"""

NOT_FOUND = 404
BAD_REQUEST = 400
CLIENT_CLOSED_REQUEST = 499

# VM instructions between cancellation checks while a query runs
PROGRESS_STEPS = 1000


class StoreError(Exception):
    """Store-level failure, carrying an HTTP-style status code."""

    def __init__(self, message: str, status_code: int = 500):
        self.status_code = status_code
        super().__init__(message)


class QueryInterrupted(StoreError):
    """A query was abandoned because its caller signalled cancellation."""

    def __init__(self, message: str = "Query interrupted"):
        super().__init__(message, CLIENT_CLOSED_REQUEST)


class DocumentStore:
    """SQLite-backed JSON document store."""

    def __init__(self, db_path: Optional[Path] = None):
        self._db_path = db_path or Config.DB_PATH
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return Path(self._db_path)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def initialize(self):
        """Open the database and create the schema. Safe to call twice."""
        if self._conn:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()
        log.info(f"Document store opened: {self._db_path}")

    async def close(self):
        if self._conn:
            with self._lock:
                self._conn.close()
                self._conn = None
            log.info(f"Document store closed: {self._db_path}")

    # -- internals --

    def _run(
        self,
        fn: Callable[[sqlite3.Connection], Any],
        cancelled: Optional[threading.Event] = None,
    ) -> Any:
        """
        Run `fn` against the shared connection under the lock.

        With a `cancelled` event, a progress handler aborts the running
        statement once the event is set, so an abandoned request releases
        the lock instead of finishing its query.
        """
        with self._lock:
            conn = self._conn
            if conn is None:
                raise StoreError("Document store is not open", 503)
            if cancelled is not None:
                if cancelled.is_set():
                    raise QueryInterrupted()
                conn.set_progress_handler(lambda: 1 if cancelled.is_set() else 0, PROGRESS_STEPS)
            try:
                return fn(conn)
            except sqlite3.Error as exc:
                if cancelled is not None and cancelled.is_set():
                    log.info("Query interrupted by cancelled request")
                    raise QueryInterrupted() from exc
                raise StoreError(f"Store query failed: {exc}") from exc
            finally:
                if cancelled is not None:
                    conn.set_progress_handler(None, 0)

    async def _call(
        self,
        fn: Callable[[sqlite3.Connection], Any],
        cancelled: Optional[threading.Event] = None,
    ) -> Any:
        return await asyncio.to_thread(self._run, fn, cancelled)

    @staticmethod
    def _require_container(conn: sqlite3.Connection, database_id: str, container_id: str):
        row = conn.execute(
            "SELECT 1 FROM containers WHERE database_id = ? AND container_id = ?",
            (database_id, container_id),
        ).fetchone()
        if row is None:
            raise StoreError(
                f"Resource Not Found: container '{container_id}' "
                f"in database '{database_id}'",
                NOT_FOUND,
            )

    @staticmethod
    def _decode(rows) -> List[Dict[str, Any]]:
        return [json.loads(r["body"]) for r in rows]

    # -- writes --

    async def create_container(self, database_id: str, container_id: str):
        def op(conn):
            conn.execute(
                "INSERT OR IGNORE INTO containers (database_id, container_id) VALUES (?, ?)",
                (database_id, container_id),
            )
            conn.commit()
        await self._call(op)

    async def upsert(
        self,
        database_id: str,
        container_id: str,
        document: Dict[str, Any],
        ts: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Insert or replace a document. `_ts` is always set by the store."""
        doc_id = document.get("id")
        if not isinstance(doc_id, str) or not doc_id:
            raise StoreError("Document must have a non-empty string 'id'", BAD_REQUEST)

        stored = dict(document)
        stored["_ts"] = int(time.time()) if ts is None else ts

        def op(conn):
            conn.execute(
                "INSERT OR IGNORE INTO containers (database_id, container_id) VALUES (?, ?)",
                (database_id, container_id),
            )
            conn.execute(
                "INSERT OR REPLACE INTO documents "
                "(database_id, container_id, doc_id, ts, body) VALUES (?, ?, ?, ?, ?)",
                (database_id, container_id, doc_id, stored["_ts"], json.dumps(stored)),
            )
            conn.commit()
        await self._call(op)
        return stored

    # -- reads --

    async def list_databases(self, cancelled: Optional[threading.Event] = None) -> List[str]:
        def op(conn):
            rows = conn.execute(
                "SELECT DISTINCT database_id FROM containers ORDER BY database_id"
            ).fetchall()
            return [r["database_id"] for r in rows]
        return await self._call(op, cancelled)

    async def list_containers(
        self, database_id: str, cancelled: Optional[threading.Event] = None,
    ) -> List[str]:
        def op(conn):
            rows = conn.execute(
                "SELECT container_id FROM containers WHERE database_id = ? ORDER BY container_id",
                (database_id,),
            ).fetchall()
            if not rows:
                raise StoreError(f"Resource Not Found: database '{database_id}'", NOT_FOUND)
            return [r["container_id"] for r in rows]
        return await self._call(op, cancelled)

    async def recent(
        self, database_id: str, container_id: str, n: int,
        cancelled: Optional[threading.Event] = None,
    ) -> List[Dict[str, Any]]:
        """The n most recently modified documents, newest first."""
        def op(conn):
            self._require_container(conn, database_id, container_id)
            rows = conn.execute(
                "SELECT body FROM documents WHERE database_id = ? AND container_id = ? "
                "ORDER BY ts DESC, rowid DESC LIMIT ?",
                (database_id, container_id, n),
            ).fetchall()
            return self._decode(rows)
        return await self._call(op, cancelled)

    async def find_by_id(
        self, database_id: str, container_id: str, doc_id: str,
        cancelled: Optional[threading.Event] = None,
    ) -> Optional[Dict[str, Any]]:
        def op(conn):
            self._require_container(conn, database_id, container_id)
            row = conn.execute(
                "SELECT body FROM documents "
                "WHERE database_id = ? AND container_id = ? AND doc_id = ?",
                (database_id, container_id, doc_id),
            ).fetchone()
            return json.loads(row["body"]) if row else None
        return await self._call(op, cancelled)

    async def text_search(
        self, database_id: str, container_id: str, prop: str, phrase: str, n: int,
        cancelled: Optional[threading.Event] = None,
    ) -> List[Dict[str, Any]]:
        """Documents whose top-level `prop` contains `phrase`, case-insensitive."""
        path = "$." + json.dumps(prop)

        def op(conn):
            self._require_container(conn, database_id, container_id)
            rows = conn.execute(
                "SELECT body FROM documents WHERE database_id = ? AND container_id = ? "
                "AND instr(lower(CAST(json_extract(body, ?) AS TEXT)), lower(?)) > 0 "
                "ORDER BY ts DESC, rowid DESC LIMIT ?",
                (database_id, container_id, path, phrase, n),
            ).fetchall()
            return self._decode(rows)
        return await self._call(op, cancelled)

    async def distinct_services(
        self, database_id: str, container_id: str, customer_name: str,
        cancelled: Optional[threading.Event] = None,
    ) -> List[Dict[str, Any]]:
        def op(conn):
            self._require_container(conn, database_id, container_id)
            rows = conn.execute(
                """SELECT DISTINCT
                       json_extract(body, '$.service_name') AS service_name,
                       json_extract(body, '$.service_family') AS service_family
                   FROM documents
                   WHERE database_id = ? AND container_id = ?
                     AND json_extract(body, '$.customer_name') = ?
                   ORDER BY service_name""",
                (database_id, container_id, customer_name),
            ).fetchall()
            return [dict(r) for r in rows]
        return await self._call(op, cancelled)

    async def service_spending(
        self, database_id: str, container_id: str, customer_name: str, service_name: str,
        cancelled: Optional[threading.Event] = None,
    ) -> Optional[Dict[str, Any]]:
        """Sum of `amount` per customer/service, or None when nothing matches."""
        def op(conn):
            self._require_container(conn, database_id, container_id)
            row = conn.execute(
                """SELECT
                       SUM(json_extract(body, '$.amount')) AS total_spending,
                       COUNT(1) AS transaction_count,
                       json_extract(body, '$.customer_name') AS customer_name,
                       json_extract(body, '$.service_name') AS service_name,
                       json_extract(body, '$.service_family') AS service_family
                   FROM documents
                   WHERE database_id = ? AND container_id = ?
                     AND json_extract(body, '$.customer_name') = ?
                     AND json_extract(body, '$.service_name') = ?
                   GROUP BY customer_name, service_name, service_family""",
                (database_id, container_id, customer_name, service_name),
            ).fetchone()
            return dict(row) if row else None
        return await self._call(op, cancelled)

    async def stats(self) -> List[Tuple[str, str, int]]:
        """(database, container, document count) for every container."""
        def op(conn):
            rows = conn.execute(
                """SELECT c.database_id, c.container_id, COUNT(d.doc_id) AS doc_count
                   FROM containers c
                   LEFT JOIN documents d
                     ON d.database_id = c.database_id AND d.container_id = c.container_id
                   GROUP BY c.database_id, c.container_id
                   ORDER BY c.database_id, c.container_id"""
            ).fetchall()
            return [(r["database_id"], r["container_id"], r["doc_count"]) for r in rows]
        return await self._call(op)
