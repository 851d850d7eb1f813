"""
Module 04 - Storage
SQLite persistence shared by the commitment ledger and the root store.

Layout (readable by earlier deployments of the indexer):
- commitments(id, leaf_index UNIQUE, commitment UNIQUE, block)
- roots(id, root UNIQUE, block, submitted, tx_hash)

Field elements are stored as decimal TEXT so values above 2^63 survive.
One connection is shared between the ingestion thread (writer) and the
API threads (readers); every statement runs under the instance lock.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence

from core.schemas.errors import TransientError


logger = logging.getLogger(__name__)


IN_MEMORY = ":memory:"

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS commitments (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    leaf_index  INTEGER UNIQUE,
    commitment  TEXT UNIQUE,
    block       INTEGER
);

CREATE TABLE IF NOT EXISTS roots (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    root        TEXT UNIQUE,
    block       INTEGER,
    submitted   INTEGER DEFAULT 0,
    tx_hash     TEXT
);

CREATE INDEX IF NOT EXISTS idx_commitment ON commitments(commitment);
CREATE INDEX IF NOT EXISTS idx_roots_submitted ON roots(submitted);
"""

# Substrings of sqlite3.OperationalError messages that mean "try again"
_TRANSIENT_MARKERS = ("database is locked", "database is busy", "disk i/o error")


def _is_transient(exc: sqlite3.OperationalError) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


class Database:
    """
    Thin wrapper around a sqlite3 connection.

    Usage:
        db = Database("commitments.db")
        with db.transaction() as conn:
            conn.execute("INSERT ...")
        rows = db.query("SELECT ...")
    """

    def __init__(self, path: str | Path = "commitments.db", *, timeout: float = 5.0) -> None:
        self.path = str(path)
        if self.path != IN_MEMORY:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()
        self._conn = sqlite3.connect(
            self.path,
            timeout=timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        self._conn.row_factory = sqlite3.Row
        if self.path != IN_MEMORY:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        with self._lock:
            self._conn.executescript(_SCHEMA_SQL)
            columns = {row["name"] for row in self._conn.execute("PRAGMA table_info(roots)")}
            if "tx_hash" not in columns:
                logger.info("Adding roots.tx_hash column to existing database")
                self._conn.execute("ALTER TABLE roots ADD COLUMN tx_hash TEXT")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run a block of statements atomically.

        Rolls back on any exception. Lock contention is re-raised as
        TransientError so callers can retry.
        """
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.OperationalError as e:
                if _is_transient(e):
                    raise TransientError(f"Storage busy: {e}") from e
                raise
            try:
                yield self._conn
            except sqlite3.OperationalError as e:
                self._conn.execute("ROLLBACK")
                if _is_transient(e):
                    raise TransientError(f"Storage busy: {e}") from e
                raise
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            else:
                self._conn.execute("COMMIT")

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.OperationalError as e:
                if _is_transient(e):
                    raise TransientError(f"Storage busy: {e}") from e
                raise

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None:
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *args) -> None:
        self.close()
