"""
Module 04 - Root Store
Every distinct root the tree builder has produced, oldest first.

Owner of the RootRecord lifecycle. Roots are deduplicated by value: the
first computation wins and keeps its block. The only mutation is the
submitted flag flipping from false to true.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from core.crypto.field import short
from core.schemas.errors import NotFoundError
from core.schemas.ledger import RecordResult, RootRecord
from core.storage.db import Database


logger = logging.getLogger(__name__)


def _row_to_record(row: sqlite3.Row) -> RootRecord:
    return RootRecord(
        id=row["id"],
        root=int(row["root"]),
        observed_at_block=row["block"],
        submitted=bool(row["submitted"]),
        tx_hash=row["tx_hash"],
    )


_COLUMNS = "id, root, block, submitted, tx_hash"


class RootStore:
    """Root table access."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def record_if_new(self, root: int, block: int) -> RecordResult:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO roots (root, block, submitted) VALUES (?, ?, 0)",
                (str(root), block),
            )
            recorded = cursor.rowcount > 0
        if recorded:
            logger.info(f"Recorded new root {short(root)} at block {block}")
        return RecordResult(recorded=recorded, root=root)

    def list_unsubmitted(self) -> list[RootRecord]:
        rows = self.db.query(
            f"SELECT {_COLUMNS} FROM roots WHERE submitted = 0 ORDER BY id ASC"
        )
        return [_row_to_record(row) for row in rows]

    def mark_submitted(self, root: int, tx_hash: Optional[str] = None) -> bool:
        """
        Flip a root to submitted.

        Returns:
            True if the flag changed, False if it was already submitted

        Raises:
            NotFoundError: If the root was never recorded
        """
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT submitted FROM roots WHERE root = ?", (str(root),)
            ).fetchone()
            if row is None:
                raise NotFoundError(
                    "Root was never recorded",
                    details={"root": str(root)},
                )
            if row["submitted"]:
                return False
            conn.execute(
                "UPDATE roots SET submitted = 1, tx_hash = ? WHERE root = ?",
                (tx_hash, str(root)),
            )
        return True

    def get(self, root: int) -> Optional[RootRecord]:
        row = self.db.query_one(f"SELECT {_COLUMNS} FROM roots WHERE root = ?", (str(root),))
        return None if row is None else _row_to_record(row)

    def latest(self) -> Optional[RootRecord]:
        row = self.db.query_one(f"SELECT {_COLUMNS} FROM roots ORDER BY id DESC LIMIT 1")
        return None if row is None else _row_to_record(row)

    def latest_unsubmitted(self) -> Optional[RootRecord]:
        row = self.db.query_one(
            f"SELECT {_COLUMNS} FROM roots WHERE submitted = 0 ORDER BY id DESC LIMIT 1"
        )
        return None if row is None else _row_to_record(row)

    def count(self, *, submitted: Optional[bool] = None) -> int:
        if submitted is None:
            row = self.db.query_one("SELECT COUNT(*) AS n FROM roots")
        else:
            row = self.db.query_one(
                "SELECT COUNT(*) AS n FROM roots WHERE submitted = ?", (int(submitted),)
            )
        return row["n"] if row else 0
