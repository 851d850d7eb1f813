"""
Module 04 - Commitment Ledger
Durable, append-only store of commitments keyed by leaf index.

Owner of the Commitment lifecycle: rows are inserted exactly once and
never updated or deleted.

Ingestion contract:
- Exact duplicate (same leaf_index, same commitment): skipped, inserted=False
- Same leaf_index with a different commitment: ConflictError
- Same commitment at a different leaf_index: skipped with a warning, inserted=False
- Gaps are stored as they arrive; the tree builder is what refuses them
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, Optional

from core.crypto.field import short
from core.schemas.errors import ConflictError, InconsistentLeafError
from core.schemas.ledger import Commitment, CommitmentEvent, InsertResult
from core.storage.db import Database


logger = logging.getLogger(__name__)


# SQLite INTEGER is a signed 64-bit value
MAX_STORABLE_INDEX: int = (1 << 63) - 1


def _row_to_commitment(row: sqlite3.Row) -> Commitment:
    return Commitment(
        leaf_index=row["leaf_index"],
        commitment=int(row["commitment"]),
        source_block=row["block"],
    )


class CommitmentLedger:
    """
    Commitment table access.

    Usage:
        ledger = CommitmentLedger(Database("commitments.db"))
        result = ledger.insert(0, commitment, block=1200)
        rows = ledger.list_ordered()
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert(self, leaf_index: int, commitment: int, block: int) -> InsertResult:
        """
        Insert one commitment.

        Returns:
            InsertResult(inserted=False) for an exact duplicate or for a
            commitment already stored at another index

        Raises:
            ConflictError: If the index already holds a different commitment
            InconsistentLeafError: If the index cannot be stored or the block
                goes backwards relative to the highest stored leaf
        """
        with self.db.transaction() as conn:
            return self._insert(conn, leaf_index, commitment, block)

    def insert_many(self, events: Iterable[CommitmentEvent]) -> int:
        """
        Insert a batch of decoded events in one transaction.

        Any conflict rolls back the whole batch.

        Returns:
            Number of newly inserted commitments
        """
        inserted = 0
        with self.db.transaction() as conn:
            for event in events:
                result = self._insert(conn, event.leaf_index, event.commitment, event.block_number)
                if result.inserted:
                    inserted += 1
        return inserted

    def _insert(
        self,
        conn: sqlite3.Connection,
        leaf_index: int,
        commitment: int,
        block: int,
    ) -> InsertResult:
        if not 0 <= leaf_index <= MAX_STORABLE_INDEX:
            raise InconsistentLeafError(
                f"Leaf index {leaf_index} cannot be stored",
                leaf_index=leaf_index,
            )

        value = str(commitment)
        existing = conn.execute(
            "SELECT leaf_index, commitment FROM commitments WHERE leaf_index = ? OR commitment = ?",
            (leaf_index, value),
        ).fetchall()

        for row in existing:
            if row["leaf_index"] == leaf_index and row["commitment"] == value:
                logger.debug(f"Skipping duplicate leaf[{leaf_index}]")
                return InsertResult(inserted=False, leaf_index=leaf_index)

        for row in existing:
            if row["leaf_index"] == leaf_index:
                raise ConflictError(
                    f"Leaf index {leaf_index} already holds a different commitment",
                    leaf_index=leaf_index,
                    details={"stored": row["commitment"], "incoming": value},
                )

        # Known commitment announced at another index: not stored. The index
        # stays empty, so the tree builder reports the gap.
        if existing:
            logger.warning(
                f"Commitment {short(commitment)} already stored at leaf index "
                f"{existing[0]['leaf_index']}, ignoring it at leaf index {leaf_index}"
            )
            return InsertResult(inserted=False, leaf_index=leaf_index)

        highest = conn.execute(
            "SELECT leaf_index, block FROM commitments ORDER BY leaf_index DESC LIMIT 1"
        ).fetchone()
        if highest is not None and leaf_index > highest["leaf_index"] and block < highest["block"]:
            raise InconsistentLeafError(
                f"Leaf {leaf_index} at block {block} precedes leaf "
                f"{highest['leaf_index']} at block {highest['block']}",
                leaf_index=leaf_index,
                details={"block": block, "previous_block": highest["block"]},
            )

        conn.execute(
            "INSERT INTO commitments (leaf_index, commitment, block) VALUES (?, ?, ?)",
            (leaf_index, value, block),
        )
        logger.debug(f"  leaf[{leaf_index}] commitment={short(commitment)}")
        return InsertResult(inserted=True, leaf_index=leaf_index)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_ordered(self, from_index: int = 0) -> list[Commitment]:
        """All commitments with leaf_index >= from_index, ascending. May contain gaps."""
        rows = self.db.query(
            "SELECT leaf_index, commitment, block FROM commitments "
            "WHERE leaf_index >= ? ORDER BY leaf_index ASC",
            (from_index,),
        )
        return [_row_to_commitment(row) for row in rows]

    def find_by_commitment(self, commitment: int) -> Optional[int]:
        row = self.db.query_one(
            "SELECT leaf_index FROM commitments WHERE commitment = ?",
            (str(commitment),),
        )
        return None if row is None else row["leaf_index"]

    def get(self, leaf_index: int) -> Optional[Commitment]:
        row = self.db.query_one(
            "SELECT leaf_index, commitment, block FROM commitments WHERE leaf_index = ?",
            (leaf_index,),
        )
        return None if row is None else _row_to_commitment(row)

    def count(self) -> int:
        row = self.db.query_one("SELECT COUNT(*) AS n FROM commitments")
        return row["n"] if row else 0

    def last_block(self) -> Optional[int]:
        """Block of the highest leaf index; the resume point for polling."""
        row = self.db.query_one(
            "SELECT block FROM commitments ORDER BY leaf_index DESC LIMIT 1"
        )
        return None if row is None else row["block"]
