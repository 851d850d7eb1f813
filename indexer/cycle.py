"""
Ingestion Cycle

One pass of poll -> ingest -> rebuild -> maybe-publish.

The cycle is the only writer of the ledger and (together with the
publisher) of the root store. A new snapshot is built off to the side,
its root recorded, and only then swapped in; readers never see a tree
whose root has not been attributed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from core.chain.events import EventSource
from core.crypto.field import short
from core.merkle.merkle_tree import TreeBuilder
from core.merkle.snapshot import SnapshotHolder, TreeSnapshot, make_snapshot
from core.schemas.ledger import Commitment
from core.storage.ledger import CommitmentLedger
from core.storage.roots import RootStore
from indexer.publisher import PublishOutcome, RootPublisher


logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """What one ingestion pass did."""
    from_block: int
    to_block: Optional[int] = None
    events: int = 0
    inserted: int = 0
    rebuilt: bool = False
    leaves: int = 0
    root: Optional[int] = None
    root_recorded: bool = False
    published: list[PublishOutcome] = field(default_factory=list)

    @property
    def idle(self) -> bool:
        """True when the chain had no new blocks to scan."""
        return self.to_block is None


def contiguous_prefix(rows: list[Commitment]) -> list[Commitment]:
    """Leading rows whose leaf_index equals their position."""
    for position, row in enumerate(rows):
        if row.leaf_index != position:
            return rows[:position]
    return rows


def bootstrap_snapshot(
    ledger: CommitmentLedger,
    builder: TreeBuilder,
    *,
    prefix_only: bool = False,
) -> TreeSnapshot:
    """
    Rebuild the in-memory snapshot by replaying the commitments table.

    With prefix_only the replay stops at the first missing leaf index, so
    a ledger holding a gap still yields the tree up to that gap.

    Raises:
        InconsistentLeafError: If the stored leaves contain a gap and
            prefix_only is False
    """
    rows = ledger.list_ordered()
    if prefix_only:
        rows = contiguous_prefix(rows)
    tree = builder.build(rows)
    index = {row.commitment: row.leaf_index for row in rows}
    block = rows[-1].source_block if rows else None
    logger.info(f"Bootstrapped tree with {tree.size} leaves, root {short(tree.root)}")
    return make_snapshot(0, tree, index, block)


class IngestionCycle:
    """
    Runs single ingestion passes against an EventSource.

    Usage:
        cycle = IngestionCycle(ledger, roots, builder, holder, source, publisher)
        result = cycle.run_once()
    """

    def __init__(
        self,
        ledger: CommitmentLedger,
        roots: RootStore,
        builder: TreeBuilder,
        holder: SnapshotHolder,
        source: EventSource,
        publisher: Optional[RootPublisher] = None,
        *,
        start_block: int = 0,
        auto_submit: bool = True,
    ) -> None:
        self.ledger = ledger
        self.roots = roots
        self.builder = builder
        self.holder = holder
        self.source = source
        self.publisher = publisher
        self.auto_submit = auto_submit

        # Re-scan the block of the last stored leaf: later events in that
        # block may not have been seen yet, duplicates are skipped.
        last = ledger.last_block()
        self.next_block = max(start_block, last) if last is not None else start_block

    def run_once(self) -> CycleResult:
        """
        Execute one pass.

        Raises:
            TransientError: Chain or storage temporarily unavailable
            ConflictError / InconsistentLeafError: Data-integrity failure
        """
        result = CycleResult(from_block=self.next_block)

        latest = self.source.latest_block()
        if self.next_block > latest:
            return result

        logger.info(f"Syncing blocks {self.next_block} -> {latest}")
        events = self.source.fetch(self.next_block, latest)
        result.to_block = latest
        result.events = len(events)

        if events:
            result.inserted = self.ledger.insert_many(events)

        # Anything in the ledger beyond the current snapshot gets attached,
        # including leaves stored by a previous pass that failed afterwards.
        snapshot = self.holder.current()
        pending = self.ledger.list_ordered(from_index=snapshot.leaf_count)
        if pending:
            self._rebuild(snapshot, pending, latest, result)

        if self.auto_submit and self.publisher is not None and self.publisher.can_submit:
            result.published = self.publisher.publish_pending()

        result.leaves = self.holder.current().leaf_count
        logger.info(
            f"  Processed {result.events} events, {result.inserted} new, "
            f"tree has {result.leaves} leaves"
        )
        self.next_block = latest + 1
        return result

    def _rebuild(self, snapshot: TreeSnapshot, pending: list, block: int, result: CycleResult) -> None:
        tree = self.builder.extend(snapshot.tree, pending)

        index = dict(snapshot.index_by_commitment)
        for row in pending:
            index[row.commitment] = row.leaf_index

        new_snapshot = make_snapshot(
            snapshot.generation + 1,
            tree,
            index,
            pending[-1].source_block,
        )
        logger.info(f"  Computed root: {short(tree.root)}")

        recorded = self.roots.record_if_new(tree.root, block)
        self.holder.swap(new_snapshot)

        result.rebuilt = True
        result.root = tree.root
        result.root_recorded = recorded.recorded
