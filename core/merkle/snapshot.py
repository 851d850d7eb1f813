"""
Module 03 - Tree Snapshots
Immutable tree state shared by query handlers and swapped by ingestion.

A TreeSnapshot is never mutated after construction. The ingestion cycle
builds the next snapshot off to the side and publishes it through
SnapshotHolder.swap(); readers call SnapshotHolder.current() once per
request and answer entirely from that object, so a response can never mix
pre- and post-insert state.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from core.merkle.merkle_proofs import MerkleProof
from core.merkle.merkle_tree import MerkleTree


@dataclass(frozen=True)
class TreeSnapshot:
    """
    Tree state at one point of the ledger history.

    Attributes:
        generation: Monotonic counter, 0 for the bootstrap snapshot
        tree: Private tree copy; never appended to once published
        index_by_commitment: commitment -> leaf_index for every leaf in tree
        block: Highest source block of the included leaves (None if empty)
    """
    generation: int
    tree: MerkleTree
    index_by_commitment: Mapping[int, int] = field(default_factory=dict)
    block: Optional[int] = None

    @property
    def root(self) -> int:
        return self.tree.root

    @property
    def leaf_count(self) -> int:
        return self.tree.size

    @property
    def is_empty(self) -> bool:
        return self.tree.size == 0

    def proof_for_index(self, leaf_index: int) -> MerkleProof:
        return self.tree.proof(leaf_index, generation=self.generation)

    def find(self, commitment: int) -> Optional[int]:
        return self.index_by_commitment.get(commitment)


def make_snapshot(
    generation: int,
    tree: MerkleTree,
    index_by_commitment: dict[int, int],
    block: Optional[int] = None,
) -> TreeSnapshot:
    """Freeze the commitment index so holders of the snapshot cannot mutate it."""
    return TreeSnapshot(
        generation=generation,
        tree=tree,
        index_by_commitment=MappingProxyType(dict(index_by_commitment)),
        block=block,
    )


class SnapshotHolder:
    """
    Owner of the current snapshot reference.

    Single writer (the ingestion cycle), many readers (query handlers).
    """

    def __init__(self, initial: TreeSnapshot) -> None:
        self._lock = threading.Lock()
        self._current = initial

    def current(self) -> TreeSnapshot:
        with self._lock:
            return self._current

    @property
    def generation(self) -> int:
        return self.current().generation

    def swap(self, snapshot: TreeSnapshot) -> TreeSnapshot:
        """
        Replace the current snapshot and return the previous one.

        Raises:
            ValueError: If the new snapshot does not advance the generation
        """
        with self._lock:
            previous = self._current
            if snapshot.generation <= previous.generation:
                raise ValueError(
                    f"Snapshot generation must increase "
                    f"({snapshot.generation} <= {previous.generation})"
                )
            self._current = snapshot
            return previous


__all__ = [
    "TreeSnapshot",
    "make_snapshot",
    "SnapshotHolder",
]
