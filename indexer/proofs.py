"""
Proof-Path Service

Read-only query surface over the current tree snapshot.

Every call captures the snapshot reference once and answers entirely from
it, so the leaf, its siblings and the root always belong to the same tree
state even while ingestion swaps in a newer one.
"""
from __future__ import annotations

from core.merkle.merkle_proofs import MerkleProof
from core.merkle.snapshot import SnapshotHolder, TreeSnapshot
from core.schemas.errors import NotFoundError


class ProofPathService:
    """
    Query API over a SnapshotHolder.

    Usage:
        service = ProofPathService(holder)
        proof = service.path_for_index(0)
        proof.to_dict()  # {"leaf_index", "commitment", "siblings", "root"}
    """

    def __init__(self, holder: SnapshotHolder) -> None:
        self.holder = holder

    def snapshot(self) -> TreeSnapshot:
        return self.holder.current()

    def current_root(self) -> int:
        """Root of the current snapshot; the empty-tree constant if no leaves exist."""
        return self.holder.current().root

    def leaf_count(self) -> int:
        return self.holder.current().leaf_count

    def generation(self) -> int:
        return self.holder.current().generation

    def path_for_index(self, leaf_index: int) -> MerkleProof:
        """
        Raises:
            NotFoundError: If leaf_index is negative or not yet in the tree
        """
        snapshot = self.holder.current()
        if not 0 <= leaf_index < snapshot.leaf_count:
            raise NotFoundError(
                "leaf index out of range" if snapshot.leaf_count else "no leaves in tree",
                details={"leaf_index": leaf_index, "leaves": snapshot.leaf_count},
            )
        return snapshot.proof_for_index(leaf_index)

    def path_for_commitment(self, commitment: int) -> MerkleProof:
        """
        Raises:
            NotFoundError: If the commitment is not in the current snapshot
        """
        snapshot = self.holder.current()
        leaf_index = snapshot.find(commitment)
        if leaf_index is None:
            raise NotFoundError(
                "commitment not found",
                details={"commitment": str(commitment)},
            )
        return snapshot.proof_for_index(leaf_index)
