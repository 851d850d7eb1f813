"""
Module 03 - Commitment Tree
Fixed-height Merkle tree, inclusion proofs and immutable snapshots.

This module provides:
- MerkleTree: sparse arena of per-level nodes with O(H) append
- TreeBuilder: builds trees from ledger rows, rejecting gaps
- MerkleProof / verify_merkle_proof: inclusion paths and their check
- TreeSnapshot / SnapshotHolder: atomically swapped read state

Usage:
    from core.crypto import get_hasher
    from core.merkle import TreeBuilder, verify_merkle_proof

    builder = TreeBuilder(get_hasher("poseidon"), height=32)
    tree = builder.build(ledger.list_ordered())
    proof = tree.proof(0)
    assert verify_merkle_proof(builder.hasher, proof)
"""
from .merkle_proofs import (
    MerkleProof,
    compute_root_from_path,
    verify_merkle_proof,
)
from .merkle_tree import (
    DEFAULT_TREE_HEIGHT,
    EMPTY_LEAF,
    MerkleTree,
    TreeBuilder,
    compute_root_naive,
    empty_hashes,
)
from .snapshot import (
    SnapshotHolder,
    TreeSnapshot,
    make_snapshot,
)


__all__ = [
    # Core types
    "MerkleProof",
    "MerkleTree",
    "TreeBuilder",
    "TreeSnapshot",
    "SnapshotHolder",
    # Constants
    "DEFAULT_TREE_HEIGHT",
    "EMPTY_LEAF",
    # Functions
    "empty_hashes",
    "compute_root_from_path",
    "verify_merkle_proof",
    "compute_root_naive",
    "make_snapshot",
]
