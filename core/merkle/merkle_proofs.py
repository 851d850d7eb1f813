"""
Module 03 - Merkle Proofs
Inclusion proof container and verification for the commitment tree.

Owner: Protocol/Crypto Engineer

Sibling-side rule (must match the circuit exactly):
    for level in 0..H-1:
        bit = (index >> level) & 1
        left  = sibling if bit else current
        right = current if bit else sibling
        current = H2(left, right)

An even index means the current node is the left child; an odd index means
it is the right child. Swapping the convention does not crash anything, it
just produces a different root.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from core.crypto.hashing import FieldHasher


@dataclass(frozen=True)
class MerkleProof:
    """
    A fixed-height inclusion proof for a single leaf.

    Attributes:
        leaf: The commitment value at leaf_index
        index: 0-based leaf index
        siblings: One sibling per level, bottom to top (len == tree height)
        root: The root this proof was computed against
    """
    leaf: int
    index: int
    siblings: tuple[int, ...]
    root: int
    generation: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")

    @property
    def height(self) -> int:
        return len(self.siblings)

    def to_dict(self) -> dict[str, Any]:
        """Wire form consumed by the prover (decimal strings)."""
        return {
            "leaf_index": self.index,
            "commitment": str(self.leaf),
            "siblings": [str(s) for s in self.siblings],
            "root": str(self.root),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MerkleProof":
        return cls(
            leaf=int(data["commitment"]),
            index=int(data["leaf_index"]),
            siblings=tuple(int(s) for s in data["siblings"]),
            root=int(data["root"]),
        )


def compute_root_from_path(
    hasher: FieldHasher,
    leaf: int,
    index: int,
    siblings: Sequence[int],
) -> int:
    """
    Recompute the root from a leaf and its sibling path.

    This is the same computation the proving circuit performs.
    """
    if index >> len(siblings):
        raise ValueError(
            f"Leaf index {index} does not fit in a tree of height {len(siblings)}"
        )

    current = leaf
    for level, sibling in enumerate(siblings):
        if (index >> level) & 1:
            current = hasher.hash2(sibling, current)
        else:
            current = hasher.hash2(current, sibling)
    return current


def verify_merkle_proof(hasher: FieldHasher, proof: MerkleProof) -> bool:
    """
    Verify a proof against its claimed root.

    Returns:
        True if the recomputed root equals proof.root
    """
    try:
        computed = compute_root_from_path(hasher, proof.leaf, proof.index, proof.siblings)
    except ValueError:
        return False
    return computed == proof.root


__all__ = [
    "MerkleProof",
    "compute_root_from_path",
    "verify_merkle_proof",
]
