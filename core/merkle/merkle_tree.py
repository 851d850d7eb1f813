"""
Module 03 - Merkle Tree Implementation
Fixed-height, append-only commitment tree matching the proving circuit.

Owner: Protocol/Crypto Engineer

This module provides:
- Cached empty-subtree constants per (hasher, height)
- MerkleTree: an arena of per-level node lists with O(H) append
- TreeBuilder: builds/extends trees from ledger rows, rejecting gaps
- compute_root_naive: full 2^H materialization for cross-checking

Canonical Commitment Rules (Hard Contracts):
1. Leaves are field elements, placed at index == leaf_index
2. Empty value: 0 at level 0
3. Empty-subtree constants: Z[0] = 0, Z[l+1] = H2(Z[l], Z[l])
4. Parent hashing: level[l+1][k] = H2(level[l][2k], level[l][2k+1])
5. Any node right of the populated range is Z[level]
6. Empty tree: root = Z[H]

Determinism Notes:
- No randomness, no wall-clock input, no dict ordering in hashing
- Appending leaves one by one gives exactly the same levels as building
  from the full list
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from core.crypto.field import is_field_element
from core.crypto.hashing import FieldHasher
from core.merkle.merkle_proofs import MerkleProof
from core.schemas.errors import InconsistentLeafError, NotFoundError


# Height used by the deployed circuit
DEFAULT_TREE_HEIGHT: int = 32

# Value of an unpopulated leaf
EMPTY_LEAF: int = 0

# Largest height compute_root_naive will materialize
MAX_NAIVE_HEIGHT: int = 20


_empty_cache: dict[tuple[str, int, int], tuple[int, ...]] = {}
_empty_cache_lock = threading.Lock()


def empty_hashes(hasher: FieldHasher, height: int) -> tuple[int, ...]:
    """
    Return the empty-subtree constants Z[0..height] for a hasher.

    Z[l] is the root of a subtree of height l whose leaves are all empty.
    Cached per (hasher name, modulus, height).
    """
    if height < 0:
        raise ValueError(f"Tree height must be non-negative, got {height}")

    key = (hasher.name, hasher.modulus, height)
    with _empty_cache_lock:
        cached = _empty_cache.get(key)
    if cached is not None:
        return cached

    zeros = [EMPTY_LEAF]
    for _ in range(height):
        zeros.append(hasher.hash2(zeros[-1], zeros[-1]))
    result = tuple(zeros)

    with _empty_cache_lock:
        _empty_cache.setdefault(key, result)
    return result


class MerkleTree:
    """
    Sparse fixed-height Merkle tree over a dense prefix of leaves.

    levels[l] holds every node at level l that has at least one populated
    leaf below it; anything to the right is implicitly Z[l]. levels[H]
    holds the root once a leaf exists.

    Mutation is limited to append(). Snapshots take a copy() and never
    mutate a tree that readers can see.
    """

    def __init__(
        self,
        hasher: FieldHasher,
        height: int = DEFAULT_TREE_HEIGHT,
    ) -> None:
        if height < 1:
            raise ValueError(f"Tree height must be at least 1, got {height}")
        self.hasher = hasher
        self.height = height
        self.zeros = empty_hashes(hasher, height)
        self._levels: list[list[int]] = [[] for _ in range(height + 1)]

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of populated leaves."""
        return len(self._levels[0])

    @property
    def capacity(self) -> int:
        return 1 << self.height

    @property
    def root(self) -> int:
        if not self._levels[0]:
            return self.zeros[self.height]
        return self._levels[self.height][0]

    @property
    def leaves(self) -> tuple[int, ...]:
        return tuple(self._levels[0])

    def leaf(self, index: int) -> int:
        if not 0 <= index < self.size:
            raise NotFoundError(
                f"Leaf index {index} out of range for {self.size} leaves",
                details={"leaf_index": index, "leaves": self.size},
            )
        return self._levels[0][index]

    def node(self, level: int, index: int) -> int:
        """Node value at (level, index), falling back to the empty constant."""
        nodes = self._levels[level]
        if index < len(nodes):
            return nodes[index]
        return self.zeros[level]

    def path(self, index: int) -> list[int]:
        """
        Sibling path for a populated leaf, bottom to top.

        The sibling at level l sits at (index >> l) ^ 1.
        """
        if not 0 <= index < self.size:
            raise NotFoundError(
                f"Leaf index {index} out of range for {self.size} leaves",
                details={"leaf_index": index, "leaves": self.size},
            )
        return [
            self.node(level, (index >> level) ^ 1)
            for level in range(self.height)
        ]

    def proof(self, index: int, generation: int = 0) -> MerkleProof:
        return MerkleProof(
            leaf=self.leaf(index),
            index=index,
            siblings=tuple(self.path(index)),
            root=self.root,
            generation=generation,
        )

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def append(self, leaf: int) -> int:
        """
        Append a leaf at index == size and update its path to the root.

        Only the H nodes above the new leaf are rehashed. Because the new
        leaf is the rightmost populated one, a right sibling is always the
        empty constant and a left sibling always already exists.

        Returns:
            The index the leaf was placed at
        """
        index = self.size
        if index >= self.capacity:
            raise InconsistentLeafError(
                f"Tree of height {self.height} is full",
                leaf_index=index,
            )
        if not is_field_element(leaf, self.hasher.modulus):
            raise InconsistentLeafError(
                "Leaf is not a field element",
                leaf_index=index,
                details={"value": str(leaf)},
            )

        self._levels[0].append(leaf)
        node = leaf
        position = index
        for level in range(self.height):
            if position & 1:
                node = self.hasher.hash2(self._levels[level][position - 1], node)
            else:
                node = self.hasher.hash2(node, self.zeros[level])
            position >>= 1
            parents = self._levels[level + 1]
            if position < len(parents):
                parents[position] = node
            else:
                parents.append(node)
        return index

    def extend(self, leaves: Iterable[int]) -> None:
        for leaf in leaves:
            self.append(leaf)

    def copy(self) -> "MerkleTree":
        """Copy level lists so the clone can be appended to independently."""
        clone = MerkleTree.__new__(MerkleTree)
        clone.hasher = self.hasher
        clone.height = self.height
        clone.zeros = self.zeros
        clone._levels = [list(nodes) for nodes in self._levels]
        return clone

    @classmethod
    def from_leaves(
        cls,
        hasher: FieldHasher,
        leaves: Iterable[int],
        height: int = DEFAULT_TREE_HEIGHT,
    ) -> "MerkleTree":
        tree = cls(hasher, height)
        tree.extend(leaves)
        return tree

    def __repr__(self) -> str:
        return f"MerkleTree(height={self.height}, size={self.size}, hasher={self.hasher.name!r})"


# =============================================================================
# Building from ledger rows
# =============================================================================

class IndexedLeaf(Protocol):
    leaf_index: int
    commitment: int


@dataclass(frozen=True)
class TreeBuilder:
    """
    Pure function from an ordered ledger listing to a MerkleTree.

    Holds only configuration: the hasher and the tree height.
    """
    hasher: FieldHasher
    height: int = DEFAULT_TREE_HEIGHT

    @property
    def empty_root(self) -> int:
        return empty_hashes(self.hasher, self.height)[self.height]

    def build(self, rows: Sequence[IndexedLeaf]) -> MerkleTree:
        """
        Build a tree from rows sorted by leaf_index.

        Raises:
            InconsistentLeafError: If the indices are not exactly 0..n-1
        """
        return self.extend(MerkleTree(self.hasher, self.height), rows)

    def extend(self, base: MerkleTree, rows: Sequence[IndexedLeaf]) -> MerkleTree:
        """
        Return a copy of base with rows appended.

        Rows must continue base without a gap: the first row's leaf_index
        must equal base.size and each subsequent index must be one higher.
        base itself is left untouched.
        """
        if base.height != self.height or base.hasher is not self.hasher:
            raise ValueError("Base tree was built with a different configuration")

        tree = base.copy()
        for row in rows:
            expected = tree.size
            if row.leaf_index != expected:
                if row.leaf_index < expected:
                    detail = "duplicate or out-of-order leaf"
                else:
                    detail = f"missing leaves {expected}..{row.leaf_index - 1}"
                raise InconsistentLeafError(
                    f"Leaf sequence has a gap at index {expected}: {detail}",
                    leaf_index=row.leaf_index,
                    details={"expected": expected},
                )
            tree.append(row.commitment)
        return tree


def compute_root_naive(
    hasher: FieldHasher,
    leaves: Sequence[int],
    height: int,
) -> int:
    """
    Compute the root by materializing all 2^height leaves.

    Reference implementation for cross-checking the sparse tree; only
    feasible for small heights.
    """
    if height > MAX_NAIVE_HEIGHT:
        raise ValueError(f"Refusing to materialize 2^{height} leaves")
    if len(leaves) > (1 << height):
        raise ValueError(f"{len(leaves)} leaves do not fit in height {height}")

    level = list(leaves) + [EMPTY_LEAF] * ((1 << height) - len(leaves))
    for _ in range(height):
        level = [hasher.hash2(level[i], level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


__all__ = [
    "DEFAULT_TREE_HEIGHT",
    "EMPTY_LEAF",
    "empty_hashes",
    "MerkleTree",
    "TreeBuilder",
    "compute_root_naive",
]
