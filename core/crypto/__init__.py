"""
Core cryptographic utilities.

Field element parsing and the two-input hashes used by the commitment tree.
"""
from .field import (
    BN254_PRIME,
    is_field_element,
    parse_field_element,
    parse_felt,
    split_u256,
    join_u256,
)
from .hashing import (
    sha256,
    FieldHasher,
    PoseidonHasher,
    Sha256FieldHasher,
    available_hashers,
    get_hasher,
)

__all__ = [
    "BN254_PRIME",
    "is_field_element",
    "parse_field_element",
    "parse_felt",
    "split_u256",
    "join_u256",
    "sha256",
    "FieldHasher",
    "PoseidonHasher",
    "Sha256FieldHasher",
    "available_hashers",
    "get_hasher",
]
