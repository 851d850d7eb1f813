"""
Module 02 - Hashing Utilities
Two-input field hashes (H2) used at every level of the commitment tree.

This module provides:
- FieldHasher: the H2(a, b) interface the tree engine is written against
- PoseidonHasher: BN254 Poseidon matching the proving circuit
- Sha256FieldHasher: SHA-256 reduced into the field, for development and tests
- get_hasher(): lookup by configured name

Security/Determinism Notes:
- Both inputs and the output are field elements (ints below the modulus)
- Hashers hold no per-call state visible to callers; the same inputs always
  produce the same output
- Only PoseidonHasher produces roots the on-chain verifier accepts
"""
from __future__ import annotations

import hashlib
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from core.crypto.field import BN254_PRIME, is_field_element
from core.crypto.poseidon import PoseidonParams, get_params, permute
from core.schemas.errors import ConfigurationError, InvalidFieldElementError


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


class FieldHasher(ABC):
    """
    Two-to-one hash over a prime field.

    Subclasses implement _hash2(); the public hash2() validates inputs so
    that a malformed leaf can never silently produce a root.
    """

    name: str = "abstract"

    def __init__(self, modulus: int = BN254_PRIME) -> None:
        self.modulus = modulus

    def hash2(self, left: int, right: int) -> int:
        if not is_field_element(left, self.modulus) or not is_field_element(right, self.modulus):
            raise InvalidFieldElementError(
                "Hash inputs must be field elements",
                details={"left": str(left), "right": str(right)},
            )
        return self._hash2(left, right)

    @abstractmethod
    def _hash2(self, left: int, right: int) -> int:
        ...

    def __call__(self, left: int, right: int) -> int:
        return self.hash2(left, right)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class Sha256FieldHasher(FieldHasher):
    """
    H2(a, b) = sha256(a_be32 || b_be32) mod p.

    Cheap and deterministic; not compatible with the circuit.
    """

    name = "sha256"

    def _hash2(self, left: int, right: int) -> int:
        digest = sha256(left.to_bytes(32, "big") + right.to_bytes(32, "big"))
        return int.from_bytes(digest, "big") % self.modulus


class PoseidonHasher(FieldHasher):
    """
    Poseidon over BN254 with the circomlib parameter set for two inputs.

    Width t=3 (one capacity element, two inputs), S-box x^5, 8 full rounds
    and 57 partial rounds. The permutation state is initialised as
    [0, left, right] and lane 0 is the output, the same values poseidon-lite
    (poseidon2) and circomlibjs produce.
    """

    name = "poseidon"

    WIDTH = 3

    def __init__(self, modulus: int = BN254_PRIME) -> None:
        super().__init__(modulus)
        self._params: Optional[PoseidonParams] = None

    @property
    def params(self) -> PoseidonParams:
        """Round constants and MDS matrix, generated on first use."""
        if self._params is None:
            self._params = get_params(self.WIDTH, self.modulus)
        return self._params

    def _hash2(self, left: int, right: int) -> int:
        return permute(self.params, [0, left, right])[0]


# =============================================================================
# Registry
# =============================================================================

_HASHERS: dict[str, Callable[[int], FieldHasher]] = {
    PoseidonHasher.name: PoseidonHasher,
    Sha256FieldHasher.name: Sha256FieldHasher,
}

_instances: dict[tuple[str, int], FieldHasher] = {}
_instances_lock = threading.Lock()


def available_hashers() -> list[str]:
    return sorted(_HASHERS)


def get_hasher(name: str, modulus: int = BN254_PRIME) -> FieldHasher:
    """
    Return the shared hasher instance for a configured name.

    Raises:
        ConfigurationError: If the name is not a known hash function
    """
    key = (name.lower(), modulus)
    with _instances_lock:
        hasher = _instances.get(key)
        if hasher is None:
            factory = _HASHERS.get(key[0])
            if factory is None:
                raise ConfigurationError(
                    f"Unknown hash function '{name}'",
                    details={"available": available_hashers()},
                )
            hasher = factory(modulus)
            _instances[key] = hasher
        return hasher


__all__ = [
    "sha256",
    "FieldHasher",
    "PoseidonHasher",
    "Sha256FieldHasher",
    "available_hashers",
    "get_hasher",
]
