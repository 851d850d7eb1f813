"""
Module 02 - Field Elements
Parsing and encoding of BN254 scalar field elements.

This module provides:
- The BN254 scalar field modulus shared with the proving circuit
- Strict parsing of decimal / 0x-hex strings into field elements
- u256 (low, high) splitting used by Starknet calldata and events

Determinism Notes:
- Field elements are plain Python ints internally
- The canonical wire form is the decimal string (what the prover consumes)
"""
from __future__ import annotations

from core.schemas.errors import InvalidFieldElementError


# BN254 (alt_bn128) scalar field modulus used by the Noir circuit
BN254_PRIME: int = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)

U128_MASK: int = (1 << 128) - 1
U256_MAX: int = (1 << 256) - 1


def is_field_element(value: int, modulus: int = BN254_PRIME) -> bool:
    """Return True if value is an int in [0, modulus)."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < modulus


def parse_field_element(value: str | int, modulus: int = BN254_PRIME) -> int:
    """
    Parse a field element from an int, decimal string or 0x-prefixed hex string.

    Args:
        value: Raw value as received from the chain or an API caller
        modulus: Field modulus (defaults to BN254)

    Returns:
        The value as an int strictly below the modulus

    Raises:
        InvalidFieldElementError: If the value is malformed or out of range
    """
    if isinstance(value, bool):
        raise InvalidFieldElementError(f"Not a field element: {value!r}")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                parsed = int(text, 16)
            elif text.isdigit():
                parsed = int(text, 10)
            else:
                raise ValueError(text)
        except ValueError:
            raise InvalidFieldElementError(
                f"Not a field element: {value[:80]!r}",
                details={"value": value[:80]},
            ) from None
    else:
        raise InvalidFieldElementError(f"Not a field element: {value!r}")

    if not 0 <= parsed < modulus:
        raise InvalidFieldElementError(
            "Value is outside the field",
            details={"value": str(parsed)},
        )
    return parsed


def parse_felt(value: str | int) -> int:
    """Parse a raw Starknet felt (hex string as returned by JSON-RPC)."""
    if isinstance(value, int):
        return value
    return int(value, 16) if value.lower().startswith("0x") else int(value)


def split_u256(value: int) -> tuple[int, int]:
    """
    Split a u256 value into (low, high) 128-bit limbs.

    Example:
        >>> split_u256((5 << 128) + 7)
        (7, 5)
    """
    if not 0 <= value <= U256_MAX:
        raise ValueError(f"Value does not fit in u256: {value}")
    return value & U128_MASK, value >> 128


def join_u256(low: int, high: int) -> int:
    """Inverse of split_u256."""
    if not (0 <= low <= U128_MASK and 0 <= high <= U128_MASK):
        raise ValueError(f"u256 limbs out of range: low={low}, high={high}")
    return (high << 128) + low


def to_decimal(value: int) -> str:
    """Serialize a field element in its canonical decimal form."""
    return str(value)


def short(value: int, width: int = 20) -> str:
    """Truncated decimal form for log lines."""
    text = str(value)
    return text if len(text) <= width else text[:width] + "..."


__all__ = [
    "BN254_PRIME",
    "U128_MASK",
    "U256_MAX",
    "is_field_element",
    "parse_field_element",
    "parse_felt",
    "split_u256",
    "join_u256",
    "to_decimal",
    "short",
]
