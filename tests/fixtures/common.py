"""
Common test fixtures shared by all modules.

Provides factory functions for core indexer data structures:
- Commitment values (deterministic field elements)
- CommitmentEvent
- Raw starknet_getEvents entries

These are the foundational building blocks used by higher-level fixtures.
"""

from typing import Optional

from core.crypto.field import BN254_PRIME, split_u256
from core.crypto.hashing import sha256
from core.schemas.ledger import CommitmentEvent


# =============================================================================
# Commitment Factory
# =============================================================================

def make_commitment(seed: int) -> int:
    """Deterministic pseudo-random field element for a seed."""
    digest = sha256(f"commitment-{seed}".encode())
    return int.from_bytes(digest, "big") % BN254_PRIME


def make_event(
    leaf_index: int,
    commitment: Optional[int] = None,
    block_number: Optional[int] = None,
    event_name: str = "CommitmentCreated",
) -> CommitmentEvent:
    """
    Create a CommitmentEvent for testing.

    Args:
        leaf_index: Contract-assigned leaf index
        commitment: Commitment value (default: make_commitment(leaf_index))
        block_number: Block number (default: 100 + leaf_index)
    """
    return CommitmentEvent(
        leaf_index=leaf_index,
        commitment=str(commitment if commitment is not None else make_commitment(leaf_index)),
        block_number=block_number if block_number is not None else 100 + leaf_index,
        event_name=event_name,
    )


def make_events(count: int, start: int = 0) -> list[CommitmentEvent]:
    """Events for leaf indices start..start+count-1."""
    return [make_event(i) for i in range(start, start + count)]


# =============================================================================
# Raw RPC Event Factory
# =============================================================================

def make_raw_event(
    leaf_index: int,
    commitment: int,
    block_number: Optional[int] = 100,
    selector: int = 0x1,
    extra_data: Optional[list[str]] = None,
) -> dict:
    """Create a starknet_getEvents entry with the commitment contract's layout."""
    c_low, c_high = split_u256(commitment)
    i_low, i_high = split_u256(leaf_index)
    raw = {
        "from_address": "0x1234",
        "keys": [hex(selector), hex(c_low), hex(c_high)],
        "data": [hex(i_low), hex(i_high)] + list(extra_data or []),
        "transaction_hash": "0xabc",
    }
    if block_number is not None:
        raw["block_number"] = block_number
    return raw
