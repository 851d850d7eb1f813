"""
Event Source Adapter

Polls the commitment contract for the four commitment-carrying events and
decodes them into CommitmentEvent records.

Event layout (commitment is a #[key] u256, leaf_index the first data u256):
    keys: [selector, commitment_low, commitment_high]
    data: [leaf_index_low, leaf_index_high, ...]
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from core.chain.rpc import StarknetRpcClient
from core.crypto.field import join_u256, parse_felt
from core.schemas.errors import InconsistentLeafError, InvalidFieldElementError
from core.schemas.ledger import CommitmentEvent


logger = logging.getLogger(__name__)


COMMITMENT_EVENT_NAMES: tuple[str, ...] = (
    "CommitmentCreated",
    "PrivateCommitmentCreated",
    "BridgeCommitmentCreated",
    "PrivateDeposit",
)


class EventSource(ABC):
    """Source of decoded commitment events in ascending block order."""

    @abstractmethod
    def latest_block(self) -> int:
        ...

    @abstractmethod
    def fetch(self, from_block: int, to_block: int) -> list[CommitmentEvent]:
        """Return every commitment event in [from_block, to_block], ordered by leaf index."""
        ...

    def close(self) -> None:
        pass


def event_selectors(names: Sequence[str] = COMMITMENT_EVENT_NAMES) -> dict[int, str]:
    """Map sn_keccak(name) -> name for the watched events."""
    from starknet_py.hash.selector import get_selector_from_name

    return {get_selector_from_name(name): name for name in names}


def decode_event(raw: dict[str, Any], selectors: Optional[dict[int, str]] = None) -> CommitmentEvent:
    """
    Decode a raw starknet_getEvents entry.

    Raises:
        InconsistentLeafError: If the payload is too short or not decodable
        InvalidFieldElementError: If the commitment is outside the field
    """
    keys = raw.get("keys") or []
    data = raw.get("data") or []
    if len(keys) < 3 or len(data) < 2:
        raise InconsistentLeafError(
            "Commitment event payload is truncated",
            details={"keys": len(keys), "data": len(data), "tx": raw.get("transaction_hash")},
        )

    try:
        commitment = join_u256(parse_felt(keys[1]), parse_felt(keys[2]))
        leaf_index = join_u256(parse_felt(data[0]), parse_felt(data[1]))
    except ValueError as e:
        raise InconsistentLeafError(
            f"Undecodable commitment event: {e}",
            details={"tx": raw.get("transaction_hash")},
        ) from e

    event_name = None
    if selectors:
        event_name = selectors.get(parse_felt(keys[0]))

    block_number = raw.get("block_number")
    if block_number is None:
        # Events from the pending block carry no number yet.
        raise InconsistentLeafError(
            "Commitment event has no block number",
            leaf_index=leaf_index,
        )

    try:
        return CommitmentEvent(
            leaf_index=leaf_index,
            commitment=commitment,
            block_number=int(block_number),
            event_name=event_name,
            tx_hash=raw.get("transaction_hash"),
        )
    except ValueError as e:
        raise InvalidFieldElementError(
            f"Commitment at leaf {leaf_index} is not a field element",
            details={"leaf_index": leaf_index, "commitment": str(commitment)},
        ) from e


class StarknetEventSource(EventSource):
    """Paged starknet_getEvents reader for one contract."""

    def __init__(
        self,
        rpc: StarknetRpcClient,
        contract: str,
        *,
        chunk_size: int = 50,
        event_names: Sequence[str] = COMMITMENT_EVENT_NAMES,
    ) -> None:
        self.rpc = rpc
        self.contract = contract
        self.chunk_size = chunk_size
        self.selectors = event_selectors(event_names)
        self._keys = [[hex(selector) for selector in self.selectors]]

    def latest_block(self) -> int:
        return self.rpc.block_number()

    def fetch(self, from_block: int, to_block: int) -> list[CommitmentEvent]:
        raw_events: list[dict[str, Any]] = []
        token: Optional[str] = None
        while True:
            page = self.rpc.get_events(
                self.contract,
                self._keys,
                from_block=from_block,
                to_block=to_block,
                chunk_size=self.chunk_size,
                continuation_token=token,
            )
            raw_events.extend(page.get("events", []))
            token = page.get("continuation_token")
            if not token:
                break

        events = [decode_event(raw, self.selectors) for raw in raw_events]
        events.sort(key=lambda e: e.leaf_index)
        logger.debug(f"Fetched {len(events)} commitment events from blocks {from_block}..{to_block}")
        return events

    def close(self) -> None:
        self.rpc.close()
