"""
Module 01 - Schemas
File: ledger.py

Purpose: Records stored by the commitment ledger and the root store, and
the decoded event shape handed over by the event source adapter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.crypto.field import U256_MAX, parse_field_element


class CommitmentEvent(BaseModel):
    """
    A decoded commitment event.

    The commitment arrives as a decimal string (or an int) and is parsed
    into a field element; anything outside the field is rejected here,
    before it can reach the ledger.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    leaf_index: int = Field(
        ...,
        description="Contract-assigned position of the commitment",
        ge=0,
        le=U256_MAX,
    )
    commitment: int = Field(
        ...,
        description="Commitment value (BN254 field element)",
    )
    block_number: int = Field(
        ...,
        description="Block the event was emitted in",
        ge=0,
    )
    event_name: Optional[str] = Field(
        default=None,
        description="Name of the emitting event, when known",
    )
    tx_hash: Optional[str] = Field(default=None)

    @field_validator("commitment", mode="before")
    @classmethod
    def _parse_commitment(cls, value: object) -> int:
        if isinstance(value, (str, int)):
            return parse_field_element(value)
        raise ValueError(f"commitment must be a decimal string or int, got {type(value).__name__}")


class Commitment(BaseModel):
    """A leaf as stored in the ledger. Never mutated, never deleted."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    leaf_index: int = Field(..., ge=0)
    commitment: int = Field(...)
    source_block: int = Field(..., ge=0)

    def to_dict(self) -> dict[str, object]:
        return {
            "leaf_index": self.leaf_index,
            "commitment": str(self.commitment),
            "block": self.source_block,
        }


class RootRecord(BaseModel):
    """
    A distinct root computed by the tree builder.

    Only `submitted` (and the carrying tx_hash) ever changes, false to true.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: int = Field(..., description="Insertion sequence; defines oldest-first order")
    root: int = Field(...)
    observed_at_block: int = Field(..., ge=0)
    submitted: bool = Field(default=False)
    tx_hash: Optional[str] = Field(default=None)

    def to_dict(self) -> dict[str, object]:
        return {
            "root": str(self.root),
            "block": self.observed_at_block,
            "submitted": self.submitted,
            "tx_hash": self.tx_hash,
        }


@dataclass(frozen=True)
class InsertResult:
    """Outcome of CommitmentLedger.insert()."""
    inserted: bool
    leaf_index: int


@dataclass(frozen=True)
class RecordResult:
    """Outcome of RootStore.record_if_new()."""
    recorded: bool
    root: int
