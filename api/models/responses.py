"""
API Response Models

Pydantic models for API response serialization. Field elements are
serialized as decimal strings.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    status: str = Field(..., description="ok, degraded or halted")
    leaves: int = Field(..., description="Leaves in the current snapshot")
    latestRoot: Optional[str] = Field(default=None, description="Most recently recorded root")
    generation: int = Field(default=0, description="Snapshot generation")
    pendingRoots: int = Field(default=0, description="Recorded roots not yet submitted")
    ingesting: bool = Field(default=False, description="Whether the ingestion loop is running")
    haltReason: Optional[str] = Field(default=None)


class RootResponse(BaseModel):
    """Response for GET /root endpoint."""

    root: Optional[str] = Field(..., description="Current root, null when the tree is empty")


class PathResponse(BaseModel):
    """Inclusion path for one leaf, consumed by the prover."""

    leaf_index: int = Field(..., description="0-based leaf index")
    commitment: str = Field(..., description="Leaf value")
    siblings: list[str] = Field(..., description="One sibling per level, bottom to top")
    root: str = Field(..., description="Root the path resolves to")


class PendingRoot(BaseModel):
    root: str
    block: int


class PendingRootsResponse(BaseModel):
    """Response for GET /pending-roots endpoint."""

    pending: list[PendingRoot] = Field(default_factory=list)


class SubmitRootResponse(BaseModel):
    """Response for POST /submit-root endpoint."""

    success: bool = Field(..., description="True if the root is (now) on-chain")
    status: str = Field(..., description="submitted, already_submitted or manual")
    root: str
    transaction_hash: Optional[str] = Field(default=None)
    message: Optional[str] = Field(default=None)
    calldata: Optional[dict[str, str]] = Field(default=None)
    command: Optional[str] = Field(default=None)


class SubmitAllResponse(BaseModel):
    """Response for POST /submit-all-roots endpoint."""

    submitted: int = Field(..., description="Roots confirmed in this call")
    message: Optional[str] = Field(default=None)
    results: list[dict[str, Any]] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
