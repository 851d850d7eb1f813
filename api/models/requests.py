"""
API Request Models

Pydantic models for API request validation.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SubmitRootRequest(BaseModel):
    """Request body for POST /submit-root endpoint."""

    model_config = ConfigDict(extra="forbid")

    root: Optional[str] = Field(
        default=None,
        description="Root to submit (decimal or 0x-hex); defaults to the newest pending root",
    )
