"""API request and response models."""

from api.models.requests import SubmitRootRequest
from api.models.responses import (
    HealthResponse,
    RootResponse,
    PathResponse,
    PendingRoot,
    PendingRootsResponse,
    SubmitRootResponse,
    SubmitAllResponse,
    ErrorDetail,
    ErrorResponse,
)

__all__ = [
    "SubmitRootRequest",
    "HealthResponse",
    "RootResponse",
    "PathResponse",
    "PendingRoot",
    "PendingRootsResponse",
    "SubmitRootResponse",
    "SubmitAllResponse",
    "ErrorDetail",
    "ErrorResponse",
]
