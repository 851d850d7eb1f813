"""
API Error Handling

Maps the indexer's error taxonomy onto the standard error envelope:
    {"ok": false, "error": {"code", "message", "details"}}
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorResponse, ErrorDetail
from core.schemas.errors import (
    IndexerException,
    InvalidFieldElementError,
    NotFoundError,
    PublishError,
    TransientError,
)


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
            ),
        )


class InvalidRequestError(APIError):
    """Invalid request parameters."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code="INVALID_REQUEST",
            message=message,
            status_code=400,
            details=details,
        )


class NoAccountError(APIError):
    """Bulk submission requested without an indexer account."""

    def __init__(self, message: str = "No indexer account configured"):
        super().__init__(
            code="NO_ACCOUNT",
            message=message,
            status_code=400,
        )


class UnavailableError(APIError):
    """Chain or storage temporarily unavailable."""

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(
            code="UNAVAILABLE",
            message=message,
            status_code=503,
        )


def status_for(exc: IndexerException) -> int:
    """HTTP status for an indexer exception."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, InvalidFieldElementError):
        return 400
    if isinstance(exc, TransientError):
        return 503
    if isinstance(exc, PublishError):
        return 502
    return 500


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


async def indexer_error_handler(request: Request, exc: IndexerException) -> JSONResponse:
    """Handle errors raised by the indexer core."""
    if isinstance(exc, TransientError):
        # Internal detail of a transient failure is not exposed to callers.
        return await api_error_handler(request, UnavailableError())
    return JSONResponse(
        status_code=status_for(exc),
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=exc.code,
                message=exc.message,
                details=exc.details,
            ),
        ).model_dump(),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
                details={"type": type(exc).__name__},
            ),
        ).model_dump(),
    )
