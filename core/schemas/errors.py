"""
Module 01 - Schemas
File: errors.py

Purpose: Standard error taxonomy across the indexer.

Three families of failure exist and are handled differently:
- Transient (RPC timeouts, storage contention): retried with a fixed delay
- Data-integrity (ledger conflicts, leaf gaps): halt ingestion, never repaired
- Not-found: expected, mapped to 404 by the query API
"""

from typing import Any


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the indexer."""

    # Ingestion & Storage Errors
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"
    LEDGER_CONFLICT = "LEDGER_CONFLICT"
    INCONSISTENT_LEAF = "INCONSISTENT_LEAF"

    # Query Errors
    NOT_FOUND = "NOT_FOUND"
    INVALID_FIELD_ELEMENT = "INVALID_FIELD_ELEMENT"

    # Publishing Errors
    PUBLISH_FAILED = "PUBLISH_FAILED"

    # Startup Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class IndexerException(Exception):
    """
    Base exception for all indexer errors.

    Carries a stable code, structured details and a retryable flag so
    the ingestion loop can tell transient failures from fatal ones.
    """

    def __init__(
        self,
        message: str,
        code: str = "INDEXER_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class TransientError(IndexerException):
    """Raised when a chain RPC call or storage operation fails temporarily."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.TRANSIENT_FAILURE,
            details=details,
            retryable=True,
        )


class DataIntegrityError(IndexerException):
    """Base class for errors that must halt ingestion for manual intervention."""


class ConflictError(DataIntegrityError):
    """
    Raised when a leaf index or commitment is already stored with a
    different counterpart.

    Exact duplicates are not conflicts; they are skipped silently.
    """

    def __init__(
        self,
        message: str,
        leaf_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        super().__init__(
            message=message,
            code=ErrorCodes.LEDGER_CONFLICT,
            details=full_details,
            retryable=False,
        )


class InconsistentLeafError(DataIntegrityError):
    """Raised when the leaf sequence is not the gapless prefix 0..n-1."""

    def __init__(
        self,
        message: str,
        leaf_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        super().__init__(
            message=message,
            code=ErrorCodes.INCONSISTENT_LEAF,
            details=full_details,
            retryable=False,
        )


class NotFoundError(IndexerException):
    """Raised when a leaf index, commitment or root is unknown."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.NOT_FOUND,
            details=details,
            retryable=False,
        )


class InvalidFieldElementError(IndexerException, ValueError):
    """Raised when a value cannot be parsed as an element of the circuit field."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_FIELD_ELEMENT,
            details=details,
            retryable=False,
        )


class PublishError(IndexerException):
    """Raised when a root submission is rejected or cannot be confirmed."""

    def __init__(
        self,
        message: str,
        root: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if root is not None:
            full_details["root"] = str(root)
        super().__init__(
            message=message,
            code=ErrorCodes.PUBLISH_FAILED,
            details=full_details,
            retryable=True,
        )


class ConfigurationError(IndexerException):
    """Raised when required configuration is missing or malformed."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CONFIGURATION_ERROR,
            details=details,
            retryable=False,
        )
