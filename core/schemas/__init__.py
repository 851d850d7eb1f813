"""
Module 01 - Schemas
File: __init__.py

Purpose: Export the error taxonomy. Record models live in
core.schemas.ledger (they depend on core.crypto, which depends on this
package's errors).
"""

from .errors import (
    ErrorCodes,
    IndexerException,
    TransientError,
    DataIntegrityError,
    ConflictError,
    InconsistentLeafError,
    NotFoundError,
    InvalidFieldElementError,
    PublishError,
    ConfigurationError,
)

__all__ = [
    "ErrorCodes",
    "IndexerException",
    "TransientError",
    "DataIntegrityError",
    "ConflictError",
    "InconsistentLeafError",
    "NotFoundError",
    "InvalidFieldElementError",
    "PublishError",
    "ConfigurationError",
]
