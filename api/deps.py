"""
API Dependencies

The running Indexer lives on app.state; routes receive it (or one of its
services) through FastAPI dependency injection.
"""

from __future__ import annotations

from fastapi import Request

from api.errors import UnavailableError
from indexer.proofs import ProofPathService
from indexer.publisher import RootPublisher
from indexer.service import Indexer


def get_indexer(request: Request) -> Indexer:
    indexer = getattr(request.app.state, "indexer", None)
    if indexer is None:
        raise UnavailableError("Indexer not initialized")
    return indexer


def get_proofs(request: Request) -> ProofPathService:
    return get_indexer(request).proofs


def get_publisher(request: Request) -> RootPublisher:
    return get_indexer(request).publisher
