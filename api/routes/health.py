"""
Health Check Route

Liveness plus ingestion state. A halted loop still answers 200 with
status "halted" so the query API keeps serving the last good snapshot.
"""

from fastapi import APIRouter, Depends

from api.deps import get_indexer
from api.models.responses import HealthResponse
from indexer.service import Indexer


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(indexer: Indexer = Depends(get_indexer)) -> HealthResponse:
    """Service status, leaf count and the latest recorded root."""
    return HealthResponse(**indexer.health())
