"""
Root Routes

Pending roots and the administrative submission endpoints. Submissions go
through the same RootPublisher (and its lock) as the ingestion cycle.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends

from api.deps import get_indexer, get_publisher
from api.errors import APIError, NoAccountError
from api.models.requests import SubmitRootRequest
from api.models.responses import (
    PendingRoot,
    PendingRootsResponse,
    SubmitAllResponse,
    SubmitRootResponse,
)
from core.crypto.field import parse_field_element, to_decimal
from indexer.publisher import PublishStatus, RootPublisher
from indexer.service import Indexer


logger = logging.getLogger(__name__)

router = APIRouter(tags=["roots"])


@router.get("/pending-roots", response_model=PendingRootsResponse)
def pending_roots(indexer: Indexer = Depends(get_indexer)) -> PendingRootsResponse:
    return PendingRootsResponse(
        pending=[
            PendingRoot(root=to_decimal(r.root), block=r.observed_at_block)
            for r in indexer.roots.list_unsubmitted()
        ]
    )


@router.post("/submit-root", response_model=SubmitRootResponse, response_model_exclude_none=True)
def submit_root(
    request: Optional[SubmitRootRequest] = Body(default=None),
    publisher: RootPublisher = Depends(get_publisher),
) -> SubmitRootResponse:
    """
    Submit one root (default: the newest pending one).

    Without an indexer account, returns the calldata for manual submission.
    """
    root = None
    if request is not None and request.root:
        root = parse_field_element(request.root)

    outcome = publisher.submit_root(root)
    if outcome.status == PublishStatus.FAILED:
        raise APIError(
            code="PUBLISH_FAILED",
            message=outcome.error or "Root submission failed",
            status_code=502,
            details={"root": to_decimal(outcome.root)},
        )

    manual = outcome.manual
    return SubmitRootResponse(
        success=outcome.success,
        status=outcome.status.value,
        root=to_decimal(outcome.root),
        transaction_hash=outcome.tx_hash,
        message=manual.get("message"),
        calldata=manual.get("calldata"),
        command=manual.get("command"),
    )


@router.post("/submit-all-roots", response_model=SubmitAllResponse, response_model_exclude_none=True)
def submit_all_roots(publisher: RootPublisher = Depends(get_publisher)) -> SubmitAllResponse:
    """Submit every pending root, oldest first, stopping at the first failure."""
    if not publisher.can_submit:
        raise NoAccountError()

    outcomes = publisher.publish_pending()
    if not outcomes:
        return SubmitAllResponse(submitted=0, message="No pending roots")

    submitted = sum(1 for o in outcomes if o.status == PublishStatus.SUBMITTED)
    logger.info(f"Submitted {submitted}/{len(outcomes)} pending roots")
    return SubmitAllResponse(
        submitted=submitted,
        results=[o.to_dict() for o in outcomes],
    )
