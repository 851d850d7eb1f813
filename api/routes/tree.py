"""
Tree Routes

Current root and inclusion paths, answered from one snapshot per request.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import get_proofs
from api.errors import InvalidRequestError
from api.models.responses import PathResponse, RootResponse
from core.crypto.field import parse_field_element, to_decimal
from indexer.proofs import ProofPathService


router = APIRouter(tags=["tree"])


@router.get("/root", response_model=RootResponse)
def get_root(proofs: ProofPathService = Depends(get_proofs)) -> RootResponse:
    snapshot = proofs.snapshot()
    if snapshot.is_empty:
        return RootResponse(root=None)
    return RootResponse(root=to_decimal(snapshot.root))


@router.get("/path/commitment/{commitment}", response_model=PathResponse)
def get_path_by_commitment(
    commitment: str,
    proofs: ProofPathService = Depends(get_proofs),
) -> PathResponse:
    """
    Inclusion path for a commitment value (decimal or 0x-hex).

    400 if the value is not a field element, 404 if it is not in the tree.
    """
    value = parse_field_element(commitment)
    return PathResponse(**proofs.path_for_commitment(value).to_dict())


@router.get("/path/{leaf_index}", response_model=PathResponse)
def get_path_by_index(
    leaf_index: str,
    proofs: ProofPathService = Depends(get_proofs),
) -> PathResponse:
    """
    Inclusion path for a leaf index.

    400 if leaf_index is not an integer, 404 if it is out of range.
    """
    try:
        index = int(leaf_index, 10)
    except ValueError:
        raise InvalidRequestError("invalid index", details={"leaf_index": leaf_index}) from None
    return PathResponse(**proofs.path_for_index(index).to_dict())
