"""
Claim verification API routes.
"""

from eth_utils import encode_hex
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..airdrop import Airdrop
from ..errors import EncodingError
from ..tree import LeafEncoder, verify_proof
from .deps import get_airdrop

router = APIRouter(prefix="/verify", tags=["Verification"])


class VerifyClaimRequest(BaseModel):
    """Request to verify an (address, amount) claim."""

    address: str = Field(..., description="0x-prefixed 20-byte address")
    amount: str | int = Field(..., description="Claimed amount")
    proof: list[str] | None = Field(None, description="Proof (default: the issued one)")
    root: str | None = Field(None, description="Root to check against (default: served root)")


class VerifyClaimResponse(BaseModel):
    """Result of a claim verification."""

    is_valid: bool
    leaf: str
    root: str


class VerifyProofRequest(BaseModel):
    """Request to verify a raw leaf/proof/root triple."""

    leaf: str
    proof: list[str] = Field(default_factory=list)
    root: str


@router.post("/claim")
async def verify_claim(
    request: VerifyClaimRequest,
    airdrop: Airdrop = Depends(get_airdrop),
) -> VerifyClaimResponse:
    """
    Verify a claim.

    The leaf is recomputed from address and amount with the tree's leaf
    encoding, then checked against the root.
    """
    try:
        leaf = LeafEncoder(airdrop.encoding).encode_fields(request.address, request.amount)
        is_valid = airdrop.verify_claim(
            request.address, request.amount, proof=request.proof, root=request.root
        )
    except EncodingError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return VerifyClaimResponse(
        is_valid=is_valid,
        leaf=encode_hex(leaf),
        root=request.root or airdrop.root_hex,
    )


@router.post("/proof")
async def verify_raw_proof(request: VerifyProofRequest) -> dict[str, bool]:
    """Verify a proof without consulting the served tree."""
    return {"is_valid": verify_proof(request.leaf, request.proof, request.root)}
