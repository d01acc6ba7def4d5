"""
Proof lookup API routes.
"""

import logging

from eth_utils import encode_hex
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..airdrop import Airdrop
from ..errors import IndexOutOfRange
from .deps import get_airdrop

logger = logging.getLogger("merkle_drop.api.proof")

router = APIRouter(prefix="/proof", tags=["Proofs"])


class RootResponse(BaseModel):
    """Published commitment."""

    merkleroot: str
    leaf_count: int
    leaf_encoding: str


class ProofResponse(BaseModel):
    """Claim data and membership proof for one address."""

    address: str
    amount: str
    leaf_index: int
    leaf: str = Field(..., description="Leaf digest (0x hex)")
    proof: list[str] = Field(..., description="Sibling digests, leaf level first")


def _proof_response(airdrop: Airdrop, index: int) -> ProofResponse:
    proof = airdrop.tree.get_proof(index)
    entry = airdrop.entries[proof.leaf_index]
    return ProofResponse(
        address=entry.address,
        amount=str(entry.amount),
        leaf_index=index,
        leaf=encode_hex(proof.leaf),
        proof=proof.hex_siblings,
    )


@router.get("/root")
async def get_root(airdrop: Airdrop = Depends(get_airdrop)) -> RootResponse:
    """Get the Merkle root the proofs are issued against."""
    return RootResponse(
        merkleroot=airdrop.root_hex,
        leaf_count=airdrop.tree.leaf_count,
        leaf_encoding=airdrop.encoding.value,
    )


@router.get("/index/{index}")
async def get_proof_by_index(
    index: int,
    airdrop: Airdrop = Depends(get_airdrop),
) -> ProofResponse:
    """Get the proof for a leaf position."""
    try:
        return _proof_response(airdrop, index)
    except IndexOutOfRange as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{address}")
async def get_proof(
    address: str,
    airdrop: Airdrop = Depends(get_airdrop),
) -> ProofResponse:
    """Get the proof for an address."""
    try:
        index = airdrop.index_of(address)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Address {address} not found")

    logger.info(f"Proof requested for {address}", extra={"action": "proof", "address": address})
    return _proof_response(airdrop, index)
