"""API routes module."""

from .routes_proof import router as proof_router
from .routes_verify import router as verify_router

__all__ = ["proof_router", "verify_router"]
