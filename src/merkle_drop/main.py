"""
Merkle Drop - FastAPI proof service.

Serves the root, per-address proofs and claim verification from a tree dump
written by ``merkle-drop build``.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from . import __version__
from .api import proof_router, verify_router
from .config import get_settings
from .logging_config import setup_json_logging

logger = setup_json_logging(get_settings().log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logger.info(
        f"Starting {settings.app_name}, serving {settings.tree_file}",
        extra={"action": "startup"},
    )

    yield

    logger.info("Shutdown complete", extra={"action": "shutdown"})


app = FastAPI(
    title="Merkle Drop",
    description="""
# Airdrop Merkle proof service

- **Root**: `/proof/root` returns the published commitment
- **Proofs**: `/proof/{address}` returns the leaf and sibling path for a claimant
- **Verification**: `/verify/claim` recomputes the leaf and checks it against the root
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Register routers
app.include_router(proof_router)
app.include_router(verify_router)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with API information."""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "proof": "/proof",
            "verify": "/verify",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    logger.debug("Health check requested", extra={"action": "health_check"})

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.exception("Unhandled error", extra={"endpoint": str(request.url.path), "error": str(exc)})
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        },
    )


def main(host: str | None = None, port: int | None = None):
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "merkle_drop.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
