"""Health and root endpoints.

The version string is read from ``canvas_server.__version__``, resolved at
import time via ``importlib.metadata``.
"""

from fastapi import APIRouter

from canvas_server import __version__

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint showing API identity and current version."""
    return {"message": "Canvas Registry API", "version": __version__}


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
