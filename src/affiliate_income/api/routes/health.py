"""Health check routes."""

import os
from fastapi import APIRouter

from ... import __version__
from ..config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "healthy", "service": "affiliate-income-api", "version": __version__}


@router.get("/ready")
async def ready():
    """Readiness check - verifies the ledger directory is reachable."""
    if os.path.isdir(settings.data_path):
        return {"status": "ready"}
    return {"status": "not_ready", "detail": f"Ledger directory not found: {settings.data_path}"}
