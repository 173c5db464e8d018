"""FastAPI application factory for the affiliate income API."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .config import settings
from .routes.health import router as health_router
from .routes.affiliates import router as affiliates_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting Affiliate Income API (ledger: {settings.data_path})")
    yield
    logger.info("Affiliate Income API shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Affiliate Income API",
        description="Affiliate income aggregation and hierarchy rollups for the admin dashboard",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Routes
    app.include_router(health_router)
    app.include_router(affiliates_router)

    return app


# Module-level app instance for uvicorn
app = create_app()
