"""LogBridge - Main Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from logbridge.api.v1 import router as api_v1_router
from logbridge.config import Settings, get_settings
from logbridge.exceptions import setup_exception_handlers
from logbridge.receivers.base import BaseReceiver
from logbridge.receivers.registry import get_registry

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def start_receivers(
    identifiers: list[str], app_settings: Settings
) -> list[BaseReceiver]:
    """Create, configure and start the receivers named in settings.

    Unknown identifiers (for example from an older configuration) are
    skipped with a warning.
    """
    registry = get_registry()
    started = []

    for identifier in identifiers:
        receiver = registry.create(identifier)
        if receiver is None:
            logger.warning("Skipping unknown receiver: %s", identifier)
            continue

        receiver.configure_from_settings(app_settings)
        if await receiver.start():
            started.append(receiver)

    return started


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting LogBridge v%s", settings.app_version)

    app.state.receivers = await start_receivers(settings.enabled_receivers, settings)
    if app.state.receivers:
        logger.info(
            "Started receivers: %s",
            ", ".join(r.identifier for r in app.state.receivers),
        )
    else:
        logger.info("No receivers enabled")

    yield

    logger.info("Shutting down LogBridge")
    for receiver in app.state.receivers:
        try:
            await receiver.stop()
        except Exception as e:
            logger.warning("Error stopping receiver %s: %s", receiver.identifier, e)


app = FastAPI(
    title=settings.app_name,
    description="Receives log4j XML events and normalizes them into log records",
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else "/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup exception handlers for standardized error responses
setup_exception_handlers(app)

app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs" if settings.debug else "/api/openapi.json",
    }
