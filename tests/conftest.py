"""Pytest fixtures and configuration for LogBridge tests."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from logbridge.config import Settings
from tests.factories import SAMPLE_EVENT


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Override settings for testing."""
    return Settings(
        app_name="LogBridge-Test",
        debug=True,
        default_logger_name="Test.Default",
        queue_size=100,
        tcp_host="127.0.0.1",
        tcp_port=0,
        udp_host="127.0.0.1",
        udp_port=0,
        file_poll_interval=0.05,
    )


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app() -> FastAPI:
    """The FastAPI application (lifespan not run, no receivers started)."""
    from logbridge.main import app as application

    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# =============================================================================
# Event Fixtures
# =============================================================================


@pytest.fixture
def sample_event() -> str:
    """A well-formed log4j event."""
    return SAMPLE_EVENT

