"""API smoke tests for LogBridge.

Runs against the ASGI app without its lifespan, so no receivers are started.

Run with:
    pytest tests/integration/test_api_smoke.py -v
"""

from datetime import datetime

import pytest
from httpx import AsyncClient

from tests.factories import make_event, make_properties

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_health_check_returns_200(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        assert "version" in response.json()


class TestReceiverEndpoints:
    """Tests for receiver API endpoints."""

    async def test_list_receivers(self, client: AsyncClient):
        """Test that /api/v1/receivers lists every registered kind."""
        response = await client.get("/api/v1/receivers")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [r["identifier"] for r in data["receivers"]] == [
            "log4j.tcp",
            "log4j.udp",
            "log4j.file",
        ]

    async def test_receiver_structure(self, client: AsyncClient):
        response = await client.get("/api/v1/receivers")
        receiver = response.json()["receivers"][0]

        assert "identifier" in receiver
        assert "display_name" in receiver
        assert "description" in receiver

    async def test_get_receiver(self, client: AsyncClient):
        response = await client.get("/api/v1/receivers/log4j.udp")

        assert response.status_code == 200
        assert response.json()["display_name"] == "UDP (log4j XML)"

    async def test_get_unknown_receiver_returns_404(self, client: AsyncClient):
        """Test the standardized error body for an unknown identifier."""
        response = await client.get("/api/v1/receivers/nonexistent-id")

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert "nonexistent-id" in data["message"]
        assert "request_id" in data

    async def test_unknown_path_uses_error_format(self, client: AsyncClient):
        response = await client.get("/api/v1/nowhere", headers={"X-Request-ID": "req-1"})

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert data["request_id"] == "req-1"
        assert data["path"] == "/api/v1/nowhere"

    async def test_active_receivers_empty_without_lifespan(self, client: AsyncClient):
        response = await client.get("/api/v1/receivers/active")

        assert response.status_code == 200
        assert response.json() == {"receivers": [], "total": 0}


class TestEventEndpoints:
    """Tests for the event parsing endpoint."""

    async def test_parse_event(self, client: AsyncClient, sample_event: str):
        response = await client.post("/api/v1/events/parse", json={"event": sample_event})

        assert response.status_code == 200
        data = response.json()
        assert data["parsed"] is True
        assert data["logger_name"] == "App.Worker"
        assert data["level"] == "ERROR"
        assert data["thread_name"] == "1"
        assert data["message"] == "Boom"
        assert data["properties"] == {"host": "srv1"}
        stamp = datetime.fromisoformat(data["timestamp"])
        assert round(stamp.timestamp() * 1000) == 1184286222308

    async def test_parse_event_with_properties(self, client: AsyncClient):
        event = make_event(extra=make_properties(("a", "1"), ("b", "2")))
        response = await client.post("/api/v1/events/parse", json={"event": event})

        assert response.json()["properties"] == {"a": "1", "b": "2"}

    async def test_malformed_event_returns_fallback(self, client: AsyncClient):
        """Test malformed input is returned as a fallback record, not rejected."""
        response = await client.post(
            "/api/v1/events/parse",
            json={"event": "<log4j:event", "default_logger": "Api.Default"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["parsed"] is False
        assert data["logger_name"] == "Api.Default"
        assert data["level"] == "INFO"
        assert data["thread_name"] == "NA"
        assert data["message"] == "<log4j:event"
        assert data["exception_text"]

    async def test_missing_event_field_returns_422(self, client: AsyncClient):
        response = await client.post("/api/v1/events/parse", json={})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_mismatched_tag_returns_fallback(self, client: AsyncClient):
        event = "<log4j:event logger='A'><log4j:message>x</log4j:msg></log4j:event>"
        response = await client.post("/api/v1/events/parse", json={"event": event})

        assert response.status_code == 200
        data = response.json()
        assert data["parsed"] is False
        assert data["message"] == event
        assert data["exception_text"].startswith("Invalid XML")
