"""Tests for request logging."""

import pytest
import structlog
from httpx import AsyncClient

from healthmate.config import settings
from healthmate.middleware.logging import REDACTED, configure_logging, redact_sensitive


def test_redact_sensitive():
    event = {
        "event": "login_failed",
        "email": "nandini@example.com",
        "password": "secret123",
        "symptoms": "chest pain",
    }

    redacted = redact_sensitive(None, "info", event)

    assert redacted["password"] == REDACTED
    assert redacted["symptoms"] == REDACTED
    assert redacted["email"] == "nandini@example.com"
    assert redacted["event"] == "login_failed"


@pytest.mark.parametrize(
    "log_format, renderer",
    [("json", structlog.processors.JSONRenderer), ("console", structlog.dev.ConsoleRenderer)],
)
def test_log_format_selects_renderer(monkeypatch: pytest.MonkeyPatch, log_format: str, renderer):
    monkeypatch.setattr(settings, "log_format", log_format)
    try:
        configure_logging()
        assert isinstance(structlog.get_config()["processors"][-1], renderer)
    finally:
        monkeypatch.undo()
        configure_logging()


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"
    assert float(response.headers["X-Process-Time"]) >= 0


@pytest.mark.asyncio
async def test_request_id_is_generated(client: AsyncClient):
    response = await client.get("/api/v1/health")

    assert len(response.headers["X-Request-ID"]) == 32
