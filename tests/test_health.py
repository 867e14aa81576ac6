"""Tests for the liveness and readiness checks."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import redis
from httpx import AsyncClient

from healthmate.core.redis_client import get_redis_client
from healthmate.core.storage import FileStorage, get_file_storage
from healthmate.main import app


@pytest.mark.asyncio
async def test_liveness(client: AsyncClient):
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_readiness_all_healthy(client: AsyncClient):
    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"
    assert data["redis"] == "healthy"
    assert data["storage"] == "healthy"
    assert data["completion"] == "configured"


@pytest.mark.asyncio
async def test_readiness_reports_redis_outage(client: AsyncClient):
    broken = MagicMock()
    broken.ping.side_effect = redis.ConnectionError("down")
    app.dependency_overrides[get_redis_client] = lambda: broken

    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["redis"] == "unhealthy"
    assert data["database"] == "healthy"


@pytest.mark.asyncio
async def test_readiness_reports_unwritable_storage(client: AsyncClient, tmp_path: Path):
    # A regular file where the upload directory should be
    blocked = tmp_path / "blocked"
    blocked.write_text("not a directory")
    app.dependency_overrides[get_file_storage] = lambda: FileStorage(blocked)

    response = await client.get("/api/v1/health/detailed")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["storage"] == "unhealthy"
