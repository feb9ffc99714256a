"""Health endpoint tests."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    """GET /health returns 200 with healthy status."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_readiness_without_redis(client: AsyncClient) -> None:
    """GET /ready reports the database and marks Redis as disabled."""
    response = await client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["redis"] == "disabled"


@pytest.mark.asyncio
async def test_version(client: AsyncClient) -> None:
    """GET /version returns version and environment."""
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == "0.1.0"
    assert "environment" in data


@pytest.mark.asyncio
async def test_welcome_message(client: AsyncClient) -> None:
    """GET /api answers with the plain-text greeting."""
    response = await client.get("/api")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "¡Bienvenido a la API de Olimpo Gym!"


@pytest.mark.asyncio
async def test_root_redirects_to_docs(client: AsyncClient) -> None:
    response = await client.get("/")
    assert response.status_code == 302
    assert response.headers["location"] == "/api/docs"


@pytest.mark.asyncio
async def test_diagnostics_hidden_outside_debug(client: AsyncClient) -> None:
    """The diagnostics route only exists when debug is on."""
    response = await client.get("/api/diagnostico")
    assert response.status_code == 404
