"""Smoke tests for health and app wiring."""

from httpx import AsyncClient


async def test_health_returns_ok(client: AsyncClient) -> None:
    """GET /api/v1/health returns 200 and status ok."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data.get("status") == "ok"
    assert data.get("version")


async def test_missing_actor_header_is_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/workflows/instances/any")
    assert response.status_code == 401
    assert response.json()["error"] == "HTTP_ERROR"
