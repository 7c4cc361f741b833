"""
Test API health endpoints
"""

import uuid

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_endpoint(client: AsyncClient):
    """Test basic health endpoint"""
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["environment"] == "testing"
    assert "timestamp" in data
    assert "version" in data


@pytest.mark.asyncio
async def test_readiness_probe(client: AsyncClient):
    """Test readiness probe checks the database and cache"""
    response = await client.get("/api/v1/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["checks"] == {"database": True, "cache": True}
    assert data["places_provider"] == "FakePlacesProvider"


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    """Test root endpoint"""
    response = await client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert "name" in data
    assert "version" in data


def test_application_factory_builds():
    """Test the app factory assembles middleware and routes"""
    from app.main import create_application

    application = create_application()
    paths = {route.path for route in application.routes}

    assert "/api/v1/health" in paths
    assert "/" in paths


@pytest.mark.asyncio
async def test_correlation_id_header_is_echoed_in_errors(client: AsyncClient):
    """Test error bodies carry the caller's correlation ID"""
    correlation_id = str(uuid.uuid4())
    response = await client.get("/api/v1/categories/999", headers={"X-Correlation-ID": correlation_id})

    assert response.status_code == 404
    assert response.json()["correlation_id"] == correlation_id
