"""
Health check endpoints
"""
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter
from sqlalchemy import text

from app.api.deps import AsyncSessionDep, CacheDep, PlacesDep
from app.core.config import settings
from app.core.logging import log
from app.schemas.common import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Basic health check"""
    return HealthCheckResponse(
        status="ok",
        timestamp=datetime.utcnow().isoformat(),
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
    )


@router.get("/health/live", response_model=Dict[str, Any])
async def liveness_probe() -> Dict[str, Any]:
    """Kubernetes liveness probe"""
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/health/ready", response_model=Dict[str, Any])
async def readiness_probe(session: AsyncSessionDep, cache: CacheDep, places: PlacesDep) -> Dict[str, Any]:
    """
    Kubernetes readiness probe - checks all dependencies
    """
    checks = {
        "database": False,
        "cache": False,
    }

    try:
        result = await session.execute(text("SELECT 1"))
        checks["database"] = result.scalar() == 1
    except Exception as e:
        log.error("Database health check failed", error=str(e))

    try:
        test_key = "health:check"
        await cache.set(test_key, "ok", ttl=10)
        checks["cache"] = await cache.get(test_key) == "ok"
    except Exception as e:
        log.error("Cache health check failed", error=str(e))

    all_healthy = all(checks.values())

    return {
        "status": "ok" if all_healthy else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": checks,
        "places_provider": places.__class__.__name__,
    }
