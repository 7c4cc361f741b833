"""
Marketplace API - category tree and location suggestion service
"""
from contextlib import asynccontextmanager
from typing import Any, Dict

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette_context import plugins
from starlette_context.middleware import ContextMiddleware

from app.api.v1 import api_router
from app.api.v1.locations import limiter
from app.core.config import settings
from app.core.database import db_manager
from app.core.exceptions import BaseAPIException, handle_api_exception, handle_unexpected_exception
from app.core.locations_config import get_locations_config
from app.core.logging import log, setup_logging
from app.middleware import RequestIDMiddleware, TimingMiddleware
from app.services.places_service import get_places_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events
    """
    setup_logging()
    log.info("Starting Marketplace API", version=settings.VERSION, env=settings.ENVIRONMENT)

    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=0.1,
            profiles_sample_rate=0.1,
        )
        log.info("Sentry initialized")

    # Gazetteer and regions are loaded once and shared read-only
    get_locations_config()

    yield

    log.info("Shutting down Marketplace API")
    await get_places_service().aclose()
    await db_manager.close()


def create_application() -> FastAPI:
    """
    Create FastAPI application with all configurations
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json" if settings.DEBUG else None,
        docs_url=f"{settings.API_V1_STR}/docs" if settings.DEBUG else None,
        redoc_url=f"{settings.API_V1_STR}/redoc" if settings.DEBUG else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        debug=settings.DEBUG,
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "categories", "description": "Category tree and listing attribute schemas"},
            {"name": "locations", "description": "Location suggestions and geocoding"},
        ],
        swagger_ui_parameters={
            "displayRequestDuration": True,
            "filter": True,
        }
    )

    # Rate limiting
    app.state.limiter = limiter

    # Add custom exception handlers
    app.add_exception_handler(BaseAPIException, handle_api_exception)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, handle_unexpected_exception)

    # Add middleware stack (last added runs first)

    # 1. Sentry error tracking
    if settings.SENTRY_DSN:
        app.add_middleware(SentryAsgiMiddleware)

    # 2. CORS
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "X-Process-Time"]
        )

    # 3. GZip compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # 4. Request context (correlation IDs)
    app.add_middleware(
        ContextMiddleware,
        plugins=(
            plugins.RequestIdPlugin(),
            plugins.CorrelationIdPlugin(force_new_uuid=False),
        )
    )

    # 5. Custom middleware
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(TimingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Prometheus metrics
    if settings.ENVIRONMENT not in ("development", "testing"):
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    @app.get("/", tags=["root"])
    async def root() -> Dict[str, Any]:
        """Root endpoint with API information"""
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "docs": f"{settings.API_V1_STR}/docs" if settings.DEBUG else None,
        }

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.WORKERS if not settings.DEBUG else 1,
        log_config=None,
        access_log=False,
        server_header=False,
    )
