"""Agri IoT Dashboard FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import router as api_router
from app.api import pages
from app.core.config import settings
from app.core.deps import get_dashboard_service, get_poller, set_dashboard_runtime
from app.integrations.gateway.client import GatewayClient
from app.services.dashboard_service import DashboardService
from app.services.health_service import health_service
from app.services.telemetry_poller import TelemetryPoller

logger = structlog.get_logger()

# Module-level references for services that need lifecycle management
_gateway: GatewayClient | None = None
_dashboard: DashboardService | None = None
_poller: TelemetryPoller | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    global _gateway, _dashboard, _poller

    logging.basicConfig(level=settings.log_level.upper())

    # Startup
    logger.info(
        "Starting Agri IoT Dashboard",
        environment=settings.environment,
        gateway=settings.gateway_api_base,
    )

    _gateway = GatewayClient.from_settings(settings)
    await _gateway.connect()
    _dashboard = DashboardService.from_settings(settings, _gateway)

    # Start telemetry polling (first cycle runs immediately)
    if settings.poll_enabled:
        _poller = TelemetryPoller(_dashboard, poll_interval=settings.poll_interval_seconds)
        await _poller.start()
    else:
        logger.info("Telemetry polling disabled")

    set_dashboard_runtime(_dashboard, _poller)

    yield

    # Shutdown
    logger.info("Shutting down Agri IoT Dashboard")

    if _poller:
        await _poller.stop()

    # Late poll results are dropped from here on
    _dashboard.close()
    set_dashboard_runtime(None, None)

    await _gateway.disconnect()


fastapi_app = FastAPI(
    title="Agri IoT Dashboard API",
    description="Agricultural IoT gateway dashboard - telemetry, charts and shadow control",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# CORS middleware
fastapi_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
fastapi_app.include_router(api_router, prefix="/api/v1")
fastapi_app.include_router(pages.router)


@fastapi_app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    # Convert errors to JSON-serializable format
    errors = []
    for error in exc.errors():
        err = {
            "loc": error.get("loc"),
            "msg": str(error.get("msg")),
            "type": error.get("type"),
        }
        errors.append(err)

    logger.error("Validation error",
                 path=str(request.url.path),
                 errors=errors,
                 body=str(exc.body)[:500] if hasattr(exc, 'body') else None)
    return JSONResponse(
        status_code=422,
        content={"detail": errors}
    )


# Set up Prometheus metrics instrumentation
_instrumentator = None
if settings.metrics_enabled:
    from app.core.metrics import setup_metrics, expose_metrics

    _instrumentator = setup_metrics(fastapi_app)
    expose_metrics(fastapi_app, _instrumentator)


@fastapi_app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "version": "0.1.0"}


@fastapi_app.get("/health/live")
async def liveness_check() -> dict:
    """Liveness check - application is running."""
    result = health_service.get_liveness()
    return result.to_dict()


@fastapi_app.get("/health/ready")
async def readiness_check(
    dashboard: DashboardService = Depends(get_dashboard_service),
    poller: TelemetryPoller | None = Depends(get_poller),
) -> dict:
    """Readiness check - telemetry is flowing from the gateway."""
    result = await health_service.get_readiness(dashboard, poller)
    return result.to_dict()


# This is what uvicorn should serve
app = fastapi_app
