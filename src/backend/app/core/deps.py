"""Dependency injection utilities for FastAPI."""

from fastapi import HTTPException, status

from app.services.dashboard_service import DashboardService
from app.services.telemetry_poller import TelemetryPoller

# Dashboard runtime singletons, owned by the application lifespan
_dashboard_service: DashboardService | None = None
_poller: TelemetryPoller | None = None


def set_dashboard_runtime(
    dashboard: DashboardService | None,
    poller: TelemetryPoller | None,
) -> None:
    """Register (or clear, with None) the running dashboard and poller."""
    global _dashboard_service, _poller
    _dashboard_service = dashboard
    _poller = poller


async def get_dashboard_service() -> DashboardService:
    """Get the dashboard service for route handlers."""
    if _dashboard_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard not initialized",
        )
    return _dashboard_service


async def get_poller() -> TelemetryPoller | None:
    """Get the telemetry poller, or None when polling is disabled."""
    return _poller
