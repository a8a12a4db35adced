"""Dashboard API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.deps import get_dashboard_service
from app.services.dashboard_service import DashboardService
from app.services.presentation import build_dashboard_view

router = APIRouter()


class RefreshResponse(BaseModel):
    """Result of an on-demand poll cycle."""

    refreshed: bool
    error: str | None = None


class ChartToggleResponse(BaseModel):
    """Chart panel visibility after toggling."""

    show_charts: bool


class HistoryResponse(BaseModel):
    """Current chart series."""

    node_id: int
    minutes: int
    points: list[dict[str, Any]]


@router.get("")
async def get_dashboard(
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    """Get the dashboard view model."""
    return build_dashboard_view(service)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_dashboard(
    service: DashboardService = Depends(get_dashboard_service),
) -> RefreshResponse:
    """Run one poll cycle now instead of waiting for the next tick."""
    refreshed = await service.refresh()
    return RefreshResponse(refreshed=refreshed, error=service.state.error)


@router.post("/charts/toggle", response_model=ChartToggleResponse)
async def toggle_charts(
    service: DashboardService = Depends(get_dashboard_service),
) -> ChartToggleResponse:
    """Show or hide the chart panel."""
    return ChartToggleResponse(show_charts=service.toggle_charts())


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    service: DashboardService = Depends(get_dashboard_service),
) -> HistoryResponse:
    """Get the chart series from the most recent history fetch."""
    return HistoryResponse(
        node_id=service.history_node_id,
        minutes=service.history_minutes,
        points=service.state.chart_series,
    )
