"""Control panel API endpoints for operator edits and shadow submission."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.core.deps import get_dashboard_service
from app.integrations.base import TransportError
from app.services.dashboard_service import SUBMIT_FAILED_MESSAGE, DashboardService

router = APIRouter()


class ControlFieldsUpdate(BaseModel):
    """Request schema for scalar control fields (partial updates)."""

    auto_mode: bool | str | None = None
    tank_pump: bool | str | None = None
    irr_pump: bool | str | None = None
    soil_threshold: int | float | str | None = None
    poll_interval: int | float | str | None = None


class ScheduleFieldsUpdate(BaseModel):
    """Request schema for irrigation schedule fields (partial updates)."""

    enabled: bool | str | None = None
    start_time: str | None = None
    duration_min: int | float | str | None = None
    repeat: str | None = None


class ToggleResponse(BaseModel):
    """New value of a toggled field."""

    key: str
    value: bool


class SubmitResponse(BaseModel):
    """Submitted desired state and gateway acknowledgement."""

    desired: dict[str, Any]
    acknowledgement: Any = None


@router.get("")
async def get_controls(
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    """Get the current control state."""
    return service.state.controls.to_dict()


@router.post("/toggle/{key}", response_model=ToggleResponse)
async def toggle_control(
    key: str,
    service: DashboardService = Depends(get_dashboard_service),
) -> ToggleResponse:
    """Flip a boolean control (auto_mode, tank_pump, irr_pump)."""
    try:
        value = service.toggle(key)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ToggleResponse(key=key, value=value)


@router.patch("")
async def update_controls(
    payload: ControlFieldsUpdate,
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    """Overwrite scalar control fields. Cleared numbers fall back to defaults."""
    try:
        service.update_controls(payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return service.state.controls.to_dict()


@router.patch("/schedule")
async def update_schedule(
    payload: ScheduleFieldsUpdate,
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    """Overwrite irrigation schedule fields."""
    try:
        service.update_schedule(payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return service.state.controls.to_dict()


@router.get("/desired")
async def preview_desired_state(
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    """Preview the desired-state document and its delta against telemetry."""
    return {
        "document": service.desired_state(),
        "pending": service.pending_delta(),
    }


@router.post("/submit", response_model=SubmitResponse)
async def submit_controls(
    service: DashboardService = Depends(get_dashboard_service),
) -> SubmitResponse:
    """Push the edited controls to the gateway shadow."""
    try:
        result = await service.submit()
    except TransportError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=SUBMIT_FAILED_MESSAGE,
        )
    return SubmitResponse(**result)
