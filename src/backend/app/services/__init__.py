"""Agri IoT Dashboard Services Module."""

from app.services.state_reconciler import (
    NO_TELEMETRY_MESSAGE,
    coerce_bool,
    coerce_number,
    select_latest,
    normalize_telemetry_to_controls,
    build_desired_state,
    calculate_delta,
)
from app.services.dashboard_service import (
    DashboardService,
    DashboardState,
    FETCH_FAILED_MESSAGE,
    SUBMIT_FAILED_MESSAGE,
)
from app.services.telemetry_poller import TelemetryPoller, PollState
from app.services.health_service import HealthService, HealthStatus, health_service

__all__ = [
    "NO_TELEMETRY_MESSAGE",
    "coerce_bool",
    "coerce_number",
    "select_latest",
    "normalize_telemetry_to_controls",
    "build_desired_state",
    "calculate_delta",
    "DashboardService",
    "DashboardState",
    "FETCH_FAILED_MESSAGE",
    "SUBMIT_FAILED_MESSAGE",
    "TelemetryPoller",
    "PollState",
    "HealthService",
    "HealthStatus",
    "health_service",
]
