"""Agri IoT Dashboard Models."""

from app.models.telemetry import (
    BooleanCoercion,
    ControlSyncPolicy,
    RepeatMode,
    IrrigationSchedule,
    ControlState,
    TELEMETRY_FIELDS,
    CHART_METRICS,
    read_field,
)

__all__ = [
    "BooleanCoercion",
    "ControlSyncPolicy",
    "RepeatMode",
    "IrrigationSchedule",
    "ControlState",
    "TELEMETRY_FIELDS",
    "CHART_METRICS",
    "read_field",
]
