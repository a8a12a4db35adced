"""Telemetry and control-state models for the gateway dashboard."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class BooleanCoercion(str, Enum):
    """How boolean-like telemetry values are read."""

    STRICT_STRING = "strict_string"    # only the string "true" is true
    ACCEPT_NATIVE = "accept_native"    # "true" or native True


class ControlSyncPolicy(str, Enum):
    """When control state is (re)initialized from telemetry."""

    FIRST_LOAD = "first_load"
    EVERY_POLL = "every_poll"


class RepeatMode(str, Enum):
    """Irrigation schedule repeat modes."""

    DAILY = "daily"
    WEEKLY = "weekly"
    NONE = "none"


# Wire field name -> accepted aliases, in lookup order
TELEMETRY_FIELDS: dict[str, tuple[str, ...]] = {
    "time": ("time",),
    "node_id": ("node_id",),
    "temperature_c": ("temperature_c", "temperature"),
    "humidity_pct": ("humidity_pct", "humidity"),
    "lux": ("lux",),
    "soil_moisture_pct": ("soil_moisture_pct", "soil_moisture"),
    "tank_pump": ("tank_pump",),
    "irrigation_pump": ("irrigation_pump",),
    "auto_mode": ("auto_mode",),
    "soil_threshold": ("soil_threshold",),
    "poll_interval_s": ("poll_interval_s", "poll_interval"),
    "tank_status": ("tank_status",),
    "firmware_version": ("firmware_version",),
    "lat": ("lat",),
    "lon": ("lon",),
    "irrigation_enabled": ("irrigation_enabled",),
    "irrigation_start_time": ("irrigation_start_time",),
    "irrigation_duration_min": ("irrigation_duration_min",),
    "irrigation_repeat": ("irrigation_repeat",),
}

# Chart metrics drawn from history records
CHART_METRICS: dict[str, str] = {
    "temperature_c": "Temperature (°C)",
    "humidity_pct": "Humidity (%)",
    "soil_moisture_pct": "Soil Moisture (%)",
    "lux": "Light (lux)",
}


def read_field(record: dict[str, Any], name: str, default: Any = None) -> Any:
    """Read a telemetry field, falling back through its aliases.

    Absent keys and explicit nulls are both treated as missing.
    """
    for key in TELEMETRY_FIELDS.get(name, (name,)):
        value = record.get(key)
        if value is not None:
            return value
    return default


@dataclass
class IrrigationSchedule:
    """Irrigation schedule embedded in the control state."""
    enabled: bool = False
    start_time: str = "06:30"
    duration_min: float = 15
    repeat: str = RepeatMode.DAILY.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "start_time": self.start_time,
            "duration_min": self.duration_min,
            "repeat": self.repeat,
        }


@dataclass
class ControlState:
    """Operator-editable mirror of the gateway configuration.

    Defaults are shown until the first telemetry record arrives.
    """
    auto_mode: bool = False
    tank_pump: bool = False
    irr_pump: bool = False
    soil_threshold: float = 40
    poll_interval: float = 60
    irrigation_schedule: IrrigationSchedule = field(default_factory=IrrigationSchedule)

    BOOLEAN_FIELDS = ("auto_mode", "tank_pump", "irr_pump")
    NUMERIC_FIELDS = ("soil_threshold", "poll_interval")

    def to_dict(self) -> dict[str, Any]:
        return {
            "auto_mode": self.auto_mode,
            "tank_pump": self.tank_pump,
            "irr_pump": self.irr_pump,
            "soil_threshold": self.soil_threshold,
            "poll_interval": self.poll_interval,
            "irrigation_schedule": self.irrigation_schedule.to_dict(),
        }
