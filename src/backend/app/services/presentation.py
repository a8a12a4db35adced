"""Presentation view model for the gateway dashboard.

Everything here is derived from the current DashboardState; there is no
state of its own.
"""

from datetime import datetime, timezone
from typing import Any

from app.integrations.gateway.client import to_epoch_millis
from app.models.telemetry import CHART_METRICS, BooleanCoercion, read_field
from app.services.dashboard_service import DashboardService
from app.services.state_reconciler import coerce_bool, coerce_number

SUCCESS_MESSAGE = "Settings sent to gateway"
LOADING_MESSAGE = "Loading..."
MISSING = "n/a"


def format_timestamp(value: Any) -> str | None:
    """Format a telemetry timestamp for the header.

    Values that cannot be shown as a UTC date are returned verbatim.
    """
    millis = to_epoch_millis(value)
    if millis is None:
        return None if value is None else str(value)
    try:
        moment = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(value)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def _display(value: Any, unit: str = "") -> str:
    if value is None or value == "":
        return MISSING
    return f"{value} {unit}".strip()


def build_snapshot(telemetry: dict[str, Any], mode: BooleanCoercion) -> list[dict[str, str]]:
    """Gateway snapshot entries, in display order."""

    def flag(name: str, on: str, off: str) -> str:
        return on if coerce_bool(read_field(telemetry, name), mode) else off

    lat = read_field(telemetry, "lat")
    lon = read_field(telemetry, "lon")
    schedule_state = flag("irrigation_enabled", "On", "Off")
    start_time = read_field(telemetry, "irrigation_start_time", MISSING)

    entries = [
        ("node_id", "Node ID (Current)", _display(read_field(telemetry, "node_id"))),
        ("temperature_c", "Temperature", _display(read_field(telemetry, "temperature_c"), "°C")),
        ("humidity_pct", "Humidity", _display(read_field(telemetry, "humidity_pct"), "%")),
        ("lux", "Lux", _display(read_field(telemetry, "lux"))),
        ("soil_moisture_pct", "Soil Moisture", _display(read_field(telemetry, "soil_moisture_pct"), "%")),
        ("tank_pump", "Tank Pump", flag("tank_pump", "ON", "OFF")),
        ("irrigation_pump", "Irrigation Pump", flag("irrigation_pump", "ON", "OFF")),
        ("auto_mode", "Auto Mode", flag("auto_mode", "Enabled", "Disabled")),
        ("soil_threshold", "Threshold", _display(read_field(telemetry, "soil_threshold"), "%")),
        ("tank_status", "Tank Status", _display(read_field(telemetry, "tank_status"))),
        ("poll_interval_s", "Poll Interval", _display(read_field(telemetry, "poll_interval_s"), "s")),
        ("firmware_version", "Firmware", _display(read_field(telemetry, "firmware_version"))),
        ("lat_lon", "Lat/Lon", f"{_display(lat)}, {_display(lon)}"),
        ("schedule", "Schedule", f"{schedule_state} @ {start_time}"),
    ]
    return [{"key": key, "label": label, "value": value} for key, label, value in entries]


def build_chart_panel(series: list[dict[str, Any]], visible: bool) -> dict[str, Any]:
    """Per-metric line series from the history records."""
    charts = []
    for metric, label in CHART_METRICS.items():
        points = []
        for record in series:
            if record.get("time") is None:
                continue
            value = coerce_number(read_field(record, metric), None)
            if value is None:
                continue
            points.append({"time": record["time"], "value": value})
        charts.append({"key": metric, "label": label, "points": points})

    return {
        "visible": visible,
        "toggle_label": "Hide Charts" if visible else "Show Charts",
        "point_count": len(series),
        "charts": charts,
    }


def build_dashboard_view(service: DashboardService) -> dict[str, Any]:
    """Build the full dashboard view model."""
    state = service.state

    if state.error:
        status = "error"
    elif state.telemetry is None:
        status = "loading"
    else:
        status = "ready"

    view: dict[str, Any] = {
        "status": status,
        "error": state.error,
        "message": state.error or (LOADING_MESSAGE if status == "loading" else None),
        "controls": state.controls.to_dict(),
        "banners": {
            "success": {"visible": service.success, "message": SUCCESS_MESSAGE},
            "alert": state.alert,
        },
        "chart_panel": build_chart_panel(state.chart_series, state.show_charts),
        "last_updated": state.last_updated.isoformat() if state.last_updated else None,
    }

    if state.telemetry is not None:
        view["header"] = {
            "title": "Agri IoT Dashboard",
            "latest_packet_at": format_timestamp(read_field(state.telemetry, "time")),
        }
        view["snapshot"] = build_snapshot(state.telemetry, service.boolean_coercion)
        view["pending"] = service.pending_delta()
        view["debug_telemetry"] = state.telemetry
    else:
        view["header"] = None
        view["snapshot"] = []
        view["pending"] = None
        view["debug_telemetry"] = None

    return view
