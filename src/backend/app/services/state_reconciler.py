"""Shadow-state reconciliation between gateway telemetry and operator controls.

Telemetry arrives with mixed encodings: booleans and numbers may be literal
strings ("true", "35") or native JSON values. This module defines the
coercion rules that turn a telemetry record into a ControlState, and the
reverse step that turns edited controls into a desired-state document.
"""

import copy
import math
from typing import Any

from deepdiff import DeepDiff
import structlog

from app.integrations.base import MalformedResponseError
from app.models.telemetry import (
    BooleanCoercion,
    ControlState,
    IrrigationSchedule,
    RepeatMode,
    read_field,
)

logger = structlog.get_logger()

NO_TELEMETRY_MESSAGE = "No telemetry data available"

DEFAULT_SOIL_THRESHOLD = 0
DEFAULT_POLL_INTERVAL = 60
DEFAULT_DURATION_MIN = 0
DEFAULT_START_TIME = "06:30"
DEFAULT_REPEAT = RepeatMode.DAILY.value


def coerce_bool(value: Any, mode: BooleanCoercion = BooleanCoercion.STRICT_STRING) -> bool:
    """Read a boolean-like telemetry value.

    Under STRICT_STRING only the string "true" is true, so a native True
    reads as False. ACCEPT_NATIVE also accepts native True.
    """
    if isinstance(value, str) and value == "true":
        return True
    if mode == BooleanCoercion.ACCEPT_NATIVE:
        return value is True
    return False


def coerce_number(value: Any, default: float) -> float:
    """Parse a number, or return the default when absent or non-numeric.

    Integral strings parse to int, others to float. Booleans are not numbers.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else default
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return default
        if not math.isfinite(parsed):
            return default
        return int(parsed) if parsed.is_integer() and "." not in text else parsed
    return default


def select_latest(records: Any) -> dict[str, Any]:
    """Pick the latest record from a latest-telemetry response.

    Raises:
        MalformedResponseError: If the response is not a non-empty list of records
    """
    if not isinstance(records, list) or not records or not isinstance(records[0], dict):
        logger.error("Invalid telemetry format received", payload_type=type(records).__name__)
        raise MalformedResponseError(NO_TELEMETRY_MESSAGE, source="reconciler", payload=records)
    return records[0]


def normalize_telemetry_to_controls(
    record: dict[str, Any],
    mode: BooleanCoercion = BooleanCoercion.STRICT_STRING,
) -> ControlState:
    """Build a ControlState from a raw telemetry record."""
    return ControlState(
        auto_mode=coerce_bool(read_field(record, "auto_mode"), mode),
        tank_pump=coerce_bool(read_field(record, "tank_pump"), mode),
        irr_pump=coerce_bool(read_field(record, "irrigation_pump"), mode),
        soil_threshold=coerce_number(read_field(record, "soil_threshold"), DEFAULT_SOIL_THRESHOLD),
        poll_interval=coerce_number(read_field(record, "poll_interval_s"), DEFAULT_POLL_INTERVAL),
        irrigation_schedule=IrrigationSchedule(
            enabled=coerce_bool(read_field(record, "irrigation_enabled"), mode),
            start_time=read_field(record, "irrigation_start_time", DEFAULT_START_TIME),
            duration_min=coerce_number(
                read_field(record, "irrigation_duration_min"), DEFAULT_DURATION_MIN
            ),
            repeat=read_field(record, "irrigation_repeat", DEFAULT_REPEAT),
        ),
    )


def build_desired_state(controls: ControlState) -> dict[str, Any]:
    """Build the desired-state document for submission.

    Copies the controls verbatim, forcing numeric coercion on the threshold,
    the poll interval and the schedule duration. The shadow envelope is
    applied by the transport, not here.
    """
    document = copy.deepcopy(controls.to_dict())
    document["soil_threshold"] = coerce_number(document["soil_threshold"], DEFAULT_SOIL_THRESHOLD)
    document["poll_interval"] = coerce_number(document["poll_interval"], DEFAULT_POLL_INTERVAL)
    schedule = document["irrigation_schedule"]
    schedule["duration_min"] = coerce_number(schedule["duration_min"], DEFAULT_DURATION_MIN)
    return document


def calculate_delta(desired: dict[str, Any], reported: dict[str, Any]) -> dict[str, Any]:
    """Calculate the delta between the operator's desired document and the
    document reported by the latest telemetry."""
    diff = DeepDiff(
        reported,
        desired,
        ignore_order=False,
        ignore_numeric_type_changes=True,
        verbose_level=2,
    )

    if not diff:
        return {
            "is_synced": True,
            "diff_summary": "Configuration synchronized",
            "differences": {},
        }

    differences = {}

    if "values_changed" in diff:
        differences["values_changed"] = {
            path: {
                "desired": change["new_value"],
                "reported": change["old_value"],
            }
            for path, change in diff["values_changed"].items()
        }

    if "type_changes" in diff:
        differences["type_changes"] = {
            path: {
                "desired": change["new_value"],
                "reported": change["old_value"],
            }
            for path, change in diff["type_changes"].items()
        }

    change_count = len(differences.get("values_changed", {})) + len(differences.get("type_changes", {}))
    diff_summary = f"{change_count} pending change(s)" if change_count else "Unknown difference"

    return {
        "is_synced": False,
        "diff_summary": diff_summary,
        "differences": differences,
    }


def parse_control_input(key: str, raw: Any) -> Any:
    """Parse an operator value for a scalar control field into its native type.

    Cleared numbers fall back to their defaults. Booleans accept native
    values as well as "true".
    """
    if key == "soil_threshold":
        return coerce_number(raw, DEFAULT_SOIL_THRESHOLD)
    if key == "poll_interval":
        return coerce_number(raw, DEFAULT_POLL_INTERVAL)
    if key in ControlState.BOOLEAN_FIELDS:
        return raw if isinstance(raw, bool) else coerce_bool(raw, BooleanCoercion.ACCEPT_NATIVE)
    raise ValueError(f"Unknown control field: {key}")


def parse_schedule_input(field_name: str, raw: Any) -> Any:
    """Parse an operator value for an irrigation schedule field."""
    if field_name == "enabled":
        return raw if isinstance(raw, bool) else coerce_bool(raw, BooleanCoercion.ACCEPT_NATIVE)
    if field_name == "start_time":
        return DEFAULT_START_TIME if raw is None or raw == "" else str(raw)
    if field_name == "duration_min":
        return coerce_number(raw, DEFAULT_DURATION_MIN)
    if field_name == "repeat":
        return RepeatMode(raw).value
    raise ValueError(f"Unknown schedule field: {field_name}")
