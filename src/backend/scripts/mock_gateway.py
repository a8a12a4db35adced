#!/usr/bin/env python3
"""Mock gateway telemetry/shadow service for local development.

Simulates the remote HTTP service with in-memory storage. Telemetry uses the
gateway's string encodings ("true"/"false", numeric strings), and /latest
answers with a JSON-encoded string body like the real service does.

Run:
    python scripts/mock_gateway.py [port]

then point the dashboard at it with GATEWAY_API_BASE=http://localhost:9000
"""

import json
import random
import sys
from datetime import datetime, timedelta, timezone
from typing import Any

import uvicorn
from fastapi import Body, FastAPI
from fastapi.responses import JSONResponse

app = FastAPI(title="Mock Agri Gateway")

# Reported configuration, string-encoded as the firmware publishes it
_reported: dict[str, Any] = {
    "node_id": 1,
    "tank_pump": "false",
    "irrigation_pump": "false",
    "auto_mode": "true",
    "soil_threshold": "35",
    "poll_interval_s": "60",
    "tank_status": "OK",
    "firmware_version": "1.4.2",
    "lat": 18.5204,
    "lon": 73.8567,
    "irrigation_enabled": "false",
    "irrigation_start_time": "06:30",
    "irrigation_duration_min": "15",
    "irrigation_repeat": "daily",
}

_history: list[dict[str, Any]] = []
_desired_log: list[dict[str, Any]] = []


def _reading(at: datetime) -> dict[str, Any]:
    """One sensor snapshot merged with the reported configuration."""
    return {
        **_reported,
        "time": at.isoformat().replace("+00:00", "Z"),
        "temperature_c": round(random.uniform(22.0, 31.0), 1),
        "humidity_pct": round(random.uniform(40.0, 75.0), 1),
        "lux": random.randint(200, 40000),
        "soil_moisture_pct": round(random.uniform(20.0, 60.0), 1),
    }


def _seed_history(minutes: int = 60) -> None:
    now = datetime.now(timezone.utc)
    for offset in range(minutes, 0, -1):
        _history.append(_reading(now - timedelta(minutes=offset)))


def _flatten_desired(desired: dict[str, Any]) -> dict[str, Any]:
    """Map a desired-state document onto the reported telemetry fields."""
    schedule = desired.get("irrigation_schedule", {})
    mapping = {
        "auto_mode": desired.get("auto_mode"),
        "tank_pump": desired.get("tank_pump"),
        "irrigation_pump": desired.get("irr_pump"),
        "soil_threshold": desired.get("soil_threshold"),
        "poll_interval_s": desired.get("poll_interval"),
        "irrigation_enabled": schedule.get("enabled"),
        "irrigation_start_time": schedule.get("start_time"),
        "irrigation_duration_min": schedule.get("duration_min"),
        "irrigation_repeat": schedule.get("repeat"),
    }
    flattened = {}
    for key, value in mapping.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif isinstance(value, (int, float)):
            value = str(value)
        flattened[key] = value
    return flattened


@app.get("/latest")
async def latest(node_id: int | None = None, minutes: int | None = None) -> JSONResponse:
    """Latest reading (newest first), or the history window when queried."""
    _history.append(_reading(datetime.now(timezone.utc)))

    if node_id is not None or minutes is not None:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=minutes or 60)
        records = [
            r for r in _history
            if datetime.fromisoformat(r["time"].replace("Z", "+00:00")) >= cutoff
            and (node_id is None or r["node_id"] == node_id)
        ]
        return JSONResponse(content=records)

    return JSONResponse(content=json.dumps([_history[-1]]))


@app.put("/shadow")
async def shadow(payload: dict[str, Any] = Body(...)):
    """Accept a desired-state document and apply it as the device would."""
    desired = payload.get("state", {}).get("desired")
    if not isinstance(desired, dict):
        return JSONResponse(status_code=400, content={"message": "Expected state.desired"})
    if "state" in desired:
        return JSONResponse(status_code=400, content={"message": "Nested state envelope"})

    _desired_log.append(desired)
    _reported.update(_flatten_desired(desired))
    print(f"📥 Desired state #{len(_desired_log)}: {json.dumps(desired)}")
    return {"message": "Shadow updated", "version": len(_desired_log)}


if __name__ == "__main__":
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 9000
    _seed_history()
    print(f"🌱 Mock gateway listening on http://localhost:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port)
