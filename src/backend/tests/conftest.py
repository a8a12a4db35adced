"""Pytest configuration and fixtures for Agri IoT Dashboard tests."""

import json
from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.main import fastapi_app as app
from app.core.deps import get_dashboard_service, get_poller
from app.integrations.gateway.client import GatewayClient
from app.services.dashboard_service import DashboardService

GATEWAY_BASE_URL = "http://gateway.test"

# Latest telemetry as the gateway publishes it: booleans and numbers as strings
SAMPLE_TELEMETRY: dict[str, Any] = {
    "time": "2024-05-01T10:00:00Z",
    "node_id": 1,
    "temperature_c": 27.4,
    "humidity_pct": 61.2,
    "lux": 18250,
    "soil_moisture_pct": 33.8,
    "tank_pump": "true",
    "irrigation_pump": "false",
    "auto_mode": "true",
    "soil_threshold": "35",
    "poll_interval_s": "45",
    "tank_status": "OK",
    "firmware_version": "1.4.2",
    "lat": 18.5204,
    "lon": 73.8567,
    "irrigation_enabled": "true",
    "irrigation_start_time": "05:45",
    "irrigation_duration_min": "20",
    "irrigation_repeat": "weekly",
}

SAMPLE_HISTORY: list[dict[str, Any]] = [
    {"time": "2024-05-01T09:58:00Z", "node_id": 1, "temperature_c": 26.9, "soil_moisture_pct": 34.5},
    {"time": "2024-05-01T09:59:00Z", "node_id": 1, "temperature_c": 27.1, "soil_moisture_pct": 34.1},
    {"time": "2024-05-01T10:00:00Z", "node_id": 1, "temperature_c": 27.4, "soil_moisture_pct": 33.8},
]


class FakeGateway:
    """In-memory stand-in for the gateway HTTP service."""

    def __init__(self):
        self.latest: Any = [dict(SAMPLE_TELEMETRY)]
        self.history: Any = [dict(r) for r in SAMPLE_HISTORY]
        self.latest_status = 200
        self.history_status = 200
        self.shadow_status = 200
        self.shadow_ack: Any = {"message": "Shadow updated"}
        self.stringify_latest = False
        self.latest_text: str | None = None
        self.fail_connect = False
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_connect:
            raise httpx.ConnectError("connection refused", request=request)

        if request.method == "GET" and request.url.path == "/latest":
            if "node_id" in request.url.params:
                return httpx.Response(self.history_status, json=self.history)
            if self.latest_text is not None:
                return httpx.Response(self.latest_status, text=self.latest_text)
            if self.stringify_latest:
                return httpx.Response(self.latest_status, json=json.dumps(self.latest))
            return httpx.Response(self.latest_status, json=self.latest)

        if request.method == "PUT" and request.url.path == "/shadow":
            return httpx.Response(self.shadow_status, json=self.shadow_ack)

        return httpx.Response(404, json={"message": "Not Found"})

    @property
    def shadow_bodies(self) -> list[dict[str, Any]]:
        """Decoded bodies of every PUT /shadow request."""
        return [json.loads(r.content) for r in self.requests if r.method == "PUT"]

    @property
    def history_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if "node_id" in r.url.params]


@pytest.fixture
def fake_gateway() -> FakeGateway:
    """Create a fake gateway with one telemetry record and a short history."""
    return FakeGateway()


@pytest_asyncio.fixture
async def gateway_client(fake_gateway: FakeGateway) -> AsyncGenerator[GatewayClient, None]:
    """Create a gateway client wired to the fake gateway."""
    client = GatewayClient(
        base_url=GATEWAY_BASE_URL,
        transport=httpx.MockTransport(fake_gateway.handler),
    )
    await client.connect()
    yield client
    await client.disconnect()


@pytest.fixture
def dashboard_service(gateway_client: GatewayClient) -> DashboardService:
    """Create a dashboard service with default policies."""
    return DashboardService(gateway=gateway_client)


@pytest_asyncio.fixture
async def client(dashboard_service: DashboardService) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with the dashboard dependency overridden."""

    async def override_get_dashboard_service() -> DashboardService:
        return dashboard_service

    async def override_get_poller():
        return None

    app.dependency_overrides[get_dashboard_service] = override_get_dashboard_service
    app.dependency_overrides[get_poller] = override_get_poller

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
