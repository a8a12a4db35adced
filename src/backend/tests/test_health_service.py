"""Tests for HealthService."""

import pytest

from app.services.health_service import (
    HealthService,
    HealthStatus,
    ComponentHealth,
    SystemHealth,
)
from app.services.telemetry_poller import TelemetryPoller


class TestHealthStatus:
    """Tests for HealthStatus enum."""

    def test_health_status_values(self):
        """Test health status enum values."""
        assert HealthStatus.HEALTHY.value == "healthy"
        assert HealthStatus.DEGRADED.value == "degraded"
        assert HealthStatus.UNHEALTHY.value == "unhealthy"


class TestComponentHealth:
    """Tests for ComponentHealth dataclass."""

    def test_component_health_creation(self):
        """Test creating ComponentHealth with required fields."""
        health = ComponentHealth(
            name="gateway",
            status=HealthStatus.HEALTHY,
        )
        assert health.name == "gateway"
        assert health.status == HealthStatus.HEALTHY
        assert health.message is None


class TestSystemHealth:
    """Tests for SystemHealth dataclass."""

    def test_system_health_to_dict(self):
        """Test converting SystemHealth to dictionary."""
        components = [
            ComponentHealth(name="gateway", status=HealthStatus.HEALTHY, message="OK"),
            ComponentHealth(name="poller", status=HealthStatus.DEGRADED, message="Polling disabled"),
        ]
        health = SystemHealth(
            status=HealthStatus.DEGRADED,
            version="0.1.0",
            components=components,
        )

        result = health.to_dict()

        assert result["status"] == "degraded"
        assert result["version"] == "0.1.0"
        assert result["components"] == [
            {"name": "gateway", "status": "healthy", "message": "OK"},
            {"name": "poller", "status": "degraded", "message": "Polling disabled"},
        ]


class TestHealthService:
    """Tests for HealthService."""

    @pytest.fixture
    def service(self):
        return HealthService()

    def test_gateway_before_first_poll(self, service, dashboard_service):
        """No telemetry yet is degraded, not unhealthy."""
        result = service.check_gateway(dashboard_service)

        assert result.status == HealthStatus.DEGRADED
        assert result.message == "No successful poll yet"

    @pytest.mark.asyncio
    async def test_gateway_after_poll(self, service, dashboard_service):
        await dashboard_service.refresh()

        result = service.check_gateway(dashboard_service)

        assert result.status == HealthStatus.HEALTHY
        assert result.message.startswith("Telemetry received at")

    @pytest.mark.asyncio
    async def test_gateway_after_failed_poll(self, service, dashboard_service, fake_gateway):
        fake_gateway.fail_connect = True
        await dashboard_service.refresh()

        result = service.check_gateway(dashboard_service)

        assert result.status == HealthStatus.UNHEALTHY
        assert result.message == "Failed to fetch sensor data"

    def test_poller_disabled(self, service):
        result = service.check_poller(None)

        assert result.status == HealthStatus.DEGRADED
        assert result.message == "Polling disabled"

    @pytest.mark.asyncio
    async def test_poller_running(self, service, dashboard_service):
        poller = TelemetryPoller(dashboard_service, poll_interval=60)
        await poller.start()

        try:
            result = service.check_poller(poller)
        finally:
            await poller.stop()

        assert result.status == HealthStatus.HEALTHY
        assert "interval=60s" in result.message

    @pytest.mark.asyncio
    async def test_readiness_all_healthy(self, service, dashboard_service):
        await dashboard_service.refresh()
        poller = TelemetryPoller(dashboard_service, poll_interval=60)
        await poller.start()

        try:
            result = await service.get_readiness(dashboard_service, poller)
        finally:
            await poller.stop()

        assert result.status == HealthStatus.HEALTHY
        assert [c.name for c in result.components] == ["gateway", "gateway_connection", "poller"]

    @pytest.mark.asyncio
    async def test_readiness_degraded_without_poller(self, service, dashboard_service):
        result = await service.get_readiness(dashboard_service)

        assert result.status == HealthStatus.DEGRADED

    @pytest.mark.asyncio
    async def test_gateway_connection_healthy(self, service, gateway_client):
        result = await service.check_gateway_connection(gateway_client)

        assert result.status == HealthStatus.HEALTHY
        assert result.message == "HTTP 200"
        assert gateway_client.get_status()["last_health_check"] is not None

    @pytest.mark.asyncio
    async def test_gateway_connection_error_status(self, service, gateway_client, fake_gateway):
        fake_gateway.latest_status = 503

        result = await service.check_gateway_connection(gateway_client)

        assert result.status == HealthStatus.UNHEALTHY
        assert result.message == "HTTP 503"

    @pytest.mark.asyncio
    async def test_gateway_connection_unreachable(self, service, gateway_client, fake_gateway):
        fake_gateway.fail_connect = True

        result = await service.check_gateway_connection(gateway_client)

        assert result.status == HealthStatus.UNHEALTHY
        assert "connection refused" in result.message

    @pytest.mark.asyncio
    async def test_readiness_unhealthy_when_gateway_down(self, service, dashboard_service, fake_gateway):
        """A failing endpoint makes readiness unhealthy before any poll has run."""
        fake_gateway.fail_connect = True

        result = await service.get_readiness(dashboard_service)

        assert result.status == HealthStatus.UNHEALTHY

    def test_liveness(self, service):
        """Test liveness check returns healthy."""
        result = service.get_liveness()

        assert result.status == HealthStatus.HEALTHY
        assert result.version == HealthService.VERSION
        assert len(result.components) == 1
        assert result.components[0].name == "application"
