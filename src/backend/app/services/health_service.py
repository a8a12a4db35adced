"""Health check service for the Agri IoT Dashboard."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from app.integrations.base import IntegrationAdapter
from app.services.dashboard_service import DashboardService
from app.services.telemetry_poller import TelemetryPoller

logger = structlog.get_logger()


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    message: str | None = None


@dataclass
class SystemHealth:
    """Overall system health status."""

    status: HealthStatus
    version: str
    components: list[ComponentHealth]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return {
            "status": self.status.value,
            "version": self.version,
            "components": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                }
                for c in self.components
            ],
        }


class HealthService:
    """Service for checking health of system components."""

    VERSION = "0.1.0"

    def check_gateway(self, dashboard: DashboardService) -> ComponentHealth:
        """Report gateway reachability from the last poll cycle."""
        state = dashboard.state
        if state.error:
            return ComponentHealth(
                name="gateway",
                status=HealthStatus.UNHEALTHY,
                message=state.error,
            )
        if state.telemetry is None:
            return ComponentHealth(
                name="gateway",
                status=HealthStatus.DEGRADED,
                message="No successful poll yet",
            )
        return ComponentHealth(
            name="gateway",
            status=HealthStatus.HEALTHY,
            message=f"Telemetry received at {state.last_updated.isoformat() if state.last_updated else 'unknown'}",
        )

    async def check_gateway_connection(self, gateway: IntegrationAdapter) -> ComponentHealth:
        """Check the gateway endpoint through the adapter."""
        result = await gateway.update_health()
        if gateway.is_healthy:
            return ComponentHealth(
                name="gateway_connection",
                status=HealthStatus.HEALTHY,
                message=f"HTTP {result.get('status_code')}",
            )
        if "status_code" in result:
            message = f"HTTP {result['status_code']}"
        else:
            message = result.get("error", "Gateway unreachable")
        return ComponentHealth(
            name="gateway_connection",
            status=HealthStatus.UNHEALTHY,
            message=message,
        )

    def check_poller(self, poller: TelemetryPoller | None) -> ComponentHealth:
        """Report whether the polling timer is running."""
        if poller is None or not poller.is_running:
            return ComponentHealth(
                name="poller",
                status=HealthStatus.DEGRADED,
                message="Polling disabled",
            )
        return ComponentHealth(
            name="poller",
            status=HealthStatus.HEALTHY,
            message=f"state={poller.state.value}, interval={poller.poll_interval}s",
        )

    async def get_readiness(
        self,
        dashboard: DashboardService,
        poller: TelemetryPoller | None = None,
    ) -> SystemHealth:
        """Get full readiness status including all dependencies."""
        components = [
            self.check_gateway(dashboard),
            await self.check_gateway_connection(dashboard.gateway),
            self.check_poller(poller),
        ]

        # Determine overall status
        statuses = [c.status for c in components]
        if HealthStatus.UNHEALTHY in statuses:
            overall_status = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall_status = HealthStatus.DEGRADED
        else:
            overall_status = HealthStatus.HEALTHY

        if overall_status != HealthStatus.HEALTHY:
            logger.debug("Readiness degraded", status=overall_status.value)

        return SystemHealth(
            status=overall_status,
            version=self.VERSION,
            components=components,
        )

    def get_liveness(self) -> SystemHealth:
        """Get basic liveness status (application is running)."""
        return SystemHealth(
            status=HealthStatus.HEALTHY,
            version=self.VERSION,
            components=[
                ComponentHealth(
                    name="application",
                    status=HealthStatus.HEALTHY,
                    message="Application is running",
                )
            ],
        )


# Singleton instance
health_service = HealthService()
