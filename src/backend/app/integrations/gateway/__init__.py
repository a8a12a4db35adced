"""Gateway Telemetry/Shadow Integration.

Provides the HTTP transport to the agricultural IoT gateway service for:
- Latest telemetry snapshots
- Telemetry history for charts
- Desired-state (shadow) updates
"""

from app.integrations.gateway.client import (
    GatewayClient,
    wrap_desired_state,
    to_epoch_millis,
)

__all__ = [
    "GatewayClient",
    "wrap_desired_state",
    "to_epoch_millis",
]
