"""Agri IoT Dashboard External Integrations Module.

This module provides integrations with external systems:
- Gateway telemetry and shadow HTTP service
"""

from app.integrations.base import (
    IntegrationError,
    IntegrationAdapter,
    TransportError,
    MalformedResponseError,
)

__all__ = [
    "IntegrationError",
    "IntegrationAdapter",
    "TransportError",
    "MalformedResponseError",
]
