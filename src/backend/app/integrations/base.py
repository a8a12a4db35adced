"""Base classes for external integrations.

Provides common functionality for integration adapters:
- A shared error hierarchy carrying the failing source
- Connection lifecycle and health monitoring

Adapters are pass-through: they never retry and never cache. Failed calls
surface to the caller, and the next scheduled poll is the only retry.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any
import logging

logger = logging.getLogger(__name__)


class IntegrationError(Exception):
    """Base exception for integration errors."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        retryable: bool = True,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.source = source
        self.retryable = retryable
        self.original_error = original_error


class TransportError(IntegrationError):
    """Network failure or non-success HTTP status from an external system."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, source=source, original_error=original_error)
        self.status_code = status_code


class MalformedResponseError(IntegrationError):
    """Response decoded but did not have the expected shape."""

    def __init__(self, message: str, source: str | None = None, payload: Any = None):
        super().__init__(message, source=source, retryable=False)
        self.payload = payload


class IntegrationAdapter(ABC):
    """
    Base class for all integration adapters.

    Provides common functionality:
    - Connection management
    - Health checking
    - Status reporting
    """

    def __init__(self, name: str):
        self.name = name
        self._connected = False
        self._last_health_check: datetime | None = None
        self._health_status: dict[str, Any] = {}

    @property
    def is_connected(self) -> bool:
        """Check if adapter is connected."""
        return self._connected

    @property
    def is_healthy(self) -> bool:
        """Check if adapter is healthy."""
        return self._connected and self._health_status.get("healthy", False)

    @abstractmethod
    async def connect(self) -> bool:
        """
        Establish connection to external system.

        Returns:
            True if connection successful
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to external system."""
        pass

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        """
        Check health of external system.

        Returns:
            Health status dictionary with at least 'healthy' key
        """
        pass

    async def ensure_connected(self):
        """Ensure adapter is connected, reconnecting if needed."""
        if not self._connected:
            await self.connect()

    async def update_health(self) -> dict[str, Any]:
        """Update and return health status."""
        try:
            self._health_status = await self.health_check()
        except Exception as e:
            logger.warning(f"Health check for {self.name} failed: {e}")
            self._health_status = {"healthy": False, "error": str(e)}

        self._health_status["checked_at"] = datetime.now(timezone.utc).isoformat()
        self._last_health_check = datetime.now(timezone.utc)
        return self._health_status

    def get_status(self) -> dict[str, Any]:
        """Get adapter status."""
        return {
            "name": self.name,
            "connected": self._connected,
            "healthy": self.is_healthy,
            "health_status": self._health_status,
            "last_health_check": (
                self._last_health_check.isoformat()
                if self._last_health_check else None
            ),
        }
