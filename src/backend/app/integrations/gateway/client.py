"""Gateway client for the telemetry and device-shadow HTTP service."""

from datetime import datetime, timedelta, timezone
from typing import Any
import json
import logging
import math

import httpx

from app.integrations.base import (
    IntegrationAdapter,
    MalformedResponseError,
    TransportError,
)


logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def wrap_desired_state(document: dict[str, Any]) -> dict[str, Any]:
    """Wrap a desired-state document in the shadow envelope.

    Applied once, here, so the document never ends up under
    state.desired.state.desired.
    """
    return {"state": {"desired": document}}


def to_epoch_millis(value: Any) -> int | None:
    """Convert a telemetry timestamp to epoch milliseconds.

    Numbers are already millis. ISO-8601 strings are parsed, naive values
    are read as UTC. Anything else maps to None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return (parsed - _EPOCH) // timedelta(milliseconds=1)
    return None


class GatewayClient(IntegrationAdapter):
    """
    Client for the gateway telemetry/shadow REST service.

    Wraps three calls: latest telemetry, telemetry history and desired-state
    updates. Responses are normalized (stringified JSON bodies are decoded,
    history timestamps become epoch millis) but never retried or cached.
    """

    def __init__(
        self,
        base_url: str,
        latest_path: str = "/latest",
        shadow_path: str = "/shadow",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(name="gateway")

        self.base_url = base_url.rstrip("/")
        self.latest_path = latest_path
        self.shadow_path = shadow_path
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings, transport: httpx.AsyncBaseTransport | None = None) -> "GatewayClient":
        """Build a client from application settings."""
        return cls(
            base_url=settings.gateway_api_base,
            latest_path=settings.gateway_latest_path,
            shadow_path=settings.gateway_shadow_path,
            timeout=settings.gateway_timeout_seconds,
            transport=transport,
        )

    async def connect(self) -> bool:
        """Open the HTTP client session."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        self._connected = True
        logger.info(f"Gateway client ready for {self.base_url}")
        return True

    async def disconnect(self) -> None:
        """Close the HTTP client session."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._connected = False
        logger.info(f"Gateway client closed for {self.base_url}")

    async def health_check(self) -> dict[str, Any]:
        """Check that the latest-telemetry endpoint answers."""
        await self.ensure_connected()
        try:
            response = await self._client.get(self.latest_path)
        except httpx.HTTPError as e:
            return {"healthy": False, "error": str(e)}

        return {
            "healthy": response.status_code < 400,
            "status_code": response.status_code,
        }

    async def fetch_latest(self) -> list[dict[str, Any]]:
        """
        Fetch the latest telemetry.

        Returns:
            List of telemetry records, latest first. A single-object body is
            returned as a one-element list.

        Raises:
            TransportError: On network or HTTP failure, or a body that is not JSON
            MalformedResponseError: If the body is neither a list nor an object
        """
        try:
            response = await self._request("GET", self.latest_path)
            data = self._decode(response)
        except TransportError as e:
            logger.error(f"Error fetching latest sensor data: {e}")
            raise

        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            logger.debug("Latest telemetry returned a single object, wrapping in a list")
            return [data]

        raise MalformedResponseError(
            f"Unexpected latest telemetry payload: {type(data).__name__}",
            source=self.name,
            payload=data,
        )

    async def fetch_history(self, node_id: int = 1, minutes: int = 60) -> list[dict[str, Any]]:
        """
        Fetch telemetry history for charting.

        Args:
            node_id: Gateway node to query
            minutes: Look-back window

        Returns:
            Records in response order with 'time' as epoch millis
        """
        response = await self._request(
            "GET",
            self.latest_path,
            params={"node_id": node_id, "minutes": minutes},
        )
        data = self._decode(response)

        if not isinstance(data, list):
            raise MalformedResponseError(
                f"Unexpected history payload: {type(data).__name__}",
                source=self.name,
                payload=data,
            )

        series = []
        for record in data:
            if not isinstance(record, dict):
                continue
            point = dict(record)
            point["time"] = to_epoch_millis(record.get("time"))
            if point["time"] is None:
                logger.warning(f"Unparseable history timestamp: {record.get('time')!r}")
            series.append(point)
        return series

    async def submit_desired_state(self, document: dict[str, Any]) -> Any:
        """
        Push a desired-state document to the shadow endpoint.

        Args:
            document: Desired state, not yet enveloped

        Returns:
            The service acknowledgement body (None if empty)
        """
        try:
            response = await self._request(
                "PUT",
                self.shadow_path,
                json=wrap_desired_state(document),
                headers={"Content-Type": "application/json"},
            )
        except TransportError as e:
            logger.error(f"Error updating shadow: {e}")
            raise

        if not response.content:
            return None
        try:
            return self._decode(response)
        except TransportError:
            return response.text

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Issue a request, mapping httpx failures to TransportError."""
        await self.ensure_connected()

        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"{method} {path} failed: HTTP {e.response.status_code}",
                source=self.name,
                status_code=e.response.status_code,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"{method} {path} failed: {e}",
                source=self.name,
                original_error=e,
            ) from e

        return response

    def _decode(self, response: httpx.Response) -> Any:
        """Decode a JSON body, unwrapping a JSON document sent as a JSON string.

        A body that is not JSON counts as a failed fetch, not as an empty one.
        """
        try:
            data = response.json()
            if isinstance(data, str):
                data = json.loads(data)
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON from {response.request.url.path}: {e}",
                source=self.name,
                status_code=response.status_code,
                original_error=e,
            ) from e
        return data
