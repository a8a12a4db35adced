"""Dashboard state service: poll cycle, operator edits and shadow submission."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

import structlog

from app.core.metrics import record_poll_cycle, record_shadow_update, set_telemetry_loaded
from app.integrations.base import IntegrationError, MalformedResponseError, TransportError
from app.integrations.gateway.client import GatewayClient
from app.models.telemetry import (
    BooleanCoercion,
    ControlState,
    ControlSyncPolicy,
)
from app.services.state_reconciler import (
    NO_TELEMETRY_MESSAGE,
    build_desired_state,
    calculate_delta,
    normalize_telemetry_to_controls,
    parse_control_input,
    parse_schedule_input,
    select_latest,
)

logger = structlog.get_logger()

FETCH_FAILED_MESSAGE = "Failed to fetch sensor data"
SUBMIT_FAILED_MESSAGE = "Failed to update shadow"


@dataclass
class DashboardState:
    """Everything the presentation layer renders from."""
    controls: ControlState = field(default_factory=ControlState)
    telemetry: dict[str, Any] | None = None
    chart_series: list[dict[str, Any]] = field(default_factory=list)
    loading: bool = True
    error: str | None = None
    alert: str | None = None
    show_charts: bool = False
    success_until: float | None = None
    has_initialized_controls: bool = False
    last_updated: datetime | None = None
    last_submitted: dict[str, Any] | None = None


class DashboardService:
    """
    Owns the dashboard state for the lifetime of the application.

    A poll cycle merges the latest telemetry into the state; operator edits
    mutate the control state directly and are never blocked by an in-flight
    poll (last write wins). Results that land after close() are discarded.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        boolean_coercion: BooleanCoercion = BooleanCoercion.STRICT_STRING,
        control_sync_policy: ControlSyncPolicy = ControlSyncPolicy.FIRST_LOAD,
        history_node_id: int = 1,
        history_minutes: int = 60,
        success_banner_seconds: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.gateway = gateway
        self.boolean_coercion = BooleanCoercion(boolean_coercion)
        self.control_sync_policy = ControlSyncPolicy(control_sync_policy)
        self.history_node_id = history_node_id
        self.history_minutes = history_minutes
        self.success_banner_seconds = success_banner_seconds
        self._clock = clock
        self._closed = False
        self.state = DashboardState()

    @classmethod
    def from_settings(cls, settings, gateway: GatewayClient) -> "DashboardService":
        """Build the service from application settings."""
        return cls(
            gateway=gateway,
            boolean_coercion=settings.boolean_coercion,
            control_sync_policy=settings.control_sync_policy,
            history_node_id=settings.history_node_id,
            history_minutes=settings.history_minutes,
            success_banner_seconds=settings.success_banner_seconds,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def success(self) -> bool:
        """Whether the success banner is currently shown."""
        return self.state.success_until is not None and self._clock() < self.state.success_until

    def close(self) -> None:
        """Stop accepting poll results."""
        self._closed = True

    # ==================== Poll cycle ====================

    async def refresh(self) -> bool:
        """
        Run one poll cycle: latest telemetry, then history.

        Returns:
            True if both fetches succeeded and were applied
        """
        if self._closed:
            return False

        started = time.perf_counter()
        outcome = "success"
        try:
            try:
                records = await self.gateway.fetch_latest()
                latest = select_latest(records)
            except MalformedResponseError as e:
                outcome = "no_data"
                self._apply_no_data(e)
                return False
            except IntegrationError as e:
                outcome = "transport_error"
                self._apply_fetch_failure(e)
                return False

            if self._closed:
                logger.debug("Discarding telemetry received after close")
                return False
            self._apply_latest(latest)

            try:
                history = await self.gateway.fetch_history(
                    node_id=self.history_node_id,
                    minutes=self.history_minutes,
                )
            except IntegrationError as e:
                outcome = "transport_error"
                self._apply_fetch_failure(e)
                return False

            if self._closed:
                logger.debug("Discarding history received after close")
                return False
            self.state.chart_series = history
            return True
        finally:
            if not self._closed:
                self.state.loading = False
            record_poll_cycle(outcome, time.perf_counter() - started)

    def _apply_latest(self, latest: dict[str, Any]) -> None:
        self.state.telemetry = latest
        self.state.error = None
        self.state.last_updated = datetime.now(timezone.utc)
        set_telemetry_loaded(True)

        if (
            self.control_sync_policy == ControlSyncPolicy.EVERY_POLL
            or not self.state.has_initialized_controls
        ):
            self.state.controls = normalize_telemetry_to_controls(latest, self.boolean_coercion)
            self.state.has_initialized_controls = True
            logger.info(
                "Controls initialized from telemetry",
                node_id=latest.get("node_id"),
                policy=self.control_sync_policy.value,
            )

    def _apply_no_data(self, error: MalformedResponseError) -> None:
        if self._closed:
            return
        logger.warning("No telemetry available", error=str(error))
        self.state.telemetry = None
        self.state.error = NO_TELEMETRY_MESSAGE
        set_telemetry_loaded(False)

    def _apply_fetch_failure(self, error: IntegrationError) -> None:
        if self._closed:
            return
        logger.error("Error fetching sensor data", error=str(error), source=error.source)
        self.state.error = FETCH_FAILED_MESSAGE

    # ==================== Operator edits ====================

    def toggle(self, key: str) -> bool:
        """Flip a boolean control field and return the new value."""
        if key not in ControlState.BOOLEAN_FIELDS:
            raise ValueError(f"Unknown toggle field: {key}")
        value = not getattr(self.state.controls, key)
        setattr(self.state.controls, key, value)
        return value

    def set_field(self, key: str, value: Any) -> None:
        """Overwrite a scalar control field with the parsed value."""
        self.update_controls({key: value})

    def set_schedule_field(self, field_name: str, value: Any) -> None:
        """Overwrite a field of the irrigation schedule with the parsed value."""
        self.update_schedule({field_name: value})

    def update_controls(self, values: dict[str, Any]) -> dict[str, Any]:
        """
        Overwrite several scalar control fields.

        All values are parsed before any is applied.

        Raises:
            ValueError: On an unknown field; the controls are left unchanged
        """
        parsed = {key: parse_control_input(key, raw) for key, raw in values.items()}
        for key, value in parsed.items():
            setattr(self.state.controls, key, value)
        return parsed

    def update_schedule(self, values: dict[str, Any]) -> dict[str, Any]:
        """
        Overwrite several irrigation schedule fields.

        Raises:
            ValueError: On an unknown field or repeat mode; nothing is applied
        """
        parsed = {name: parse_schedule_input(name, raw) for name, raw in values.items()}
        schedule = self.state.controls.irrigation_schedule
        for name, value in parsed.items():
            setattr(schedule, name, value)
        return parsed

    def toggle_charts(self) -> bool:
        """Show or hide the chart panel."""
        self.state.show_charts = not self.state.show_charts
        return self.state.show_charts

    # ==================== Shadow submission ====================

    def desired_state(self) -> dict[str, Any]:
        """Preview the document that submit() would send."""
        return build_desired_state(self.state.controls)

    def pending_delta(self) -> dict[str, Any] | None:
        """Delta between edited controls and the controls reported by telemetry."""
        if self.state.telemetry is None:
            return None
        reported = build_desired_state(
            normalize_telemetry_to_controls(self.state.telemetry, self.boolean_coercion)
        )
        return calculate_delta(self.desired_state(), reported)

    async def submit(self) -> dict[str, Any]:
        """
        Push the edited controls to the gateway as desired state.

        Returns:
            The submitted document and the gateway acknowledgement

        Raises:
            TransportError: If the gateway rejects or cannot be reached
        """
        document = build_desired_state(self.state.controls)

        try:
            acknowledgement = await self.gateway.submit_desired_state(document)
        except TransportError as e:
            logger.error("Shadow update failed", error=str(e), status_code=e.status_code)
            self.state.alert = SUBMIT_FAILED_MESSAGE
            self.state.success_until = None
            record_shadow_update("failure")
            raise

        self.state.alert = None
        self.state.last_submitted = document
        self.state.success_until = self._clock() + self.success_banner_seconds
        record_shadow_update("success")
        logger.info("Settings sent to gateway", desired=document)

        return {"desired": document, "acknowledgement": acknowledgement}
