"""Fixed-interval telemetry polling with an owned task handle."""

import asyncio
from enum import Enum

import structlog

from app.services.dashboard_service import DashboardService

logger = structlog.get_logger()


class PollState(str, Enum):
    """Poller states."""
    IDLE = "idle"
    FETCHING = "fetching"


class TelemetryPoller:
    """
    Drives DashboardService.refresh on a fixed period.

    The first cycle runs immediately on start. A tick that finds a cycle
    still in flight is skipped. stop() cancels the timer only; in-flight
    cycles run to completion and the service discards their results once
    closed.
    """

    def __init__(self, dashboard: DashboardService, poll_interval: float = 30.0):
        self.dashboard = dashboard
        self.poll_interval = poll_interval
        self.state = PollState.IDLE
        self._running = False
        self._task: asyncio.Task | None = None
        self._cycles: set[asyncio.Task] = set()
        self.ticks = 0
        self.skipped_ticks = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the polling loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop(), name="telemetry_poller")
        logger.info("Telemetry poller started", poll_interval=self.poll_interval)

    async def stop(self) -> None:
        """Cancel the polling timer."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Telemetry poller stopped", in_flight=len(self._cycles))

    def tick(self) -> asyncio.Task | None:
        """Start a poll cycle if idle.

        Returns:
            The cycle task, or None if a cycle was already in flight
        """
        self.ticks += 1
        if self.state == PollState.FETCHING:
            self.skipped_ticks += 1
            logger.debug("Poll tick skipped, previous cycle still fetching")
            return None

        self.state = PollState.FETCHING
        task = asyncio.create_task(self._run_cycle(), name="telemetry_poll_cycle")
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)
        return task

    async def _poll_loop(self) -> None:
        """Main polling loop."""
        while self._running:
            self.tick()
            await asyncio.sleep(self.poll_interval)

    async def _run_cycle(self) -> None:
        try:
            await self.dashboard.refresh()
        except Exception as e:
            logger.error("Telemetry poll cycle failed", error=str(e))
        finally:
            self.state = PollState.IDLE
