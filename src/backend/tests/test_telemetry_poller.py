"""Tests for the fixed-interval telemetry poller."""

import asyncio

import pytest

from app.services.telemetry_poller import PollState, TelemetryPoller


class StubDashboard:
    """Dashboard stub counting refresh calls, optionally blocking them."""

    def __init__(self, block: bool = False, fail: bool = False):
        self.calls = 0
        self.fail = fail
        self.release = asyncio.Event()
        if not block:
            self.release.set()
        self.completed = 0

    async def refresh(self) -> bool:
        self.calls += 1
        await self.release.wait()
        if self.fail:
            raise RuntimeError("gateway exploded")
        self.completed += 1
        return True


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestTick:
    """Tests for single poll ticks."""

    @pytest.mark.asyncio
    async def test_tick_runs_cycle(self):
        dashboard = StubDashboard()
        poller = TelemetryPoller(dashboard, poll_interval=60)

        task = poller.tick()
        assert poller.state == PollState.FETCHING
        await task

        assert dashboard.calls == 1
        assert poller.state == PollState.IDLE

    @pytest.mark.asyncio
    async def test_tick_skipped_while_fetching(self):
        dashboard = StubDashboard(block=True)
        poller = TelemetryPoller(dashboard, poll_interval=60)

        first = poller.tick()
        await _settle()
        assert poller.tick() is None
        assert poller.tick() is None

        dashboard.release.set()
        await first

        assert dashboard.calls == 1
        assert poller.ticks == 3
        assert poller.skipped_ticks == 2

        second = poller.tick()
        assert second is not None
        await second

    @pytest.mark.asyncio
    async def test_failed_cycle_returns_to_idle(self):
        dashboard = StubDashboard(fail=True)
        poller = TelemetryPoller(dashboard, poll_interval=60)

        await poller.tick()

        assert poller.state == PollState.IDLE
        assert dashboard.completed == 0


class TestLifecycle:
    """Tests for start and stop."""

    @pytest.mark.asyncio
    async def test_first_cycle_runs_immediately(self):
        dashboard = StubDashboard()
        poller = TelemetryPoller(dashboard, poll_interval=60)

        await poller.start()
        await _settle()

        assert poller.is_running is True
        assert dashboard.calls == 1

        await poller.stop()
        assert poller.is_running is False

    @pytest.mark.asyncio
    async def test_periodic_cycles(self):
        dashboard = StubDashboard()
        poller = TelemetryPoller(dashboard, poll_interval=0.01)

        await poller.start()
        await asyncio.sleep(0.1)
        await poller.stop()

        assert dashboard.calls >= 3

    @pytest.mark.asyncio
    async def test_no_cycles_after_stop(self):
        dashboard = StubDashboard()
        poller = TelemetryPoller(dashboard, poll_interval=0.01)

        await poller.start()
        await asyncio.sleep(0.03)
        await poller.stop()
        calls = dashboard.calls
        await asyncio.sleep(0.05)

        assert dashboard.calls == calls

    @pytest.mark.asyncio
    async def test_stop_leaves_in_flight_cycle_running(self):
        dashboard = StubDashboard(block=True)
        poller = TelemetryPoller(dashboard, poll_interval=60)

        await poller.start()
        await _settle()
        await poller.stop()

        dashboard.release.set()
        await _settle()

        assert dashboard.completed == 1

    @pytest.mark.asyncio
    async def test_loop_survives_failing_cycles(self):
        dashboard = StubDashboard(fail=True)
        poller = TelemetryPoller(dashboard, poll_interval=0.01)

        await poller.start()
        await asyncio.sleep(0.05)

        assert poller.is_running is True
        assert dashboard.calls >= 2
        await poller.stop()

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_loop(self):
        dashboard = StubDashboard()
        poller = TelemetryPoller(dashboard, poll_interval=60)

        await poller.start()
        await poller.start()
        await _settle()

        assert dashboard.calls == 1
        await poller.stop()
