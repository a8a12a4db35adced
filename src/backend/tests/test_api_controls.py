"""Tests for control panel endpoints."""

import pytest
from httpx import AsyncClient


class TestControlEdits:
    """Tests for reading and editing controls."""

    @pytest.mark.asyncio
    async def test_get_defaults(self, client: AsyncClient):
        response = await client.get("/api/v1/controls")

        assert response.status_code == 200
        assert response.json() == {
            "auto_mode": False,
            "tank_pump": False,
            "irr_pump": False,
            "soil_threshold": 40,
            "poll_interval": 60,
            "irrigation_schedule": {
                "enabled": False,
                "start_time": "06:30",
                "duration_min": 15,
                "repeat": "daily",
            },
        }

    @pytest.mark.asyncio
    async def test_controls_follow_first_poll(self, client: AsyncClient):
        await client.post("/api/v1/dashboard/refresh")

        data = (await client.get("/api/v1/controls")).json()

        assert data["soil_threshold"] == 35
        assert data["poll_interval"] == 45
        assert data["irrigation_schedule"]["repeat"] == "weekly"

    @pytest.mark.asyncio
    async def test_toggle(self, client: AsyncClient):
        response = await client.post("/api/v1/controls/toggle/tank_pump")

        assert response.status_code == 200
        assert response.json() == {"key": "tank_pump", "value": True}

    @pytest.mark.asyncio
    async def test_toggle_unknown_field(self, client: AsyncClient):
        response = await client.post("/api/v1/controls/toggle/fan")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_patch_scalar_fields(self, client: AsyncClient):
        response = await client.patch(
            "/api/v1/controls",
            json={"soil_threshold": "35", "poll_interval": 45, "auto_mode": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["soil_threshold"] == 35
        assert data["poll_interval"] == 45
        assert data["auto_mode"] is True
        assert data["tank_pump"] is False

    @pytest.mark.asyncio
    async def test_patch_cleared_number_uses_default(self, client: AsyncClient):
        response = await client.patch("/api/v1/controls", json={"poll_interval": ""})

        assert response.json()["poll_interval"] == 60

    @pytest.mark.asyncio
    async def test_patch_schedule(self, client: AsyncClient):
        response = await client.patch(
            "/api/v1/controls/schedule",
            json={"enabled": True, "start_time": "05:45", "duration_min": "20", "repeat": "weekly"},
        )

        assert response.status_code == 200
        assert response.json()["irrigation_schedule"] == {
            "enabled": True,
            "start_time": "05:45",
            "duration_min": 20,
            "repeat": "weekly",
        }

    @pytest.mark.asyncio
    async def test_patch_schedule_rejects_unknown_repeat(self, client: AsyncClient):
        response = await client.patch("/api/v1/controls/schedule", json={"repeat": "hourly"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_rejected_schedule_patch_changes_nothing(self, client: AsyncClient):
        response = await client.patch(
            "/api/v1/controls/schedule",
            json={"enabled": True, "duration_min": 30, "repeat": "hourly"},
        )

        assert response.status_code == 400
        schedule = (await client.get("/api/v1/controls")).json()["irrigation_schedule"]
        assert schedule["enabled"] is False
        assert schedule["duration_min"] == 15

    @pytest.mark.asyncio
    async def test_patch_null_start_time_uses_default(self, client: AsyncClient):
        await client.patch("/api/v1/controls/schedule", json={"start_time": "18:15"})

        response = await client.patch("/api/v1/controls/schedule", json={"start_time": None})

        assert response.status_code == 200
        assert response.json()["irrigation_schedule"]["start_time"] == "06:30"

    @pytest.mark.asyncio
    async def test_patch_rejects_wrong_type(self, client: AsyncClient):
        response = await client.patch("/api/v1/controls", json={"soil_threshold": [1, 2]})

        assert response.status_code == 422


class TestDesiredState:
    """Tests for desired-state preview and submission."""

    @pytest.mark.asyncio
    async def test_preview_before_poll(self, client: AsyncClient):
        data = (await client.get("/api/v1/controls/desired")).json()

        assert data["document"]["soil_threshold"] == 40
        assert data["pending"] is None

    @pytest.mark.asyncio
    async def test_preview_shows_pending_change(self, client: AsyncClient):
        await client.post("/api/v1/dashboard/refresh")
        await client.post("/api/v1/controls/toggle/irr_pump")

        data = (await client.get("/api/v1/controls/desired")).json()

        assert data["document"]["irr_pump"] is True
        assert data["pending"]["is_synced"] is False
        assert data["pending"]["diff_summary"] == "1 pending change(s)"

    @pytest.mark.asyncio
    async def test_submit(self, client: AsyncClient, fake_gateway):
        await client.post("/api/v1/dashboard/refresh")
        await client.patch("/api/v1/controls/schedule", json={"duration_min": "20"})

        response = await client.post("/api/v1/controls/submit")

        assert response.status_code == 200
        data = response.json()
        assert data["acknowledgement"] == {"message": "Shadow updated"}
        assert data["desired"]["irrigation_schedule"]["duration_min"] == 20
        assert fake_gateway.shadow_bodies == [{"state": {"desired": data["desired"]}}]

        view = (await client.get("/api/v1/dashboard")).json()
        assert view["banners"]["success"]["visible"] is True

    @pytest.mark.asyncio
    async def test_submit_failure(self, client: AsyncClient, fake_gateway):
        fake_gateway.shadow_status = 500

        response = await client.post("/api/v1/controls/submit")

        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to update shadow"

        view = (await client.get("/api/v1/dashboard")).json()
        assert view["banners"]["alert"] == "Failed to update shadow"
        assert view["banners"]["success"]["visible"] is False
