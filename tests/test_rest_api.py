"""Tests for the REST API.

Uses httpx AsyncClient with an ASGI transport to exercise the endpoints
end-to-end without starting a real server.
"""

from __future__ import annotations

import random
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from geodefense.main import create_services, load_configuration, wire_events
from geodefense.network.rest_api import create_app

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def _make_services():
    services = create_services(load_configuration(str(CONFIG_DIR)), rng=random.Random(5))
    wire_events(services)
    return services


def _client(services) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=create_app(services)), base_url="http://test")


class TestStateEndpoints:
    @pytest.mark.asyncio
    async def test_state_before_start(self):
        services = _make_services()
        async with _client(services) as client:
            resp = await client.get("/api/state")
        assert resp.status_code == 200
        data = resp.json()
        assert data["current_wave"] == 0
        assert data["player"]["start_city"] is None
        assert data["tower_limit"] == 5

    @pytest.mark.asyncio
    async def test_nearest_cities(self):
        services = _make_services()
        async with _client(services) as client:
            resp = await client.get("/api/cities/nearest", params={"lat": 51.5, "lng": -0.12, "limit": 3})
        assert resp.status_code == 200
        cities = resp.json()["cities"]
        assert len(cities) == 3
        assert cities[0]["id"] == "london"


class TestGameEndpoints:
    @pytest.mark.asyncio
    async def test_start_place_capture(self):
        services = _make_services()
        try:
            async with _client(services) as client:
                resp = await client.post("/api/game/start", json={"city_id": "london"})
                body = resp.json()
                assert body["success"] is True
                assert body["state"]["current_wave"] == 1
                assert len(body["state"]["enemy_bases"]) == 2

                resp = await client.post("/api/towers", json={"tower_type": "basic", "lat": 51.6, "lng": -0.2})
                body = resp.json()
                assert body["success"] is True
                assert body["state"]["player"]["resources"]["gold"] == 400
                assert body["state"]["tower_count"] == 1

                resp = await client.post("/api/towers", json={"tower_type": "splash", "lat": 51.6, "lng": -0.2})
                assert resp.json()["success"] is True

                resp = await client.post("/api/towers", json={"tower_type": "basic", "lat": 51.6, "lng": -0.2})
                body = resp.json()
                assert body["success"] is False
                assert "gold" in body["error"].lower()

                resp = await client.get("/api/cities/defense")
                assert resp.json()[0]["towers_nearby"] == 2
        finally:
            services.engine.stop()

    @pytest.mark.asyncio
    async def test_capture_city_and_notification(self):
        services = _make_services()
        try:
            async with _client(services) as client:
                await client.post("/api/game/start", json={"city_id": "london"})
                resp = await client.post("/api/cities/capture", json={"city_id": "paris"})
                body = resp.json()
                assert body["success"] is True
                assert body["state"]["player"]["captured_cities"] == ["paris"]
                assert body["state"]["tower_limit"] == 10

                resp = await client.post("/api/cities/capture", json={"city_id": "berlin"})
                assert resp.json()["success"] is False

                resp = await client.get("/api/notifications")
                kinds = [n["kind"] for n in resp.json()["notifications"]]
                assert kinds == ["success"]
        finally:
            services.engine.stop()

    @pytest.mark.asyncio
    async def test_unknown_city_404(self):
        services = _make_services()
        async with _client(services) as client:
            resp = await client.post("/api/game/start", json={"city_id": "atlantis"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_tower_type(self):
        services = _make_services()
        try:
            async with _client(services) as client:
                await client.post("/api/game/start", json={"city_id": "london"})
                resp = await client.post("/api/towers", json={"tower_type": "laser", "lat": 51.6, "lng": -0.2})
            assert resp.json()["success"] is False
        finally:
            services.engine.stop()

    @pytest.mark.asyncio
    async def test_pause_speed_reset(self):
        services = _make_services()
        try:
            async with _client(services) as client:
                await client.post("/api/game/start", json={"city_id": "london"})

                resp = await client.post("/api/game/pause")
                assert resp.json()["is_paused"] is True

                resp = await client.put("/api/game/speed", json={"speed": 2.5})
                assert resp.json()["state"]["game_speed"] == 2.5

                resp = await client.put("/api/game/speed", json={"speed": 0})
                assert resp.status_code == 422

                resp = await client.post("/api/game/reset")
                state = resp.json()["state"]
                assert state["current_wave"] == 0
                assert state["is_paused"] is False
                assert state["game_speed"] == 1.0

                resp = await client.get("/api/status")
                assert resp.json()["running"] is False
        finally:
            services.engine.stop()
