"""REST API — FastAPI application for observers and player actions.

The simulation owns the state; this API reads snapshots and forwards
player actions to the engine and the player service.

Usage::

    from geodefense.network.rest_api import create_app

    app = create_app(services)
    # Start with uvicorn as an asyncio task alongside the frame loop
"""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from geodefense.models.geo import Position
from geodefense.models.tower import TowerType
from geodefense.network.rest_models import (
    ActionResponse,
    CaptureCityRequest,
    CityDefenseResponse,
    NearestCitiesResponse,
    PlaceTowerRequest,
    SpeedRequest,
    StartGameRequest,
)
from geodefense.network.serialization import city_to_dict

if TYPE_CHECKING:
    from geodefense.main import Services

log = logging.getLogger(__name__)


def _result(services: "Services", error: str | None) -> dict[str, Any]:
    if error:
        return {"success": False, "error": error}
    return {"success": True, "state": services.state.snapshot()}


def create_app(services: "Services") -> FastAPI:
    """Factory: create and return a configured FastAPI application.

    The ``services`` reference is captured by closure so every endpoint
    can access game logic without global state.
    """
    app = FastAPI(title="GeoDefense Server", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =================================================================
    # State
    # =================================================================

    @app.get("/api/state")
    async def get_state() -> dict[str, Any]:
        return services.state.snapshot()

    @app.get("/api/status")
    async def get_status() -> dict[str, Any]:
        engine = services.engine
        return {
            "running": engine.is_running,
            "tick_count": engine.tick_count,
            "wave": services.state.current_wave,
            "kills_in_wave": engine.director.enemies_killed_in_wave,
            "kills_required": engine.director.enemies_required_for_next_wave,
            "cached_paths": len(services.paths),
            "pending_paths": services.paths.pending_count,
        }

    @app.get("/api/notifications")
    async def get_notifications() -> dict[str, Any]:
        return {"notifications": [
            {"kind": n.kind, "title": n.title, "message": n.message}
            for n in services.notifications.items
        ]}

    # =================================================================
    # Session
    # =================================================================

    @app.post("/api/game/start", response_model=ActionResponse)
    async def start_game(body: StartGameRequest) -> dict[str, Any]:
        city = services.cities.get(body.city_id)
        if city is None:
            raise HTTPException(status_code=404, detail=f"Unknown city: {body.city_id}")
        return _result(services, services.engine.start_game(city))

    @app.post("/api/game/reset", response_model=ActionResponse)
    async def reset_game() -> dict[str, Any]:
        services.engine.reset()
        return _result(services, None)

    @app.post("/api/game/pause")
    async def toggle_pause() -> dict[str, Any]:
        return {"success": True, "is_paused": services.engine.toggle_pause()}

    @app.put("/api/game/speed", response_model=ActionResponse)
    async def set_speed(body: SpeedRequest) -> dict[str, Any]:
        return _result(services, services.engine.set_speed(body.speed))

    # =================================================================
    # Player actions
    # =================================================================

    @app.post("/api/towers", response_model=ActionResponse)
    async def place_tower(body: PlaceTowerRequest) -> dict[str, Any]:
        try:
            tower_type = TowerType(body.tower_type.lower())
        except ValueError:
            return _result(services, f"Unknown tower type: {body.tower_type}")
        error = services.player.place_tower(services.state, tower_type, Position(body.lat, body.lng))
        return _result(services, error)

    @app.post("/api/cities/capture", response_model=ActionResponse)
    async def capture_city(body: CaptureCityRequest) -> dict[str, Any]:
        city = services.cities.get(body.city_id)
        if city is None:
            raise HTTPException(status_code=404, detail=f"Unknown city: {body.city_id}")
        return _result(services, services.player.capture_city(services.state, city))

    @app.get("/api/cities/defense", response_model=list[CityDefenseResponse])
    async def city_defense() -> list[dict[str, Any]]:
        return [vars(d) for d in services.player.city_defense_status(services.state)]

    @app.get("/api/cities/nearest", response_model=NearestCitiesResponse)
    async def nearest_cities(
        lat: float = Query(ge=-90, le=90),
        lng: float = Query(ge=-180, le=180),
        limit: int = Query(5, ge=1, le=100),
    ) -> dict[str, Any]:
        cities = services.cities.nearest_cities(Position(lat, lng), limit)
        return {"cities": [city_to_dict(c) for c in cities]}

    return app
