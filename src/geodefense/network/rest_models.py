"""Pydantic request/response models for the REST API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ===================================================================
# Game session
# ===================================================================


class StartGameRequest(BaseModel):
    city_id: str


class SpeedRequest(BaseModel):
    speed: float = Field(gt=0)


class ActionResponse(BaseModel):
    success: bool
    error: str = ""
    state: Optional[Dict[str, Any]] = None


# ===================================================================
# Player actions
# ===================================================================


class PlaceTowerRequest(BaseModel):
    tower_type: str
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class CaptureCityRequest(BaseModel):
    city_id: str


# ===================================================================
# Queries
# ===================================================================


class CityDefenseResponse(BaseModel):
    city_id: str
    name: str
    health: float
    max_health: float
    towers_nearby: int
    is_start_city: bool = False


class NearestCitiesResponse(BaseModel):
    cities: List[Dict[str, Any]] = Field(default_factory=list)
