"""Player service — tower purchases, city captures and defense queries.

Actions validate first and mutate only on success. Each returns ``None``
on success or a user-facing error message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from geodefense.models.tower import Tower, TowerType
from geodefense.util.events import CityCaptured, TowerPlaced
from geodefense.util.geo_math import haversine_km

if TYPE_CHECKING:
    from geodefense.loaders.game_config_loader import GameConfig
    from geodefense.models.catalog import UnitCatalog
    from geodefense.models.city import City
    from geodefense.models.game_state import GameState
    from geodefense.models.geo import Position
    from geodefense.util.events import EventBus

log = logging.getLogger(__name__)


@dataclass
class CityDefense:
    """Defense summary of one owned city."""
    city_id: str
    name: str
    health: float
    max_health: float
    towers_nearby: int
    is_start_city: bool = False


class PlayerService:
    """Player actions against the shared game state.

    Args:
        config: Economy constants.
        catalog: Tower prices and stats.
        event_bus: Receives TowerPlaced and CityCaptured.
    """

    def __init__(self, config: GameConfig, catalog: UnitCatalog, event_bus: EventBus) -> None:
        self._cfg = config
        self._catalog = catalog
        self._events = event_bus

    # -- Towers ----------------------------------------------------------

    def distance_to_nearest_owned_city(self, state: GameState, position: Position) -> Optional[float]:
        cities = state.player.owned_cities()
        if not cities:
            return None
        return min(haversine_km(position, c.position) for c in cities)

    def place_tower(self, state: GameState, tower_type: TowerType, position: Position) -> Optional[str]:
        """Buy a tower of ``tower_type`` at ``position``. Returns error message or None."""
        if not state.is_started:
            return "Game has not started"
        try:
            spec = self._catalog.tower(tower_type)
        except KeyError:
            return f"Unknown tower type: {tower_type}"

        gold = state.player.resources.gold
        if gold < spec.cost:
            return f"Not enough gold (need {spec.cost:.0f}, have {gold:.0f})"

        limit = state.get_tower_limit()
        if state.get_current_tower_count() >= limit:
            return f"Tower limit reached ({limit}). Capture more cities to build more towers"

        dist = self.distance_to_nearest_owned_city(state, position)
        if dist is None or dist > self._cfg.max_tower_distance_km:
            return (f"Too far from your cities (max {self._cfg.max_tower_distance_km:.0f} km)")

        tower = Tower(
            id=state.new_id("tower"),
            type=tower_type,
            position=position,
            damage=spec.damage,
            range=spec.range,
            fire_rate=spec.fire_rate,
        )
        state.add_tower(tower)
        state.update_resources(gold=gold - spec.cost)
        log.info("Placed %s tower %s at %s (%d/%d)", tower_type.value, tower.id, position,
                 state.get_current_tower_count(), limit)
        self._events.emit(TowerPlaced(tower_id=tower.id, tower_type=tower_type.value))
        return None

    # -- Cities ----------------------------------------------------------

    def can_capture_city(self, state: GameState, city_id: str) -> bool:
        return (state.is_started
                and not state.player.owns(city_id)
                and state.player.resources.gold >= self._cfg.city_capture_cost)

    def capture_city(self, state: GameState, city: City) -> Optional[str]:
        """Capture ``city`` for gold. Returns error message or None."""
        if not state.is_started:
            return "Game has not started"
        if state.player.owns(city.id):
            return f"{city.name} is already yours"
        gold = state.player.resources.gold
        if gold < self._cfg.city_capture_cost:
            return f"Not enough gold (need {self._cfg.city_capture_cost:.0f}, have {gold:.0f})"

        state.add_resources(gold=-self._cfg.city_capture_cost, score=self._cfg.city_capture_score)
        state.capture_city(city, self._cfg.city_health, self._cfg.territory_expansion_km)
        limit = state.get_tower_limit()
        log.info("Captured %s, tower limit now %d", city.name, limit)
        self._events.emit(CityCaptured(city_id=city.id, city_name=city.name, tower_limit=limit))
        return None

    def city_defense_status(self, state: GameState) -> list[CityDefense]:
        """Health and nearby tower count for every owned city."""
        start_id = state.player.start_city.id if state.player.start_city else None
        result = []
        for city in state.player.owned_cities():
            nearby = sum(1 for t in state.towers.values()
                         if haversine_km(t.position, city.position) <= self._cfg.defense_radius_km)
            result.append(CityDefense(
                city_id=city.id,
                name=city.name,
                health=city.health or 0.0,
                max_health=city.max_health or 0.0,
                towers_nearby=nearby,
                is_start_city=city.id == start_id,
            ))
        return result
