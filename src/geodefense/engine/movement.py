"""Movement integrator — walks enemies along their paths.

Steps are computed in degree space: ``speed / 111`` degrees per hour
with no longitude correction. An enemy standing on its final vertex
sieges its target city once and leaves the map.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geodefense.models.geo import Position
from geodefense.util.events import EnemyReachedCity
from geodefense.util.geo_math import KM_PER_DEGREE

if TYPE_CHECKING:
    from geodefense.loaders.game_config_loader import GameConfig
    from geodefense.models.enemy import Enemy
    from geodefense.models.game_state import GameState
    from geodefense.util.events import EventBus

log = logging.getLogger(__name__)


def step_degrees(speed_kmh: float, dt_ms: float) -> float:
    """Distance in degrees covered at ``speed_kmh`` during ``dt_ms``."""
    return speed_kmh / KM_PER_DEGREE / 3600.0 * (dt_ms / 1000.0)


def advance(enemy: Enemy, dt_ms: float) -> None:
    """Move ``enemy`` one step towards its next waypoint."""
    target = enemy.next_waypoint
    if target is None:
        return
    step = step_degrees(enemy.speed, dt_ms)
    dist = enemy.position.degree_distance_to(target)
    if dist < step:
        enemy.position = target
        enemy.path_index += 1
        return
    if dist > 0:
        dlat = target.lat - enemy.position.lat
        dlng = target.lng - enemy.position.lng
        enemy.position = Position(
            lat=enemy.position.lat + dlat / dist * step,
            lng=enemy.position.lng + dlng / dist * step,
        )


class MovementIntegrator:
    """Advances live enemies and applies siege damage at path end."""

    def __init__(self, config: GameConfig, event_bus: EventBus) -> None:
        self._cfg = config
        self._events = event_bus

    def step(self, state: GameState, dt_ms: float) -> int:
        """Advance every enemy by ``dt_ms``. Returns the number that sieged a city."""
        sieged = 0
        damage = self._cfg.siege_damage(state.current_wave)

        for enemy in list(state.enemies.values()):
            if not enemy.is_alive:
                state.remove_enemy(enemy.id)
                continue

            if not enemy.is_finished:
                advance(enemy, dt_ms)
                continue

            city = state.damage_city(enemy.target_city_id, damage)
            state.remove_enemy(enemy.id)
            sieged += 1
            if city is None:
                log.warning("Enemy %s reached unknown city %s", enemy.id, enemy.target_city_id)
                continue
            log.debug("Enemy %s sieged %s for %.0f (health %.0f)",
                      enemy.id, city.name, damage, city.health)
            self._events.emit(EnemyReachedCity(enemy_id=enemy.id, city_id=city.id, damage=damage))

        if sieged:
            log.info("%d enemies reached their city", sieged)
        return sieged
