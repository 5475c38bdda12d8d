"""Combat resolver — tower fire with instant hits.

Mirrors the tower step of a classic battle loop: every tower whose reload
has elapsed picks the closest live enemy in range, or the closest living
enemy base when no enemy is in range, and damages it immediately. Each
shot leaves a short-lived hit-effect record for observers.
"""

from __future__ import annotations

import logging
import math
from itertools import count
from typing import TYPE_CHECKING, Optional

from geodefense.models.projectile import Projectile, TargetRef
from geodefense.util.events import BaseDestroyed, EnemyKilled
from geodefense.util.geo_math import haversine_km

if TYPE_CHECKING:
    from geodefense.loaders.game_config_loader import GameConfig
    from geodefense.models.catalog import UnitCatalog
    from geodefense.models.enemy import Enemy
    from geodefense.models.enemy_base import EnemyBase
    from geodefense.models.game_state import GameState
    from geodefense.models.geo import Position
    from geodefense.models.tower import Tower
    from geodefense.util.events import EventBus

log = logging.getLogger(__name__)

BASE_HIT_SIZE = 12


class CombatResolver:
    """Resolves one round of tower fire per tick.

    Args:
        config: Reward constants.
        catalog: Tower colors and sizes for hit effects.
        event_bus: Receives EnemyKilled and BaseDestroyed.
    """

    def __init__(self, config: GameConfig, catalog: UnitCatalog, event_bus: EventBus) -> None:
        self._cfg = config
        self._catalog = catalog
        self._events = event_bus
        self._fx_serial = count(1)

    def step(self, state: GameState, now_ms: float) -> int:
        """Let every ready tower fire. Returns the number of shots."""
        shots = 0
        for tower in state.towers.values():
            if not tower.is_ready(now_ms):
                continue

            enemy = self._closest_enemy(state, tower)
            if enemy is not None:
                self._hit_enemy(state, tower, enemy, now_ms)
                shots += 1
                continue

            base = self._closest_base(state, tower)
            if base is not None:
                self._hit_base(state, tower, base, now_ms)
                shots += 1
                continue

            tower.target = None
        return shots

    # -- Targeting -------------------------------------------------------

    @staticmethod
    def _closest_enemy(state: GameState, tower: Tower) -> Optional[Enemy]:
        best, best_dist = None, math.inf
        for enemy in state.enemies.values():
            if enemy.health <= 0:
                continue
            dist = haversine_km(tower.position, enemy.position)
            if dist <= tower.range and dist < best_dist:
                best, best_dist = enemy, dist
        return best

    @staticmethod
    def _closest_base(state: GameState, tower: Tower) -> Optional[EnemyBase]:
        best, best_dist = None, math.inf
        for base in state.enemy_bases.values():
            if base.health <= 0:
                continue
            dist = haversine_km(tower.position, base.city.position)
            if dist <= tower.range and dist < best_dist:
                best, best_dist = base, dist
        return best

    # -- Hits ------------------------------------------------------------

    def _hit_enemy(self, state: GameState, tower: Tower, enemy: Enemy, now_ms: float) -> None:
        enemy.health -= tower.damage
        ref = TargetRef.enemy(enemy.id)
        tower.target = ref
        tower.last_shot_time = now_ms
        self._add_hit_effect(state, tower, enemy.position, ref, now_ms)

        if enemy.health <= 0:
            state.remove_enemy(enemy.id)
            state.add_resources(gold=enemy.reward, score=self._cfg.kill_score)
            log.debug("Tower %s killed %s (+%d gold)", tower.id, enemy.id, enemy.reward)
            self._events.emit(EnemyKilled(enemy_id=enemy.id, tower_id=tower.id, reward=enemy.reward))

    def _hit_base(self, state: GameState, tower: Tower, base: EnemyBase, now_ms: float) -> None:
        ref = TargetRef.base(base.id)
        tower.target = ref
        tower.last_shot_time = now_ms
        self._add_hit_effect(state, tower, base.city.position, ref, now_ms, size=BASE_HIT_SIZE)

        if state.damage_enemy_base(base.id, tower.damage):
            state.add_resources(gold=self._cfg.base_destroy_gold, score=self._cfg.base_destroy_score)
            log.info("Enemy base %s destroyed by %s, %d bases remain",
                     base.city.name, tower.id, len(state.active_bases()))
            self._events.emit(BaseDestroyed(base_id=base.id, tower_id=tower.id))

    def _add_hit_effect(self, state: GameState, tower: Tower, at: Position, target: TargetRef,
                        now_ms: float, size: Optional[int] = None) -> None:
        spec = self._catalog.tower(tower.type)
        state.add_projectile(Projectile(
            id=f"hit-{now_ms:.0f}-{next(self._fx_serial)}",
            origin=tower.position,
            destination=at,
            current=at,
            target=target,
            damage=0.0,
            color=spec.color,
            size=size if size is not None else spec.size,
            created_ms=now_ms,
            is_hit_effect=True,
        ))
