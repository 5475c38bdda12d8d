"""Spawn engine — releases enemy batches from active bases.

Every active base fires on its own cadence. A firing base picks the
nearest owned city as the target, resolves a path to it and releases a
batch of enemies whose stats scale with the wave. Batch members enter the
map a few game-milliseconds apart via the deferred-action queue.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from geodefense.models.enemy import Enemy, EnemyType
from geodefense.util.events import EnemySpawned
from geodefense.util.geo_math import haversine_km

if TYPE_CHECKING:
    from geodefense.engine.routing import PathResolver
    from geodefense.engine.scheduler import DeferredActionQueue
    from geodefense.loaders.game_config_loader import GameConfig
    from geodefense.models.catalog import UnitCatalog
    from geodefense.models.city import City
    from geodefense.models.enemy_base import EnemyBase
    from geodefense.models.game_state import GameState
    from geodefense.models.geo import Position
    from geodefense.util.events import EventBus

log = logging.getLogger(__name__)

SPAWN_LABEL = "spawn"


@dataclass
class _AwaitingBatch:
    """A fired base whose path is still being fetched."""
    base_id: str
    target_city_id: str
    path_key: tuple[str, str]
    wave: int


def type_pool(wave: int) -> list[EnemyType]:
    """Enemy kinds a batch draws from, uniformly, at ``wave``."""
    pool = [EnemyType.REGULAR, EnemyType.REGULAR, EnemyType.FAST]
    if wave > 3:
        pool.append(EnemyType.TANK)
    if wave > 7:
        pool += [EnemyType.TANK, EnemyType.TANK]
    return pool


class SpawnEngine:
    """Decides when each base fires and what it releases.

    Args:
        config: Gameplay constants.
        catalog: Base stats per enemy kind.
        paths: Session path cache.
        scheduler: Deferred-action queue for staggered releases.
        event_bus: Receives EnemySpawned.
        rng: Random source for enemy kinds.
    """

    def __init__(
        self,
        config: GameConfig,
        catalog: UnitCatalog,
        paths: PathResolver,
        scheduler: DeferredActionQueue,
        event_bus: EventBus,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._cfg = config
        self._catalog = catalog
        self._paths = paths
        self._scheduler = scheduler
        self._events = event_bus
        self._rng = rng or random.Random()
        self._awaiting: list[_AwaitingBatch] = []

    @property
    def awaiting_paths(self) -> int:
        return len(self._awaiting)

    def reset(self) -> None:
        self._awaiting.clear()

    # -- Tick ------------------------------------------------------------

    def step(self, state: GameState, now_ms: float) -> int:
        """Fire every due base. Returns the number of enemies released or queued."""
        if not state.is_started:
            return 0
        if len(state.enemies) >= self._cfg.max_enemies:
            log.warning("Max enemies reached (%d), skipping spawn", self._cfg.max_enemies)
            return 0

        released = self._release_awaiting(state, now_ms)

        for index, base in enumerate(state.enemy_bases.values()):
            if not base.is_active or base.health <= 0:
                continue
            if now_ms - base.last_spawn_time < base.spawn_interval_ms:
                continue
            released += self._fire(state, base, index, now_ms)
        return released

    def spawn_rate_for(self, index: int, wave: int) -> float:
        """Spawn rate a base at ``index`` switches to when it fires during ``wave``."""
        cfg = self._cfg
        multiplier = 1 + (wave - 1) * cfg.spawn_rate_wave_growth
        return min(cfg.spawn_rate_baseline * multiplier + index * cfg.spawn_rate_index_bonus,
                   cfg.spawn_rate_cap)

    def _fire(self, state: GameState, base: EnemyBase, index: int, now_ms: float) -> int:
        wave = state.current_wave
        base.last_spawn_time = now_ms
        base.spawn_rate = self.spawn_rate_for(index, wave)

        target = self.nearest_owned_city(state, base.city.position)
        if target is None:
            return 0

        path = self._paths.request(base.city, target)
        if path is None:
            self._awaiting.append(_AwaitingBatch(base.id, target.id, (base.city.id, target.id), wave))
            log.debug("Base %s waiting for a route to %s", base.id, target.id)
            return 0
        return self._release_batch(state, base, path, target.id, wave, now_ms)

    def _release_awaiting(self, state: GameState, now_ms: float) -> int:
        released = 0
        still_waiting = []
        for item in self._awaiting:
            path = self._paths.cached(item.path_key)
            base = state.enemy_bases.get(item.base_id)
            if base is None or base.health <= 0:
                continue
            if path is None:
                still_waiting.append(item)
                continue
            released += self._release_batch(state, base, path, item.target_city_id, item.wave, now_ms)
        self._awaiting = still_waiting
        return released

    # -- Batches ---------------------------------------------------------

    def batch_size(self, wave: int) -> int:
        return min(1 + wave // 3, self._cfg.batch_size_max)

    def make_enemy(self, state: GameState, enemy_type: EnemyType, origin: Position,
                   path: list[Position], target_city_id: str, wave: int) -> Enemy:
        """Build an enemy of ``enemy_type`` with stats scaled to ``wave``."""
        spec = self._catalog.enemy(enemy_type)
        health = spec.health * self._cfg.enemy_health_wave_factor ** (wave - 1)
        return Enemy(
            id=state.new_id("enemy"),
            type=enemy_type,
            position=origin,
            health=health,
            max_health=health,
            speed=spec.speed * (1 + wave * self._cfg.enemy_speed_wave_growth),
            reward=math.floor(spec.reward * (1 + wave * self._cfg.enemy_reward_wave_growth)),
            path=list(path),
            path_index=0,
            target_city_id=target_city_id,
        )

    def _release_batch(self, state: GameState, base: EnemyBase, path: list[Position],
                       target_city_id: str, wave: int, now_ms: float) -> int:
        pool = type_pool(wave)
        size = self.batch_size(wave)
        for i in range(size):
            enemy = self.make_enemy(state, self._rng.choice(pool), base.city.position,
                                    path, target_city_id, wave)
            if i == 0:
                self._enter(state, enemy, base.id)
            else:
                self._scheduler.schedule(
                    now_ms + i * self._cfg.spawn_stagger_ms,
                    lambda e=enemy: self._enter(state, e, base.id),
                    SPAWN_LABEL,
                )
        log.debug("Base %s released %d enemies towards %s (wave %d)",
                  base.city.name, size, target_city_id, wave)
        return size

    def _enter(self, state: GameState, enemy: Enemy, base_id: str) -> None:
        state.spawn_enemy(enemy)
        self._events.emit(EnemySpawned(enemy_id=enemy.id, base_id=base_id,
                                       target_city_id=enemy.target_city_id))

    # -- Targeting -------------------------------------------------------

    @staticmethod
    def nearest_owned_city(state: GameState, position: Position) -> Optional[City]:
        """Closest owned city to ``position``; the start city wins ties."""
        best: Optional[City] = None
        best_dist = math.inf
        for city in state.player.owned_cities():
            dist = haversine_km(position, city.position)
            if dist < best_dist:
                best, best_dist = city, dist
        return best
