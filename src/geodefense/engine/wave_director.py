"""Wave director — enemy base population and the wave counter.

Responsibilities:
- Place the initial enemy bases when a game starts
- Count kills against the wave quota and advance the wave
- Add bases after a wave advance and replenish destroyed ones
- Keep ``EnemyBase.is_active`` in sync with base health

Base sites are real cities picked by distance from the start city. The
distance band widens with the wave; when it yields too few cities the
search widens, then falls back to random world cities.
"""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING, Optional

from geodefense.models.city import City
from geodefense.models.enemy_base import EnemyBase
from geodefense.util.events import BaseCreated, EnemyKilled, WaveAdvanced
from geodefense.util.geo_math import haversine_km, offset_km

if TYPE_CHECKING:
    from geodefense.engine.city_index import CityIndex
    from geodefense.engine.scheduler import DeferredActionQueue
    from geodefense.loaders.game_config_loader import GameConfig
    from geodefense.models.game_state import GameState
    from geodefense.util.events import EventBus

log = logging.getLogger(__name__)

ADD_BASES_LABEL = "add_bases"


class WaveDirector:
    """Decides where enemy bases appear, how strong they are and when waves end.

    Args:
        config: Gameplay constants.
        cities: World-city lookup used to pick base sites.
        scheduler: Deferred-action queue on the game clock.
        event_bus: Bus for base/wave events; the director listens to EnemyKilled.
        rng: Random source (injectable for deterministic tests).
    """

    def __init__(
        self,
        config: GameConfig,
        cities: CityIndex,
        scheduler: DeferredActionQueue,
        event_bus: EventBus,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._cfg = config
        self._cities = cities
        self._scheduler = scheduler
        self._events = event_bus
        self._rng = rng or random.Random()

        self.bases_initialized = False
        self.enemies_killed_in_wave = 0
        self.enemies_required_for_next_wave = config.kill_quota(1)

        event_bus.on(EnemyKilled, self._on_enemy_killed)

    # -- Lifecycle -------------------------------------------------------

    def reset(self) -> None:
        self.bases_initialized = False
        self.enemies_killed_in_wave = 0
        self.enemies_required_for_next_wave = self._cfg.kill_quota(1)

    def _on_enemy_killed(self, evt: EnemyKilled) -> None:
        self.enemies_killed_in_wave += 1

    # -- Tick ------------------------------------------------------------

    def step(self, state: GameState, now_ms: float) -> None:
        """Refresh base activity, then advance the wave or replenish bases."""
        if not state.is_started:
            return

        for base in state.enemy_bases.values():
            base.is_active = base.health > 0

        if self.enemies_killed_in_wave >= self.enemies_required_for_next_wave and self.bases_initialized:
            self._advance_wave(state, now_ms)
        else:
            self._maybe_replenish(state, now_ms)

    def _advance_wave(self, state: GameState, now_ms: float) -> None:
        log.info("Wave %d complete (%d kills)", state.current_wave, self.enemies_killed_in_wave)
        wave = state.next_wave()
        self.enemies_killed_in_wave = 0
        self.enemies_required_for_next_wave = self._cfg.kill_quota(wave)
        log.info("Starting wave %d: %d kills required, target %d bases",
                 wave, self.enemies_required_for_next_wave, self._cfg.target_base_count(wave))
        self._events.emit(WaveAdvanced(wave=wave, kills_required=self.enemies_required_for_next_wave))

        self._scheduler.schedule(
            now_ms + self._cfg.wave_advance_delay_ms,
            lambda: self.add_bases(state, minimum=1),
            ADD_BASES_LABEL,
        )

    def _maybe_replenish(self, state: GameState, now_ms: float) -> None:
        wave = state.current_wave
        if wave < 1 or not self.bases_initialized:
            return
        if len(state.active_bases()) >= self._cfg.target_base_count(wave):
            return
        if self._scheduler.pending(ADD_BASES_LABEL):
            return

        chance = min(self._cfg.replenish_chance_max,
                     self._cfg.replenish_chance_base + wave * self._cfg.replenish_chance_per_wave)
        if self._rng.random() >= chance:
            return

        count = min(self._cfg.base_add_max, wave // 5 + 1)
        log.info("Replenishing enemy bases: %d scheduled", count)
        for i in range(count):
            self._scheduler.schedule(
                now_ms + self._cfg.replenish_delay_ms + i * self._cfg.replenish_stagger_ms,
                lambda: self.add_bases(state, minimum=0, limit=1),
                ADD_BASES_LABEL,
            )

    # -- Base placement --------------------------------------------------

    def initialize_bases(self, state: GameState) -> list[EnemyBase]:
        """Create the opening set of bases for the current wave."""
        if state.player.start_city is None:
            log.warning("initialize_bases: no start city")
            return []
        if self.bases_initialized:
            log.debug("Bases already initialized, skipping")
            return []

        wave = max(1, state.current_wave)
        target = self._cfg.target_base_count(wave)
        bases = self._create_bases(state, target, wave)
        self.bases_initialized = True
        return bases

    def add_bases(self, state: GameState, minimum: int = 1, limit: Optional[int] = None) -> list[EnemyBase]:
        """Grow toward the wave's target base count.

        Adds ``max(minimum, min(base_add_max, target - active))`` bases,
        optionally capped by ``limit``.
        """
        if state.player.start_city is None:
            return []
        wave = max(1, state.current_wave)
        shortfall = self._cfg.target_base_count(wave) - len(state.active_bases())
        count = max(minimum, min(self._cfg.base_add_max, shortfall))
        if limit is not None:
            count = min(count, limit)
        if count <= 0:
            return []
        return self._create_bases(state, count, wave)

    def _claimed_ids(self, state: GameState) -> set[str]:
        claimed = set(state.enemy_bases)
        claimed.update(b.city.id for b in state.enemy_bases.values())
        claimed.update(c.id for c in state.player.owned_cities())
        return claimed

    def _create_bases(self, state: GameState, count: int, wave: int) -> list[EnemyBase]:
        home = state.player.start_city
        claimed = self._claimed_ids(state)

        strength: Optional[float] = self._cfg.base_health_base + wave * self._cfg.base_health_per_wave

        sites = self._band_candidates(home, claimed, wave)[:count]
        if len(sites) < count:
            log.info("Only %d base sites in band for wave %d, adding random world cities", len(sites), wave)
            taken = claimed | {c.id for c in sites}
            sites += self._random_world_cities(home, taken, count - len(sites))

        if not sites:
            # Emergency: flat-strength bases from a wider search.
            log.warning("No base sites found for wave %d, widening search", wave)
            strength = None
            sites = self._expanded_candidates(home, claimed)[:self._cfg.fallback_base_count]
            if not sites:
                sites = self._random_world_cities(home, claimed, self._cfg.fallback_base_count, banded=False)
            if not sites:
                log.warning("No world city available for an enemy base, placing one in open country")
                sites = [self._wilderness_site(home, state)]

        start_index = len(state.enemy_bases)
        bases = [self._make_base(city, start_index + i, wave, strength) for i, city in enumerate(sites)]
        state.add_enemy_bases(bases)
        for base in bases:
            self._events.emit(BaseCreated(base_id=base.id, city_id=base.city.id, health=base.health))
        log.info("Enemy bases +%d (total %d): %s", len(bases), len(state.enemy_bases),
                 ", ".join(f"{b.city.name} ({haversine_km(b.city.position, home.position):.0f} km)"
                           for b in bases))
        return bases

    def _make_base(self, city: City, index: int, wave: int, strength: Optional[float]) -> EnemyBase:
        if strength is None:
            health = self._cfg.fallback_base_health
            spawn_rate = self._cfg.spawn_rate_baseline + index * 0.1
        else:
            health = strength
            spawn_rate = min(
                self._cfg.initial_spawn_rate_cap,
                self._cfg.initial_spawn_rate_base
                + index * self._cfg.initial_spawn_rate_index_bonus
                + wave * self._cfg.initial_spawn_rate_per_wave,
            )
        return EnemyBase(
            id=f"base-{city.id}",
            city=city.with_health(health),
            health=health,
            max_health=health,
            spawn_rate=spawn_rate,
            last_spawn_time=0.0,
            is_active=True,
        )

    # -- Candidate searches ----------------------------------------------

    def _band_candidates(self, home: City, claimed: set[str], wave: int) -> list[City]:
        cfg = self._cfg
        search_count = min(cfg.base_search_count_max,
                           cfg.base_search_count_base + wave * cfg.base_search_count_per_wave)
        min_dist = cfg.base_min_dist_km + wave * cfg.base_min_dist_per_wave_km
        max_dist = cfg.base_max_dist_km + wave * cfg.base_max_dist_per_wave_km
        result = []
        for city in self._cities.nearest_cities(home.position, search_count):
            if city.id == home.id or city.id in claimed:
                continue
            dist = haversine_km(city.position, home.position)
            if min_dist < dist < max_dist:
                result.append(city)
        return result

    def _expanded_candidates(self, home: City, claimed: set[str]) -> list[City]:
        result = []
        for city in self._cities.nearest_cities(home.position, self._cfg.base_expanded_search_count):
            if city.id == home.id or city.id in claimed:
                continue
            if haversine_km(city.position, home.position) > self._cfg.base_min_dist_km:
                result.append(city)
        return result

    def _random_world_cities(self, home: City, claimed: set[str], count: int,
                             banded: bool = True) -> list[City]:
        pool = [c for c in self._cities.all_cities() if c.id != home.id and c.id not in claimed]
        if banded:
            pool = [c for c in pool
                    if self._cfg.base_random_min_km
                    < haversine_km(home.position, c.position)
                    < self._cfg.base_random_max_km]
        if not pool:
            return []
        return self._rng.sample(pool, min(count, len(pool)))

    def _wilderness_site(self, home: City, state: GameState) -> City:
        bearing = self._rng.uniform(0.0, 2 * math.pi)
        distance = (self._cfg.base_random_min_km + self._cfg.base_random_max_km) / 4
        return City(
            id=state.new_id("outpost"),
            name="Enemy outpost",
            position=offset_km(home.position, bearing, distance),
        )
