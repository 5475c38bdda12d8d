"""Frame driver — asyncio-based per-frame simulation tick.

Responsibilities:
- Scale real elapsed time by the game speed and advance the game clock
- Run due deferred actions (staggered spawns, delayed base additions)
- Step the director, spawn engine, movement integrator and combat resolver
- Expire hit effects
- Detect game over, stop, and reset the world after a short delay

``tick(dt_ms)`` is deterministic and does all the work; ``run()`` only
feeds it wall-clock deltas.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import TYPE_CHECKING, Optional

from geodefense.engine.combat import CombatResolver
from geodefense.engine.game_over import GameOverDetector
from geodefense.engine.movement import MovementIntegrator
from geodefense.engine.scheduler import DeferredActionQueue
from geodefense.engine.spawn_engine import SpawnEngine
from geodefense.engine.wave_director import WaveDirector
from geodefense.util.events import GameReset

if TYPE_CHECKING:
    from geodefense.engine.city_index import CityIndex
    from geodefense.engine.routing import PathResolver
    from geodefense.loaders.game_config_loader import GameConfig
    from geodefense.models.catalog import UnitCatalog
    from geodefense.models.city import City
    from geodefense.models.game_state import GameState
    from geodefense.util.events import EventBus, GameOver

log = logging.getLogger(__name__)


class GameEngine:
    """Drives one game session.

    Args:
        state: The shared game state, threaded through every subsystem.
        config: Gameplay constants.
        catalog: Tower and enemy stats.
        cities: World-city lookup.
        paths: Session path cache with its path strategy.
        event_bus: Event bus shared with the services.
        rng: Random source (injectable for deterministic tests).
    """

    def __init__(
        self,
        state: GameState,
        config: GameConfig,
        catalog: UnitCatalog,
        cities: CityIndex,
        paths: PathResolver,
        event_bus: EventBus,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.state = state
        self._cfg = config
        self._events = event_bus
        self.paths = paths
        rng = rng or random.Random()

        self.scheduler = DeferredActionQueue()
        self.director = WaveDirector(config, cities, self.scheduler, event_bus, rng)
        self.spawner = SpawnEngine(config, catalog, paths, self.scheduler, event_bus, rng)
        self.movement = MovementIntegrator(config, event_bus)
        self.combat = CombatResolver(config, catalog, event_bus)
        self.game_over = GameOverDetector(event_bus)

        state.towers_per_city = config.towers_per_city

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._reset_handle: Optional[asyncio.TimerHandle] = None
        self._next_stats_ms = config.stats_log_interval_ms

        # --- Debug / monitoring counters ---
        self.tick_count: int = 0
        self.last_tick_duration_ms: float = 0.0

    @property
    def is_running(self) -> bool:
        return self._running

    # -- Session ---------------------------------------------------------

    def start_game(self, city: City) -> Optional[str]:
        """Begin a game defending ``city``. Returns error message or None."""
        if self.state.is_started:
            return "A game is already in progress"
        self.state.init_game(city, self._cfg.city_health, self._cfg.starting_resources)
        self._next_stats_ms = self._cfg.stats_log_interval_ms
        self.game_over.rearm()
        self.director.initialize_bases(self.state)
        log.info("Game started in %s with %d enemy bases", city.name, len(self.state.enemy_bases))
        self.start()
        return None

    def start(self) -> None:
        """Resume ticking; spawns the frame task when an event loop is running."""
        self._running = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        if self._task is None or self._task.done():
            self._task = loop.create_task(self.run())

    def stop(self) -> None:
        """Stop ticking, cancel the frame task and drop every scheduled action."""
        self._running = False
        self.scheduler.clear()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def reset(self) -> None:
        """Return the world to the pre-game state."""
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
        self.stop()
        self.state.reset_game()
        self.director.reset()
        self.spawner.reset()
        self.paths.clear()
        self.game_over.rearm()
        log.info("World reset")
        self._events.emit(GameReset())

    # -- Flags -----------------------------------------------------------

    def toggle_pause(self) -> bool:
        paused = self.state.toggle_pause()
        log.info("Game %s", "paused" if paused else "resumed")
        return paused

    def set_speed(self, speed: float) -> Optional[str]:
        """Set the game-speed multiplier. Returns error message or None."""
        try:
            self.state.set_game_speed(speed)
        except ValueError as e:
            return str(e)
        log.info("Game speed set to %.2fx", speed)
        return None

    # -- Frame loop ------------------------------------------------------

    async def run(self) -> None:
        """Tick every ``frame_interval_ms`` until stopped."""
        self._running = True
        last = time.monotonic()
        while self._running:
            now = time.monotonic()
            dt_ms = (now - last) * 1000.0
            last = now
            self.tick(dt_ms)
            await asyncio.sleep(self._cfg.frame_interval_ms / 1000.0)

    def tick(self, dt_ms: float) -> None:
        """Advance the simulation by ``dt_ms`` of real time."""
        if not self._running:
            return
        self.tick_count += 1
        if self.state.is_paused or not self.state.is_started:
            return

        t0 = time.monotonic()
        state = self.state
        scaled = dt_ms * state.game_speed
        state.elapsed_ms += scaled
        now = state.elapsed_ms

        self.scheduler.run_due(now)
        self.director.step(state, now)
        self.spawner.step(state, now)
        self.movement.step(state, scaled)
        self.combat.step(state, now)
        state.expire_projectiles(now, self._cfg.hit_effect_lifetime_ms)

        if now >= self._next_stats_ms:
            self._next_stats_ms = now + self._cfg.stats_log_interval_ms
            self._log_stats()

        evt = self.game_over.check(state)
        if evt is not None:
            self._handle_game_over(evt)

        self.last_tick_duration_ms = (time.monotonic() - t0) * 1000.0

    def _log_stats(self) -> None:
        s = self.state
        log.info("Game stats: enemies %d, active bases %d, wave %d, gold %.0f",
                 len(s.enemies), len(s.active_bases()), s.current_wave, s.player.resources.gold)

    def _handle_game_over(self, evt: GameOver) -> None:
        self.stop()
        delay_s = self._cfg.game_over_reset_delay_ms / 1000.0
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.reset()
            return
        log.info("Resetting world in %.1fs", delay_s)
        self._reset_handle = loop.call_later(delay_s, self.reset)
