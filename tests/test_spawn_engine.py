"""Tests for enemy spawning from bases."""

import random

import pytest

from geodefense.engine.routing import PathResolver, RoadPathStrategy, StraightPathStrategy
from geodefense.engine.scheduler import DeferredActionQueue
from geodefense.engine.spawn_engine import SPAWN_LABEL, SpawnEngine, type_pool
from geodefense.loaders.game_config_loader import GameConfig
from geodefense.models.catalog import UnitCatalog
from geodefense.models.city import City
from geodefense.models.enemy import Enemy, EnemyType
from geodefense.models.enemy_base import EnemyBase
from geodefense.models.game_state import GameState
from geodefense.models.geo import Position
from geodefense.util.events import EnemySpawned, EventBus

LONDON = City("london", "London", Position(51.5074, -0.1278))
PARIS = City("paris", "Paris", Position(48.8566, 2.3522))
BRUSSELS = City("brussels", "Brussels", Position(50.8503, 4.3517))


class SlowProvider:
    def __init__(self, path):
        self.path = path

    async def get_route(self, origin, destination):
        return list(self.path)


def _base(city: City, spawn_rate: float = 1.0, health: float = 200.0) -> EnemyBase:
    return EnemyBase(id=f"base-{city.id}", city=city.with_health(health), health=health,
                     max_health=health, spawn_rate=spawn_rate)


def _setup(config=None, strategy=None, wave: int = 1):
    config = config or GameConfig()
    bus = EventBus()
    scheduler = DeferredActionQueue()
    paths = PathResolver(strategy or StraightPathStrategy(steps=30))
    engine = SpawnEngine(config, UnitCatalog(), paths, scheduler, bus, random.Random(3))
    state = GameState()
    state.init_game(LONDON, config.city_health, config.starting_resources)
    state.current_wave = wave
    return state, engine, scheduler, bus, paths


class TestTrigger:
    def test_fires_only_after_interval(self):
        state, engine, _, bus, _ = _setup()
        state.add_enemy_bases([_base(PARIS, spawn_rate=1.0)])
        spawned = []
        bus.on(EnemySpawned, spawned.append)

        assert engine.step(state, 999.0) == 0
        assert state.enemies == {}

        assert engine.step(state, 1000.0) == 1
        assert len(state.enemies) == 1
        assert spawned[0].base_id == "base-paris"
        assert spawned[0].target_city_id == "london"

    def test_fire_updates_rate_and_time(self):
        state, engine, _, _, _ = _setup(wave=3)
        base = _base(PARIS, spawn_rate=1.0)
        state.add_enemy_bases([_base(BRUSSELS, spawn_rate=0.001), base])

        engine.step(state, 1000.0)

        assert base.last_spawn_time == 1000.0
        # index 1 at wave 3: 0.2 * 1.4 + 0.05
        assert base.spawn_rate == pytest.approx(0.33)

    def test_spawn_rate_cap(self):
        _, engine, _, _, _ = _setup()
        assert engine.spawn_rate_for(index=100, wave=1) == 2.0

    def test_destroyed_base_does_not_fire(self):
        state, engine, _, _, _ = _setup()
        base = _base(PARIS)
        base.health = 0
        base.is_active = False
        state.add_enemy_bases([base])
        assert engine.step(state, 10_000.0) == 0

    def test_max_enemies_cap(self):
        state, engine, _, _, _ = _setup(config=GameConfig(max_enemies=1))
        state.add_enemy_bases([_base(PARIS)])
        state.spawn_enemy(Enemy(id="enemy-x", type=EnemyType.REGULAR, position=PARIS.position,
                                health=1, max_health=1, speed=1, reward=1))
        assert engine.step(state, 10_000.0) == 0
        assert len(state.enemies) == 1

    def test_not_started(self):
        _, engine, _, _, _ = _setup()
        assert engine.step(GameState(), 10_000.0) == 0


class TestEnemies:
    def test_enemy_walks_cached_path_to_nearest_city(self):
        state, engine, _, _, paths = _setup()
        state.add_enemy_bases([_base(PARIS)])
        engine.step(state, 1000.0)

        enemy = next(iter(state.enemies.values()))
        assert enemy.target_city_id == "london"
        assert enemy.path_index == 0
        assert len(enemy.path) == 31
        assert enemy.position == PARIS.position
        assert enemy.path[-1].lat == pytest.approx(LONDON.position.lat)
        assert paths.cached(("paris", "london")) == enemy.path
        assert enemy.path is not paths.cached(("paris", "london"))

    def test_targets_nearest_captured_city(self):
        state, engine, _, _, _ = _setup()
        state.add_enemy_bases([_base(PARIS)])
        engine.step(state, 1000.0)
        assert {e.target_city_id for e in state.enemies.values()} == {"london"}

        # Brussels is closer to Paris than London is
        state.capture_city(BRUSSELS, 100, 5)
        engine.step(state, 6000.0)
        assert {e.target_city_id for e in state.enemies.values()} == {"london", "brussels"}

    def test_wave_scaling(self):
        state, engine, _, _, _ = _setup()
        tank = engine.make_enemy(state, EnemyType.TANK, PARIS.position, [PARIS.position], "london", wave=3)
        assert tank.health == pytest.approx(200 * 1.2 ** 2)
        assert tank.max_health == tank.health
        assert tank.speed == pytest.approx(10_800 * 1.3)
        assert tank.reward == 19

        regular = engine.make_enemy(state, EnemyType.REGULAR, PARIS.position, [PARIS.position], "london", wave=1)
        assert regular.health == pytest.approx(100)
        assert regular.reward == 5

    def test_batch_staggered(self):
        state, engine, scheduler, _, _ = _setup(wave=6)
        state.add_enemy_bases([_base(PARIS)])

        assert engine.step(state, 1000.0) == 3
        assert len(state.enemies) == 1
        assert scheduler.pending(SPAWN_LABEL) == 2

        scheduler.run_due(1049.0)
        assert len(state.enemies) == 1
        scheduler.run_due(1050.0)
        assert len(state.enemies) == 2
        scheduler.run_due(1100.0)
        assert len(state.enemies) == 3

    def test_batch_size(self):
        _, engine, _, _, _ = _setup()
        assert [engine.batch_size(w) for w in (1, 2, 3, 6, 27, 60)] == [1, 1, 2, 3, 10, 10]


class TestTypePool:
    def test_early_waves(self):
        assert type_pool(1) == [EnemyType.REGULAR, EnemyType.REGULAR, EnemyType.FAST]
        assert EnemyType.TANK not in type_pool(3)

    def test_tanks_from_wave_four(self):
        assert type_pool(4).count(EnemyType.TANK) == 1
        assert type_pool(8).count(EnemyType.TANK) == 3

    def test_flying_never_drawn(self):
        assert EnemyType.FLYING not in type_pool(50)


class TestRoadPaths:
    @pytest.mark.asyncio
    async def test_spawn_waits_for_route_without_blocking(self):
        road = [PARIS.position, Position(50.0, 1.0), LONDON.position]
        strategy = RoadPathStrategy(SlowProvider(road), StraightPathStrategy())
        state, engine, _, _, paths = _setup(strategy=strategy)
        state.add_enemy_bases([_base(PARIS), _base(BRUSSELS)])

        assert engine.step(state, 1000.0) == 0
        assert engine.awaiting_paths == 2
        assert paths.pending_count == 2

        await paths.wait_pending()
        assert engine.step(state, 1000.0) == 2
        assert engine.awaiting_paths == 0
        paris_enemy = next(e for e in state.enemies.values() if e.position == PARIS.position)
        assert paris_enemy.path == road
