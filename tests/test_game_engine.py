"""Tests for the frame driver: tick order, pause, speed, game over and reset."""

import asyncio
import random
from pathlib import Path

import pytest

from geodefense.engine.city_index import CityIndex
from geodefense.engine.game_engine import GameEngine
from geodefense.engine.game_over import GameOverDetector
from geodefense.engine.routing import PathResolver, StraightPathStrategy
from geodefense.loaders.city_loader import load_cities
from geodefense.loaders.game_config_loader import GameConfig
from geodefense.models.catalog import UnitCatalog
from geodefense.models.city import City
from geodefense.models.game_state import GameState
from geodefense.models.geo import Position
from geodefense.models.tower import Tower, TowerType
from geodefense.util.events import EnemySpawned, EventBus, GameOver, GameReset
from geodefense.util.notifications import RecordingNotificationSink, wire_notifications

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def _make_engine(config=None):
    config = config or GameConfig()
    cities = CityIndex(load_cities(CONFIG_DIR / "cities.yaml"))
    bus = EventBus()
    sink = RecordingNotificationSink()
    wire_notifications(bus, sink)
    engine = GameEngine(
        GameState(), config, UnitCatalog(), cities,
        PathResolver(StraightPathStrategy(config.curved_path_steps, config.curved_path_curvature)),
        bus, random.Random(11),
    )
    return engine, cities, bus, sink


class TestStartGame:
    def test_start_game_sets_up_world(self):
        engine, cities, _, _ = _make_engine()
        assert engine.start_game(cities.get("london")) is None

        state = engine.state
        assert state.current_wave == 1
        assert state.player.start_city.id == "london"
        assert state.player.start_city.health == 100
        assert state.player.resources.gold == 500
        assert state.player.captured_cities == []
        assert len(state.enemy_bases) == 2
        assert engine.is_running

    def test_second_start_rejected(self):
        engine, cities, _, _ = _make_engine()
        engine.start_game(cities.get("london"))
        assert engine.start_game(cities.get("paris")) is not None
        assert engine.state.player.start_city.id == "london"


class TestTick:
    def test_tick_ignored_when_stopped(self):
        engine, cities, _, _ = _make_engine()
        engine.tick(16)
        assert engine.tick_count == 0
        engine.start_game(cities.get("london"))
        engine.stop()
        engine.tick(16)
        assert engine.state.elapsed_ms == 0.0

    def test_pause_is_noop_tick(self):
        engine, cities, _, _ = _make_engine()
        engine.start_game(cities.get("london"))
        engine.toggle_pause()
        engine.tick(5000)
        assert engine.tick_count == 1
        assert engine.state.elapsed_ms == 0.0
        assert engine.state.enemies == {}

        engine.toggle_pause()
        engine.tick(16)
        assert engine.state.elapsed_ms == 16.0

    def test_speed_scales_game_clock(self):
        engine, cities, _, _ = _make_engine()
        engine.start_game(cities.get("london"))
        assert engine.set_speed(2.0) is None
        engine.tick(100)
        assert engine.state.elapsed_ms == 200.0

    def test_invalid_speed_rejected(self):
        engine, _, _, _ = _make_engine()
        assert engine.set_speed(0) is not None
        assert engine.state.game_speed == 1.0

    def test_bases_release_enemies_over_time(self):
        engine, cities, bus, _ = _make_engine()
        spawned = []
        bus.on(EnemySpawned, spawned.append)
        engine.start_game(cities.get("london"))

        for _ in range(200):
            engine.tick(16)

        assert spawned
        assert all(e.target_city_id == "london" for e in spawned)
        assert engine.state.player.start_city.health == 100

    def test_towers_defend_during_ticks(self):
        engine, cities, _, _ = _make_engine()
        engine.start_game(cities.get("london"))
        base = next(iter(engine.state.enemy_bases.values()))
        engine.state.add_tower(Tower(id="tower-x", type=TowerType.SNIPER, position=base.city.position,
                                     damage=25, range=50, fire_rate=0.5))
        engine.tick(16)
        assert base.health == base.max_health - 25
        assert len(engine.state.projectiles) == 1

        engine.tick(200)
        assert engine.state.projectiles == []


class TestGameOver:
    def test_detector_fires_once(self):
        bus = EventBus()
        fired = []
        bus.on(GameOver, fired.append)
        detector = GameOverDetector(bus)
        state = GameState()
        state.init_game(City("london", "London", Position(51.5, -0.12)), 100)

        assert detector.check(state) is None
        state.player.start_city.health = 0
        evt = detector.check(state)
        assert evt == GameOver(city_id="london", city_name="London", wave=1, score=0)
        assert detector.check(state) is None
        assert fired == [evt]

    def test_captured_city_death_triggers(self):
        detector = GameOverDetector(EventBus())
        state = GameState()
        state.init_game(City("london", "London", Position(51.5, -0.12)), 100)
        paris = state.capture_city(City("paris", "Paris", Position(48.85, 2.35)), 100, 5)
        paris.health = -3
        assert detector.check(state).city_id == "paris"

    def test_game_over_without_loop_resets_immediately(self):
        engine, cities, bus, sink = _make_engine()
        resets = []
        bus.on(GameReset, resets.append)
        engine.start_game(cities.get("london"))
        engine.state.player.start_city.health = 0

        engine.tick(16)

        assert not engine.is_running
        assert engine.state.current_wave == 0
        assert engine.state.player.start_city is None
        assert engine.state.enemy_bases == {}
        assert len(engine.scheduler) == 0
        assert len(resets) == 1
        assert [n.kind for n in sink.items] == ["game_over"]

        engine.tick(16)
        assert len(sink.items) == 1

    @pytest.mark.asyncio
    async def test_game_over_resets_after_delay(self):
        engine, cities, _, sink = _make_engine(GameConfig(game_over_reset_delay_ms=20))
        engine.start_game(cities.get("london"))
        engine.set_speed(3.0)
        engine.toggle_pause()
        engine.toggle_pause()
        engine.state.player.start_city.health = 0

        engine.tick(16)
        assert not engine.is_running
        assert engine.state.current_wave == 1
        assert len(sink.items) == 1

        await asyncio.sleep(0.1)
        assert engine.state.current_wave == 0
        assert engine.state.game_speed == 1.0
        assert not engine.state.is_paused
        assert len(sink.items) == 1

        assert engine.start_game(cities.get("paris")) is None
        assert engine.state.current_wave == 1
        engine.stop()
        await asyncio.sleep(0)


class TestRunLoop:
    @pytest.mark.asyncio
    async def test_run_ticks_until_stopped(self):
        engine, cities, _, _ = _make_engine(GameConfig(frame_interval_ms=5))
        engine.start_game(cities.get("london"))
        await asyncio.sleep(0.1)
        assert engine.tick_count > 0
        assert engine.state.elapsed_ms > 0
        engine.stop()
        await asyncio.sleep(0)
        count = engine.tick_count
        await asyncio.sleep(0.05)
        assert engine.tick_count == count

    @pytest.mark.asyncio
    async def test_reset_clears_scheduled_actions_and_paths(self):
        engine, cities, _, _ = _make_engine()
        engine.start_game(cities.get("london"))
        engine.scheduler.schedule(10_000, lambda: None, "spawn")
        engine.paths.request(cities.get("paris"), cities.get("london"))
        engine.reset()
        assert len(engine.scheduler) == 0
        assert len(engine.paths) == 0
        assert not engine.state.is_started
        assert engine.director.bases_initialized is False
