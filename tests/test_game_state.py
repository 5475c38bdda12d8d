"""Tests for the game state store and its snapshot."""

import json

import pytest

from geodefense.models.city import City
from geodefense.models.enemy_base import EnemyBase
from geodefense.models.game_state import GameState
from geodefense.models.geo import Position
from geodefense.models.tower import Tower, TowerType

LONDON = City("london", "London", Position(51.5074, -0.1278))
PARIS = City("paris", "Paris", Position(48.8566, 2.3522))


def _started() -> GameState:
    state = GameState(towers_per_city=5)
    state.init_game(LONDON, 100.0, {"gold": 500, "energy": 100, "score": 0})
    return state


class TestLifecycle:
    def test_init_game(self):
        state = _started()
        assert state.is_started
        assert state.current_wave == 1
        assert state.player.start_city.health == 100.0
        assert LONDON.health is None
        assert state.player.captured_cities == []

    def test_reset_game(self):
        state = _started()
        state.add_tower(Tower(id="t", type=TowerType.BASIC, position=LONDON.position,
                              damage=10, range=27, fire_rate=2))
        state.set_game_speed(3)
        state.toggle_pause()
        state.reset_game()
        assert not state.is_started
        assert state.towers == {}
        assert state.current_wave == 0
        assert state.game_speed == 1.0
        assert not state.is_paused
        assert state.player.resources.gold == 500

    def test_speed_must_be_positive(self):
        with pytest.raises(ValueError):
            GameState().set_game_speed(-1)


class TestMutations:
    def test_tower_limit_grows_with_captures(self):
        state = _started()
        assert state.get_tower_limit() == 5
        state.capture_city(PARIS, 100.0, 5.0)
        assert state.get_tower_limit() == 10

    def test_damage_enemy_base_reports_crossing_once(self):
        state = _started()
        base = EnemyBase(id="base-paris", city=PARIS.with_health(20), health=20, max_health=20, spawn_rate=1)
        state.add_enemy_bases([base])
        assert state.damage_enemy_base("base-paris", 15) is False
        assert state.damage_enemy_base("base-paris", 15) is True
        assert base.health == 0.0
        assert base.city.health == 0.0
        assert state.damage_enemy_base("base-paris", 15) is False
        assert state.active_bases() == []

    def test_damage_city_dispatches_by_id(self):
        state = _started()
        paris = state.capture_city(PARIS, 100.0, 5.0)
        state.damage_city("paris", 30)
        assert paris.health == 70
        assert state.player.start_city.health == 100
        assert state.damage_city("berlin", 30) is None

    def test_destroyed_city(self):
        state = _started()
        assert state.destroyed_city() is None
        state.damage_city("london", 500)
        assert state.destroyed_city().id == "london"
        assert state.player.start_city.health == 0.0

    def test_resources(self):
        state = _started()
        state.add_resources(gold=-100, score=5)
        assert state.player.resources.gold == 400
        assert state.player.resources.score == 5
        state.update_resources(energy=7)
        assert state.player.resources.energy == 7
        assert state.player.resources.gold == 400

    def test_new_ids_are_unique(self):
        state = GameState()
        assert state.new_id("enemy") != state.new_id("enemy")


class TestSnapshot:
    def test_snapshot_is_plain_data(self):
        state = _started()
        state.add_tower(Tower(id="t", type=TowerType.SLOW, position=LONDON.position,
                              damage=5, range=17, fire_rate=3))
        snap = state.snapshot()
        json.dumps(snap)
        assert snap["towers"][0]["type"] == "slow"
        assert snap["player"]["start_city"]["id"] == "london"
        assert snap["tower_count"] == 1

    def test_snapshot_is_detached(self):
        state = _started()
        snap = state.snapshot()
        snap["player"]["resources"]["gold"] = 0
        assert state.player.resources.gold == 500
