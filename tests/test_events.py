"""Tests for the event bus."""

from geodefense.util.events import EnemyKilled, EnemySpawned, EventBus, GameOver


class TestEventBus:
    def test_emit_triggers_handler(self):
        bus = EventBus()
        received = []
        bus.on(EnemyKilled, lambda e: received.append(e.enemy_id))
        bus.emit(EnemyKilled(enemy_id="enemy-1", tower_id="tower-1", reward=5))
        assert received == ["enemy-1"]

    def test_no_cross_event(self):
        bus = EventBus()
        received = []
        bus.on(EnemyKilled, lambda e: received.append("killed"))
        bus.emit(EnemySpawned(enemy_id="enemy-1", base_id="base-paris", target_city_id="london"))
        assert received == []

    def test_multiple_handlers(self):
        bus = EventBus()
        a, b = [], []
        bus.on(GameOver, lambda e: a.append(e.wave))
        bus.on(GameOver, lambda e: b.append(e.score))
        bus.emit(GameOver(city_id="london", city_name="London", wave=3, score=120))
        assert a == [3] and b == [120]

    def test_off_removes_handler(self):
        bus = EventBus()
        received = []
        handler = lambda e: received.append(1)  # noqa: E731
        bus.on(EnemyKilled, handler)
        bus.off(EnemyKilled, handler)
        bus.emit(EnemyKilled(enemy_id="enemy-1", tower_id="tower-1", reward=5))
        assert received == []

    def test_handler_may_unsubscribe_during_emit(self):
        bus = EventBus()
        received = []

        def once(evt):
            received.append(evt.enemy_id)
            bus.off(EnemyKilled, once)

        bus.on(EnemyKilled, once)
        bus.emit(EnemyKilled(enemy_id="a", tower_id="t", reward=1))
        bus.emit(EnemyKilled(enemy_id="b", tower_id="t", reward=1))
        assert received == ["a"]

    def test_clear(self):
        bus = EventBus()
        received = []
        bus.on(EnemyKilled, lambda e: received.append(1))
        bus.clear()
        bus.emit(EnemyKilled(enemy_id="a", tower_id="t", reward=1))
        assert received == []
