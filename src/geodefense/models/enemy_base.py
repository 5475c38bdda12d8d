"""Enemy base model — an enemy-held city that periodically spawns enemies."""

from __future__ import annotations

from dataclasses import dataclass

from geodefense.models.city import City


@dataclass
class EnemyBase:
    """An enemy base.

    The base's destructible strength is mirrored on ``city.health``.
    Destroyed bases stay in the game state with ``is_active = False``.

    Attributes:
        id: Unique base ID (``base-<city id>``).
        city: The city the base occupies.
        health: Current hit points.
        max_health: Maximum hit points.
        spawn_rate: Spawn events per second.
        last_spawn_time: Game-clock time of the last spawn event in ms.
        is_active: Whether the base still spawns (recomputed from health).
    """

    id: str
    city: City
    health: float
    max_health: float
    spawn_rate: float
    last_spawn_time: float = 0.0
    is_active: bool = True

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def spawn_interval_ms(self) -> float:
        return 1000.0 / self.spawn_rate if self.spawn_rate > 0 else float("inf")
