"""Enemy model — a single unit walking a lat/lng path towards a city.

Enemies are spawned by enemy bases, follow a path fixed at spawn time and
can be killed by towers. If they reach the end of the path they siege their
target city once and disappear.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from geodefense.models.geo import Position


class EnemyType(Enum):
    """Enemy kinds. FLYING is defined but not produced by the spawn engine."""

    REGULAR = "regular"
    FAST = "fast"
    TANK = "tank"
    FLYING = "flying"


@dataclass
class Enemy:
    """A single enemy on the map.

    Attributes:
        id: Unique enemy instance ID.
        type: Enemy kind.
        position: Current location.
        health: Current hit points.
        max_health: Maximum hit points (for display).
        speed: Movement speed in km/h.
        reward: Gold granted to the player on kill.
        path: Ordered waypoints, fixed at spawn.
        path_index: Index of the last waypoint reached.
        target_city_id: City this enemy will siege at the end of its path.
    """

    id: str
    type: EnemyType
    position: Position
    health: float
    max_health: float
    speed: float
    reward: int
    path: list[Position] = field(default_factory=list)
    path_index: int = 0
    target_city_id: str = ""

    # -- Derived properties ----------------------------------------------

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def is_finished(self) -> bool:
        """True once the final path vertex has been reached."""
        return self.path_index >= len(self.path) - 1

    @property
    def next_waypoint(self) -> Position | None:
        if self.is_finished:
            return None
        return self.path[self.path_index + 1]
