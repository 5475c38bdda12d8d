"""Tower model — a defensive tower placed on the world map.

Towers auto-target the closest enemy within range and deal instant damage.
When no enemy is in range they fall back to the closest living enemy base.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from geodefense.models.geo import Position
from geodefense.models.projectile import TargetRef


class TowerType(Enum):
    """The four placeable tower kinds."""

    BASIC = "basic"
    SNIPER = "sniper"
    SPLASH = "splash"
    SLOW = "slow"


@dataclass
class Tower:
    """A defensive tower.

    Attributes:
        id: Unique tower instance ID.
        type: Tower kind.
        position: Where the tower stands.
        damage: Damage per shot.
        range: Targeting range in kilometres.
        fire_rate: Shots per second.
        level: Upgrade level (always 1, there is no upgrade path).

        target: Tagged reference to the current target (None if idle).
        last_shot_time: Game-clock time of the last shot in ms
            (None if the tower has never fired).
    """

    id: str
    type: TowerType
    position: Position
    damage: float
    range: float
    fire_rate: float
    level: int = 1

    # Transient combat state
    target: Optional[TargetRef] = field(default=None, repr=False)
    last_shot_time: Optional[float] = field(default=None, repr=False)

    @property
    def shot_interval_ms(self) -> float:
        """Milliseconds between two shots."""
        return 1000.0 / self.fire_rate

    def is_ready(self, now_ms: float) -> bool:
        """Whether the reload interval has elapsed at game time ``now_ms``."""
        if self.last_shot_time is None:
            return True
        return now_ms - self.last_shot_time >= self.shot_interval_ms
