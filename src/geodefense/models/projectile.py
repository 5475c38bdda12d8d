"""Projectile model — visual record of a tower shot.

Hits are resolved instantly by the combat resolver, so every record it
creates is a hit effect: damage-inert, lives for a short fixed time and
exists only so observers can draw the shot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from geodefense.models.geo import Position


class TargetKind(Enum):
    ENEMY = "enemy"
    BASE = "base"


@dataclass(frozen=True)
class TargetRef:
    """Tagged reference to a tower target."""

    kind: TargetKind
    id: str

    @classmethod
    def enemy(cls, enemy_id: str) -> TargetRef:
        return cls(TargetKind.ENEMY, enemy_id)

    @classmethod
    def base(cls, base_id: str) -> TargetRef:
        return cls(TargetKind.BASE, base_id)


@dataclass
class Projectile:
    """A shot record connecting a tower to its target.

    Attributes:
        id: Unique ID, ``hit-<created_ms>-<serial>`` for hit effects.
        origin: Tower position.
        destination: Target position at the time of the shot.
        current: Drawn position (equals destination for hit effects).
        target: What was hit.
        damage: Damage carried (0 for hit effects, damage is already applied).
        speed: Nominal visual speed.
        color: Display color of the firing tower type.
        size: Display size.
        created_ms: Game-clock creation time.
        is_hit_effect: True for instant-hit visual records.
    """

    id: str
    origin: Position
    destination: Position
    current: Position
    target: TargetRef
    damage: float = 0.0
    speed: float = 10_000.0
    color: str = "#4A90E2"
    size: int = 8
    created_ms: float = 0.0
    is_hit_effect: bool = True

    def age_ms(self, now_ms: float) -> float:
        return now_ms - self.created_ms
