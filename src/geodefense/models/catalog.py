"""Unit catalog models — stats for tower and enemy kinds.

Loaded from config/towers.yaml and config/enemies.yaml via the
catalog_loader. Every field has the stock value as default so the game
runs without the files.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from geodefense.models.enemy import EnemyType
from geodefense.models.tower import TowerType


@dataclass(frozen=True)
class TowerSpec:
    """Purchase price and combat stats of a tower kind.

    Attributes:
        type: Tower kind.
        cost: Gold price.
        damage: Damage per shot.
        range: Targeting range in km.
        fire_rate: Shots per second.
        color: Hit-effect color.
        size: Hit-effect size.
    """

    type: TowerType
    cost: float
    damage: float
    range: float
    fire_rate: float
    color: str = "#4A90E2"
    size: int = 8


@dataclass(frozen=True)
class EnemySpec:
    """Wave-1 stats of an enemy kind.

    Attributes:
        type: Enemy kind.
        health: Hit points before wave scaling.
        speed: Speed in km/h before wave scaling.
        reward: Gold on kill before wave scaling.
    """

    type: EnemyType
    health: float
    speed: float
    reward: float


DEFAULT_TOWER_SPECS: dict[TowerType, TowerSpec] = {
    TowerType.BASIC: TowerSpec(TowerType.BASIC, cost=100, damage=10, range=27, fire_rate=2.0,
                               color="#4A90E2", size=8),
    TowerType.SNIPER: TowerSpec(TowerType.SNIPER, cost=250, damage=25, range=50, fire_rate=0.5,
                                color="#7B68EE", size=10),
    TowerType.SPLASH: TowerSpec(TowerType.SPLASH, cost=400, damage=15, range=20, fire_rate=1.5,
                                color="#FF6B6B", size=8),
    TowerType.SLOW: TowerSpec(TowerType.SLOW, cost=150, damage=5, range=17, fire_rate=3.0,
                              color="#4ECDC4", size=8),
}

DEFAULT_ENEMY_SPECS: dict[EnemyType, EnemySpec] = {
    EnemyType.REGULAR: EnemySpec(EnemyType.REGULAR, health=100, speed=18_000, reward=5),
    EnemyType.FAST: EnemySpec(EnemyType.FAST, health=60, speed=27_000, reward=8),
    EnemyType.TANK: EnemySpec(EnemyType.TANK, health=200, speed=10_800, reward=15),
    EnemyType.FLYING: EnemySpec(EnemyType.FLYING, health=80, speed=22_000, reward=10),
}


@dataclass
class UnitCatalog:
    """Lookup of tower and enemy specs by kind."""

    towers: dict[TowerType, TowerSpec] = field(default_factory=lambda: dict(DEFAULT_TOWER_SPECS))
    enemies: dict[EnemyType, EnemySpec] = field(default_factory=lambda: dict(DEFAULT_ENEMY_SPECS))

    def tower(self, tower_type: TowerType) -> TowerSpec:
        return self.towers[tower_type]

    def enemy(self, enemy_type: EnemyType) -> EnemySpec:
        return self.enemies[enemy_type]

    def tower_cost(self, tower_type: TowerType) -> float:
        return self.towers[tower_type].cost
