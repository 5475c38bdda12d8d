"""Game state model — the shared in-memory world of one game session.

GameState holds all mutable simulation state and exposes the atomic
mutations the simulation subsystems use. Business logic lives in the
engine package; observers only read ``snapshot()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Iterator, Optional

from geodefense.models.city import City
from geodefense.models.enemy import Enemy
from geodefense.models.enemy_base import EnemyBase
from geodefense.models.player import Player, Resources, Territory
from geodefense.models.projectile import Projectile
from geodefense.models.tower import Tower

log = logging.getLogger(__name__)


@dataclass
class GameState:
    """Mutable state container for a running game.

    Attributes:
        player: The defending player.
        enemies: Live enemies keyed by ID.
        towers: Placed towers keyed by ID.
        projectiles: Live hit-effect records.
        enemy_bases: All bases ever created keyed by ID, in creation order.
            Destroyed bases stay here with ``is_active = False``.
        current_wave: Wave counter (0 before the game starts).
        game_speed: Multiplier applied to real time.
        is_paused: Whether time is frozen.
        elapsed_ms: Scaled game clock.
        towers_per_city: Tower allowance per owned city.
    """

    player: Player = field(default_factory=Player)
    enemies: dict[str, Enemy] = field(default_factory=dict)
    towers: dict[str, Tower] = field(default_factory=dict)
    projectiles: list[Projectile] = field(default_factory=list)
    enemy_bases: dict[str, EnemyBase] = field(default_factory=dict)
    current_wave: int = 0
    game_speed: float = 1.0
    is_paused: bool = False
    elapsed_ms: float = 0.0
    towers_per_city: int = 5

    _ids: Iterator[int] = field(default_factory=lambda: count(1), repr=False)

    # -- Identity --------------------------------------------------------

    def new_id(self, prefix: str) -> str:
        """Return a fresh ``<prefix>-<n>`` identifier."""
        return f"{prefix}-{next(self._ids)}"

    # -- Lifecycle -------------------------------------------------------

    @property
    def is_started(self) -> bool:
        return self.player.start_city is not None

    def init_game(self, start_city: City, city_health: float,
                  starting_resources: Optional[dict[str, float]] = None) -> None:
        """Make ``start_city`` the living home city and enter wave 1."""
        home = start_city.with_health(city_health)
        res = starting_resources or {}
        self.player.start_city = home
        self.player.territory = Territory(cities=[home])
        self.player.resources = Resources(
            gold=float(res.get("gold", 500.0)),
            energy=float(res.get("energy", 100.0)),
            score=float(res.get("score", 0.0)),
        )
        self.player.captured_cities = []
        self.player.captured_city_data = {}
        self.enemies.clear()
        self.towers.clear()
        self.projectiles.clear()
        self.enemy_bases.clear()
        self.current_wave = 1
        self.elapsed_ms = 0.0

    def reset_game(self) -> None:
        """Clear the world back to the pre-game state."""
        self.player = Player()
        self.enemies.clear()
        self.towers.clear()
        self.projectiles.clear()
        self.enemy_bases.clear()
        self.current_wave = 0
        self.game_speed = 1.0
        self.is_paused = False
        self.elapsed_ms = 0.0

    # -- Flags -----------------------------------------------------------

    def set_game_speed(self, speed: float) -> None:
        if speed <= 0:
            raise ValueError(f"Game speed must be positive, got {speed}")
        self.game_speed = float(speed)

    def toggle_pause(self) -> bool:
        self.is_paused = not self.is_paused
        return self.is_paused

    def next_wave(self) -> int:
        self.current_wave += 1
        return self.current_wave

    # -- Towers ----------------------------------------------------------

    def add_tower(self, tower: Tower) -> None:
        self.towers[tower.id] = tower

    def get_tower_limit(self) -> int:
        """(captured cities + start city) * towers per city."""
        return (len(self.player.captured_cities) + 1) * self.towers_per_city

    def get_current_tower_count(self) -> int:
        return len(self.towers)

    # -- Enemies ---------------------------------------------------------

    def spawn_enemy(self, enemy: Enemy) -> None:
        self.enemies[enemy.id] = enemy

    def remove_enemy(self, enemy_id: str) -> Optional[Enemy]:
        return self.enemies.pop(enemy_id, None)

    # -- Projectiles -----------------------------------------------------

    def add_projectile(self, projectile: Projectile) -> None:
        self.projectiles.append(projectile)

    def expire_projectiles(self, now_ms: float, lifetime_ms: float) -> int:
        """Drop hit effects older than ``lifetime_ms``. Returns the number dropped."""
        before = len(self.projectiles)
        self.projectiles = [p for p in self.projectiles
                            if p.is_hit_effect and p.age_ms(now_ms) < lifetime_ms]
        return before - len(self.projectiles)

    # -- Enemy bases -----------------------------------------------------

    def add_enemy_bases(self, bases: list[EnemyBase]) -> None:
        for base in bases:
            self.enemy_bases[base.id] = base

    def active_bases(self) -> list[EnemyBase]:
        return [b for b in self.enemy_bases.values() if b.health > 0]

    def damage_enemy_base(self, base_id: str, damage: float) -> bool:
        """Apply damage to a base. Returns True if this hit destroyed it."""
        base = self.enemy_bases.get(base_id)
        if base is None or base.health <= 0:
            return False
        base.health = max(0.0, base.health - damage)
        base.city.health = base.health
        return base.health <= 0

    # -- Cities ----------------------------------------------------------

    def damage_city(self, city_id: str, damage: float) -> Optional[City]:
        """Apply siege damage to an owned city. Returns the city, if owned."""
        city = self.player.get_owned_city(city_id)
        if city is None:
            log.debug("damage_city: %s is not an owned city", city_id)
            return None
        current = city.health if city.health is not None else 0.0
        city.health = max(0.0, current - damage)
        return city

    def capture_city(self, city: City, city_health: float, expansion_km: float) -> City:
        """Add ``city`` to the player's cities with full health."""
        captured = city.with_health(city_health)
        self.player.captured_cities.append(captured.id)
        self.player.captured_city_data[captured.id] = captured
        self.player.territory.cities.append(captured)
        self.expand_territory(expansion_km)
        return captured

    def expand_territory(self, expansion_km: float) -> None:
        self.player.territory.expansion_level += expansion_km

    def destroyed_city(self) -> Optional[City]:
        """First owned city with health ≤ 0, start city first."""
        for city in self.player.owned_cities():
            if city.is_destroyed:
                return city
        return None

    # -- Resources -------------------------------------------------------

    def update_resources(self, gold: Optional[float] = None, energy: Optional[float] = None,
                         score: Optional[float] = None) -> Resources:
        """Overwrite the given resource values."""
        res = self.player.resources
        if gold is not None:
            res.gold = gold
        if energy is not None:
            res.energy = energy
        if score is not None:
            res.score = score
        return res

    def add_resources(self, gold: float = 0.0, energy: float = 0.0, score: float = 0.0) -> Resources:
        """Add the given deltas to the player's resources."""
        res = self.player.resources
        return self.update_resources(gold=res.gold + gold, energy=res.energy + energy,
                                     score=res.score + score)

    # -- Observation -----------------------------------------------------

    def snapshot(self) -> dict:
        """Plain-dict copy of the state for read-only observers."""
        from geodefense.network.serialization import state_to_dict

        return state_to_dict(self)
