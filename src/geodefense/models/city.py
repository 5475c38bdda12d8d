"""City model — a real-world settlement on the map.

Cities come from the world-city data set. A city becomes a living,
attackable entity (with health) once it is the player's start city or a
captured city, or once an enemy base is established in it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from geodefense.models.geo import Position


@dataclass
class City:
    """A city on the world map.

    Attributes:
        id: Stable identifier (e.g. ``"london"``).
        name: Display name.
        position: Geographic location.
        population: Number of inhabitants.
        country: Country name.
        is_capital: Whether the city is a national capital.
        health: Current hit points, None while the city is not attackable.
        max_health: Maximum hit points, None while the city is not attackable.
    """

    id: str
    name: str
    position: Position
    population: int = 0
    country: str = ""
    is_capital: bool = False
    health: Optional[float] = None
    max_health: Optional[float] = None

    @property
    def is_living(self) -> bool:
        return self.health is not None

    @property
    def is_destroyed(self) -> bool:
        return self.health is not None and self.health <= 0

    def with_health(self, health: float) -> City:
        """Return a copy of this city with full health ``health``."""
        return replace(self, health=health, max_health=health)
