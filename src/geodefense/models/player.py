"""Player model — the defender's cities, territory and resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from geodefense.models.city import City
from geodefense.models.geo import Position


@dataclass
class Resources:
    """Spendable and scoring resources."""

    gold: float = 500.0
    energy: float = 100.0
    score: float = 0.0


@dataclass
class Territory:
    """Owned area.

    Attributes:
        cities: Owned cities (start city first).
        bounds: Boundary polygon, maintained by the boundary renderer.
        area: Area in km².
        expansion_level: Territory radius bonus in km, grows on capture.
    """

    cities: list[City] = field(default_factory=list)
    bounds: list[Position] = field(default_factory=list)
    area: float = 0.0
    expansion_level: float = 0.0


@dataclass
class Player:
    """The human player.

    Attributes:
        id: Player ID.
        name: Display name.
        start_city: The city the game started in (None before start).
        territory: Owned territory.
        resources: Gold, energy, score.
        captured_cities: IDs of captured cities. The start city is never
            listed here.
        captured_city_data: Captured cities with their health, by ID.
    """

    id: str = "player1"
    name: str = "Player"
    start_city: Optional[City] = None
    territory: Territory = field(default_factory=Territory)
    resources: Resources = field(default_factory=Resources)
    captured_cities: list[str] = field(default_factory=list)
    captured_city_data: dict[str, City] = field(default_factory=dict)

    # -- Helpers ---------------------------------------------------------

    def owned_cities(self) -> list[City]:
        """Start city followed by captured cities."""
        cities: list[City] = []
        if self.start_city is not None:
            cities.append(self.start_city)
        cities.extend(self.captured_city_data[cid] for cid in self.captured_cities
                      if cid in self.captured_city_data)
        return cities

    def owns(self, city_id: str) -> bool:
        if self.start_city is not None and self.start_city.id == city_id:
            return True
        return city_id in self.captured_cities

    def get_owned_city(self, city_id: str) -> Optional[City]:
        if self.start_city is not None and self.start_city.id == city_id:
            return self.start_city
        return self.captured_city_data.get(city_id)
