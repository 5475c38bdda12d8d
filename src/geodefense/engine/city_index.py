"""City index — nearest-city and world-city lookups over static data.

Deterministic given its city list: ties in distance keep data-set order.
"""

from __future__ import annotations

from typing import Iterable, Optional

from geodefense.models.city import City
from geodefense.models.geo import Position
from geodefense.util.geo_math import haversine_km


class CityIndex:
    """Read-only lookup over a fixed list of cities.

    Args:
        cities: The world-city data set.
    """

    def __init__(self, cities: Iterable[City]) -> None:
        self._cities: list[City] = list(cities)
        self._by_id: dict[str, City] = {c.id: c for c in self._cities}

    def __len__(self) -> int:
        return len(self._cities)

    def get(self, city_id: str) -> Optional[City]:
        return self._by_id.get(city_id)

    def all_cities(self) -> list[City]:
        return list(self._cities)

    @staticmethod
    def distance(a: Position, b: Position) -> float:
        """Great-circle distance in km."""
        return haversine_km(a, b)

    def nearest_cities(self, center: Position, limit: int = 5) -> list[City]:
        """The ``limit`` cities closest to ``center``, nearest first."""
        ranked = sorted(self._cities, key=lambda c: haversine_km(center, c.position))
        return ranked[:max(0, limit)]

    def cities_within(self, center: Position, radius_km: float) -> list[City]:
        """All cities within ``radius_km`` of ``center``, nearest first."""
        with_dist = [(haversine_km(center, c.position), c) for c in self._cities]
        return [c for d, c in sorted(with_dist, key=lambda pair: pair[0]) if d <= radius_km]
