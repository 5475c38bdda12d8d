"""Geographic position on the world map using (lat, lng) degrees.

Distances between positions are great-circle distances in kilometres
(haversine). Movement math elsewhere treats positions as plain 2-D points
in degree space and does not project them.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """Immutable WGS84-style coordinate.

    Attributes:
        lat: Latitude in degrees, nominally [-90, 90] (not enforced).
        lng: Longitude in degrees, nominally [-180, 180] (not enforced).
    """

    lat: float
    lng: float

    # -- Geometry --------------------------------------------------------

    def distance_to(self, other: Position) -> float:
        """Great-circle distance in kilometres."""
        from geodefense.util.geo_math import haversine_km

        return haversine_km(self, other)

    def degree_distance_to(self, other: Position) -> float:
        """Euclidean distance in degree space (used by movement)."""
        dlat = other.lat - self.lat
        dlng = other.lng - self.lng
        return (dlat * dlat + dlng * dlng) ** 0.5

    def lerp(self, other: Position, t: float) -> Position:
        """Linear interpolation towards ``other`` (t=0 → self, t=1 → other)."""
        return Position(
            self.lat + (other.lat - self.lat) * t,
            self.lng + (other.lng - self.lng) * t,
        )

    # -- Serialization ---------------------------------------------------

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    def __repr__(self) -> str:
        return f"Pos({self.lat:.4f},{self.lng:.4f})"
