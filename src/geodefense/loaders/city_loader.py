"""City loader — parses the world-city data set into City models.

Format: a ``cities`` list of flat mappings::

    cities:
      - {id: london, name: "London", lat: 51.5074, lng: -0.1278,
         population: 9000000, country: "UK", capital: true}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from geodefense.models.city import City
from geodefense.models.geo import Position

DEFAULT_CITIES_PATH = "config/cities.yaml"


def parse_city(raw: dict[str, Any]) -> City:
    """Build a City from one mapping of the data set."""
    return City(
        id=str(raw["id"]),
        name=str(raw.get("name", raw["id"])),
        position=Position(float(raw["lat"]), float(raw["lng"])),
        population=int(raw.get("population", 0)),
        country=str(raw.get("country", "")),
        is_capital=bool(raw.get("capital", False)),
    )


def load_cities(path: str | Path = DEFAULT_CITIES_PATH) -> list[City]:
    """Load the world-city data set from a YAML file.

    Args:
        path: Path to the cities YAML.

    Returns:
        List of City objects in file order.
    """
    path = Path(path)
    with path.open() as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}
    return [parse_city(entry) for entry in data.get("cities", []) or []
            if isinstance(entry, dict)]
