"""Catalog loader — parses towers.yaml / enemies.yaml into unit specs.

Supports two modes:
  1. Directory with towers.yaml and enemies.yaml
  2. Single file with ``towers:`` and ``enemies:`` sections

Kinds missing from the files keep their stock stats.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from geodefense.models.catalog import (
    DEFAULT_ENEMY_SPECS,
    DEFAULT_TOWER_SPECS,
    EnemySpec,
    TowerSpec,
    UnitCatalog,
)
from geodefense.models.enemy import EnemyType
from geodefense.models.tower import TowerType

log = logging.getLogger(__name__)


def _parse_towers(section: dict) -> dict[TowerType, TowerSpec]:
    towers = dict(DEFAULT_TOWER_SPECS)
    for key, attrs in (section or {}).items():
        if not isinstance(attrs, dict):
            continue
        tower_type = TowerType(key)
        stock = DEFAULT_TOWER_SPECS[tower_type]
        towers[tower_type] = TowerSpec(
            type=tower_type,
            cost=float(attrs.get("cost", stock.cost)),
            damage=float(attrs.get("damage", stock.damage)),
            range=float(attrs.get("range", stock.range)),
            fire_rate=float(attrs.get("fire_rate", stock.fire_rate)),
            color=str(attrs.get("color", stock.color)),
            size=int(attrs.get("size", stock.size)),
        )
    return towers


def _parse_enemies(section: dict) -> dict[EnemyType, EnemySpec]:
    enemies = dict(DEFAULT_ENEMY_SPECS)
    for key, attrs in (section or {}).items():
        if not isinstance(attrs, dict):
            continue
        enemy_type = EnemyType(key)
        stock = DEFAULT_ENEMY_SPECS[enemy_type]
        enemies[enemy_type] = EnemySpec(
            type=enemy_type,
            health=float(attrs.get("health", stock.health)),
            speed=float(attrs.get("speed", stock.speed)),
            reward=float(attrs.get("reward", stock.reward)),
        )
    return enemies


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open() as f:
        return yaml.safe_load(f) or {}


def load_catalog(path: str | Path = "config") -> UnitCatalog:
    """Load tower and enemy specs from YAML file(s).

    Args:
        path: Either a directory containing towers.yaml / enemies.yaml or
              a single YAML file with ``towers`` and ``enemies`` sections.

    Returns:
        A populated UnitCatalog.
    """
    path = Path(path)
    if path.is_dir():
        tower_data = _read_yaml(path / "towers.yaml")
        enemy_data = _read_yaml(path / "enemies.yaml")
    else:
        data = _read_yaml(path)
        tower_data = data.get("towers", {}) or {}
        enemy_data = data.get("enemies", {}) or {}

    catalog = UnitCatalog(towers=_parse_towers(tower_data), enemies=_parse_enemies(enemy_data))
    log.info("Loaded unit catalog from %s (%d tower kinds, %d enemy kinds)",
             path, len(tower_data), len(enemy_data))
    return catalog
