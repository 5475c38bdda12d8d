"""Serialization — plain-dict views of the game state.

Observers (REST clients, renderers) get detached copies; nothing they hold
aliases live simulation objects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from geodefense.models.city import City
    from geodefense.models.enemy import Enemy
    from geodefense.models.enemy_base import EnemyBase
    from geodefense.models.game_state import GameState
    from geodefense.models.projectile import Projectile, TargetRef
    from geodefense.models.tower import Tower


def _target(ref: Optional[TargetRef]) -> Optional[dict[str, str]]:
    if ref is None:
        return None
    return {"kind": ref.kind.value, "id": ref.id}


def city_to_dict(city: City) -> dict[str, Any]:
    return {
        "id": city.id,
        "name": city.name,
        "position": city.position.to_dict(),
        "population": city.population,
        "country": city.country,
        "is_capital": city.is_capital,
        "health": city.health,
        "max_health": city.max_health,
    }


def tower_to_dict(tower: Tower) -> dict[str, Any]:
    return {
        "id": tower.id,
        "type": tower.type.value,
        "position": tower.position.to_dict(),
        "level": tower.level,
        "damage": tower.damage,
        "range": tower.range,
        "fire_rate": tower.fire_rate,
        "target": _target(tower.target),
        "last_shot_time": tower.last_shot_time,
    }


def enemy_to_dict(enemy: Enemy) -> dict[str, Any]:
    return {
        "id": enemy.id,
        "type": enemy.type.value,
        "position": enemy.position.to_dict(),
        "health": enemy.health,
        "max_health": enemy.max_health,
        "speed": enemy.speed,
        "reward": enemy.reward,
        "path_index": enemy.path_index,
        "path_length": len(enemy.path),
        "target_city_id": enemy.target_city_id,
    }


def base_to_dict(base: EnemyBase) -> dict[str, Any]:
    return {
        "id": base.id,
        "city": city_to_dict(base.city),
        "health": base.health,
        "max_health": base.max_health,
        "spawn_rate": base.spawn_rate,
        "last_spawn_time": base.last_spawn_time,
        "is_active": base.is_active,
    }


def projectile_to_dict(p: Projectile) -> dict[str, Any]:
    return {
        "id": p.id,
        "from": p.origin.to_dict(),
        "to": p.destination.to_dict(),
        "current": p.current.to_dict(),
        "target": _target(p.target),
        "damage": p.damage,
        "speed": p.speed,
        "color": p.color,
        "size": p.size,
        "is_hit_effect": p.is_hit_effect,
    }


def state_to_dict(state: GameState) -> dict[str, Any]:
    """Full snapshot of a game state."""
    player = state.player
    res = player.resources
    return {
        "player": {
            "id": player.id,
            "name": player.name,
            "start_city": city_to_dict(player.start_city) if player.start_city else None,
            "captured_cities": list(player.captured_cities),
            "captured_city_data": [city_to_dict(c) for c in player.captured_city_data.values()],
            "territory": {
                "city_ids": [c.id for c in player.territory.cities],
                "area": player.territory.area,
                "expansion_level": player.territory.expansion_level,
            },
            "resources": {"gold": res.gold, "energy": res.energy, "score": res.score},
        },
        "towers": [tower_to_dict(t) for t in state.towers.values()],
        "enemies": [enemy_to_dict(e) for e in state.enemies.values()],
        "projectiles": [projectile_to_dict(p) for p in state.projectiles],
        "enemy_bases": [base_to_dict(b) for b in state.enemy_bases.values()],
        "current_wave": state.current_wave,
        "game_speed": state.game_speed,
        "is_paused": state.is_paused,
        "elapsed_ms": state.elapsed_ms,
        "tower_limit": state.get_tower_limit(),
        "tower_count": state.get_current_tower_count(),
    }
