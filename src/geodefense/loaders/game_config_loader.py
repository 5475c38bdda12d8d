"""Game configuration — loads tunable constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then injected wherever constants are needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict

import yaml

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


@dataclass
class RoutingConfig:
    """Road-routing service settings (OSRM-compatible HTTP API)."""
    enabled: bool = False
    base_url: str = "https://router.project-osrm.org"
    profile: str = "driving"
    timeout_s: float = 10.0
    max_points: int = 100
    snap_to_roads: bool = True


@dataclass
class GameConfig:
    """All tunable gameplay constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so the game can start even without the file.
    """

    # -- Timing ------------------------------------------------------
    frame_interval_ms: float = 16.0
    hit_effect_lifetime_ms: float = 100.0
    wave_advance_delay_ms: float = 2000.0
    replenish_delay_ms: float = 2000.0
    replenish_stagger_ms: float = 1000.0
    spawn_stagger_ms: float = 50.0
    game_over_reset_delay_ms: float = 500.0
    stats_log_interval_ms: float = 5000.0

    # -- Player ------------------------------------------------------
    starting_resources: Dict[str, float] = field(default_factory=lambda: {
        "gold": 500.0, "energy": 100.0, "score": 0.0,
    })
    city_health: float = 100.0
    towers_per_city: int = 5
    max_tower_distance_km: float = 500.0
    city_capture_cost: float = 500.0
    city_capture_score: float = 100.0
    territory_expansion_km: float = 5.0
    defense_radius_km: float = 100.0

    # -- Combat rewards ----------------------------------------------
    kill_score: float = 5.0
    base_destroy_gold: float = 200.0
    base_destroy_score: float = 50.0

    # -- Siege -------------------------------------------------------
    siege_damage_base: float = 10.0
    siege_damage_per_wave: float = 2.0

    # -- Waves -------------------------------------------------------
    wave_kill_quota_base: int = 20
    wave_kill_quota_step: int = 10

    # -- Enemy bases -------------------------------------------------
    base_count_min: int = 2
    base_count_max: int = 20
    base_search_count_base: int = 20
    base_search_count_per_wave: int = 3
    base_search_count_max: int = 100
    base_min_dist_km: float = 30.0
    base_min_dist_per_wave_km: float = 5.0
    base_max_dist_km: float = 500.0
    base_max_dist_per_wave_km: float = 100.0
    base_expanded_search_count: int = 50
    base_random_min_km: float = 300.0
    base_random_max_km: float = 2000.0
    base_health_base: float = 150.0
    base_health_per_wave: float = 50.0
    fallback_base_health: float = 200.0
    fallback_base_count: int = 3
    base_add_max: int = 3
    replenish_chance_base: float = 0.3
    replenish_chance_per_wave: float = 0.05
    replenish_chance_max: float = 0.8

    # -- Spawning ----------------------------------------------------
    spawn_rate_baseline: float = 0.2
    spawn_rate_wave_growth: float = 0.2
    spawn_rate_index_bonus: float = 0.05
    spawn_rate_cap: float = 2.0
    initial_spawn_rate_base: float = 0.3
    initial_spawn_rate_index_bonus: float = 0.05
    initial_spawn_rate_per_wave: float = 0.08
    initial_spawn_rate_cap: float = 3.0
    batch_size_max: int = 10
    enemy_health_wave_factor: float = 1.2
    enemy_speed_wave_growth: float = 0.1
    enemy_reward_wave_growth: float = 0.1
    max_enemies: int = 200

    # -- Paths -------------------------------------------------------
    curved_path_steps: int = 30
    curved_path_curvature: float = 0.05

    routing: RoutingConfig = field(default_factory=RoutingConfig)

    # -- Network -----------------------------------------------------
    rest_host: str = "127.0.0.1"
    rest_port: int = 8080

    # -- Derived -----------------------------------------------------

    def kill_quota(self, wave: int) -> int:
        """Kills needed to finish ``wave`` (20, 30, 40, …)."""
        return self.wave_kill_quota_base + max(0, wave - 1) * self.wave_kill_quota_step

    def target_base_count(self, wave: int) -> int:
        return min(self.base_count_min + wave // 2, self.base_count_max)

    def siege_damage(self, wave: int) -> float:
        return self.siege_damage_base + wave * self.siege_damage_per_wave


def load_game_config(path: str | Path = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s, using defaults", p)
        return GameConfig()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    log.info("Loaded game config from %s (%d keys)", p, len(raw))

    # Handle nested routing section
    routing_raw = raw.pop("routing", None)
    routing_keys = {f.name for f in fields(RoutingConfig)}
    routing = (RoutingConfig(**{k: v for k, v in routing_raw.items() if k in routing_keys})
               if isinstance(routing_raw, dict) else RoutingConfig())

    return GameConfig(routing=routing, **{
        k: v for k, v in raw.items()
        if k in GameConfig.__dataclass_fields__
    })
