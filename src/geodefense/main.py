"""GeoDefense server entry point.

Initializes all components and starts the asyncio event loop:
1. Load configuration (game constants, unit catalog, world cities)
2. Create the game state, path resolver and engine services
3. Wire event handlers (notifications)
4. Start the REST API (FastAPI + uvicorn)
5. Optionally start a game, then run until a shutdown signal

Usage:
    python -m geodefense.main [--start_city <city_id>]
    # or via entry point:
    geodefense
"""

from __future__ import annotations

import asyncio
import logging
import random
import signal
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from geodefense.engine.city_index import CityIndex
from geodefense.engine.game_engine import GameEngine
from geodefense.engine.player_service import PlayerService
from geodefense.engine.routing import (
    OsrmRouteProvider,
    PathResolver,
    PathStrategy,
    RoadPathStrategy,
    StraightPathStrategy,
)
from geodefense.loaders.catalog_loader import load_catalog
from geodefense.loaders.city_loader import load_cities
from geodefense.loaders.game_config_loader import GameConfig, load_game_config
from geodefense.models.catalog import UnitCatalog
from geodefense.models.city import City
from geodefense.models.game_state import GameState
from geodefense.util.events import EventBus
from geodefense.util.notifications import (
    LoggingNotificationSink,
    RecordingNotificationSink,
    wire_notifications,
)

log = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = "config"


# ---------------------------------------------------------------------------
# Container for all loaded configuration
# ---------------------------------------------------------------------------


@dataclass
class Configuration:
    """Holds all data loaded from config files."""

    game: GameConfig = field(default_factory=GameConfig)
    catalog: UnitCatalog = field(default_factory=UnitCatalog)
    cities: list[City] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Container for all services (makes passing around easier)
# ---------------------------------------------------------------------------


@dataclass
class Services:
    """Holds references to all engine services."""

    game_config: GameConfig
    state: GameState
    event_bus: EventBus
    cities: CityIndex
    paths: PathResolver
    engine: GameEngine
    player: PlayerService
    notifications: RecordingNotificationSink
    route_provider: Optional[OsrmRouteProvider] = None
    rest_server: object = None


# ===================================================================
# 1. Load configuration
# ===================================================================


def load_configuration(config_dir: str = DEFAULT_CONFIG_DIR) -> Configuration:
    """Load game constants, unit stats and world cities from YAML files."""
    log.info("Loading configuration …")
    base = Path(config_dir)
    game = load_game_config(base / "game.yaml")
    catalog = load_catalog(base)
    cities = load_cities(base / "cities.yaml")
    log.info("  %d tower types, %d enemy types, %d cities",
             len(catalog.towers), len(catalog.enemies), len(cities))
    return Configuration(game=game, catalog=catalog, cities=cities)


# ===================================================================
# 2. Create services
# ===================================================================


def create_path_strategy(config: GameConfig) -> tuple[PathStrategy, Optional[OsrmRouteProvider]]:
    """Road-routed paths when routing is enabled, curved direct paths otherwise."""
    fallback = StraightPathStrategy(config.curved_path_steps, config.curved_path_curvature)
    if not config.routing.enabled:
        log.info("  path strategy: direct")
        return fallback, None
    provider = OsrmRouteProvider(config.routing)
    log.info("  path strategy: road routing via %s", config.routing.base_url)
    return RoadPathStrategy(provider, fallback, config.routing.snap_to_roads), provider


def create_services(config: Configuration, rng: Optional[random.Random] = None) -> Services:
    """Instantiate every engine service from the loaded configuration."""
    log.info("Creating services …")
    game = config.game
    bus = EventBus()
    state = GameState(towers_per_city=game.towers_per_city)
    cities = CityIndex(config.cities)
    strategy, provider = create_path_strategy(game)
    paths = PathResolver(strategy)
    engine = GameEngine(state, game, config.catalog, cities, paths, bus, rng)
    player = PlayerService(game, config.catalog, bus)

    return Services(
        game_config=game,
        state=state,
        event_bus=bus,
        cities=cities,
        paths=paths,
        engine=engine,
        player=player,
        notifications=RecordingNotificationSink(),
        route_provider=provider,
    )


# ===================================================================
# 3. Wire events
# ===================================================================


def wire_events(services: Services) -> None:
    """Connect player-facing notification sinks to the event bus."""
    log.info("Wiring event handlers …")
    wire_notifications(services.event_bus, LoggingNotificationSink())
    wire_notifications(services.event_bus, services.notifications)
    log.info("  event handlers registered")


# ===================================================================
# 4. Start network server
# ===================================================================


async def start_network(services: Services) -> None:
    """Start the REST API on the configured host/port via uvicorn."""
    from geodefense.network.rest_api import create_app
    import uvicorn

    log.info("Starting REST API …")
    app = create_app(services)
    cfg = services.game_config
    config = uvicorn.Config(
        app,
        host=cfg.rest_host,
        port=cfg.rest_port,
        log_level="info",
        access_log=False,
    )
    rest_server = uvicorn.Server(config)
    services.rest_server = rest_server
    asyncio.create_task(rest_server.serve())
    log.info("  REST API listening on http://%s:%d", cfg.rest_host, cfg.rest_port)


# ===================================================================
# 5. Run until shutdown
# ===================================================================


async def run_until_shutdown(services: Services) -> None:
    """Block until SIGINT / SIGTERM, then stop the engine and network."""
    loop = asyncio.get_running_loop()
    shutdown = asyncio.Event()

    def _request_shutdown() -> None:
        log.info("Shutdown signal received — stopping …")
        shutdown.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_shutdown)

    await shutdown.wait()

    log.info("Shutting down …")
    services.engine.stop()
    services.paths.clear()
    if services.route_provider is not None:
        await services.route_provider.aclose()
        log.info("  routing client closed")
    if services.rest_server is not None:
        services.rest_server.should_exit = True
        log.info("  REST API server stopped")
    log.info("  goodbye")


# ===================================================================
# Entry points
# ===================================================================


async def _start(config_dir: str = DEFAULT_CONFIG_DIR, start_city: str = "") -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== GeoDefense server starting ===")

    config = load_configuration(config_dir)
    services = create_services(config)
    wire_events(services)
    await start_network(services)

    if start_city:
        city = services.cities.get(start_city)
        if city is None:
            log.error("Unknown start city %r", start_city)
        else:
            error = services.engine.start_game(city)
            if error:
                log.error("Could not start game: %s", error)

    await run_until_shutdown(services)


def main() -> None:
    """Entry point for the server.

    Supports command-line arguments:
        --config_dir <path>   Configuration directory (default: config)
        --start_city <id>     Start a game in this city right away
    """
    config_dir = DEFAULT_CONFIG_DIR
    start_city = ""

    for flag in ("--config_dir", "--start_city"):
        if flag not in sys.argv:
            continue
        idx = sys.argv.index(flag)
        if idx + 1 >= len(sys.argv):
            print(f"Error: {flag} requires an argument", file=sys.stderr)
            sys.exit(1)
        if flag == "--config_dir":
            config_dir = sys.argv[idx + 1]
        else:
            start_city = sys.argv[idx + 1]

    asyncio.run(_start(config_dir=config_dir, start_city=start_city))


if __name__ == "__main__":
    main()
