"""Path provision — the polyline an enemy walks from its base to a city.

Two strategies share one interface and are picked when the engine is built:

- ``StraightPathStrategy``: a deterministic, gently curved interpolation
  between the endpoints. Synchronous, never fails.
- ``RoadPathStrategy``: asks a road router (OSRM-compatible HTTP API) and
  falls back to the curved path on any failure or empty answer.

``PathResolver`` caches one path per (base city, target city) pair for the
whole session. Road requests run as asyncio tasks; while one is in flight
``request`` returns None and the caller retries on a later tick.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

import httpx

from geodefense.loaders.game_config_loader import RoutingConfig
from geodefense.models.city import City
from geodefense.models.geo import Position
from geodefense.util.geo_math import curved_path, resample_path

log = logging.getLogger(__name__)

PathKey = tuple[str, str]


class RouteError(Exception):
    """The road router could not produce a route."""


# ── Road router client ───────────────────────────────────────

class RouteProvider(Protocol):
    async def get_route(self, origin: Position, destination: Position) -> list[Position]: ...


class OsrmRouteProvider:
    """Client for an OSRM-compatible routing service.

    Args:
        config: Routing settings (base URL, profile, timeout, max points).
        client: Optional shared httpx client (created lazily otherwise).
    """

    def __init__(self, config: RoutingConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        self._config = config
        self._client = client
        self._owns_client = client is None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_s)
        return self._client

    async def nearest_road(self, position: Position) -> Position:
        """Snap a position to the closest road. Returns the input on failure."""
        url = f"{self._config.base_url}/nearest/v1/{self._config.profile}/{position.lng},{position.lat}"
        try:
            resp = await self._http().get(url)
            resp.raise_for_status()
            waypoints = resp.json().get("waypoints") or []
            if waypoints:
                lng, lat = waypoints[0]["location"][:2]
                return Position(float(lat), float(lng))
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            log.warning("Nearest-road lookup failed for %s: %s", position, e)
        return position

    async def get_route(self, origin: Position, destination: Position) -> list[Position]:
        """Road-following route from origin to destination.

        Raises:
            RouteError: The service failed or returned no route.
        """
        coords = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        url = f"{self._config.base_url}/route/v1/{self._config.profile}/{coords}"
        try:
            resp = await self._http().get(url, params={"overview": "full", "geometries": "geojson"})
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RouteError(f"route request failed: {e}") from e

        routes = data.get("routes") or []
        if not routes:
            raise RouteError(f"no route ({data.get('code', 'unknown')})")
        try:
            points = [Position(float(lat), float(lng))
                      for lng, lat in (c[:2] for c in routes[0]["geometry"]["coordinates"])]
        except (KeyError, TypeError, ValueError) as e:
            raise RouteError(f"malformed route geometry: {e}") from e
        if not points:
            raise RouteError("empty route geometry")
        return resample_path(points, self._config.max_points)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


# ── Strategies ───────────────────────────────────────────────

class PathStrategy(Protocol):
    is_async: bool

    def plan(self, origin: Position, destination: Position) -> list[Position]: ...

    async def resolve(self, origin: Position, destination: Position) -> list[Position]: ...


class StraightPathStrategy:
    """Curved interpolation between the endpoints."""

    is_async = False

    def __init__(self, steps: int = 30, curvature: float = 0.05) -> None:
        self._steps = steps
        self._curvature = curvature

    def plan(self, origin: Position, destination: Position) -> list[Position]:
        return curved_path(origin, destination, self._steps, self._curvature)

    async def resolve(self, origin: Position, destination: Position) -> list[Position]:
        return self.plan(origin, destination)


class RoadPathStrategy:
    """Road-following paths with a curved-path fallback."""

    is_async = True

    def __init__(self, provider: RouteProvider, fallback: StraightPathStrategy,
                 snap_to_roads: bool = False) -> None:
        self._provider = provider
        self._fallback = fallback
        self._snap = snap_to_roads

    def plan(self, origin: Position, destination: Position) -> list[Position]:
        return self._fallback.plan(origin, destination)

    async def resolve(self, origin: Position, destination: Position) -> list[Position]:
        start, end = origin, destination
        try:
            if self._snap and isinstance(self._provider, OsrmRouteProvider):
                start = await self._provider.nearest_road(origin)
                end = await self._provider.nearest_road(destination)
            path = await self._provider.get_route(start, end)
        except RouteError as e:
            log.warning("Road route %s -> %s unavailable, using direct path: %s", origin, destination, e)
            return self.plan(origin, destination)
        if not path:
            log.warning("Road route %s -> %s empty, using direct path", origin, destination)
            return self.plan(origin, destination)
        return path


# ── Session cache ────────────────────────────────────────────

class PathResolver:
    """Per-session path cache in front of a path strategy.

    Args:
        strategy: How paths are produced on a cache miss.
    """

    def __init__(self, strategy: PathStrategy) -> None:
        self._strategy = strategy
        self._cache: dict[PathKey, list[Position]] = {}
        self._pending: dict[PathKey, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._cache)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def cached(self, key: PathKey) -> Optional[list[Position]]:
        return self._cache.get(key)

    def request(self, origin: City, destination: City) -> Optional[list[Position]]:
        """Path from ``origin`` to ``destination``, or None while it is being fetched."""
        key = (origin.id, destination.id)
        path = self._cache.get(key)
        if path is not None:
            return path

        if not self._strategy.is_async:
            path = self._strategy.plan(origin.position, destination.position)
            self._cache[key] = path
            return path

        if key in self._pending:
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("No event loop for road routing %s -> %s, using direct path", *key)
            path = self._strategy.plan(origin.position, destination.position)
            self._cache[key] = path
            return path

        self._pending[key] = loop.create_task(self._fetch(key, origin.position, destination.position))
        log.debug("Route %s -> %s requested", *key)
        return None

    async def _fetch(self, key: PathKey, origin: Position, destination: Position) -> None:
        try:
            path = await self._strategy.resolve(origin, destination)
        except Exception:
            log.exception("Route resolution %s -> %s crashed, using direct path", *key)
            path = []
        finally:
            self._pending.pop(key, None)
        self._cache[key] = path or self._strategy.plan(origin, destination)
        log.debug("Route %s -> %s cached (%d points)", key[0], key[1], len(self._cache[key]))

    async def wait_pending(self) -> None:
        """Wait until every in-flight route request has landed in the cache."""
        while self._pending:
            await asyncio.gather(*list(self._pending.values()), return_exceptions=True)

    def clear(self) -> None:
        """Forget all cached paths and cancel in-flight requests."""
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()
        self._cache.clear()
