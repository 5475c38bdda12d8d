"""Typed event bus — decoupled communication between simulation parts.

Subsystems emit frozen event records; listeners (wave director,
notification sink, REST observers) subscribe by event type.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, TypeVar, Type

T = TypeVar("T")


# -- Enemy events --------------------------------------------------------

@dataclass(frozen=True)
class EnemySpawned:
    """An enemy entered the map."""
    enemy_id: str
    base_id: str
    target_city_id: str


@dataclass(frozen=True)
class EnemyKilled:
    """A tower killed an enemy."""
    enemy_id: str
    tower_id: str
    reward: int


@dataclass(frozen=True)
class EnemyReachedCity:
    """An enemy completed its path and sieged a city."""
    enemy_id: str
    city_id: str
    damage: float


# -- Base events ---------------------------------------------------------

@dataclass(frozen=True)
class BaseCreated:
    """An enemy base was established."""
    base_id: str
    city_id: str
    health: float


@dataclass(frozen=True)
class BaseDestroyed:
    """An enemy base's health crossed zero."""
    base_id: str
    tower_id: str


# -- Wave events ---------------------------------------------------------

@dataclass(frozen=True)
class WaveAdvanced:
    """The kill quota was met and the wave counter advanced."""
    wave: int
    kills_required: int


# -- Player events -------------------------------------------------------

@dataclass(frozen=True)
class TowerPlaced:
    """A tower was bought and placed."""
    tower_id: str
    tower_type: str


@dataclass(frozen=True)
class CityCaptured:
    """The player captured a city."""
    city_id: str
    city_name: str
    tower_limit: int


# -- Game lifecycle ------------------------------------------------------

@dataclass(frozen=True)
class GameOver:
    """An owned city was destroyed."""
    city_id: str
    city_name: str
    wave: int
    score: float


@dataclass(frozen=True)
class GameReset:
    """The world was reset to the pre-game state."""


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(EnemyKilled, lambda e: print(e.enemy_id))
        bus.emit(EnemyKilled(enemy_id="enemy-1", tower_id="tower-1", reward=5))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in list(self._handlers.get(type(event), [])):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
