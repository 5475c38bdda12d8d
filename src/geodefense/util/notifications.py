"""Notification sink — fire-and-forget player-facing messages.

The simulation never waits on a notification. The default sink writes to
the log; front ends plug in their own sink (toast, modal, push message).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from geodefense.util.events import CityCaptured, EventBus, GameOver

log = logging.getLogger(__name__)


class NotificationKind:
    """Notification kind constants."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    GAME_OVER = "game_over"


class NotificationSink(Protocol):
    def notify(self, kind: str, title: str, message: str) -> None: ...


class LoggingNotificationSink:
    """Writes notifications to the log."""

    def notify(self, kind: str, title: str, message: str) -> None:
        level = logging.WARNING if kind in (NotificationKind.GAME_OVER, NotificationKind.ERROR) else logging.INFO
        log.log(level, "[%s] %s: %s", kind, title, message)


@dataclass
class Notification:
    kind: str
    title: str
    message: str


class RecordingNotificationSink:
    """Keeps notifications in memory (most recent last)."""

    def __init__(self, limit: int = 50) -> None:
        self._limit = limit
        self.items: list[Notification] = []

    def notify(self, kind: str, title: str, message: str) -> None:
        self.items.append(Notification(kind, title, message))
        del self.items[:-self._limit]


def wire_notifications(bus: EventBus, sink: NotificationSink) -> None:
    """Subscribe ``sink`` to the events that produce player notifications."""

    def _on_captured(evt: CityCaptured) -> None:
        sink.notify(NotificationKind.SUCCESS, "City captured",
                    f"{evt.city_name} is yours. Tower limit is now {evt.tower_limit}.")

    def _on_game_over(evt: GameOver) -> None:
        sink.notify(NotificationKind.GAME_OVER, "Game over",
                    f"{evt.city_name} was destroyed. Wave: {evt.wave}, score: {evt.score:.0f}")

    bus.on(CityCaptured, _on_captured)
    bus.on(GameOver, _on_game_over)
