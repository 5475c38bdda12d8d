"""Game-over detector — watches owned-city health.

Running → Over → Reset → Running. The detector fires once per death
event; the frame driver stops on the trigger and re-arms the detector
when it resets the world.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from geodefense.util.events import GameOver

if TYPE_CHECKING:
    from geodefense.models.city import City
    from geodefense.models.game_state import GameState
    from geodefense.util.events import EventBus

log = logging.getLogger(__name__)


class GameOverDetector:
    """Emits one ``GameOver`` per city-death event."""

    def __init__(self, event_bus: EventBus) -> None:
        self._events = event_bus
        self.triggered = False
        self.last_event: Optional[GameOver] = None

    def check(self, state: GameState) -> Optional[GameOver]:
        """Return the GameOver event if this call triggered it, else None."""
        if self.triggered or not state.is_started:
            return None
        city: Optional[City] = state.destroyed_city()
        if city is None:
            return None

        self.triggered = True
        evt = GameOver(
            city_id=city.id,
            city_name=city.name,
            wave=state.current_wave,
            score=state.player.resources.score,
        )
        self.last_event = evt
        log.info("Game over: %s destroyed at wave %d (score %.0f)", city.name, evt.wave, evt.score)
        self._events.emit(evt)
        return evt

    def rearm(self) -> None:
        self.triggered = False
