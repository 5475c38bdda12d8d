"""Deferred actions keyed by game-clock time.

Staggered spawns and delayed base additions are queued here instead of on
wall-clock timers, so pause and game speed apply to them like to every
other timed behaviour. The frame driver calls ``run_due`` once per tick.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Callable

log = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledAction:
    fire_at_ms: float
    serial: int
    label: str = field(compare=False)
    action: Callable[[], None] = field(compare=False, repr=False)


class DeferredActionQueue:
    """Min-heap of actions ordered by fire time, then insertion order."""

    def __init__(self) -> None:
        self._heap: list[ScheduledAction] = []
        self._serial = count()

    def __len__(self) -> int:
        return len(self._heap)

    def schedule(self, fire_at_ms: float, action: Callable[[], None], label: str = "") -> ScheduledAction:
        """Queue ``action`` to run on the first tick at or after ``fire_at_ms``."""
        entry = ScheduledAction(fire_at_ms, next(self._serial), label, action)
        heapq.heappush(self._heap, entry)
        return entry

    def pending(self, label: str) -> int:
        """Number of queued actions carrying ``label``."""
        return sum(1 for entry in self._heap if entry.label == label)

    def run_due(self, now_ms: float) -> int:
        """Run every action due at ``now_ms``. Returns how many ran.

        Actions scheduled by a running action for a time ≤ ``now_ms`` run in
        the same call.
        """
        ran = 0
        while self._heap and self._heap[0].fire_at_ms <= now_ms:
            entry = heapq.heappop(self._heap)
            entry.action()
            ran += 1
        return ran

    def clear(self) -> None:
        if self._heap:
            log.debug("Dropping %d scheduled actions", len(self._heap))
        self._heap.clear()
