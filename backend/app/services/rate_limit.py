from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Callable


class SlidingWindowLimiter:
    """Per-key event budget over a sliding window, kept in process memory."""

    def __init__(
        self,
        *,
        max_events: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_events = max_events
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[str, deque[float]] = defaultdict(deque)

    def _prune(self, key: str, now: float) -> deque[float]:
        events = self._events[key]
        while events and events[0] <= now - self.window_seconds:
            events.popleft()
        return events

    def allow(self, key: str) -> bool:
        now = self._clock()
        events = self._prune(key, now)
        if len(events) >= self.max_events:
            return False
        events.append(now)
        return True

    def retry_after(self, key: str) -> int:
        """Seconds until the oldest event leaves the window (0 when not limited)."""
        now = self._clock()
        events = self._prune(key, now)
        if len(events) < self.max_events:
            return 0
        return max(1, int(events[0] + self.window_seconds - now + 0.999))

    def reset(self, key: str) -> None:
        self._events.pop(key, None)
