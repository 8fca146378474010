from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


log = logging.getLogger(__name__)

WINDOW_S = 60.0


@dataclass
class RateWindow:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed 60-second admission windows, one per source.

    A request that arrives when its source's window is full sleeps until the
    window resets and then opens a fresh one. Owned by a single collector; no
    locking, the collector calls it from one thread.
    """

    def __init__(
        self,
        window_s: float = WINDOW_S,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.window_s = window_s
        self._clock = clock
        self._sleep = sleep
        self._windows: Dict[str, RateWindow] = {}

    def window(self, source: str) -> Optional[RateWindow]:
        return self._windows.get(source)

    def acquire(self, source: str, limit: int) -> float:
        """Admit one request for ``source``; returns the seconds spent waiting."""
        now = self._clock()
        current = self._windows.get(source)

        if current is None or now >= current.reset_at:
            self._windows[source] = RateWindow(count=1, reset_at=now + self.window_s)
            return 0.0

        if current.count < max(1, limit):
            current.count += 1
            return 0.0

        wait_s = current.reset_at - now
        log.info("rate limit reached for %s, waiting %.1fs", source, wait_s)
        self._sleep(wait_s)
        start = max(self._clock(), current.reset_at)
        self._windows[source] = RateWindow(count=1, reset_at=start + self.window_s)
        return wait_s
