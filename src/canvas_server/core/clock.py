"""Logical clock for callers that do not supply their own timestamps."""

from __future__ import annotations

import threading
import time


class BlockClock:
    """Monotonic, non-decreasing integer clock in whole seconds.

    Engine operations take ``now`` explicitly; the HTTP layer uses one
    ``BlockClock`` per app so timestamps never go backwards even if the
    wall clock does.
    """

    def __init__(self, start: int = 0) -> None:
        self._last = start
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last
