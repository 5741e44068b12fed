"""Time-based staleness for memoized entries.

Expiration is passive: nothing is evicted on a timer. A lookup decides whether
the entry it found is still fresh, and a stale entry is simply recomputed and
overwritten.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from .store import CacheEntry

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Current monotonic time in milliseconds."""
    return time.monotonic() * 1000.0


class ExpirationPolicy:
    """Staleness rules for one member.

    Args:
        window_ms: Maximum entry age in milliseconds, or ``None`` to never expire.
        clock: Callable returning the current time in milliseconds.
    """

    def __init__(self, window_ms: Optional[int], clock: Clock = monotonic_ms):
        self.window_ms = window_ms
        self.clock = clock

    @property
    def enabled(self) -> bool:
        return self.window_ms is not None

    def is_stale(self, entry: CacheEntry) -> bool:
        """Return True if ``entry`` must be recomputed.

        An entry without a timestamp is stale whenever a window is set; that
        only happens for values stored before expiration applied to the key.
        An entry exactly ``window_ms`` old is still fresh.
        """
        if not self.enabled:
            return False
        if entry.stored_at is None:
            return True
        return self.clock() - entry.stored_at > self.window_ms

    def stamp(self) -> Optional[float]:
        """Timestamp to record with a freshly stored value, if expiring."""
        if not self.enabled:
            return None
        return self.clock()
