"""Process-wide sliding-window request limiter."""

import threading
import time
from typing import Callable, Optional


class RateLimiter:
    """
    Count requests per (client, action) inside a sliding time window.

    One instance lives on ``app.state`` for the lifetime of the process;
    buckets are created on a client's first request and pruned as their
    timestamps expire.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: dict[tuple[str, str], list[float]] = {}

    def allow(self, client: str, action: str, max_requests: int, window_secs: int) -> bool:
        """
        Record a request and report whether it is within the limit.

        Args:
            client: Client identifier (remote address)
            action: Operation name, e.g. "HOST.WAKEUP"
            max_requests: Requests allowed per window
            window_secs: Window length in seconds

        Returns:
            True if the request is allowed, False if rate limited
        """
        now = self._clock()
        key = (client, action)
        with self._lock:
            # Prune buckets whose newest request has left the window
            expired = [
                k for k, ts in self._hits.items() if not ts or now - ts[-1] >= window_secs
            ]
            for k in expired:
                del self._hits[k]
            hits = [t for t in self._hits.get(key, []) if now - t < window_secs]
            if len(hits) >= max_requests:
                self._hits[key] = hits
                return False
            hits.append(now)
            self._hits[key] = hits
            return True

    def reset(self, client: Optional[str] = None) -> None:
        """Forget recorded requests for one client, or for everyone."""
        with self._lock:
            if client is None:
                self._hits.clear()
                return
            for key in [k for k in self._hits if k[0] == client]:
                del self._hits[key]
