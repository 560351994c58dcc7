"""Global send throttle shared by every request worker."""

import threading
import time


class RateLimiter:
    """Token bucket of capacity 1, refilled every ``1 / rate`` seconds.

    Workers compete for ticks; whoever reserves a tick sleeps until it is due.
    At most one send per interval happens across all workers combined.
    """

    def __init__(self, rate: int):
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.interval = 1.0 / rate
        self._lock = threading.Lock()
        self._next = time.monotonic() + self.interval

    def wait(self, stop: threading.Event) -> bool:
        """Block until this caller owns a tick. False if *stop* fired first."""
        with self._lock:
            now = time.monotonic()
            due = max(self._next, now)
            self._next = due + self.interval
        delay = due - now
        if delay > 0:
            return not stop.wait(delay)
        return not stop.is_set()
