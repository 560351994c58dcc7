"""Tests for the shared send throttle."""

import threading
import time

import pytest

from waftester.core.ratelimit import RateLimiter


def test_rate_must_be_positive() -> None:
    """Verify a zero or negative rate is rejected."""
    for rate in (0, -5):
        with pytest.raises(ValueError):
            RateLimiter(rate)


def test_ticks_are_spaced_across_threads() -> None:
    """Verify concurrent callers together get at most one tick per interval."""
    limiter = RateLimiter(50)
    stop = threading.Event()
    stamps = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(3):
            assert limiter.wait(stop)
            with lock:
                stamps.append(time.monotonic())

    start = time.monotonic()
    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # 12 ticks at 20ms each
    assert len(stamps) == 12
    assert max(stamps) - start >= 0.2


def test_wait_returns_false_when_stopped() -> None:
    """Verify a throttled caller gives up as soon as stop fires."""
    limiter = RateLimiter(1)
    stop = threading.Event()
    stop.set()

    started = time.monotonic()
    assert limiter.wait(stop) is False
    assert time.monotonic() - started < 0.5
