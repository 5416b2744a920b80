"""
Throttle Module

Rate + concurrency limiter guarding one external endpoint class (a "lane").

A Throttle enforces at the same time:
- a cap on concurrently outstanding permits (default 1, fully serialized)
- a minimum spacing between two consecutive grants
- optionally a token bucket refilled to full every `refill_interval` seconds

Callers are served strictly in arrival order. Waiting happens inside
`acquire()`, nothing is ever dropped.
"""

import threading
import time
from functools import wraps
from typing import Callable, Optional, TypeVar

T = TypeVar('T')


class Permit:
    """Handle returned by Throttle.acquire(); give it back with release()."""

    __slots__ = ("throttle", "ticket", "granted_at", "released")

    def __init__(self, throttle: "Throttle", ticket: int, granted_at: float):
        self.throttle = throttle
        self.ticket = ticket
        self.granted_at = granted_at
        self.released = False

    def __repr__(self):
        return f"Permit({self.throttle.name!r}, ticket={self.ticket})"


class Throttle:
    """FIFO rate and concurrency gate, safe to share between threads."""

    def __init__(self, name: str, max_concurrent: int = 1, min_interval: float = 0.0,
                 tokens: Optional[int] = None, refill_interval: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            name: Lane name used in logs ("clickup", "dust")
            max_concurrent: Maximum permits outstanding at once
            min_interval: Minimum seconds between two grants
            tokens: Token bucket capacity, None disables the bucket
            refill_interval: Seconds after which the bucket is refilled to capacity
            clock: Monotonic time source, replaceable in tests
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        if tokens is not None and (tokens < 1 or not refill_interval or refill_interval <= 0):
            raise ValueError("a token bucket needs tokens >= 1 and a positive refill_interval")

        self.name = name
        self.max_concurrent = max_concurrent
        self.min_interval = min_interval
        self.capacity = tokens
        self.refill_interval = refill_interval
        self._clock = clock

        self._cond = threading.Condition()
        self._next_ticket = 0
        self._now_serving = 0
        self._in_flight = 0
        self._last_grant: Optional[float] = None
        self._tokens = tokens
        self._last_refill = clock()
        self._thread_local = threading.local()
        self.grants = 0

    @property
    def in_flight(self) -> int:
        with self._cond:
            return self._in_flight

    def _refill(self, now: float):
        if self.capacity is None:
            return
        elapsed = now - self._last_refill
        if elapsed >= self.refill_interval:
            periods = int(elapsed // self.refill_interval)
            self._last_refill += periods * self.refill_interval
            self._tokens = self.capacity

    def _pacing_delay(self, now: float) -> float:
        """Seconds to wait before the head of the queue may be granted."""
        delay = 0.0
        if self._last_grant is not None and self.min_interval > 0:
            delay = max(delay, self._last_grant + self.min_interval - now)
        if self.capacity is not None:
            self._refill(now)
            if self._tokens <= 0:
                delay = max(delay, self._last_refill + self.refill_interval - now)
        return delay

    def acquire(self) -> Permit:
        """Block until this caller's turn comes and capacity is available."""
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1

            while True:
                if ticket == self._now_serving and self._in_flight < self.max_concurrent:
                    now = self._clock()
                    delay = self._pacing_delay(now)
                    if delay <= 0:
                        break
                    self._cond.wait(delay)
                else:
                    self._cond.wait()

            now = self._clock()
            self._now_serving += 1
            self._in_flight += 1
            self._last_grant = now
            if self._tokens is not None:
                self._tokens -= 1
            self.grants += 1
            # wake the next ticket holder
            self._cond.notify_all()
            return Permit(self, ticket, now)

    def release(self, permit: Permit):
        """Return a permit.

        Raises:
            ValueError: if the permit belongs to another throttle or was already released
        """
        with self._cond:
            if permit.throttle is not self:
                raise ValueError(f"permit {permit!r} does not belong to throttle {self.name!r}")
            if permit.released:
                raise ValueError(f"permit {permit!r} already released")
            permit.released = True
            self._in_flight -= 1
            self._cond.notify_all()

    def __enter__(self) -> Permit:
        permit = self.acquire()
        self._local().append(permit)
        return permit

    def __exit__(self, exc_type, exc, tb):
        self.release(self._local().pop())
        return False

    def _local(self) -> list:
        # per-thread stack so `with throttle:` nests and works across threads
        if not hasattr(self._thread_local, "permits"):
            self._thread_local.permits = []
        return self._thread_local.permits

    def wrap(self, func: Callable[..., T]) -> Callable[..., T]:
        """Decorate `func` so every call holds a permit for its duration."""
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            with self:
                return func(*args, **kwargs)
        return wrapper

    def __repr__(self):
        return (f"Throttle({self.name!r}, max_concurrent={self.max_concurrent}, "
                f"min_interval={self.min_interval}, tokens={self.capacity})")
