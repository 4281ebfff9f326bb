"""
Request pacing for a single remote source.
"""

import threading
import time
from typing import Callable, Optional


class RateLimiter:
    """Ensure a minimum interval between the starts of consecutive requests."""

    def __init__(self, interval: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize the limiter.

        Args:
            interval: Minimum seconds between two requests; 0 disables pacing
            clock: Monotonic time source
            sleep: Function used to wait
        """
        if interval < 0:
            raise ValueError(f"interval must not be negative, got {interval}")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_allowed = None

    def acquire(self, cancel_event: Optional[threading.Event] = None) -> bool:
        """
        Block until the caller may issue one request.

        Args:
            cancel_event: Ends the wait early when set

        Returns:
            False if the wait was cancelled, in which case no slot is booked
        """
        if cancel_event is not None and cancel_event.is_set():
            return False
        if self.interval <= 0:
            return True
        # Held while waiting so waiters are released one slot at a time
        with self._lock:
            now = self._clock()
            if self._next_allowed is not None and self._next_allowed > now:
                delay = self._next_allowed - now
                if cancel_event is None:
                    self._sleep(delay)
                elif cancel_event.wait(delay):
                    return False
                now = self._clock()
            if cancel_event is not None and cancel_event.is_set():
                return False
            self._next_allowed = now + self.interval
        return True
