"""
Admission controller for mutating routes.

Implements a fixed wall-clock window per key: the window opens at the first
admitted request for that key and the counter resets once ``window_seconds``
have elapsed since it opened.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ingest_gateway.exceptions import RateLimited
from ingest_gateway.metrics import gateway_admission_rejections_total

logger = logging.getLogger(__name__)

GLOBAL_KEY = "global"


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of one admission check, used for rate-limit headers."""

    admitted: bool
    limit: int
    remaining: int
    reset_after: float


class _Window:
    __slots__ = ("started_at", "count")

    def __init__(self, started_at: float):
        self.started_at = started_at
        self.count = 0


class AdmissionController:
    """Fixed-window request counter shared by all request handlers.

    Build one instance at startup and hand it to every request.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize admission controller

        Args:
            max_requests: Requests admitted per key per window
            window_seconds: Window length in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self.lock = threading.Lock()

    def _current_window(self, key: str, now: float) -> _Window:
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            window = _Window(now)
            self._windows[key] = window
        return window

    def try_admit(self, key: str = GLOBAL_KEY) -> AdmissionDecision:
        """Count a request against ``key`` if the window still has budget."""
        with self.lock:
            now = self._clock()
            self._evict_expired(now)
            window = self._current_window(key, now)
            reset_after = max(0.0, window.started_at + self.window_seconds - now)

            if window.count >= self.max_requests:
                return AdmissionDecision(False, self.max_requests, 0, reset_after)

            window.count += 1
            return AdmissionDecision(
                True, self.max_requests, self.max_requests - window.count, reset_after
            )

    def admit(self, key: str = GLOBAL_KEY) -> AdmissionDecision:
        """Admit a request or raise.

        Raises:
            RateLimited: If ``key`` has used its budget for the current window
        """
        decision = self.try_admit(key)
        if not decision.admitted:
            gateway_admission_rejections_total.inc()
            logger.warning(
                f"Rate limit exceeded for {key}: {self.max_requests} requests "
                f"per {self.window_seconds:g}s, resets in {decision.reset_after:.1f}s"
            )
            raise RateLimited(retry_after=decision.reset_after, limit=decision.limit)
        return decision

    def _evict_expired(self, now: float) -> None:
        """Drop windows that have fully elapsed so idle clients don't accumulate"""
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]

    def get_stats(self) -> dict:
        """Get current admission statistics"""
        with self.lock:
            now = self._clock()
            self._evict_expired(now)
            return {
                "active_keys": len(self._windows),
                "max_requests": self.max_requests,
                "window_seconds": self.window_seconds,
                "requests_in_window": sum(w.count for w in self._windows.values()),
            }


class NoOpAdmissionController:
    """Admission controller that admits everything (RATE_LIMIT_ENABLED=false)"""

    def admit(self, key: str = GLOBAL_KEY) -> Optional[AdmissionDecision]:
        return None

    def try_admit(self, key: str = GLOBAL_KEY) -> Optional[AdmissionDecision]:
        return None

    def get_stats(self) -> dict:
        return {
            "active_keys": 0,
            "max_requests": None,
            "window_seconds": None,
            "requests_in_window": 0,
        }
