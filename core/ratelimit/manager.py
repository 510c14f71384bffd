"""Per-provider fixed-window rate limiting.

Each provider owns a RateWindow with its own lock. The manager's registry lock is held only
while a window is created, so providers never contend with each other.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Final

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

__all__: list[str] = ["DEFAULT_MAX_REQUESTS", "DEFAULT_WINDOW_SECONDS", "RateLimitManager", "RateWindow"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_MAX_REQUESTS: Final[int] = 10
DEFAULT_WINDOW_SECONDS: Final[float] = 60.0


class RateWindow:
    """Request counter of one provider over a fixed time window.

    The window is reset lazily: the first admission check that sees more than `window_seconds`
    elapsed since the window start zeroes the counter and starts a new window.

    Attributes:
        max_requests (int): Requests admitted per window.
        window_seconds (float): Window length in seconds.
        count (int): Requests recorded in the current window.
        started_at (float): Clock value at the start of the current window.
    """

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float]) -> None:
        self.max_requests: int = max_requests
        self.window_seconds: float = window_seconds
        self._clock: Callable[[], float] = clock
        self.count: int = 0
        self.started_at: float = clock()
        self.lock: threading.Lock = threading.Lock()

    def _reset_if_elapsed(self) -> None:
        now: float = self._clock()
        if now - self.started_at > self.window_seconds:
            self.count = 0
            self.started_at = now

    def allow(self) -> bool:
        with self.lock:
            self._reset_if_elapsed()
            return self.count < self.max_requests

    def record(self) -> None:
        with self.lock:
            self.count += 1

    def try_acquire(self) -> bool:
        with self.lock:
            self._reset_if_elapsed()
            if self.count >= self.max_requests:
                return False
            self.count += 1
            return True

    def remaining(self) -> int:
        with self.lock:
            self._reset_if_elapsed()
            return max(self.max_requests - self.count, 0)


class RateLimitManager:
    """Registry of per-provider rate windows.

    Providers without an explicit configuration get DEFAULT_MAX_REQUESTS requests per
    DEFAULT_WINDOW_SECONDS. The clock is injectable for tests and defaults to time.monotonic.
    """

    def __init__(
        self,
        *,
        default_max_requests: int = DEFAULT_MAX_REQUESTS,
        default_window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_max_requests: int = default_max_requests
        self.default_window_seconds: float = default_window_seconds
        self._clock: Callable[[], float] = clock
        self._windows: dict[str, RateWindow] = {}
        self._registry_lock: threading.Lock = threading.Lock()
        logger.debug(
            "RateLimitManager instance created (default %d requests / %.1fs)",
            default_max_requests,
            default_window_seconds,
        )

    def configure(self, provider: str, max_requests: int, window_seconds: float) -> None:
        """Install an explicit limit for a provider.

        A provider that already has a window keeps it, together with the requests counted in the
        current window, so reconfiguring never hands out a fresh quota. Only the limits change.

        Raises:
            ValueError: If max_requests is negative or window_seconds is not positive.
        """
        if max_requests < 0 or window_seconds <= 0:
            msg: str = f"Invalid rate limit for '{provider}': {max_requests} requests / {window_seconds}s"
            raise ValueError(msg)
        with self._registry_lock:
            window: RateWindow | None = self._windows.get(provider)
            if window is None:
                self._windows[provider] = RateWindow(max_requests, float(window_seconds), self._clock)
            elif (window.max_requests, window.window_seconds) == (max_requests, float(window_seconds)):
                logger.debug("Rate limit for '%s' unchanged, keeping the current window", provider)
                return
            else:
                with window.lock:
                    window.max_requests = max_requests
                    window.window_seconds = float(window_seconds)
        logger.info("Rate limit for '%s': %d requests / %.1fs", provider, max_requests, window_seconds)

    def window(self, provider: str) -> RateWindow:
        """Return the provider's window, creating it with the default limit on first use."""
        window: RateWindow | None = self._windows.get(provider)
        if window is not None:
            return window
        with self._registry_lock:
            window = self._windows.get(provider)
            if window is None:
                window = RateWindow(self.default_max_requests, self.default_window_seconds, self._clock)
                self._windows[provider] = window
                logger.debug("Default rate window created for '%s'", provider)
            return window

    def allow(self, provider: str) -> bool:
        """Check whether one more request fits the current window. Does not record anything."""
        return self.window(provider).allow()

    def record_request(self, provider: str) -> None:
        self.window(provider).record()

    def try_acquire(self, provider: str) -> bool:
        """Check and record in one step under the window lock.

        Returns:
            bool: True if the request was admitted and recorded, False if the window is full.
        """
        admitted: bool = self.window(provider).try_acquire()
        if not admitted:
            logger.warning("Rate limit reached for '%s'", provider)
        return admitted

    def remaining(self, provider: str) -> int:
        return self.window(provider).remaining()
