"""Admission control for invoice endpoints.

Fixed window per identifier: the first hit opens a window, later hits
count against it until it expires. Callers scope identifiers
("create:<ip>", "mutate:<ip>") so each endpoint family is throttled
independently.

Two backends share one interface: InMemoryRateLimiter for a single
process, ValkeyRateLimiter when counters must be shared across instances.
"""

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from clients.valkey_client import ValkeyClient
from core.config import InvoiceConfig
from auth.exceptions import RateLimitedError

logger = logging.getLogger(__name__)


class RateLimiter(ABC):
    """Admission control contract."""

    @abstractmethod
    def check_rate_limit(self, identifier: str) -> None:
        """Count one attempt for identifier.

        Raises:
            RateLimitedError: If the identifier is over its limit.
        """

    def close(self) -> None:
        """Release backend connections. Nothing to do for process-local counters."""


@dataclass
class _Window:
    count: int
    reset_at: float


class InMemoryRateLimiter(RateLimiter):
    """Process-local counters. Not shared between workers."""

    def __init__(self, config: InvoiceConfig, clock: Callable[[], float] = time.monotonic):
        self._config = config
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check_rate_limit(self, identifier: str) -> None:
        now = self._clock()
        with self._lock:
            window = self._windows.get(identifier)

            if window is None or now >= window.reset_at:
                self._windows[identifier] = _Window(
                    count=1, reset_at=now + self._config.rate_limit_window_seconds
                )
                return

            if window.count >= self._config.rate_limit_attempts:
                retry_after = max(math.ceil(window.reset_at - now), 1)
                logger.info(f"Rate limit hit for {identifier}")
                raise RateLimitedError(retry_after_seconds=retry_after)

            window.count += 1


class ValkeyRateLimiter(RateLimiter):
    """Counters in Valkey, shared by every instance pointing at it."""

    KEY_PREFIX = "ratelimit:invoice:"

    def __init__(self, valkey: ValkeyClient, config: InvoiceConfig):
        self._valkey = valkey
        self._config = config

    def _key(self, identifier: str) -> str:
        """Generate rate limit key for identifier."""
        return f"{self.KEY_PREFIX}{identifier}"

    def check_rate_limit(self, identifier: str) -> None:
        key = self._key(identifier)

        count = self._valkey.incr(key)

        # Window opens on the first hit only; later hits don't extend it
        if count == 1:
            self._valkey.expire(key, self._config.rate_limit_window_seconds)

        if count > self._config.rate_limit_attempts:
            ttl = self._valkey.ttl(key)
            if ttl < 0:
                # Lost the expiry (crash between INCR and EXPIRE); re-arm it
                self._valkey.expire(key, self._config.rate_limit_window_seconds)
                ttl = self._config.rate_limit_window_seconds
            logger.info(f"Rate limit hit for {identifier}")
            raise RateLimitedError(retry_after_seconds=max(ttl, 1))

    def close(self) -> None:
        self._valkey.close()


def create_rate_limiter(config: InvoiceConfig, valkey: ValkeyClient | None = None) -> RateLimiter:
    """Pick the backend named by config.rate_limit_backend."""
    if config.rate_limit_backend == "valkey":
        if valkey is None:
            raise ValueError("rate_limit_backend 'valkey' requires a ValkeyClient")
        return ValkeyRateLimiter(valkey, config)
    return InMemoryRateLimiter(config)
