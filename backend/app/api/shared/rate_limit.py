"""Shared rate limiter for the search endpoint.

Fixed-window limiter keyed by client address. The search handler validates
its parameters before consuming a slot, so the check is an explicit call
rather than a route decorator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from limits import RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter
from slowapi.util import get_remote_address

from app.core.config import Settings
from app.core.metrics import record_rate_limit_rejection

logger = logging.getLogger(__name__)

RATE_LIMIT_NAMESPACE = "sncf-search"


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    remaining: int
    reset_at: float


class SearchRateLimiter:
    """Allow ``requests`` hits per ``window_seconds`` per client.

    The count restarts at 1 on the first hit after a window rolls over.
    """

    def __init__(
        self,
        requests: int,
        window_seconds: int,
        storage_uri: str = "memory://",
        enabled: bool = True,
    ) -> None:
        self.enabled = enabled
        self._item = RateLimitItemPerSecond(requests, window_seconds)
        self._storage: Storage = storage_from_string(storage_uri)
        self._limiter = FixedWindowRateLimiter(self._storage)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchRateLimiter":
        return cls(
            requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
            storage_uri=settings.rate_limit_storage_uri,
            enabled=settings.rate_limit_enabled,
        )

    def hit(self, key: str) -> RateLimitStatus:
        """Consume one request slot for ``key``."""
        if not self.enabled:
            return RateLimitStatus(True, self._item.amount, 0.0)

        allowed = self._limiter.hit(self._item, RATE_LIMIT_NAMESPACE, key)
        reset_at, remaining = self._limiter.get_window_stats(
            self._item, RATE_LIMIT_NAMESPACE, key
        )
        if not allowed:
            record_rate_limit_rejection()
            logger.debug("Rate limit exceeded for %s", key)
        return RateLimitStatus(allowed, remaining, reset_at)

    def check_request(self, request: Request) -> RateLimitStatus:
        return self.hit(get_remote_address(request))

    def reset(self) -> None:
        self._storage.reset()


__all__ = ["RateLimitStatus", "SearchRateLimiter"]
