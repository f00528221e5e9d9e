"""Search result cache backed by Valkey, with an in-process fallback.

Valkey calls go through a ``CircuitBreaker``: after a failure the breaker
stays open for ``CACHE_CIRCUIT_BREAKER_TIMEOUT_SECONDS`` and reads are served
from ``FallbackCache`` alone. With ``VALKEY_URL=memory://`` no client is built
and the fallback is the only store.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from functools import wraps
from typing import Any, Callable, NamedTuple

import valkey.asyncio as valkey

from app.core.config import Settings, get_settings
from app.core.metrics import record_cache_event

logger = logging.getLogger(__name__)

MEMORY_URL_SCHEME = "memory://"


class TTLConfig:
    """Cache lifetimes read from settings."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.search_cache_ttl = settings.cache_ttl_seconds
        self.fallback_cache_ttl = settings.fallback_cache_ttl_seconds
        self.circuit_breaker_timeout = settings.cache_circuit_breaker_timeout_seconds

        if self.search_cache_ttl < 0 or self.fallback_cache_ttl < 0:
            raise ValueError(
                "cache lifetimes must be >= 0, got "
                f"search={self.search_cache_ttl} fallback={self.fallback_cache_ttl}"
            )

    def get_effective_ttl(self, ttl_seconds: int | None) -> int | None:
        """Resolve a per-call TTL; ``None`` means keep the entry until evicted."""
        ttl = self.search_cache_ttl if ttl_seconds is None else ttl_seconds
        return ttl if ttl > 0 else None


class CircuitBreaker:
    """Skips Valkey for a cool-down period after any failed call."""

    def __init__(self, config: TTLConfig) -> None:
        self._cooldown = config.circuit_breaker_timeout
        self._retry_at: float | None = None

    def is_open(self) -> bool:
        if self._retry_at is None:
            return False
        if time.monotonic() >= self._retry_at:
            self._retry_at = None
            return False
        return True

    def open(self) -> None:
        self._retry_at = time.monotonic() + self._cooldown

    def close(self) -> None:
        self._retry_at = None

    def protect(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Wrap a coroutine so errors and open-circuit calls yield ``None``."""

        @wraps(func)
        async def guarded(*args: Any, **kwargs: Any) -> Any:
            if self.is_open():
                return None
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                logger.warning(
                    "Valkey call %s failed, bypassing for %.0fs: %s",
                    func.__name__,
                    self._cooldown,
                    exc,
                )
                self.open()
                return None
            self.close()
            return result

        return guarded


class _Entry(NamedTuple):
    value: str
    expires_at: float | None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class FallbackCache:
    """Process-local string store with per-key expiry.

    Reads drop the entry they find expired; ``cleanup_expired`` sweeps the
    rest and is called by writers after each store.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def set(self, key: str, value: str, ttl_seconds: int | None) -> None:
        expires_at = None
        if ttl_seconds and ttl_seconds > 0:
            expires_at = time.monotonic() + ttl_seconds
        async with self._lock:
            self._entries[key] = _Entry(value, expires_at)

    async def get(self, key: str) -> str | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(time.monotonic()):
                del self._entries[key]
                return None
            return entry.value

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def cleanup_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = time.monotonic()
        async with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("Evicted %d expired cache entries", len(stale))
        return len(stale)


class CacheService:
    """
    JSON cache for search responses.

    Valkey is the primary store when a client is configured; every write is
    mirrored to the in-memory fallback so reads survive a Valkey outage.
    """

    def __init__(
        self, client: valkey.Valkey | None, config: TTLConfig | None = None
    ) -> None:
        self._client = client
        self._config = config or TTLConfig()
        self._circuit_breaker = CircuitBreaker(self._config)
        self._fallback = FallbackCache()

    @property
    def ttl_config(self) -> TTLConfig:
        return self._config

    @property
    def backend(self) -> str:
        return "valkey" if self._client is not None else "memory"

    async def get_json(self, key: str) -> dict[str, Any] | None:
        """Retrieve a JSON document and decode it."""
        payload = await self._get_from_valkey(key)
        if payload is not None:
            record_cache_event("search", "hit")
            return json.loads(payload)

        fallback_payload = await self._fallback.get(key)
        if fallback_payload is None:
            record_cache_event("search", "miss")
            return None
        record_cache_event("search", "fallback_hit")
        return json.loads(fallback_payload)

    async def set_json(
        self, key: str, value: Any, ttl_seconds: int | None = None
    ) -> None:
        """Serialize and store a JSON-compatible document."""
        encoded = json.dumps(value)
        effective_ttl = self._config.get_effective_ttl(ttl_seconds)

        await self._set_to_valkey(key, encoded, effective_ttl)
        # Mirrored so reads survive a Valkey outage.
        await self._fallback.set(key, encoded, effective_ttl)
        await self._fallback.cleanup_expired()

    async def delete(self, key: str) -> None:
        """Remove a cache entry."""
        if self._client is not None and not self._circuit_breaker.is_open():
            try:
                await self._client.delete(key)
            except Exception:
                self._circuit_breaker.open()

        await self._fallback.delete(key)

    async def ping(self) -> bool:
        """Report whether the configured backend is reachable."""
        if self._client is None:
            return True

        @self._circuit_breaker.protect
        async def _ping() -> bool:
            return bool(await self._client.ping())

        return bool(await _ping())

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def _get_from_valkey(self, key: str) -> str | None:
        """Get value from Valkey with circuit breaker protection."""
        if self._client is None:
            return None

        @self._circuit_breaker.protect
        async def _get() -> str | None:
            return await self._client.get(key)

        return await _get()

    async def _set_to_valkey(
        self, key: str, value: str, ttl_seconds: int | None
    ) -> bool:
        """Set value in Valkey with circuit breaker protection."""
        if self._client is None:
            return False

        @self._circuit_breaker.protect
        async def _set() -> bool:
            if ttl_seconds and ttl_seconds > 0:
                await self._client.set(key, value, ex=ttl_seconds)
            else:
                await self._client.set(key, value)
            return True

        result = await _set()
        return result is not None


def create_valkey_client(settings: Settings) -> valkey.Valkey | None:
    """Build a Valkey client, or None when the in-process store is configured."""
    if settings.valkey_url.startswith(MEMORY_URL_SCHEME):
        return None
    return valkey.from_url(
        settings.valkey_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=settings.valkey_socket_connect_timeout_seconds,
        socket_timeout=settings.valkey_socket_timeout_seconds,
    )


__all__ = [
    "CacheService",
    "CircuitBreaker",
    "FallbackCache",
    "TTLConfig",
    "create_valkey_client",
]
