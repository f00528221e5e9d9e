from __future__ import annotations

import random
import sys
import time
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.api.shared.dependencies import ServiceContainer  # noqa: E402
from app.api.shared.rate_limit import SearchRateLimiter  # noqa: E402
from app.core.config import Settings  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.cache import CacheService, TTLConfig  # noqa: E402
from app.services.stations import StationDirectory  # noqa: E402
from app.services.train_search import TrainSearchService  # noqa: E402


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


class FakeValkey:
    """In-memory Valkey replacement used for tests."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[str, float | None]] = {}
        self.should_fail = False

    def _prune(self) -> None:
        now = time.monotonic()
        expired = [
            key
            for key, (_, expires_at) in self._store.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            self._store.pop(key, None)

    async def get(self, key: str) -> str | None:
        self._prune()
        if self.should_fail:
            raise RuntimeError("valkey unavailable")
        record = self._store.get(key)
        if record is None:
            return None
        value, _ = record
        return value

    async def set(
        self,
        key: str,
        value: str,
        ex: int | None = None,
        nx: bool | None = None,
    ) -> bool:
        self._prune()
        if self.should_fail:
            raise RuntimeError("valkey unavailable")
        if nx and key in self._store:
            return False
        expires_at = time.monotonic() + ex if ex else None
        self._store[key] = (value, expires_at)
        return True

    async def delete(self, *keys: str) -> None:
        self._prune()
        if self.should_fail:
            raise RuntimeError("valkey unavailable")
        for key in keys:
            self._store.pop(key, None)

    async def ping(self) -> bool:
        if self.should_fail:
            raise RuntimeError("valkey unavailable")
        return True

    async def aclose(self) -> None:
        return None


def make_settings(**overrides) -> Settings:
    """Settings for tests: live mode with every network source switched off."""
    values = {
        "environment": "test",
        "use_mock_data": False,
        "mock_latency_ms": 0,
        "sncf_connect_enabled": False,
        "sncf_api_enabled": False,
        "valkey_url": "memory://",
        "rate_limit_enabled": True,
        "rate_limit_requests": 10,
        "rate_limit_window_seconds": 60,
        "otel_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def make_services(
    settings: Settings,
    cache: CacheService,
    sources=(),
    rng: random.Random | None = None,
) -> ServiceContainer:
    directory = StationDirectory()
    search = TrainSearchService(
        directory,
        cache,
        sources,
        use_mock_data=settings.use_mock_data,
        mock_latency_seconds=settings.mock_latency_ms / 1000,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        fallback_cache_ttl_seconds=settings.fallback_cache_ttl_seconds,
        rng=rng,
    )
    return ServiceContainer(
        directory=directory,
        cache=cache,
        rate_limiter=SearchRateLimiter.from_settings(settings),
        search=search,
    )


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def fake_valkey() -> FakeValkey:
    return FakeValkey()


@pytest.fixture()
def cache_service(fake_valkey: FakeValkey, settings: Settings) -> CacheService:
    return CacheService(fake_valkey, TTLConfig(settings))


@pytest.fixture()
def memory_cache(settings: Settings) -> CacheService:
    return CacheService(None, TTLConfig(settings))


@pytest.fixture()
def services(settings: Settings, cache_service: CacheService) -> ServiceContainer:
    return make_services(settings, cache_service, rng=random.Random(7))


@pytest.fixture()
def api_client(
    settings: Settings, services: ServiceContainer
) -> Iterator[TestClient]:
    """Test client wired to live mode with only the static timetable available."""
    app = create_app(settings=settings, services=services)
    with TestClient(app) as client:
        yield client
