"""
Shared dependency injection functions for API endpoints.

Services are owned by a ``ServiceContainer`` built once per application and
stored on ``app.state``, so tests can swap any of them and the lifespan can
close the ones holding external resources.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, Request

from app.api.shared.rate_limit import SearchRateLimiter
from app.core.config import Settings
from app.services.cache import CacheService, TTLConfig, create_valkey_client
from app.services.sncf_api_client import SNCFApiClient
from app.services.sncf_connect_scraper import SNCFConnectScraper
from app.services.sncf_connect_session import BrowserSession
from app.services.stations import StationDirectory, get_station_directory
from app.services.train_search import TrainSearchService, TrainSource

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    directory: StationDirectory
    cache: CacheService
    rate_limiter: SearchRateLimiter
    search: TrainSearchService
    browser_session: BrowserSession | None = None

    async def aclose(self) -> None:
        """Release the browser process and the cache connection."""
        if self.browser_session is not None:
            await self.browser_session.close()
        await self.cache.close()


def build_services(settings: Settings) -> ServiceContainer:
    """Wire the search service and its sources from settings."""
    directory = get_station_directory()
    cache = CacheService(create_valkey_client(settings), TTLConfig(settings))

    sources: list[TrainSource] = []
    browser_session: BrowserSession | None = None
    if not settings.use_mock_data:
        if settings.sncf_connect_enabled:
            browser_session = BrowserSession(
                headless=settings.sncf_connect_headless,
                timeout_ms=settings.sncf_connect_timeout_ms,
            )
            sources.append(
                SNCFConnectScraper(
                    browser_session,
                    url=settings.sncf_connect_url,
                    timeout_ms=settings.sncf_connect_timeout_ms,
                    results_delay_ms=settings.sncf_connect_results_delay_ms,
                )
            )
        if settings.sncf_api_enabled and settings.sncf_api_endpoints:
            sources.append(
                SNCFApiClient(
                    settings.sncf_api_endpoints,
                    timeout_seconds=settings.sncf_api_timeout_seconds,
                    token=settings.sncf_api_token,
                )
            )

    search = TrainSearchService(
        directory,
        cache,
        sources,
        use_mock_data=settings.use_mock_data,
        mock_latency_seconds=settings.mock_latency_ms / 1000,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        fallback_cache_ttl_seconds=settings.fallback_cache_ttl_seconds,
    )
    logger.info(
        "Train search configured: mode=%s sources=%s cache=%s",
        "mock" if settings.use_mock_data else "live",
        [source.name for source in sources],
        cache.backend,
    )
    return ServiceContainer(
        directory=directory,
        cache=cache,
        rate_limiter=SearchRateLimiter.from_settings(settings),
        search=search,
        browser_session=browser_session,
    )


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_search_service(
    services: ServiceContainer = Depends(get_services),
) -> TrainSearchService:
    return services.search


def get_rate_limiter(
    services: ServiceContainer = Depends(get_services),
) -> SearchRateLimiter:
    return services.rate_limiter


def get_directory(
    services: ServiceContainer = Depends(get_services),
) -> StationDirectory:
    return services.directory
