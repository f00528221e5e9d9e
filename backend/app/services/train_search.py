"""Train search orchestration.

Resolves stations, serves cached responses, and otherwise walks the live
sources in order (scraper, then journey API) before falling back to the
static timetable. In mock mode the generated trains replace all of them.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from app.core.metrics import observe_source_request, record_search_response
from app.core.telemetry import get_tracer
from app.models.sncf import TrainSearchResponse
from app.services.cache import CacheService
from app.services.fallback_schedules import FALLBACK_WARNING, fallback_trains
from app.services.mock_trains import mock_trains
from app.services.sncf_dto import Station, Train
from app.services.sncf_errors import StationNotFoundError, TrainSourceError
from app.services.stations import StationDirectory, normalize_text

logger = logging.getLogger(__name__)

CACHE_HIT = "hit"
CACHE_MISS = "miss"
FALLBACK_SOURCE = "fallback"
MOCK_SOURCE = "mock"


class TrainSource(Protocol):
    """A live provider of trains for a route and day."""

    name: str

    async def fetch(
        self, departure: Station, arrival: Station, travel_date: date
    ) -> list[Train]: ...


@dataclass(frozen=True)
class SearchResult:
    response: TrainSearchResponse
    source: str
    cache_status: str


def search_cache_key(departure: str, arrival: str, travel_date: date) -> str:
    """Cache key ``from:to:date`` with accent- and case-folded station names."""
    return (
        f"{normalize_text(departure.strip())}:"
        f"{normalize_text(arrival.strip())}:"
        f"{travel_date.isoformat()}"
    )


class TrainSearchService:
    def __init__(
        self,
        directory: StationDirectory,
        cache: CacheService,
        sources: Sequence[TrainSource] = (),
        *,
        use_mock_data: bool = False,
        mock_latency_seconds: float = 0.0,
        cache_ttl_seconds: int = 300,
        fallback_cache_ttl_seconds: int = 60,
        rng: random.Random | None = None,
    ) -> None:
        self._directory = directory
        self._cache = cache
        self._sources = list(sources)
        self._use_mock_data = use_mock_data
        self._mock_latency_seconds = mock_latency_seconds
        self._cache_ttl_seconds = cache_ttl_seconds
        self._fallback_cache_ttl_seconds = fallback_cache_ttl_seconds
        self._rng = rng

    @property
    def sources(self) -> list[TrainSource]:
        return list(self._sources)

    @property
    def use_mock_data(self) -> bool:
        return self._use_mock_data

    def resolve_station(self, name: str) -> Station:
        station = self._directory.by_name(name)
        if station is None:
            raise StationNotFoundError(name)
        return station

    async def search(
        self, from_name: str, to_name: str, travel_date: date
    ) -> SearchResult:
        """Return trains for a route, sorted by departure time.

        Raises:
            StationNotFoundError: when either name is not in the directory.
        """
        departure = self.resolve_station(from_name)
        arrival = self.resolve_station(to_name)
        cache_key = search_cache_key(departure.name, arrival.name, travel_date)

        cached = await self._cache.get_json(cache_key)
        if cached is not None:
            source = cached.get("source", "cache")
            record_search_response(source)
            logger.debug("Serving cached search for %s", cache_key)
            return SearchResult(
                response=TrainSearchResponse.model_validate(cached["response"]),
                source=source,
                cache_status=CACHE_HIT,
            )

        with get_tracer().start_as_current_span("train_search.collect") as span:
            span.set_attribute("route.key", cache_key)
            trains, source, warning = await self._collect(
                departure, arrival, travel_date
            )
            span.set_attribute("train_search.source", source)

        trains = sorted(trains, key=lambda train: train.departure_time)
        response = TrainSearchResponse.from_dtos(
            departure, arrival, travel_date, trains, warning=warning
        )

        ttl = (
            self._fallback_cache_ttl_seconds
            if source == FALLBACK_SOURCE
            else self._cache_ttl_seconds
        )
        if ttl > 0:
            await self._cache.set_json(
                cache_key,
                {
                    "response": response.model_dump(
                        mode="json", by_alias=True, exclude_none=True
                    ),
                    "timestamp": int(time.time() * 1000),
                    "ttl": ttl,
                    "source": source,
                },
                ttl_seconds=ttl,
            )

        record_search_response(source)
        return SearchResult(response=response, source=source, cache_status=CACHE_MISS)

    async def _collect(
        self, departure: Station, arrival: Station, travel_date: date
    ) -> tuple[list[Train], str, str | None]:
        if self._use_mock_data:
            if self._mock_latency_seconds > 0:
                await asyncio.sleep(self._mock_latency_seconds)
            trains = mock_trains(departure.name, arrival.name, travel_date, self._rng)
            return trains, MOCK_SOURCE, None

        for source in self._sources:
            start = time.perf_counter()
            try:
                trains = await source.fetch(departure, arrival, travel_date)
            except TrainSourceError as exc:
                observe_source_request(source.name, "error", time.perf_counter() - start)
                logger.warning("Train source '%s' failed: %s", source.name, exc)
                continue

            if trains:
                observe_source_request(
                    source.name, "success", time.perf_counter() - start
                )
                return trains, source.name, None

            observe_source_request(source.name, "empty", time.perf_counter() - start)
            logger.warning("Train source '%s' returned no trains", source.name)

        logger.warning(
            "Live sources exhausted for %s -> %s, serving static timetable",
            departure.code,
            arrival.code,
        )
        trains = fallback_trains(departure.name, arrival.name, self._rng)
        observe_source_request(FALLBACK_SOURCE, "success", 0.0)
        return trains, FALLBACK_SOURCE, FALLBACK_WARNING


__all__ = [
    "SearchResult",
    "TrainSearchService",
    "TrainSource",
    "search_cache_key",
]
