"""
Train search endpoint.

Validates parameters, applies the per-client rate limit, then delegates to
the search service. Filters are applied to the (possibly cached) response.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from app.api.shared.dependencies import get_rate_limiter, get_search_service
from app.api.shared.errors import (
    internal_error,
    missing_params,
    not_implemented,
    rate_limited,
    scraping_error,
    station_not_found,
)
from app.api.shared.rate_limit import SearchRateLimiter
from app.models.sncf import ApiErrorPayload, TrainSearchResponse
from app.services.sncf_errors import ScrapingError, StationNotFoundError
from app.services.train_filters import SearchFilters, SortOrder, apply_filters
from app.services.train_search import TrainSearchService
from app.services.train_times import normalize_clock

logger = logging.getLogger(__name__)

router = APIRouter()

CACHE_STATUS_HEADER = "X-Cache-Status"
DATA_SOURCE_HEADER = "X-Data-Source"
RATE_LIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_ERROR_RESPONSES = {
    code: {"model": ApiErrorPayload} for code in (400, 404, 429, 500, 501)
}


def _parse_travel_date(value: str) -> date:
    if not ISO_DATE_RE.match(value):
        raise missing_params(f"Invalid date '{value}', expected YYYY-MM-DD.")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise missing_params(f"Invalid date '{value}': {exc}") from exc


def _parse_clock_param(name: str, value: str | None) -> str | None:
    if value is None:
        return None
    clock = normalize_clock(value)
    if clock is None:
        raise missing_params(f"Invalid {name} '{value}', expected HH:MM.")
    return clock


@router.get(
    "/sncf",
    response_model=TrainSearchResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Search trains between two stations on a given day",
)
async def search_trains(
    request: Request,
    response: Response,
    from_name: Annotated[
        str | None, Query(alias="from", description="Departure station name.")
    ] = None,
    to_name: Annotated[
        str | None, Query(alias="to", description="Arrival station name.")
    ] = None,
    travel_date: Annotated[
        str | None, Query(alias="date", description="Travel day as YYYY-MM-DD.")
    ] = None,
    sort_by: Annotated[SortOrder, Query(alias="sortBy")] = SortOrder.EARLIEST,
    tgv_max_only: Annotated[bool, Query(alias="tgvMaxOnly")] = False,
    departure_after: Annotated[
        str | None,
        Query(alias="departureAfter", description="Earliest departure, HH:MM."),
    ] = None,
    departure_before: Annotated[
        str | None,
        Query(alias="departureBefore", description="Latest departure, HH:MM."),
    ] = None,
    max_duration: Annotated[
        int | None, Query(alias="maxDuration", ge=0, description="Minutes.")
    ] = None,
    max_connections: Annotated[
        int | None, Query(alias="maxConnections", ge=0)
    ] = None,
    search_service: TrainSearchService = Depends(get_search_service),
    rate_limiter: SearchRateLimiter = Depends(get_rate_limiter),
) -> TrainSearchResponse:
    """Return trains for a route, flagging the ones with TGV MAX seats."""
    if not from_name or not to_name or not travel_date:
        raise missing_params()
    parsed_date = _parse_travel_date(travel_date)
    filters = SearchFilters(
        departure_after=_parse_clock_param("departureAfter", departure_after),
        departure_before=_parse_clock_param("departureBefore", departure_before),
        max_duration=max_duration,
        max_connections=max_connections,
        tgv_max_only=tgv_max_only,
        sort_by=sort_by,
    )

    limit_status = rate_limiter.check_request(request)
    if not limit_status.allowed:
        raise rate_limited(int(limit_status.reset_at - time.time()) + 1)

    try:
        result = await search_service.search(from_name, to_name, parsed_date)
    except StationNotFoundError as exc:
        raise station_not_found(str(exc)) from exc
    except ScrapingError as exc:
        logger.exception("Scrape failure escaped the source chain")
        raise scraping_error(str(exc)) from exc
    except Exception as exc:
        logger.exception("Train search failed for %s -> %s", from_name, to_name)
        if "scrap" in str(exc).lower():
            raise scraping_error(str(exc)) from exc
        raise internal_error(str(exc) or exc.__class__.__name__) from exc

    response.headers[CACHE_STATUS_HEADER] = result.cache_status
    response.headers[DATA_SOURCE_HEADER] = result.source
    if rate_limiter.enabled:
        response.headers[RATE_LIMIT_REMAINING_HEADER] = str(limit_status.remaining)

    trains = apply_filters(result.response.trains, filters)
    return result.response.model_copy(
        update={"trains": trains, "total_results": len(trains)}
    )


@router.post(
    "/sncf",
    status_code=501,
    responses={501: {"model": ApiErrorPayload}},
    summary="Create a TGV MAX availability notification (not implemented)",
)
async def create_notification() -> None:
    raise not_implemented()
