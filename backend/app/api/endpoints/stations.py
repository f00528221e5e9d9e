"""Station directory endpoints backing the search form autocomplete."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.shared.dependencies import get_directory
from app.api.shared.errors import station_not_found
from app.models.sncf import ApiErrorPayload, Station, StationSearchResponse
from app.services.stations import MAX_SEARCH_RESULTS, StationDirectory

router = APIRouter()


@router.get(
    "/stations/search",
    response_model=StationSearchResponse,
    response_model_exclude_none=True,
    summary="Search stations by name or region",
)
async def search_stations(
    query: Annotated[
        str,
        Query(description="Accent- and case-insensitive name or region fragment."),
    ] = "",
    limit: Annotated[int, Query(ge=1, le=MAX_SEARCH_RESULTS)] = MAX_SEARCH_RESULTS,
    directory: StationDirectory = Depends(get_directory),
) -> StationSearchResponse:
    return StationSearchResponse.from_dtos(query, directory.search(query, limit))


@router.get(
    "/stations/{code}",
    response_model=Station,
    response_model_exclude_none=True,
    responses={404: {"model": ApiErrorPayload}},
    summary="Get a station by its SNCF code",
)
async def get_station(
    code: str, directory: StationDirectory = Depends(get_directory)
) -> Station:
    station = directory.by_code(code)
    if station is None:
        raise station_not_found(f"Unknown station code '{code}'.")
    return Station.from_dto(station)
