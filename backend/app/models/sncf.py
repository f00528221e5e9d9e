from __future__ import annotations

import datetime as dt
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.services.sncf_dto import Connection as ConnectionDTO
from app.services.sncf_dto import Station as StationDTO
from app.services.sncf_dto import Train as TrainDTO


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Station(CamelModel):
    name: str
    code: str = Field(..., description="SNCF station code, e.g. 'FRPLY'.")
    region: str | None = None

    @classmethod
    def from_dto(cls, dto: StationDTO) -> "Station":
        return cls(name=dto.name, code=dto.code, region=dto.region)


class Connection(CamelModel):
    station: Station
    arrival_time: str
    departure_time: str
    platform: str | None = None
    duration: int = Field(..., ge=0, description="Connection wait in minutes.")

    @classmethod
    def from_dto(cls, dto: ConnectionDTO) -> "Connection":
        return cls(
            station=Station.from_dto(dto.station),
            arrival_time=dto.arrival_time,
            departure_time=dto.departure_time,
            platform=dto.platform,
            duration=dto.duration,
        )


class Train(CamelModel):
    train_number: str
    type: str
    departure_time: str = Field(..., description="Departure time as HH:MM.")
    arrival_time: str = Field(..., description="Arrival time as HH:MM.")
    duration: int = Field(..., description="Journey duration in minutes.")
    stops: int
    platform: str | None = None
    tgv_max_available: bool | None = None
    price: float | None = None
    connections: list[Connection] | None = None

    @classmethod
    def from_dto(cls, dto: TrainDTO) -> "Train":
        return cls(
            train_number=dto.train_number,
            type=dto.type,
            departure_time=dto.departure_time,
            arrival_time=dto.arrival_time,
            duration=dto.duration,
            stops=dto.stops,
            platform=dto.platform,
            tgv_max_available=dto.tgv_max_available,
            price=dto.price,
            connections=[Connection.from_dto(item) for item in dto.connections]
            or None,
        )


class Route(CamelModel):
    departure_station: Station
    arrival_station: Station
    date: dt.date


class TrainSearchResponse(CamelModel):
    trains: list[Train] = Field(default_factory=list)
    search_date: dt.date
    route: Route
    total_results: int
    warning: str | None = Field(
        None, description="Set only when the static fallback timetable served the data."
    )

    @classmethod
    def from_dtos(
        cls,
        departure: StationDTO,
        arrival: StationDTO,
        travel_date: dt.date,
        trains: Iterable[TrainDTO],
        warning: str | None = None,
    ) -> "TrainSearchResponse":
        items = [Train.from_dto(train) for train in trains]
        return cls(
            trains=items,
            search_date=travel_date,
            route=Route(
                departure_station=Station.from_dto(departure),
                arrival_station=Station.from_dto(arrival),
                date=travel_date,
            ),
            total_results=len(items),
            warning=warning,
        )


class ApiErrorPayload(BaseModel):
    message: str
    code: str
    details: str | None = None


class StationSearchResponse(BaseModel):
    query: str = Field(..., description="Original station query string.")
    results: list[Station] = Field(default_factory=list)

    @classmethod
    def from_dtos(
        cls, query: str, stations: Iterable[StationDTO]
    ) -> "StationSearchResponse":
        return cls(query=query, results=[Station.from_dto(dto) for dto in stations])
