"""Secondary train source backed by public SNCF journey APIs."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

import httpx

from app.core.telemetry import add_traceparent_header
from app.services.sncf_dto import Station, Train
from app.services.sncf_errors import SecondaryApiError

logger = logging.getLogger(__name__)

USER_AGENT = "TGVMaxChecker/1.0"
NAVITIA_DATETIME_FORMAT = "%Y%m%dT%H%M%S"
TGV_MAX_TAG = "TGV_MAX"


class SNCFApiClient:
    """Query journey endpoint templates in order until one returns journeys.

    Templates are formatted with ``origin``, ``destination`` (station codes)
    and ``date`` (``YYYYMMDD``). Any failure yields an empty list so the
    orchestrator falls through to the static timetable.
    """

    name = "api"

    def __init__(
        self,
        endpoints: Sequence[str],
        timeout_seconds: float = 10.0,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoints = list(endpoints)
        self._timeout = timeout_seconds
        self._token = token
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if self._token:
            headers["Authorization"] = self._token
        return add_traceparent_header(headers)

    async def fetch(
        self, departure: Station, arrival: Station, travel_date: date
    ) -> list[Train]:
        date_str = travel_date.strftime("%Y%m%d")
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._headers(),
                transport=self._transport,
            ) as client:
                for template in self._endpoints:
                    url = template.format(
                        origin=departure.code,
                        destination=arrival.code,
                        date=date_str,
                    )
                    journeys = await self._fetch_journeys(client, url)
                    if journeys is not None:
                        return parse_journeys(journeys)
        except Exception:
            logger.exception("Journey API lookup failed")
        return []

    async def _fetch_journeys(
        self, client: httpx.AsyncClient, url: str
    ) -> list[dict[str, Any]] | None:
        start = time.perf_counter()
        try:
            response = await client.get(url)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.info(
                "Journey endpoint failed after %.2fs: %s (%s)",
                time.perf_counter() - start,
                url,
                exc,
            )
            return None

        journeys = payload.get("journeys") if isinstance(payload, dict) else None
        if not isinstance(journeys, list):
            logger.info("Journey endpoint returned no journeys: %s", url)
            return None
        return journeys


def parse_journeys(journeys: list[dict[str, Any]]) -> list[Train]:
    """Map navitia-style journey documents to trains, skipping unusable ones."""
    trains: list[Train] = []
    for index, journey in enumerate(journeys):
        try:
            trains.append(parse_journey(journey, index))
        except (SecondaryApiError, AttributeError, TypeError, ValueError) as exc:
            logger.debug("Skipping journey %d: %s", index, exc)
    return trains


def parse_journey(journey: dict[str, Any], index: int) -> Train:
    departs_at = parse_timestamp(
        journey.get("departure_date_time") or journey.get("departure")
    )
    arrives_at = parse_timestamp(
        journey.get("arrival_date_time") or journey.get("arrival")
    )

    sections = journey.get("sections") or [{}]
    first_section = sections[0] or {}
    info = first_section.get("display_informations") or {}
    stop_point = first_section.get("stop_point_departure") or {}
    price = journey_price(journey)

    return Train(
        train_number=info.get("headsign") or f"Train{index}",
        type=info.get("commercial_mode") or "Train",
        departure_time=departs_at.strftime("%H:%M"),
        arrival_time=arrives_at.strftime("%H:%M"),
        duration=round((arrives_at - departs_at).total_seconds() / 60),
        stops=int(journey.get("nb_transfers") or 0),
        platform=stop_point.get("platform"),
        tgv_max_available=is_tgv_max(journey, info, price),
        price=price,
    )


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 or navitia ``YYYYMMDDTHHMMSS`` timestamp.

    Returns the naive local wall-clock time; any UTC offset is dropped so
    navitia and ISO values can be subtracted from each other.
    """
    if not isinstance(value, str) or not value:
        raise SecondaryApiError(f"Missing journey timestamp: {value!r}")
    try:
        return datetime.strptime(value, NAVITIA_DATETIME_FORMAT)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise SecondaryApiError(f"Unparseable journey timestamp: {value!r}") from exc
    return parsed.replace(tzinfo=None)


def journey_price(journey: dict[str, Any]) -> float | None:
    for container, key in (("price", "value"), ("fare", "price")):
        section = journey.get(container)
        if isinstance(section, dict) and section.get(key) is not None:
            try:
                return float(section[key])
            except (TypeError, ValueError):
                continue
    return None


def is_tgv_max(
    journey: dict[str, Any], info: dict[str, Any], price: float | None
) -> bool:
    mode = str(info.get("commercial_mode") or "").lower()
    if "tgv" not in mode:
        return False
    return price == 0 or TGV_MAX_TAG in (journey.get("tags") or [])


__all__ = ["SNCFApiClient", "parse_journeys", "parse_timestamp"]
