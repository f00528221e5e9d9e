"""Randomized train lists used when the service runs in mock mode."""

from __future__ import annotations

import random
from datetime import date, datetime, time, timedelta

from app.services.sncf_dto import Train

MOCK_FIRST_DEPARTURE = time(6, 0)
MOCK_TRAIN_TYPES = ("TGV", "TGV", "TGV", "TER", "Intercités")


def mock_trains(
    departure: str,
    arrival: str,
    travel_date: date,
    rng: random.Random | None = None,
) -> list[Train]:
    """Generate 10-15 hourly trains from 06:00, sorted by departure time.

    Availability, platform and price are random placeholders; only about a
    third of the TGVs carry a TGV MAX seat.
    """
    rng = rng or random.Random()
    base = datetime.combine(travel_date, MOCK_FIRST_DEPARTURE)
    trains: list[Train] = []

    for index in range(rng.randint(10, 15)):
        departs_at = base + timedelta(hours=index)
        duration = rng.randint(120, 299)
        arrives_at = departs_at + timedelta(minutes=duration)
        train_type = rng.choice(MOCK_TRAIN_TYPES)
        tgv_max = train_type == "TGV" and rng.random() > 0.7

        trains.append(
            Train(
                train_number=f"{train_type}{rng.randint(1000, 9999)}",
                type=train_type,
                departure_time=departs_at.strftime("%H:%M"),
                arrival_time=arrives_at.strftime("%H:%M"),
                duration=duration,
                stops=rng.randrange(4),
                platform=str(rng.randint(1, 20)) if rng.random() > 0.5 else None,
                tgv_max_available=tgv_max,
                price=rng.randint(40, 119)
                if train_type == "TGV"
                else rng.randint(20, 59),
            )
        )

    trains.sort(key=lambda train: train.departure_time)
    return trains


__all__ = ["mock_trains"]
