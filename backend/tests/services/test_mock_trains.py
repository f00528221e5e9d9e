"""Tests for the mock train generator."""

from __future__ import annotations

import random
from datetime import date

import pytest

from app.services.mock_trains import MOCK_TRAIN_TYPES, mock_trains
from app.services.train_times import minutes_between

TRAVEL_DATE = date(2025, 3, 14)


@pytest.mark.parametrize("seed", range(10))
def test_generates_hourly_trains_from_six(seed):
    trains = mock_trains("Paris Gare de Lyon", "Lyon Part-Dieu", TRAVEL_DATE, random.Random(seed))

    assert 10 <= len(trains) <= 15
    assert [train.departure_time for train in trains] == [
        f"{6 + index:02d}:00" for index in range(len(trains))
    ]


@pytest.mark.parametrize("seed", range(10))
def test_train_fields_stay_in_range(seed):
    for train in mock_trains("A", "B", TRAVEL_DATE, random.Random(seed)):
        assert 120 <= train.duration <= 299
        assert minutes_between(train.departure_time, train.arrival_time) == train.duration
        assert train.type in MOCK_TRAIN_TYPES
        assert train.train_number.startswith(train.type)
        assert 0 <= train.stops <= 3
        if train.type == "TGV":
            assert 40 <= train.price <= 119
        else:
            assert 20 <= train.price <= 59
            assert train.tgv_max_available is False
        if train.platform is not None:
            assert 1 <= int(train.platform) <= 20


def test_same_seed_is_deterministic():
    first = mock_trains("A", "B", TRAVEL_DATE, random.Random(3))
    second = mock_trains("A", "B", TRAVEL_DATE, random.Random(3))

    assert first == second


def test_results_are_sorted_by_departure():
    trains = mock_trains("A", "B", TRAVEL_DATE, random.Random(11))

    assert trains == sorted(trains, key=lambda train: train.departure_time)
