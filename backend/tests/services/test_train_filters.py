"""Tests for post-retrieval filters and sort orders."""

from __future__ import annotations

from app.services.sncf_dto import Train
from app.services.train_filters import SearchFilters, SortOrder, apply_filters, sort_trains


def _train(number, departure, duration, stops=0, tgv_max=False):
    return Train(
        train_number=number,
        type="TGV",
        departure_time=departure,
        arrival_time=departure,
        duration=duration,
        stops=stops,
        tgv_max_available=tgv_max,
    )


TRAINS = [
    _train("C", "12:00", 120, stops=1),
    _train("A", "06:52", 122, tgv_max=True),
    _train("B", "09:00", 110, stops=2, tgv_max=True),
    _train("D", "18:00", 110),
]


def _numbers(trains):
    return [train.train_number for train in trains]


def test_default_sort_is_earliest_departure():
    assert _numbers(sort_trains(TRAINS)) == ["A", "B", "C", "D"]


def test_fastest_keeps_departure_order_on_ties():
    assert _numbers(sort_trains(TRAINS, SortOrder.FASTEST)) == ["B", "D", "C", "A"]


def test_fewest_connections():
    assert _numbers(sort_trains(TRAINS, SortOrder.CONNECTIONS)) == ["A", "D", "C", "B"]


def test_no_filters_returns_everything():
    assert len(apply_filters(TRAINS, SearchFilters())) == len(TRAINS)


def test_tgv_max_only():
    assert _numbers(apply_filters(TRAINS, SearchFilters(tgv_max_only=True))) == ["A", "B"]


def test_departure_window_is_inclusive():
    filters = SearchFilters(departure_after="09:00", departure_before="12:00")

    assert _numbers(apply_filters(TRAINS, filters)) == ["B", "C"]


def test_duration_and_connection_limits():
    filters = SearchFilters(max_duration=120, max_connections=1)

    assert _numbers(apply_filters(TRAINS, filters)) == ["C", "D"]


def test_filters_combine_with_sort():
    filters = SearchFilters(tgv_max_only=True, sort_by=SortOrder.FASTEST)

    assert _numbers(apply_filters(TRAINS, filters)) == ["B", "A"]


def test_unknown_availability_is_excluded_from_tgv_max_only():
    train = Train("X", "TGV", "10:00", "12:00", 120, 0, tgv_max_available=None)

    assert apply_filters([train], SearchFilters(tgv_max_only=True)) == []
