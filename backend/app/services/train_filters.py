"""Post-retrieval filtering and ordering of train lists."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar


class SortOrder(str, Enum):
    EARLIEST = "earliest"
    FASTEST = "fastest"
    CONNECTIONS = "connections"


class TrainLike(Protocol):
    departure_time: str
    duration: int
    stops: int
    tgv_max_available: bool | None


T = TypeVar("T", bound=TrainLike)


@dataclass(frozen=True)
class SearchFilters:
    """User filters applied to a search response.

    Time bounds are inclusive ``HH:MM`` strings compared lexicographically.
    """

    departure_after: str | None = None
    departure_before: str | None = None
    max_duration: int | None = None
    max_connections: int | None = None
    tgv_max_only: bool = False
    sort_by: SortOrder = SortOrder.EARLIEST

    def matches(self, train: TrainLike) -> bool:
        if self.tgv_max_only and not train.tgv_max_available:
            return False
        if self.departure_after and train.departure_time < self.departure_after:
            return False
        if self.departure_before and train.departure_time > self.departure_before:
            return False
        if self.max_duration is not None and train.duration > self.max_duration:
            return False
        if self.max_connections is not None and train.stops > self.max_connections:
            return False
        return True


def sort_trains(trains: Iterable[T], order: SortOrder = SortOrder.EARLIEST) -> list[T]:
    """Stable sort; ties keep departure order."""
    by_departure = sorted(trains, key=lambda train: train.departure_time)
    if order is SortOrder.FASTEST:
        return sorted(by_departure, key=lambda train: train.duration)
    if order is SortOrder.CONNECTIONS:
        return sorted(by_departure, key=lambda train: train.stops)
    return by_departure


def apply_filters(trains: Iterable[T], filters: SearchFilters) -> list[T]:
    return sort_trains(
        (train for train in trains if filters.matches(train)), filters.sort_by
    )


__all__ = ["SearchFilters", "SortOrder", "apply_filters", "sort_trains"]
