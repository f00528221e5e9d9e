"""Data transfer objects shared by the train sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class Station:
    """Station entry from the static directory."""

    name: str
    code: str
    region: str | None = None


@dataclass(frozen=True)
class Connection:
    """Intermediate change of train within a journey."""

    station: Station
    arrival_time: str
    departure_time: str
    duration: int
    platform: str | None = None


@dataclass(frozen=True)
class Train:
    """Single train offer between two stations.

    ``departure_time`` and ``arrival_time`` are zero-padded ``HH:MM`` strings
    on the travel day, so lexicographic order is chronological order.
    """

    train_number: str
    type: str
    departure_time: str
    arrival_time: str
    duration: int
    stops: int
    platform: str | None = None
    tgv_max_available: bool | None = None
    price: float | None = None
    connections: List[Connection] = field(default_factory=list)


__all__ = ["Station", "Connection", "Train"]
