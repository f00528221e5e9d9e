"""Exceptions raised by the station directory and the train sources."""

from __future__ import annotations


class StationNotFoundError(Exception):
    """Raised when a station name cannot be resolved in the directory."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Station not found for name '{name}'.")
        self.name = name


class TrainSourceError(Exception):
    """Base class for failures of a live train source.

    The orchestrator treats any of these as "source exhausted" and moves on
    to the next source.
    """


class ScrapingError(TrainSourceError):
    """Raised when SNCF Connect cannot be scraped."""


class ExtractionExhaustedError(ScrapingError):
    """Raised when no extraction strategy produced a usable journey row."""

    def __init__(self, strategies: list[str]) -> None:
        super().__init__(
            "No journey rows extracted; strategies tried: " + ", ".join(strategies)
        )
        self.strategies = strategies


class SecondaryApiError(TrainSourceError):
    """Raised when a journey API endpoint answers with an unusable payload."""


__all__ = [
    "StationNotFoundError",
    "TrainSourceError",
    "ScrapingError",
    "ExtractionExhaustedError",
    "SecondaryApiError",
]
