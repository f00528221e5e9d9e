"""Helpers for ``HH:MM`` wall-clock strings."""

from __future__ import annotations

import re

_MINUTES_PER_DAY = 24 * 60
_CLOCK_RE = re.compile(r"^(\d{1,2})[:hH](\d{2})$")


def parse_clock(value: str) -> int | None:
    """Return minutes after midnight for ``HH:MM`` or ``HHhMM``, else None."""
    match = _CLOCK_RE.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    """Format minutes after midnight as zero-padded ``HH:MM``, wrapping at 24h."""
    minutes %= _MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_clock(value: str) -> str | None:
    """Return ``value`` as zero-padded ``HH:MM`` or None when unparseable."""
    minutes = parse_clock(value)
    return None if minutes is None else format_clock(minutes)


def add_minutes(clock: str, minutes: int) -> str:
    start = parse_clock(clock)
    if start is None:
        raise ValueError(f"Invalid clock value '{clock}'.")
    return format_clock(start + minutes)


def minutes_between(departure: str, arrival: str) -> int | None:
    """Wall-clock minutes from departure to arrival, crossing midnight if needed."""
    start = parse_clock(departure)
    end = parse_clock(arrival)
    if start is None or end is None:
        return None
    return (end - start) % _MINUTES_PER_DAY


__all__ = [
    "parse_clock",
    "format_clock",
    "normalize_clock",
    "add_minutes",
    "minutes_between",
]
