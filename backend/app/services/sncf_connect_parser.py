"""Journey extraction from SNCF Connect result pages.

SNCF Connect markup is not under our control and changes without notice, so
rows are located through an ordered list of named extraction strategies.
Each strategy is tried in turn; the first one producing at least one row with
valid departure and arrival times wins. When every strategy comes up empty,
``ExtractionExhaustedError`` names the strategies that were tried.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from app.services.sncf_dto import Train
from app.services.sncf_errors import ExtractionExhaustedError
from app.services.train_times import minutes_between, normalize_clock

logger = logging.getLogger(__name__)

TIME_RE = re.compile(r"(?<!\d)([01]?\d|2[0-3])\s*[:hH]\s*([0-5]\d)(?!\d)")
DURATION_RE = re.compile(
    r"(?<!\d)(\d{1,2})\s*h\s*(\d{1,2})?(?!\d)|(?<!\d)(\d{1,3})\s*min", re.IGNORECASE
)
TRAIN_TYPE_RE = re.compile(r"\b(TGV|TER|OUIGO|Intercit[ée]s)\b", re.IGNORECASE)
TRAIN_NUMBER_RE = re.compile(
    r"\b(TGV|TER|OUIGO|Intercit[ée]s)\s*(?:INOUI\s*)?(?:n°\s*)?(\d{3,5})\b",
    re.IGNORECASE,
)
PRICE_RE = re.compile(r"(?<![\d.,])(\d+(?:[.,]\d{1,2})?)\s*€")
ZERO_PRICE_RE = re.compile(r"(?<![\d.,])0(?:[.,]00?)?\s*€")
TRANSFERS_RE = re.compile(r"(\d+)\s*correspondance", re.IGNORECASE)
PLATFORM_RE = re.compile(r"\bvoie\s+([0-9A-Z]{1,3})\b", re.IGNORECASE)

_TRAIN_TYPES = {
    "tgv": "TGV",
    "ter": "TER",
    "ouigo": "OUIGO",
    "intercités": "Intercités",
    "intercites": "Intercités",
}
DEFAULT_TRAIN_TYPE = "Train"


@dataclass(frozen=True)
class ExtractionStrategy:
    """Named row selector with optional structured sub-selectors.

    ``fields`` maps Train attribute names to CSS selectors evaluated inside a
    row; a field without a selector (or whose selector finds nothing) is
    recovered by scanning the row's text.
    """

    name: str
    row_selector: str
    fields: Mapping[str, str] = field(default_factory=dict)

    def extract(self, soup: BeautifulSoup | Tag) -> list[Train]:
        rows = soup.select(self.row_selector)
        # Broad selectors also hit list containers; keep only innermost rows.
        row_ids = {id(row) for row in rows}
        rows = [
            row
            for row in rows
            if not any(id(child) in row_ids for child in row.find_all(True))
        ]

        trains: list[Train] = []
        for index, row in enumerate(rows):
            train = parse_row(row, index, self.fields)
            if train is not None:
                trains.append(train)
        return trains


STRATEGIES: tuple[ExtractionStrategy, ...] = (
    ExtractionStrategy(
        name="journey-card-testid",
        row_selector='[data-testid="journey-card"]',
        fields={
            "departure_time": '[data-testid="departure-time"]',
            "arrival_time": '[data-testid="arrival-time"]',
            "duration": '[data-testid="duration"]',
            "type": '[data-testid="train-type"]',
            "train_number": '[data-testid="train-number"]',
            "price": '[data-testid="price"]',
            "connection_stations": '[data-testid="connection-station"]',
        },
    ),
    ExtractionStrategy(
        name="proposal-card",
        row_selector='[data-testid*="proposal"], [class*="proposal"], [class*="Proposal"]',
    ),
    ExtractionStrategy(
        name="travel-result",
        row_selector=(
            '[class*="travel-result"], [class*="TravelResult"], '
            '[class*="journey-card"], [class*="JourneyCard"]'
        ),
    ),
    ExtractionStrategy(
        name="itinerary-list-item",
        row_selector='ul[class*="itinerar"] > li, ol[class*="result"] > li, [role="listitem"]',
    ),
    ExtractionStrategy(name="article-row", row_selector="main article"),
)


def parse_journeys(
    html: str, strategies: Sequence[ExtractionStrategy] = STRATEGIES
) -> list[Train]:
    """Return the trains found by the first strategy that yields any."""
    soup = BeautifulSoup(html, "html.parser")
    for strategy in strategies:
        trains = strategy.extract(soup)
        if trains:
            logger.debug(
                "Extraction strategy '%s' matched %d journeys", strategy.name, len(trains)
            )
            return trains
        logger.debug("Extraction strategy '%s' found no journeys", strategy.name)
    raise ExtractionExhaustedError([strategy.name for strategy in strategies])


def parse_row(
    row: Tag, index: int, fields: Mapping[str, str] | None = None
) -> Train | None:
    """Map a journey card to a Train, or None when it lacks usable times."""
    fields = fields or {}
    text = row.get_text(" ", strip=True)

    departure, arrival, time_starts = _extract_times(row, text, fields)
    if departure is None or arrival is None:
        return None

    duration = _extract_duration(row, text, fields, time_starts)
    if duration is None:
        duration = minutes_between(departure, arrival)

    train_type = _extract_train_type(row, text, fields)
    price_text = _field_text(row, fields, "price") or text

    return Train(
        train_number=_extract_train_number(row, text, fields) or f"{train_type}{index}",
        type=train_type,
        departure_time=departure,
        arrival_time=arrival,
        duration=duration or 0,
        stops=_extract_transfers(row, text, fields),
        platform=_first_group(PLATFORM_RE, text),
        tgv_max_available=detect_tgv_max(row, text, price_text),
        price=_extract_price(price_text),
    )


def detect_tgv_max(row: Tag, text: str, price_text: str) -> bool:
    """Heuristic TGV MAX detection: keyword, zero price or tagged markup."""
    lowered = text.lower()
    if "tgv max" in lowered or "tgvmax" in lowered:
        return True
    if ZERO_PRICE_RE.search(price_text):
        return True
    for node in [row, *row.find_all(True)]:
        classes = " ".join(node.get("class") or []).lower()
        if "tgvmax" in classes or "tgv-max" in classes:
            return True
        if "tgv max" in str(node.get("aria-label") or "").lower():
            return True
    return False


def parse_duration(value: str) -> int | None:
    """Parse "2h30", "2 h", "45 min" into minutes."""
    match = DURATION_RE.search(value)
    if not match:
        return None
    return _duration_from_match(match)


def _duration_from_match(match: re.Match[str]) -> int:
    hours, minutes, only_minutes = match.groups()
    if only_minutes is not None:
        return int(only_minutes)
    return int(hours) * 60 + (int(minutes) if minutes else 0)


def _field_text(row: Tag, fields: Mapping[str, str], name: str) -> str | None:
    selector = fields.get(name)
    if not selector:
        return None
    node = row.select_one(selector)
    if node is None:
        return None
    return node.get_text(" ", strip=True) or None


def _extract_times(
    row: Tag, text: str, fields: Mapping[str, str]
) -> tuple[str | None, str | None, set[int]]:
    departure = _clock_from(_field_text(row, fields, "departure_time"))
    arrival = _clock_from(_field_text(row, fields, "arrival_time"))
    if departure and arrival:
        return departure, arrival, set()

    matches = list(TIME_RE.finditer(text))
    # "2h02" reads as a clock too; prefer HH:MM tokens when there are enough.
    colon_matches = [match for match in matches if ":" in match.group(0)]
    if len(colon_matches) >= 2:
        matches = colon_matches
    if len(matches) < 2:
        return None, None, set()
    departure = departure or normalize_clock(f"{matches[0].group(1)}:{matches[0].group(2)}")
    arrival = arrival or normalize_clock(f"{matches[1].group(1)}:{matches[1].group(2)}")
    return departure, arrival, {matches[0].start(), matches[1].start()}


def _clock_from(value: str | None) -> str | None:
    if not value:
        return None
    match = TIME_RE.search(value)
    if not match:
        return None
    return normalize_clock(f"{match.group(1)}:{match.group(2)}")


def _extract_duration(
    row: Tag, text: str, fields: Mapping[str, str], time_starts: set[int]
) -> int | None:
    structured = _field_text(row, fields, "duration")
    if structured:
        return parse_duration(structured)
    for match in DURATION_RE.finditer(text):
        if match.start() in time_starts:
            continue
        return _duration_from_match(match)
    return None


def _extract_train_type(row: Tag, text: str, fields: Mapping[str, str]) -> str:
    for candidate in (_field_text(row, fields, "type"), text):
        if not candidate:
            continue
        match = TRAIN_TYPE_RE.search(candidate)
        if match:
            return _TRAIN_TYPES[match.group(1).lower()]
    return _field_text(row, fields, "type") or DEFAULT_TRAIN_TYPE


def _extract_train_number(
    row: Tag, text: str, fields: Mapping[str, str]
) -> str | None:
    structured = _field_text(row, fields, "train_number")
    if structured:
        return structured.replace(" ", "")
    match = TRAIN_NUMBER_RE.search(text)
    if not match:
        return None
    return f"{_TRAIN_TYPES[match.group(1).lower()]}{match.group(2)}"


def _extract_transfers(row: Tag, text: str, fields: Mapping[str, str]) -> int:
    """One per listed connection station, else the "N correspondance" text."""
    selector = fields.get("connection_stations")
    if selector:
        stations = row.select(selector)
        if stations:
            return len(stations)
    count = _first_group(TRANSFERS_RE, text)
    return int(count) if count else 0


def _extract_price(price_text: str) -> float | None:
    value = _first_group(PRICE_RE, price_text)
    if value is None:
        return None
    return float(value.replace(",", "."))


def _first_group(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return match.group(1) if match else None


__all__ = [
    "ExtractionStrategy",
    "STRATEGIES",
    "parse_journeys",
    "parse_row",
    "parse_duration",
    "detect_tgv_max",
]
