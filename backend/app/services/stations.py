"""Static directory of French railway stations.

Searches are accent- and case-insensitive; lookups that do not match return
``None`` or an empty list rather than raising.
"""

from __future__ import annotations

import logging
import unicodedata
from collections.abc import Iterable
from functools import lru_cache

from app.services.sncf_dto import Station

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_SEARCH_RESULTS = 10

_IDF = "Île-de-France"
_ARA = "Auvergne-Rhône-Alpes"
_PACA = "Provence-Alpes-Côte d'Azur"
_HDF = "Hauts-de-France"
_OCC = "Occitanie"
_PDL = "Pays de la Loire"
_GE = "Grand Est"
_NA = "Nouvelle-Aquitaine"
_BRE = "Bretagne"
_NOR = "Normandie"
_BFC = "Bourgogne-Franche-Comté"
_CVL = "Centre-Val de Loire"

STATIONS: tuple[Station, ...] = (
    # Paris
    Station("Paris Gare de Lyon", "FRPLY", _IDF),
    Station("Paris Gare du Nord", "FRPNO", _IDF),
    Station("Paris Gare de l'Est", "FRPES", _IDF),
    Station("Paris Montparnasse", "FRPMO", _IDF),
    Station("Paris Saint-Lazare", "FRPSL", _IDF),
    Station("Paris Austerlitz", "FRPAU", _IDF),
    # Major cities
    Station("Lyon Part-Dieu", "FRLPD", _ARA),
    Station("Lyon Perrache", "FRLPE", _ARA),
    Station("Marseille Saint-Charles", "FRMSC", _PACA),
    Station("Lille Europe", "FRLLE", _HDF),
    Station("Lille Flandres", "FRLLF", _HDF),
    Station("Toulouse Matabiau", "FRTLS", _OCC),
    Station("Nice Ville", "FRNIC", _PACA),
    Station("Nantes", "FRNTE", _PDL),
    Station("Strasbourg", "FRXWG", _GE),
    Station("Montpellier Saint-Roch", "FRMPL", _OCC),
    Station("Bordeaux Saint-Jean", "FRBOJ", _NA),
    Station("Rennes", "FRRNS", _BRE),
    Station("Reims", "FRREI", _GE),
    Station("Rouen Rive Droite", "FRROU", _NOR),
    Station("Toulon", "FRTLN", _PACA),
    Station("Grenoble", "FRGRE", _ARA),
    Station("Dijon Ville", "FRDIJ", _BFC),
    Station("Angers Saint-Laud", "FRANG", _PDL),
    Station("Nîmes", "FRNIM", _OCC),
    Station("Clermont-Ferrand", "FRCFD", _ARA),
    Station("Aix-en-Provence TGV", "FRAIX", _PACA),
    Station("Avignon TGV", "FRAVG", _PACA),
    Station("Le Mans", "FRLMS", _PDL),
    Station("Tours", "FRTRS", _CVL),
    Station("Metz Ville", "FRETZ", _GE),
    Station("Nancy Ville", "FRNCY", _GE),
    Station("Besançon Viotte", "FRBES", _BFC),
    Station("Perpignan", "FRPPG", _OCC),
    Station("Orléans", "FRORL", _CVL),
    Station("Mulhouse Ville", "FRMUL", _GE),
    Station("Caen", "FRCAE", _NOR),
    Station("Brest", "FRBRS", _BRE),
    Station("Le Havre", "FRLEH", _NOR),
    Station("Amiens", "FRAMI", _HDF),
    Station("Limoges Bénédictins", "FRLIM", _NA),
    Station("Poitiers", "FRPOI", _NA),
    Station("Cannes", "FRCAN", _PACA),
    Station("Saint-Étienne Châteaucreux", "FRSTE", _ARA),
    Station("Annecy", "FRANN", _ARA),
    Station("Chambéry", "FRCHY", _ARA),
    Station("Valence TGV", "FRVAL", _ARA),
    Station("Angoulême", "FRANL", _NA),
    Station("Biarritz", "FRBIA", _NA),
    Station("Quimper", "FRQUI", _BRE),
    Station("La Rochelle Ville", "FRLRH", _NA),
    Station("Vannes", "FRVAN", _BRE),
    Station("Arras", "FRARS", _HDF),
    Station("Dunkerque", "FRDKK", _HDF),
    Station("Saint-Malo", "FRSML", _BRE),
    Station("Belfort", "FRBEL", _BFC),
    Station("Colmar", "FRCMR", _GE),
    Station("Marne-la-Vallée Chessy (Disneyland)", "FRMLV", _IDF),
    Station("Massy TGV", "FRMTG", _IDF),
    Station("Charles de Gaulle 2 TGV", "FRCDG", _IDF),
)


def normalize_text(value: str) -> str:
    """Return a lowercase, accent-insensitive representation of text."""
    normalized = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return stripped.lower()


class StationDirectory:
    """In-memory station lookup with accent-insensitive search."""

    def __init__(self, stations: Iterable[Station] = STATIONS) -> None:
        self._stations = tuple(stations)
        self._by_code: dict[str, Station] = {}
        self._by_normalized_name: dict[str, Station] = {}

        for station in self._stations:
            if station.code in self._by_code:
                raise ValueError(f"Duplicate station code '{station.code}'.")
            self._by_code[station.code] = station
            self._by_normalized_name.setdefault(normalize_text(station.name), station)

        logger.debug("Loaded station directory with %d stations", len(self._stations))

    @property
    def stations(self) -> tuple[Station, ...]:
        return self._stations

    def search(self, query: str, limit: int = MAX_SEARCH_RESULTS) -> list[Station]:
        """Return stations whose name or region contains ``query``.

        Stations whose name starts with the query come first, the rest follow
        alphabetically. Queries shorter than two characters match nothing.
        """
        normalized_query = normalize_text(query)
        if len(normalized_query) < MIN_QUERY_LENGTH or limit <= 0:
            return []

        matches = [
            station
            for station in self._stations
            if normalized_query in normalize_text(station.name)
            or normalized_query in normalize_text(station.region or "")
        ]
        matches.sort(
            key=lambda station: (
                not normalize_text(station.name).startswith(normalized_query),
                normalize_text(station.name),
            )
        )
        return matches[: min(limit, MAX_SEARCH_RESULTS)]

    def by_code(self, code: str) -> Station | None:
        """Exact, case-sensitive lookup by station code."""
        return self._by_code.get(code)

    def by_name(self, name: str) -> Station | None:
        """Case- and accent-insensitive exact lookup by station name."""
        return self._by_normalized_name.get(normalize_text(name))


@lru_cache
def get_station_directory() -> StationDirectory:
    """Return the shared directory built from the bundled station list."""
    return StationDirectory()


__all__ = [
    "STATIONS",
    "StationDirectory",
    "get_station_directory",
    "normalize_text",
]
