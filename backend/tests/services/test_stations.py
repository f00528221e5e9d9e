"""Tests for the static station directory."""

from __future__ import annotations

import pytest

from app.services.sncf_dto import Station
from app.services.stations import (
    MAX_SEARCH_RESULTS,
    STATIONS,
    StationDirectory,
    normalize_text,
)


@pytest.fixture
def directory() -> StationDirectory:
    return StationDirectory()


def test_normalize_text_strips_accents_and_case():
    assert normalize_text("Saint-Étienne Châteaucreux") == "saint-etienne chateaucreux"
    assert normalize_text("NÎMES") == "nimes"


def test_bundled_station_codes_are_unique():
    codes = [station.code for station in STATIONS]
    assert len(codes) == len(set(codes))


def test_duplicate_codes_are_rejected():
    with pytest.raises(ValueError, match="FRPLY"):
        StationDirectory(
            [Station("Paris Gare de Lyon", "FRPLY"), Station("Other", "FRPLY")]
        )


class TestSearch:
    """Autocomplete search over names and regions."""

    def test_prefix_matches_come_first(self, directory):
        names = [station.name for station in directory.search("lyon")]

        assert names == ["Lyon Part-Dieu", "Lyon Perrache", "Paris Gare de Lyon"]

    def test_search_is_accent_insensitive(self, directory):
        assert [station.code for station in directory.search("nimes")] == ["FRNIM"]
        assert [station.code for station in directory.search("NÎMES")] == ["FRNIM"]

    def test_search_matches_region(self, directory):
        results = directory.search("bretagne")

        assert results
        assert all(station.region == "Bretagne" for station in results)

    def test_results_are_capped(self, directory):
        results = directory.search("an")

        assert len(results) == MAX_SEARCH_RESULTS
        assert [station.name for station in results[:3]] == [
            "Angers Saint-Laud",
            "Angoulême",
            "Annecy",
        ]

    def test_every_result_contains_query(self, directory):
        for query in ("par", "ville", "tgv", "sa"):
            for station in directory.search(query):
                haystack = normalize_text(f"{station.name} {station.region or ''}")
                assert normalize_text(query) in haystack

    @pytest.mark.parametrize("query", ["", "p", "P", " ", "É"])
    def test_short_queries_return_nothing(self, directory, query):
        assert directory.search(query) == []

    def test_single_capital_letter_returns_nothing(self, directory):
        assert directory.search("P") == []

    def test_query_case_does_not_change_results(self, directory):
        lower = directory.search("paris")

        assert lower
        assert directory.search("PARIS") == lower
        assert directory.search("Paris") == lower
        assert all("paris" in normalize_text(station.name) for station in lower)

    def test_unknown_query_returns_empty_list(self, directory):
        assert directory.search("zzzz") == []


class TestLookups:
    """Exact lookups by code and by name."""

    def test_by_code_is_exact(self, directory):
        assert directory.by_code("FRLPD").name == "Lyon Part-Dieu"
        assert directory.by_code("frlpd") is None
        assert directory.by_code("UNKNOWN") is None

    def test_by_name_ignores_case_and_accents(self, directory):
        assert directory.by_name("paris gare de lyon").code == "FRPLY"
        assert directory.by_name("SAINT-ETIENNE CHATEAUCREUX").code == "FRSTE"

    def test_by_name_requires_full_name(self, directory):
        assert directory.by_name("Lyon") is None
