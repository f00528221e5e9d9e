"""Tests for the SNCF Connect scraping source using a fake browser page."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date

import pytest
from playwright.async_api import Error as PlaywrightError

from app.services.sncf_connect_scraper import (
    ARRIVAL_INPUT_SELECTORS,
    CONSENT_SELECTORS,
    DATE_INPUT_SELECTORS,
    DEPARTURE_INPUT_SELECTORS,
    SUBMIT_SELECTORS,
    SUGGESTION_SELECTORS,
    SNCFConnectScraper,
)
from app.services.sncf_dto import Station
from app.services.sncf_errors import ExtractionExhaustedError, ScrapingError
from tests.fixtures.sncf_connect_pages import (
    EMPTY_RESULTS_PAGE,
    JOURNEY_CARD_TESTID_PAGE,
)

PARIS = Station("Paris Gare de Lyon", "FRPLY")
LYON = Station("Lyon Part-Dieu", "FRLPD")
TRAVEL_DATE = date(2025, 3, 14)

FULL_FORM = {
    CONSENT_SELECTORS[0],
    DEPARTURE_INPUT_SELECTORS[1],
    ARRIVAL_INPUT_SELECTORS[1],
    DATE_INPUT_SELECTORS[2],
    SUGGESTION_SELECTORS[0],
    SUBMIT_SELECTORS[0],
}


class FakePage:
    """Records the calls a scrape makes against a page."""

    def __init__(
        self,
        present: set[str],
        html: str = JOURNEY_CARD_TESTID_PAGE,
        goto_error: Exception | None = None,
    ) -> None:
        self.present = set(present)
        self.html = html
        self.goto_error = goto_error
        self.calls: list[tuple] = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.calls.append(("goto", url, wait_until, timeout))
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_selector(self, selector, timeout=None):
        if selector not in self.present:
            raise PlaywrightError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def click(self, selector):
        self.calls.append(("click", selector))

    async def fill(self, selector, value):
        self.calls.append(("fill", selector, value))

    async def press(self, selector, key):
        self.calls.append(("press", selector, key))

    async def evaluate(self, script, arg):
        self.calls.append(("evaluate", arg))

    async def wait_for_timeout(self, timeout):
        self.calls.append(("wait", timeout))

    async def content(self):
        return self.html


class FakeSession:
    def __init__(self, page: FakePage) -> None:
        self._page = page
        self.checkouts = 0

    @asynccontextmanager
    async def page(self):
        self.checkouts += 1
        yield self._page


def _scraper(page: FakePage) -> SNCFConnectScraper:
    return SNCFConnectScraper(
        FakeSession(page),
        url="https://www.sncf-connect.com/",
        timeout_ms=1234,
        results_delay_ms=50,
    )


@pytest.mark.asyncio
async def test_fetch_fills_form_and_parses_results():
    page = FakePage(FULL_FORM)

    trains = await _scraper(page).fetch(PARIS, LYON, TRAVEL_DATE)

    assert [train.train_number for train in trains] == ["TGV6607", "OUIGO7681"]
    assert page.calls[0] == (
        "goto",
        "https://www.sncf-connect.com/",
        "networkidle",
        1234,
    )
    assert ("click", CONSENT_SELECTORS[0]) in page.calls
    assert ("fill", DEPARTURE_INPUT_SELECTORS[1], "Paris Gare de Lyon") in page.calls
    assert ("fill", ARRIVAL_INPUT_SELECTORS[1], "Lyon Part-Dieu") in page.calls
    assert ("evaluate", [DATE_INPUT_SELECTORS[2], "2025-03-14"]) in page.calls
    assert ("click", SUBMIT_SELECTORS[0]) in page.calls
    assert page.calls[-1] == ("wait", 50)


@pytest.mark.asyncio
async def test_missing_consent_banner_is_ignored():
    page = FakePage(FULL_FORM - {CONSENT_SELECTORS[0]})

    trains = await _scraper(page).fetch(PARIS, LYON, TRAVEL_DATE)

    assert trains
    assert not any(
        call[0] == "click" and call[1] in CONSENT_SELECTORS for call in page.calls
    )


@pytest.mark.asyncio
async def test_typed_value_is_submitted_without_suggestions():
    page = FakePage(FULL_FORM - {SUGGESTION_SELECTORS[0]})

    await _scraper(page).fetch(PARIS, LYON, TRAVEL_DATE)

    assert ("press", DEPARTURE_INPUT_SELECTORS[1], "Enter") in page.calls
    assert ("press", ARRIVAL_INPUT_SELECTORS[1], "Enter") in page.calls


@pytest.mark.asyncio
async def test_page_load_failure_raises_scraping_error():
    page = FakePage(FULL_FORM, goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))

    with pytest.raises(ScrapingError, match="failed to load"):
        await _scraper(page).fetch(PARIS, LYON, TRAVEL_DATE)


@pytest.mark.asyncio
async def test_missing_form_field_raises_scraping_error():
    page = FakePage(FULL_FORM - {ARRIVAL_INPUT_SELECTORS[1]})

    with pytest.raises(ScrapingError, match="arrival input not found"):
        await _scraper(page).fetch(PARIS, LYON, TRAVEL_DATE)


@pytest.mark.asyncio
async def test_missing_submit_button_raises_scraping_error():
    page = FakePage(FULL_FORM - {SUBMIT_SELECTORS[0]})

    with pytest.raises(ScrapingError, match="Search button"):
        await _scraper(page).fetch(PARIS, LYON, TRAVEL_DATE)


@pytest.mark.asyncio
async def test_empty_results_exhaust_strategies():
    page = FakePage(FULL_FORM, html=EMPTY_RESULTS_PAGE)

    with pytest.raises(ExtractionExhaustedError):
        await _scraper(page).fetch(PARIS, LYON, TRAVEL_DATE)


@pytest.mark.asyncio
async def test_unexpected_errors_are_wrapped():
    class BrokenPage(FakePage):
        async def content(self):
            raise RuntimeError("target closed")

    page = BrokenPage(FULL_FORM)

    with pytest.raises(ScrapingError, match="target closed"):
        await _scraper(page).fetch(PARIS, LYON, TRAVEL_DATE)
