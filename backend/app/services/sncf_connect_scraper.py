"""SNCF Connect scraping source.

Drives the public search form through a shared ``BrowserSession`` and hands
the resulting markup to the extraction strategies in
``app.services.sncf_connect_parser``. Every failure surfaces as
``ScrapingError`` so the orchestrator can move on to the next source.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from app.services.sncf_connect_parser import (
    STRATEGIES,
    ExtractionStrategy,
    parse_journeys,
)
from app.services.sncf_connect_session import BrowserSession
from app.services.sncf_dto import Station, Train
from app.services.sncf_errors import ScrapingError

logger = logging.getLogger(__name__)

CONSENT_SELECTORS = (
    "#onetrust-accept-btn-handler",
    "#didomi-notice-agree-button",
    'button[data-testid="cookie-accept"]',
    'button:has-text("Tout accepter")',
)
DEPARTURE_INPUT_SELECTORS = (
    'input[data-testid="departure-input"]',
    'input[name="origin"]',
    'input[id*="origin"]',
    'input[aria-label*="Départ"]',
    'input[placeholder*="Départ"]',
)
ARRIVAL_INPUT_SELECTORS = (
    'input[data-testid="arrival-input"]',
    'input[name="destination"]',
    'input[id*="destination"]',
    'input[aria-label*="Arrivée"]',
    'input[placeholder*="Arrivée"]',
)
DATE_INPUT_SELECTORS = (
    'input[data-testid="date-input"]',
    'input[name="outwardDate"]',
    'input[type="date"]',
)
SUGGESTION_SELECTORS = (
    '[data-testid="autocomplete-suggestion"]',
    '[role="option"]',
    'li[id*="suggestion"]',
)
SUBMIT_SELECTORS = (
    'button[data-testid="search-button"]',
    'button[type="submit"]',
    'button:has-text("Rechercher")',
)

CONSENT_WAIT_TIMEOUT_MS = 5000
FIELD_WAIT_TIMEOUT_MS = 3000
SUGGESTION_DELAY_MS = 1000
CONSENT_DELAY_MS = 1000

_SET_INPUT_VALUE_JS = """
([selector, value]) => {
    const input = document.querySelector(selector);
    if (input) {
        input.value = value;
        input.dispatchEvent(new Event('change', { bubbles: true }));
    }
}
"""


class SNCFConnectScraper:
    """Train source backed by the SNCF Connect website."""

    name = "scraper"

    def __init__(
        self,
        session: BrowserSession,
        url: str,
        timeout_ms: int = 30000,
        results_delay_ms: int = 5000,
        strategies: Sequence[ExtractionStrategy] = STRATEGIES,
    ) -> None:
        self._session = session
        self._url = url
        self._timeout_ms = timeout_ms
        self._results_delay_ms = results_delay_ms
        self._strategies = strategies

    async def fetch(
        self, departure: Station, arrival: Station, travel_date: date
    ) -> list[Train]:
        """Scrape trains for a route; raises ScrapingError on any failure."""
        try:
            async with self._session.page() as page:
                html = await self._run_search(page, departure, arrival, travel_date)
        except ScrapingError:
            raise
        except Exception as exc:
            raise ScrapingError(f"Failed to scrape SNCF Connect: {exc}") from exc

        trains = parse_journeys(html, self._strategies)
        logger.info(
            "Scraped %d trains for %s -> %s on %s",
            len(trains),
            departure.code,
            arrival.code,
            travel_date.isoformat(),
        )
        return trains

    async def _run_search(
        self, page: Page, departure: Station, arrival: Station, travel_date: date
    ) -> str:
        try:
            await page.goto(self._url, wait_until="networkidle", timeout=self._timeout_ms)
        except PlaywrightError as exc:
            raise ScrapingError(f"SNCF Connect page failed to load: {exc}") from exc

        await self._dismiss_consent(page)
        await self._fill_station(page, DEPARTURE_INPUT_SELECTORS, departure.name, "departure")
        await self._fill_station(page, ARRIVAL_INPUT_SELECTORS, arrival.name, "arrival")
        await self._fill_date(page, travel_date)

        submit = await self._first_present(page, SUBMIT_SELECTORS)
        if submit is None:
            raise ScrapingError("Search button not found on SNCF Connect.")
        await page.click(submit)

        await page.wait_for_timeout(self._results_delay_ms)
        return await page.content()

    async def _dismiss_consent(self, page: Page) -> None:
        for selector in CONSENT_SELECTORS:
            try:
                await page.wait_for_selector(selector, timeout=CONSENT_WAIT_TIMEOUT_MS)
                await page.click(selector)
                await page.wait_for_timeout(CONSENT_DELAY_MS)
                return
            except PlaywrightError:
                # Banner absent or already dismissed.
                continue

    async def _fill_station(
        self, page: Page, selectors: Sequence[str], name: str, field_name: str
    ) -> None:
        selector = await self._first_present(page, selectors)
        if selector is None:
            raise ScrapingError(f"Search form {field_name} input not found.")

        await page.click(selector)
        await page.fill(selector, name)
        await page.wait_for_timeout(SUGGESTION_DELAY_MS)

        suggestion = await self._first_present(page, SUGGESTION_SELECTORS)
        if suggestion is not None:
            await page.click(suggestion)
        else:
            logger.debug("No %s suggestion listed, submitting typed value", field_name)
            await page.press(selector, "Enter")

    async def _fill_date(self, page: Page, travel_date: date) -> None:
        selector = await self._first_present(page, DATE_INPUT_SELECTORS)
        if selector is None:
            raise ScrapingError("Search form date input not found.")
        await page.click(selector)
        await page.evaluate(_SET_INPUT_VALUE_JS, [selector, travel_date.isoformat()])

    async def _first_present(
        self, page: Page, selectors: Sequence[str]
    ) -> str | None:
        for selector in selectors:
            try:
                await page.wait_for_selector(selector, timeout=FIELD_WAIT_TIMEOUT_MS)
                return selector
            except PlaywrightError:
                continue
        return None


__all__ = ["SNCFConnectScraper"]
