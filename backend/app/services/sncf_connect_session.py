"""Headless browser session shared by SNCF Connect scrapes."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

logger = logging.getLogger(__name__)

LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
)
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
VIEWPORT = {"width": 1920, "height": 1080}


class BrowserSession:
    """Lazily started Chromium page reused across scrapes.

    The page is not reentrant, so ``page()`` hands it out to one caller at a
    time. ``close()`` must run on shutdown to release the browser process.
    """

    def __init__(self, headless: bool = True, timeout_ms: int = 30000) -> None:
        self._headless = headless
        self._timeout_ms = timeout_ms
        self._lock = asyncio.Lock()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Yield the shared page, holding the session lock for the duration."""
        async with self._lock:
            yield await self._ensure_page()

    async def _ensure_page(self) -> Page:
        if self._browser is None:
            logger.info("Launching headless browser (headless=%s)", self._headless)
            playwright = await async_playwright().start()
            try:
                self._browser = await playwright.chromium.launch(
                    headless=self._headless, args=list(LAUNCH_ARGS)
                )
            except Exception:
                # Stop the driver now; the next scrape starts a fresh one.
                try:
                    await playwright.stop()
                except Exception as exc:
                    logger.warning("Failed to stop Playwright: %s", exc)
                raise
            self._playwright = playwright

        if self._page is None or self._page.is_closed():
            self._context = await self._browser.new_context(
                viewport=VIEWPORT,
                user_agent=USER_AGENT,
                locale="fr-FR",
                extra_http_headers={"Accept-Language": "fr-FR,fr;q=0.9,en;q=0.8"},
            )
            self._page = await self._context.new_page()
            self._page.set_default_timeout(self._timeout_ms)

        return self._page

    async def close(self) -> None:
        """Close page, context and browser, then stop Playwright."""
        async with self._lock:
            for name, resource in (
                ("page", self._page),
                ("context", self._context),
                ("browser", self._browser),
            ):
                if resource is None:
                    continue
                try:
                    await resource.close()
                except Exception as exc:
                    logger.warning("Failed to close browser %s: %s", name, exc)

            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except Exception as exc:
                    logger.warning("Failed to stop Playwright: %s", exc)

            if self._browser is not None:
                logger.info("Headless browser session closed")
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None


__all__ = ["BrowserSession"]
