"""Lazily created browser handle shared by every tool call."""

from __future__ import annotations

import asyncio
import logging

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

from shakespeare_mcp import config

logger = logging.getLogger(__name__)


class BrowserSession:
    """Owns the single browser -> context -> page chain for this process.

    The chain is either fully populated or fully empty. ``ensure()`` builds it
    on first use and ``close()`` tears it down in reverse order. Callers that
    touch the page must hold ``lock`` so operations never interleave.
    """

    def __init__(self, headless: bool = config.HEADLESS, launcher=async_playwright):
        self.headless = headless
        self.lock = asyncio.Lock()
        self._launcher = launcher
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def is_open(self) -> bool:
        return self._page is not None

    async def ensure(self) -> Page:
        """Return the live page, launching the browser if there is none."""
        if self._page is not None:
            return self._page

        playwright = await self._launcher().start()
        browser = context = None
        try:
            browser = await playwright.chromium.launch(headless=self.headless)
            # Self-signed certificates on local dev servers
            context = await browser.new_context(ignore_https_errors=True)
            page = await context.new_page()
        except Exception:
            for resource in (context, browser):
                if resource is not None:
                    await _release(resource.close, "partial browser chain")
            await _release(playwright.stop, "playwright driver")
            raise

        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        logger.info("Launched Chromium (headless=%s)", self.headless)
        return page

    async def close(self) -> None:
        """Release page, context, browser and driver. Safe to call repeatedly."""
        page, self._page = self._page, None
        context, self._context = self._context, None
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None

        if page is not None:
            await _release(page.close, "page")
        if context is not None:
            await _release(context.close, "context")
        if browser is not None:
            await _release(browser.close, "browser")
        if playwright is not None:
            await _release(playwright.stop, "playwright driver")
            logger.info("Browser closed")


async def _release(close, label: str) -> None:
    try:
        await close()
    except Exception:
        logger.warning("Failed to close %s", label, exc_info=True)
