"""Thin automation session over a single Playwright page.

Every call is a round-trip to the browser. Element lookups poll at a fixed
interval until a bound elapses; nothing else is retried.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from playwright.async_api import (  # type: ignore[import-untyped]
    Error as PlaywrightError,
    async_playwright,
)

from .browser import BrowserCapabilities, launch_browser
from .config import Settings
from .errors import (
    ElementNotFoundError,
    NavigationError,
    SessionCloseError,
    SessionConnectError,
)
from .locators import Locator

logger = logging.getLogger(__name__)


class Element:
    """A located element; wraps a Playwright ``ElementHandle``."""

    def __init__(self, handle: Any, locator: Locator) -> None:
        self._handle = handle
        self.locator = locator

    async def click(self) -> None:
        try:
            await self._handle.click()
        except PlaywrightError as exc:
            raise NavigationError(f"Click on {self.locator} failed: {exc}") from exc

    async def type(self, text: str) -> None:
        try:
            await self._handle.type(text)
        except PlaywrightError as exc:
            raise NavigationError(f"Typing into {self.locator} failed: {exc}") from exc

    async def select(self, value: str) -> None:
        """Choose the ``<option>`` with ``value`` in this ``<select>``."""

        try:
            selected = await self._handle.select_option(value=value)
        except PlaywrightError as exc:
            raise NavigationError(f"Selecting {value!r} in {self.locator} failed: {exc}") from exc
        if not selected:
            raise NavigationError(f"No option {value!r} in {self.locator}")

    async def attribute(self, name: str) -> Optional[str]:
        try:
            return await self._handle.get_attribute(name)
        except PlaywrightError as exc:
            raise NavigationError(f"Reading {name} of {self.locator} failed: {exc}") from exc

    async def html(self, inner: bool = False) -> str:
        """Return the element's outer HTML, or its inner HTML when ``inner``."""

        try:
            if inner:
                return await self._handle.inner_html()
            return await self._handle.evaluate("(el) => el.outerHTML")
        except PlaywrightError as exc:
            raise NavigationError(f"Reading HTML of {self.locator} failed: {exc}") from exc


class AutomationSession:
    def __init__(
        self,
        page: Any,
        *,
        wait_timeout_ms: float = 30_000,
        poll_interval_ms: float = 500,
        context: Any = None,
        browser: Any = None,
        playwright: Any = None,
    ) -> None:
        self.page = page
        self.wait_timeout_ms = wait_timeout_ms
        self.poll_interval_ms = poll_interval_ms
        self._context = context
        self._browser = browser
        self._playwright = playwright
        self._closed = False

    @classmethod
    async def start(
        cls, settings: Settings, capabilities: BrowserCapabilities
    ) -> "AutomationSession":
        playwright = await async_playwright().start()
        try:
            browser, context = await launch_browser(
                playwright,
                capabilities,
                endpoint=settings.browser_endpoint,
                local_fallback=settings.local_fallback,
                timeout_ms=settings.nav_timeout_ms,
            )
        except PlaywrightError as exc:
            await playwright.stop()
            raise SessionConnectError(f"Could not start a browser session: {exc}") from exc

        try:
            page = await context.new_page()
        except PlaywrightError as exc:
            await context.close()
            await browser.close()
            await playwright.stop()
            raise SessionConnectError(f"Could not open a browser page: {exc}") from exc

        page.set_default_navigation_timeout(settings.nav_timeout_ms)
        page.set_default_timeout(settings.nav_timeout_ms)
        return cls(
            page,
            wait_timeout_ms=settings.wait_timeout_ms,
            poll_interval_ms=settings.poll_interval_ms,
            context=context,
            browser=browser,
            playwright=playwright,
        )

    @classmethod
    @asynccontextmanager
    async def open(
        cls, settings: Settings, capabilities: BrowserCapabilities
    ) -> AsyncIterator["AutomationSession"]:
        session = await cls.start(settings, capabilities)
        try:
            yield session
        finally:
            await session.close()

    async def navigate(self, url: str) -> None:
        logger.debug("Navigating to %s", url)
        try:
            await self.page.goto(url, wait_until="load")
        except PlaywrightError as exc:
            raise NavigationError(f"Navigation to {url} failed: {exc}") from exc

    async def click_and_wait_for_navigation(self, element: Element) -> None:
        """Click ``element`` and wait until the page it opens has loaded."""

        try:
            async with self.page.expect_navigation(wait_until="load"):
                await element.click()
        except PlaywrightError as exc:
            raise NavigationError(f"Click on {element.locator} did not navigate: {exc}") from exc

    async def wait_for(
        self,
        locator: Locator,
        timeout_ms: Optional[float] = None,
        poll_interval_ms: Optional[float] = None,
    ) -> Element:
        """Poll for ``locator`` until it is attached or ``timeout_ms`` elapses."""

        timeout_ms = self.wait_timeout_ms if timeout_ms is None else timeout_ms
        interval = self.poll_interval_ms if poll_interval_ms is None else poll_interval_ms

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000
        while True:
            try:
                handle = await self.page.query_selector(locator.selector)
            except PlaywrightError as exc:
                # the page may be mid-navigation; treat as not there yet
                logger.debug("Lookup of %s failed: %s", locator, exc)
                handle = None
            if handle is not None:
                return Element(handle, locator)

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ElementNotFoundError(locator, timeout_ms)
            await asyncio.sleep(min(interval / 1000, remaining))

    async def page_source(self) -> str:
        try:
            return await self.page.content()
        except PlaywrightError as exc:
            raise NavigationError(f"Could not read page source: {exc}") from exc

    async def current_url(self) -> str:
        return self.page.url

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
        except PlaywrightError as exc:
            raise SessionCloseError(f"Closing the browser session failed: {exc}") from exc
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
        logger.debug("Browser session closed")
