"""Helpers for reaching a Playwright browser with shared defaults."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from playwright.async_api import (  # type: ignore[import-untyped]
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Playwright,
)

from .config import Settings

logger = logging.getLogger(__name__)

FIREFOX_PREFS = {"browser.privatebrowsing.autostart": True}


@dataclass(frozen=True)
class BrowserCapabilities:
    """What the run asks of the browser: engine, visibility and window."""

    engine: str = "chromium"
    headless: bool = True
    channel: Optional[str] = None
    private: bool = True
    width: int = 1920
    height: int = 1080
    user_agent: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings, *, debug: bool = False) -> "BrowserCapabilities":
        return cls(
            engine=settings.browser,
            headless=settings.headless and not debug,
            channel=settings.browser_channel,
            user_agent=settings.user_agent,
        )

    def launch_kwargs(self) -> Dict[str, Any]:
        launch_kwargs: Dict[str, Any] = {"headless": self.headless}
        if self.channel and self.channel.strip():
            launch_kwargs["channel"] = self.channel
        if self.engine == "firefox" and self.private:
            launch_kwargs["firefox_user_prefs"] = dict(FIREFOX_PREFS)
        return launch_kwargs

    def context_kwargs(self) -> Dict[str, Any]:
        context_kwargs: Dict[str, Any] = {
            "viewport": {"width": self.width, "height": self.height},
        }
        if self.user_agent:
            context_kwargs["user_agent"] = self.user_agent
        return context_kwargs


async def launch_browser(
    playwright: Playwright,
    capabilities: BrowserCapabilities,
    *,
    endpoint: Optional[str] = None,
    local_fallback: bool = True,
    timeout_ms: float = 30_000,
) -> Tuple[Browser, BrowserContext]:
    """Connect to ``endpoint`` or launch a local browser, then open a context.

    With an endpoint configured, a local browser is only launched when the
    endpoint cannot be reached and ``local_fallback`` is set.
    """

    browser_type = getattr(playwright, capabilities.engine)

    browser: Optional[Browser] = None
    if endpoint:
        try:
            browser = await browser_type.connect(endpoint, timeout=timeout_ms)
            logger.info("Connected to remote %s at %s", capabilities.engine, endpoint)
        except PlaywrightError as exc:
            if not local_fallback:
                raise
            logger.warning(
                "Remote browser at %s unreachable (%s); launching a local %s",
                endpoint,
                exc,
                capabilities.engine,
            )

    if browser is None:
        browser = await browser_type.launch(**capabilities.launch_kwargs())
        logger.info(
            "Launched local %s (headless=%s)", capabilities.engine, capabilities.headless
        )

    try:
        context = await browser.new_context(**capabilities.context_kwargs())
    except PlaywrightError:
        await browser.close()
        raise
    return browser, context
