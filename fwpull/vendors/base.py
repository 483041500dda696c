"""Shared state handed to every vendor extractor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Mapping, Optional

import httpx
from bs4 import BeautifulSoup  # type: ignore[import-untyped]

from ..errors import HttpFetchError, SessionConnectError
from ..locators import DEFAULT_SELECTORS, SelectorSet
from ..models import FirmwareRecord, ServerRequest, VendorKind

if TYPE_CHECKING:
    from ..session import AutomationSession


@dataclass
class ExtractContext:
    selectors: Mapping[VendorKind, SelectorSet] = field(
        default_factory=lambda: dict(DEFAULT_SELECTORS)
    )
    http: Optional[httpx.AsyncClient] = None
    session: Optional["AutomationSession"] = None

    def require_session(self) -> "AutomationSession":
        if self.session is None:
            raise SessionConnectError("No browser session is open")
        return self.session

    def require_http(self) -> httpx.AsyncClient:
        if self.http is None:
            raise HttpFetchError("No HTTP client is open")
        return self.http


Extractor = Callable[[ExtractContext, ServerRequest], Awaitable[FirmwareRecord]]


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")
