"""HPE: search the support portal, re-sort the BIOS results by date and read
the revision history of the newest entry.

The results page is a Coveo search whose state lives in the URL fragment;
sorting is switched by rewriting that fragment rather than clicking the sort
control.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from ..errors import MissingElementError, UrlTransformError
from ..models import FirmwareRecord, ServerRequest, VendorKind
from ..patterns import pattern
from .base import ExtractContext, soup_of

logger = logging.getLogger(__name__)

DATE_SORT = "%40hpescuniversaldate%20descending"


def sorted_results_url(url: str) -> str:
    """Return ``url`` with its results fragment sorted by date, newest first."""

    parts = urlsplit(url)
    if not parts.fragment:
        raise UrlTransformError(f"Could not build sorted URL from {url}: no fragment")

    fragment, count = pattern("hp_sort_fragment").subn(
        rf"\g<1>{DATE_SORT}\g<2>\g<3>", parts.fragment
    )
    if not count:
        raise UrlTransformError(
            f"Could not build sorted URL from {url}: unexpected fragment {parts.fragment!r}"
        )
    return urlunsplit(parts._replace(fragment=fragment))


def first_anchor_href(html: str) -> str:
    anchor = soup_of(html).find("a")
    if anchor is None:
        raise MissingElementError("a")
    href = anchor.get("href")
    if not href:
        raise MissingElementError("href")
    return str(href)


def pick_versions(texts: Iterable[str]) -> Tuple[Optional[str], Optional[str]]:
    """First two "Version ..." headings give (current, approved)."""

    found: list[str] = []
    for text in texts:
        if not text.startswith("Version"):
            continue
        match = pattern("hp_version").search(text)
        if match is None:
            continue
        found.append(match.group(0))
        if len(found) == 2:
            break

    current = found[0] if found else None
    approved = found[1] if len(found) > 1 else None
    return current, approved


def scan_bold_versions(html: str) -> Tuple[Optional[str], Optional[str]]:
    soup = soup_of(html)
    return pick_versions(tag.get_text().strip() for tag in soup.find_all("b"))


async def extract(context: ExtractContext, request: ServerRequest) -> FirmwareRecord:
    session = context.require_session()
    selectors = context.selectors[VendorKind.HP]
    home_url = selectors.url("home")
    record = FirmwareRecord.empty(request)

    await session.navigate(home_url)

    search_box = await session.wait_for(selectors.locator("search_box"))
    await search_box.type(request.model)
    search_button = await session.wait_for(selectors.locator("search_button"))
    await search_button.click()

    bios_result = await session.wait_for(selectors.locator("bios_result"))
    await session.click_and_wait_for_navigation(bios_result)

    # results table populated
    await session.wait_for(selectors.locator("revision_link"))

    sorted_url = sorted_results_url(await session.current_url())
    logger.debug("HP %s sorted results: %s", request.model, sorted_url)

    # a fragment-only change from the results page is not picked up
    await session.navigate(home_url)
    await session.navigate(sorted_url)

    revision_link = await session.wait_for(selectors.locator("revision_link"))
    href = first_anchor_href(await revision_link.html())
    await session.navigate(urljoin(sorted_url, href))

    await session.wait_for(selectors.locator("revision_tab"))
    current, approved = scan_bold_versions(await session.page_source())

    logger.info(
        "HP %s: current=%s approved=%s", request.model, current or "-", approved or "-"
    )
    return replace(record, current=current, approved=approved)
