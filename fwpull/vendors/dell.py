"""Dell: filter the product driver list down to BIOS and read the versions."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from ..errors import MissingElementError
from ..locators import SelectorSet
from ..models import FirmwareRecord, ServerRequest, VendorKind
from ..patterns import pattern
from .base import ExtractContext, soup_of

logger = logging.getLogger(__name__)

# (dropdown, option): OS -> "NAA" (not OS specific), category -> "BIOS"
FILTER_STEPS = (("operating_system", "naa_option"), ("category", "bios_option"))


def dell_slug(model: str) -> str:
    """``"PowerEdge R630"`` -> ``"poweredge-r630"``."""

    return model.lower().replace(" ", "-")


def drivers_url(model: str, selectors: SelectorSet) -> str:
    return selectors.url("drivers").format(slug=dell_slug(model))


def scan_cells(texts: Iterable[str]) -> Optional[str]:
    """Return the version from the last cell text that mentions one."""

    version = None
    for text in texts:
        match = pattern("dell_version").search(text)
        if match:
            version = match.group(1)
    return version


def scan_current_version(html: str) -> Optional[str]:
    soup = soup_of(html)
    return scan_cells(td.get_text() for td in soup.find_all("td"))


def first_anchor_text(html: str) -> Optional[str]:
    anchor = soup_of(html).find("a")
    if anchor is None:
        return None
    return anchor.get_text(strip=True)


async def extract(context: ExtractContext, request: ServerRequest) -> FirmwareRecord:
    session = context.require_session()
    selectors = context.selectors[VendorKind.DELL]
    record = FirmwareRecord.empty(request)

    await session.navigate(drivers_url(request.model, selectors))

    for dropdown_name, option_name in FILTER_STEPS:
        dropdown = await session.wait_for(selectors.locator(dropdown_name))
        option = await session.wait_for(selectors.locator(option_name))
        value = await option.attribute("value")
        if value is None:
            raise MissingElementError(f"value of {selectors.locator(option_name)}")
        await dropdown.select(value)

    current = scan_current_version(await session.page_source())
    logger.debug("Dell %s current version: %s", request.model, current or "-")

    details = await session.wait_for(selectors.locator("details_button"))
    await details.click()
    older = await session.wait_for(selectors.locator("older_versions_link"))
    await older.click()

    cell = await session.wait_for(selectors.locator("approved_cell"))
    approved = first_anchor_text(await cell.html())

    logger.info(
        "Dell %s: current=%s approved=%s", request.model, current or "-", approved or "-"
    )
    return replace(record, current=current, approved=approved)
