"""Oracle: read the static Sun system firmware release-history page."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple

import httpx

from ..errors import HttpFetchError
from ..models import FirmwareRecord, ServerRequest, VendorKind
from ..patterns import pattern
from .base import ExtractContext, soup_of

logger = logging.getLogger(__name__)


def firmware_version(text: str) -> Optional[str]:
    match = pattern("oracle_version").match(text.strip())
    return match.group(1) if match else None


def scan_release_history(html: str, model: str) -> Tuple[Optional[str], Optional[str]]:
    """Find the row anchored by ``id=model`` and read it and the row after it.

    The anchored row's ``<strong>`` holds the current release; the next row's
    first ``<p>`` holds the approved one. Nothing further is consulted.
    """

    rows = soup_of(html).find_all("tr")
    for index, row in enumerate(rows):
        if row.find("a", id=model) is None:
            continue

        strong = row.find("strong")
        current = firmware_version(strong.get_text()) if strong is not None else None

        approved = None
        if index + 1 < len(rows):
            paragraph = rows[index + 1].find("p")
            if paragraph is not None:
                approved = firmware_version(paragraph.get_text())
        return current, approved

    return None, None


async def fetch_release_history(client: httpx.AsyncClient, url: str) -> str:
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise HttpFetchError(f"GET {url} failed: {exc}") from exc
    return response.text


async def extract(context: ExtractContext, request: ServerRequest) -> FirmwareRecord:
    client = context.require_http()
    url = context.selectors[VendorKind.ORACLE].url("release_history")
    record = FirmwareRecord.empty(request)

    html = await fetch_release_history(client, url)
    current, approved = scan_release_history(html, request.model)
    if current is None and approved is None:
        logger.info("Oracle release history has no entry for %s", request.model)
    else:
        logger.info(
            "Oracle %s: current=%s approved=%s",
            request.model,
            current or "-",
            approved or "-",
        )
    return replace(record, current=current, approved=approved)
