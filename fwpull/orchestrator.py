"""Run a batch of server requests through the vendor extractors in order."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import httpx

from .browser import BrowserCapabilities
from .config import Settings
from .dispatch import VENDOR_LABELS, dispatch
from .errors import FwPullError, SessionCloseError, SessionConnectError, VendorParseError
from .locators import load_selectors
from .models import FirmwareRecord, ServerRequest, VendorKind
from .report import record_failure
from .session import AutomationSession
from .vendors import ExtractContext

logger = logging.getLogger(__name__)


def needs_browser(requests: Sequence[ServerRequest]) -> bool:
    for request in requests:
        try:
            if VendorKind.parse(request.vendor).needs_browser:
                return True
        except VendorParseError:
            continue
    return False


async def run_batch(
    requests: Sequence[ServerRequest],
    context: ExtractContext,
    *,
    errors_json: Optional[Path] = None,
) -> list[FirmwareRecord]:
    """Extract every request in turn; failures are logged and skipped."""

    records: list[FirmwareRecord] = []
    for request in requests:
        try:
            kind, extractor = dispatch(request)
        except VendorParseError as exc:
            logger.error("Skipping model %s: %s", request.model, exc)
            record_failure(errors_json, request, "UnknownVendor", str(exc))
            continue

        label = VENDOR_LABELS[kind]
        logger.info("Fetching %s firmware for %s", label, request.model)
        try:
            record = await extractor(context, request)
        except FwPullError as exc:
            logger.error(
                "An error occurred getting %s firmware for %s: %s", label, request.model, exc
            )
            record_failure(errors_json, request, type(exc).__name__, str(exc))
            continue
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Unexpected error getting %s firmware for %s", label, request.model
            )
            record_failure(errors_json, request, "Failed", str(exc))
            continue

        records.append(record)

    logger.info("Collected %d of %d firmware record(s)", len(records), len(requests))
    return records


async def run(
    requests: Sequence[ServerRequest],
    settings: Settings,
    *,
    debug: bool = False,
) -> list[FirmwareRecord]:
    """Open the shared HTTP client and browser session, run, then close them.

    The browser is only started when a Dell or HP request is present. If it
    cannot be started the batch still runs without it. A failure to close it
    is raised as ``SessionCloseError`` carrying the records collected before
    the close.
    """

    selectors = load_selectors(settings.selectors_path)

    async with httpx.AsyncClient(
        timeout=settings.http_timeout,
        headers={"User-Agent": settings.user_agent},
        follow_redirects=True,
    ) as http:
        context = ExtractContext(selectors=selectors, http=http)

        if not needs_browser(requests):
            return await run_batch(requests, context, errors_json=settings.errors_json)

        capabilities = BrowserCapabilities.from_settings(settings, debug=debug)
        records: list[FirmwareRecord] = []
        try:
            async with AutomationSession.open(settings, capabilities) as session:
                context.session = session
                records = await run_batch(
                    requests, context, errors_json=settings.errors_json
                )
        except SessionConnectError as exc:
            # Dell and HP items fail one by one; Oracle items still run
            logger.error("Browser session unavailable: %s", exc)
            records = await run_batch(requests, context, errors_json=settings.errors_json)
        except SessionCloseError as exc:
            exc.records = records
            raise
        return records
