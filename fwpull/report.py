"""Reading the server list and writing the firmware report."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, cast

from openpyxl import Workbook  # type: ignore[import-untyped]
from openpyxl.worksheet.worksheet import Worksheet  # type: ignore[import-untyped]

from .errors import InputError, OutputError
from .models import FirmwareRecord, ServerRequest

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["Vendor", "Model", "Current", "Approved"]


def load_requests(path: Path) -> list[ServerRequest]:
    """Read a JSON array of ``{"Vendor": ..., "Model": ...}`` objects."""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputError(f"An error occurred while trying to open {path}: {exc}") from exc

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputError(f"An error occurred while deserializing {path}: {exc}") from exc

    if not isinstance(payload, list):
        raise InputError(f"{path} must contain a JSON array of servers")

    requests = [ServerRequest.from_json(item) for item in payload]
    logger.info("Loaded %d server(s) from %s", len(requests), path)
    return requests


def render_report(records: Sequence[FirmwareRecord]) -> str:
    try:
        return json.dumps([record.to_json() for record in records], indent=2)
    except (TypeError, ValueError) as exc:
        logger.debug("Falling back to raw output: %s", exc)
        return repr(list(records))


def _write_json(path: Path, records: Sequence[FirmwareRecord]) -> None:
    payload = [record.to_json() for record in records]
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def _write_workbook(path: Path, records: Sequence[FirmwareRecord]) -> None:
    workbook = Workbook()
    try:
        ws_any = workbook.active
        if ws_any is None:
            raise OutputError("Unable to create report worksheet.")
        sheet = cast(Worksheet, ws_any)
        sheet.title = "Firmware"
        sheet.append(REPORT_COLUMNS)
        for record in records:
            sheet.append([record.vendor, record.model, record.current, record.approved])
        workbook.save(path)
    finally:
        workbook.close()


def write_report(records: Sequence[FirmwareRecord], path: Path) -> None:
    """Write ``records`` as ``.xlsx`` when the suffix asks for it, JSON otherwise."""

    try:
        if path.parent != Path("."):
            path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix.lower() == ".xlsx":
            _write_workbook(path, records)
        else:
            _write_json(path, records)
    except (OSError, TypeError, ValueError) as exc:
        raise OutputError(f"Failed to write report {path}: {exc}") from exc


def record_failure(
    path: Optional[Path], request: ServerRequest, status: str, message: str
) -> None:
    """Append a failed request to the JSON ledger for quick troubleshooting.

    The ledger is best effort: if it cannot be written a warning is logged and
    the run carries on.
    """

    if path is None:
        return

    try:
        if path.parent != Path("."):
            path.parent.mkdir(parents=True, exist_ok=True)

        entries: list[dict[str, str]] = []
        if path.exists():
            try:
                existing = json.loads(path.read_text(encoding="utf-8"))
                if isinstance(existing, list):
                    entries = [entry for entry in existing if isinstance(entry, dict)]
            except json.JSONDecodeError:
                entries = []

        entries.append(
            {
                "vendor": request.vendor,
                "model": request.model,
                "status": status,
                "message": message,
                "logged_at": datetime.now().isoformat(timespec="seconds"),
            }
        )

        path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not update failure ledger %s: %s", path, exc)
