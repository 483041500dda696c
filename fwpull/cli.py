"""Command line entry point: ``fwpull --input servers.json [--output report.json]``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from .config import Settings
from .errors import InputError, OutputError, SessionCloseError
from .models import FirmwareRecord
from .orchestrator import run
from .report import load_requests, render_report, write_report


def setup_logging(verbosity: int, log_dir: Optional[Path] = None) -> logging.Logger:
    level = logging.INFO if verbosity == 0 else logging.DEBUG
    logger = logging.getLogger("fwpull")
    logger.setLevel(level)
    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)
    handlers: list[logging.Handler] = [ch]

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(
            log_dir / f"run-{datetime.now().strftime('%Y%m%d-%H%M%S')}.log",
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(fmt)
        handlers.append(fh)

    logger.handlers = handlers
    return logger


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="fwpull",
        description="Pulls vendor firmware versions from their websites.",
    )
    ap.add_argument(
        "-i",
        "--input",
        required=True,
        type=Path,
        help="Path to input JSON with server information.",
    )
    ap.add_argument(
        "-o", "--output", type=Path, default=None, help="Path to output JSON (or .xlsx)."
    )
    ap.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Run the browser in the foreground instead of headless.",
    )
    ap.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity."
    )
    return ap.parse_args(argv)


def emit(records: list[FirmwareRecord], output: Optional[Path], logger: logging.Logger) -> int:
    if output is None:
        print(render_report(records))
        return 0
    try:
        write_report(records, output)
    except OutputError as exc:
        logger.error("Failed to write report: %s", exc)
        return 1
    logger.info("Wrote %d record(s) to %s", len(records), output)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    logger = setup_logging(args.verbose, settings.log_dir)

    try:
        requests = load_requests(args.input)
    except InputError as exc:
        logger.error("%s", exc)
        return 1

    try:
        records = asyncio.run(run(requests, settings, debug=args.debug))
    except SessionCloseError as exc:
        logger.error("%s", exc)
        emit(exc.records, args.output, logger)
        return 1
    except InputError as exc:
        logger.error("%s", exc)
        return 1

    return emit(records, args.output, logger)


if __name__ == "__main__":
    raise SystemExit(main())
