"""Precompiled regular expressions used by the vendor extractors."""

from __future__ import annotations

import re
from functools import lru_cache

_SOURCES = {
    # Dell driver table cells, e.g. "Version 2.13.3"
    "dell_version": r"Version (\d+\.\d+(\.\d+)?)",
    # HP revision tab bold headings, e.g. "Version 3.10 (10 Feb 2021)"
    "hp_version": r"\d+\.\d+",
    # HP Coveo results fragment, sorted by relevance
    "hp_sort_fragment": r"^(t=DriversandSoftware&sort=)relevancy(&layout=table&numberOfResults=25&f)(.*)",
    "oracle_version": r"^Sun System Firmware (\d+\.\d+\.\d+(?:\.[a-z])?)",
}


@lru_cache(maxsize=None)
def pattern(name: str) -> re.Pattern[str]:
    """Return the compiled pattern registered under ``name``."""

    return re.compile(_SOURCES[name])
