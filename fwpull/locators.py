"""Vendor page URLs and element locators.

Vendor sites are redesigned without notice, so the locators live here as
data rather than inside the workflows. ``FWPULL_SELECTORS_PATH`` may point at
a JSON file that overrides individual entries::

    {
      "version": "2024-05",
      "hp": {
        "urls": {"home": "https://support.hpe.com/hpesc/public/home"},
        "locators": {"search_box": {"css": ".magic-box-input > input"}}
      }
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

from .errors import InputError
from .models import VendorKind

SELECTORS_VERSION = "2020-06"


class LocatorKind(Enum):
    CSS = "css"
    XPATH = "xpath"


@dataclass(frozen=True)
class Locator:
    kind: LocatorKind
    value: str

    @classmethod
    def css(cls, value: str) -> "Locator":
        return cls(LocatorKind.CSS, value)

    @classmethod
    def xpath(cls, value: str) -> "Locator":
        return cls(LocatorKind.XPATH, value)

    @property
    def selector(self) -> str:
        """Render as a Playwright selector string."""

        return f"{self.kind.value}={self.value}"

    def __str__(self) -> str:
        return f"{self.kind.value} {self.value!r}"


@dataclass(frozen=True)
class SelectorSet:
    vendor: VendorKind
    version: str
    urls: Mapping[str, str] = field(default_factory=dict)
    locators: Mapping[str, Locator] = field(default_factory=dict)

    def url(self, name: str) -> str:
        return self.urls[name]

    def locator(self, name: str) -> Locator:
        return self.locators[name]


DEFAULT_SELECTORS: dict[VendorKind, SelectorSet] = {
    VendorKind.DELL: SelectorSet(
        vendor=VendorKind.DELL,
        version=SELECTORS_VERSION,
        urls={
            "drivers": "https://www.dell.com/support/home/us/en/04/product-support/product/{slug}/drivers",
        },
        locators={
            "operating_system": Locator.xpath("//select[@id='operating-system']"),
            "naa_option": Locator.xpath("//option[@value='NAA']"),
            "category": Locator.xpath("//select[@id='ddl-category']"),
            "bios_option": Locator.xpath("//option[@value='BI']"),
            "details_button": Locator.css("button.details-control"),
            "older_versions_link": Locator.css("a.pointer-cursor:nth-child(2)"),
            "approved_cell": Locator.css(
                "table.w-100 > tbody:nth-child(2) > tr:nth-child(1) > td:nth-child(1) > a:nth-child(1)"
            ),
        },
    ),
    VendorKind.HP: SelectorSet(
        vendor=VendorKind.HP,
        version=SELECTORS_VERSION,
        urls={"home": "https://support.hpe.com/hpesc/public/home"},
        locators={
            "search_box": Locator.css(".magic-box-input > input:nth-child(2)"),
            "search_button": Locator.css(".CoveoSearchButton"),
            "bios_result": Locator.css(
                "div.coveo-list-layout:nth-child(1) > div:nth-child(1) > div:nth-child(2)"
                " > div:nth-child(2) > div:nth-child(3) > div:nth-child(1) > a:nth-child(1)"
            ),
            "revision_link": Locator.css(
                "#driversAndSoftwareTableResultList > table:nth-child(3) > tr:nth-child(2)"
                " > td:nth-child(7) > div:nth-child(1) > a:nth-child(1)"
            ),
            "revision_tab": Locator.css("#ui-id-6"),
        },
    ),
    VendorKind.ORACLE: SelectorSet(
        vendor=VendorKind.ORACLE,
        version=SELECTORS_VERSION,
        urls={
            "release_history": "https://www.oracle.com/servers/technologies/firmware/release-history-jsp.html",
        },
    ),
}


def _parse_locator(vendor: str, name: str, raw: Any) -> Locator:
    if not isinstance(raw, dict) or len(raw) != 1:
        raise InputError(
            f"Locator {vendor}.{name} must be an object with exactly one of 'css' or 'xpath'"
        )
    (kind, value), = raw.items()
    try:
        locator_kind = LocatorKind(kind)
    except ValueError as exc:  # noqa: B904
        raise InputError(f"Unknown locator kind {kind!r} for {vendor}.{name}") from exc
    if not isinstance(value, str) or not value:
        raise InputError(f"Locator {vendor}.{name} needs a non-empty string")
    return Locator(locator_kind, value)


def merge_selectors(
    payload: Mapping[str, Any],
    base: Optional[Mapping[VendorKind, SelectorSet]] = None,
) -> dict[VendorKind, SelectorSet]:
    """Overlay a decoded override document on ``base`` (defaults if omitted)."""

    merged = dict(base or DEFAULT_SELECTORS)
    version = str(payload.get("version", SELECTORS_VERSION))

    for key, section in payload.items():
        if key == "version":
            continue
        try:
            vendor = VendorKind(key)
        except ValueError as exc:  # noqa: B904
            raise InputError(f"Unknown vendor section {key!r} in selector overrides") from exc
        if not isinstance(section, dict):
            raise InputError(f"Selector section {key!r} must be an object")

        current = merged[vendor]
        urls = dict(current.urls)
        for name, url in (section.get("urls") or {}).items():
            if not isinstance(url, str) or not url:
                raise InputError(f"URL {key}.{name} must be a non-empty string")
            urls[name] = url
        locators = dict(current.locators)
        for name, raw in (section.get("locators") or {}).items():
            locators[name] = _parse_locator(key, name, raw)

        merged[vendor] = replace(current, version=version, urls=urls, locators=locators)

    return merged


def load_selectors(path: Optional[Path]) -> dict[VendorKind, SelectorSet]:
    if path is None:
        return dict(DEFAULT_SELECTORS)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InputError(f"Could not read selector overrides {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise InputError(f"Selector overrides in {path} must be a JSON object")
    return merge_selectors(payload)
