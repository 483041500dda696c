"""Request/record types exchanged between the input file, extractors and report."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .errors import InputError, VendorParseError


class VendorKind(Enum):
    DELL = "dell"
    HP = "hp"
    ORACLE = "oracle"

    @classmethod
    def parse(cls, text: str) -> "VendorKind":
        """Match ``text`` case-insensitively against the supported vendors."""

        key = text.lower()
        for member in cls:
            if member.value == key:
                return member
        raise VendorParseError(text)

    @property
    def needs_browser(self) -> bool:
        return self is not VendorKind.ORACLE


@dataclass(frozen=True)
class ServerRequest:
    vendor: str
    model: str

    @classmethod
    def from_json(cls, raw: Any) -> "ServerRequest":
        if not isinstance(raw, dict):
            raise InputError(f"Expected an object per server, got {type(raw).__name__}")
        vendor = raw.get("Vendor")
        model = raw.get("Model")
        if not isinstance(vendor, str) or not isinstance(model, str):
            raise InputError(f"Server entry needs string Vendor and Model: {raw!r}")
        return cls(vendor=vendor, model=model)


@dataclass(frozen=True)
class FirmwareRecord:
    vendor: str
    model: str
    current: Optional[str] = None
    approved: Optional[str] = None

    @classmethod
    def empty(cls, request: ServerRequest) -> "FirmwareRecord":
        return cls(vendor=request.vendor, model=request.model)

    def to_json(self) -> dict[str, Optional[str]]:
        return {
            "Vendor": self.vendor,
            "Model": self.model,
            "Current": self.current,
            "Approved": self.approved,
        }
