"""Map a request's free-text vendor onto its extractor."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

from .models import ServerRequest, VendorKind
from .vendors import Extractor, dell, hp, oracle

EXTRACTORS: Mapping[VendorKind, Extractor] = MappingProxyType(
    {
        VendorKind.DELL: dell.extract,
        VendorKind.HP: hp.extract,
        VendorKind.ORACLE: oracle.extract,
    }
)

VENDOR_LABELS: Mapping[VendorKind, str] = MappingProxyType(
    {
        VendorKind.DELL: "Dell",
        VendorKind.HP: "HP",
        VendorKind.ORACLE: "Oracle",
    }
)


def dispatch(request: ServerRequest) -> Tuple[VendorKind, Extractor]:
    """Resolve ``request.vendor``; raises ``VendorParseError`` when unknown."""

    kind = VendorKind.parse(request.vendor)
    return kind, EXTRACTORS[kind]
