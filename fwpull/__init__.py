"""Pull current and approved server firmware versions from vendor sites."""

from .errors import FwPullError
from .models import FirmwareRecord, ServerRequest, VendorKind

__all__ = ["FirmwareRecord", "FwPullError", "ServerRequest", "VendorKind"]
__version__ = "0.3.0"
