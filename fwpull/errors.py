"""Exception hierarchy shared by the extractors, the session and the CLI."""

from __future__ import annotations


class FwPullError(Exception):
    """Base class for every error raised by fwpull."""


class VendorParseError(FwPullError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Unknown vendor: {text!r}")
        self.text = text


class ExtractError(FwPullError):
    """A single request failed; the batch carries on."""


class SessionError(ExtractError):
    pass


class SessionConnectError(SessionError):
    pass


class NavigationError(SessionError):
    pass


class SessionCloseError(SessionError):
    """Closing the shared browser failed at the end of a run.

    ``records`` holds whatever the batch produced before the close.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.records: list = []


class ElementNotFoundError(SessionError):
    def __init__(self, locator: object, timeout_ms: float) -> None:
        super().__init__(f"Timed out after {timeout_ms:.0f} ms waiting for {locator}")
        self.locator = locator
        self.timeout_ms = timeout_ms


class UrlTransformError(ExtractError):
    pass


class MissingElementError(ExtractError):
    def __init__(self, what: str) -> None:
        super().__init__(f"Could not find {what} in HTML")
        self.what = what


class HttpFetchError(ExtractError):
    pass


class InputError(FwPullError):
    """The request list could not be read; fatal for the run."""


class OutputError(FwPullError):
    """The report could not be written."""
