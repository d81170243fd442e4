"""Errors raised by the product search pipeline."""

from typing import Optional


class ScraperError(Exception):
    """Base class for every search pipeline error."""


class InvalidQuery(ScraperError):
    """The search query is missing or blank. Raised before any browser work."""


class UnsupportedRetailer(ScraperError):
    """The requested retailer has no registry entry."""

    def __init__(self, retailer: str):
        super().__init__(f"Unsupported retailer: {retailer}")
        self.retailer = retailer


class NavigationTimeout(ScraperError):
    """The results page did not reach network idle within the time bound."""


class ExtractionFailure(ScraperError):
    """A DOM query raised while product fields were being extracted."""


class ScrapeFailure(ScraperError):
    """Wraps whatever went wrong once a browser session had been opened.

    The session is always closed before this error reaches the caller.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.cause = cause
        self.stage = stage
