# csgostats/errors.py
"""Exceptions raised by the csgostats.gg extraction operations."""

from typing import Optional


class ScraperError(Exception):
    """Base class for every failure surfaced by the scraper."""


class HttpStatusError(ScraperError):
    """Raised when a navigation or fetch returns a non-200 response."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"csgostats.gg returned a non-200 response: {status_code}")


class NotFoundError(HttpStatusError):
    """Raised when csgostats.gg answers 404 for a player or match."""


class ScraperBlockedError(HttpStatusError):
    """Raised when Cloudflare serves its interstitial instead of the page."""


class ValidationError(ScraperError):
    """Raised for input csgostats.gg (or we) cannot interpret."""


class InvalidSteamIdError(ValidationError):
    """Raised when a value is not any known Steam ID representation."""


class SearchError(ValidationError):
    """Raised with the text of the inline error banner after a search."""


class MatchNotReadyError(ScraperError):
    """Raised when a share code has not finished parsing upstream. Retry later."""


class ExtractionTimeoutError(ScraperError, TimeoutError):
    """Raised when embedded page data never became available."""


class MarkupError(ScraperError):
    """Raised when a required element is missing from a rendered page."""


class SessionError(ScraperError):
    """Raised when the browser backend fails inside a session call."""
