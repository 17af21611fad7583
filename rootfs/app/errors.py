"""
Error types for the Searchlab search widget.

Everything that can go wrong between issuing a search and rendering its
response derives from SearchError, so the controller can turn any of them
into a visible error state with a single except clause.
"""

from typing import Optional


class SearchError(Exception):
    """Base class for failed search cycles."""


class SearchTransportError(SearchError):
    """No response arrived (DNS failure, refused connection or timeout)."""


class SearchHTTPError(SearchError):
    """The search API answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str = "", body: str = ""):
        self.status_code = status_code
        self.url = url
        self.body = body
        super().__init__(f"search API returned HTTP {status_code}")


class MalformedResponse(SearchError):
    """The response body is not the expected {channels: [...]} shape."""

    def __init__(self, message: str, payload: Optional[object] = None):
        self.payload = payload
        super().__init__(message)


class RenderError(SearchError):
    """A response arrived but the page could not show it."""


class PageError(KeyError):
    """A required element is missing from the search page."""

    def __str__(self):
        return f"page element #{self.args[0]} not found" if self.args else "page element not found"
