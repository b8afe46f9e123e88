"""Exception types raised by the friend circle crawler."""

from __future__ import annotations

__all__ = ["FetchError", "ParseError", "UrlError"]


class FetchError(RuntimeError):
    """Raised when a page, feed or JSON source cannot be retrieved."""

    def __init__(self, url: str, reason: object) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url


class ParseError(ValueError):
    """Raised when a document, JSON payload or configuration file is malformed."""


class UrlError(ValueError):
    """Raised when a relative URL cannot be resolved against its base."""
