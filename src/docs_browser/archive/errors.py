from __future__ import annotations


class DocsBrowserError(Exception):
    """Base class for errors raised by the archive core."""


class NotFound(DocsBrowserError):
    """A coordinate, archive or archive entry could not be located."""


class MalformedRequest(NotFound):
    """Coordinate segments are missing or not usable as path segments."""


class TransportFailure(DocsBrowserError):
    """A single mirror attempt failed. Always recovered by trying the next mirror."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{reason} url={url}")
        self.url = url
        self.reason = reason
