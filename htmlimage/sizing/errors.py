"""Exceptions raised by probes and drawers."""

from __future__ import annotations


class HTMLImageError(Exception):
    """Base class for htmlimage errors."""


class ProbeError(HTMLImageError):
    """Raised when the intrinsic size of an image cannot be determined."""

    def __init__(self, message: str, uri: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Error message
            uri: URI of the image that could not be probed
        """
        super().__init__(message)
        self.uri = uri


class DrawError(HTMLImageError):
    """Raised by a drawer that cannot paint an image."""


__all__ = ["DrawError", "HTMLImageError", "ProbeError"]
