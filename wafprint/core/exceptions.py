"""
Exceptions raised by the wafprint core.
"""

from typing import Optional


class WAFPrintError(Exception):
    """Base class for all wafprint errors."""


class CatalogLoadError(WAFPrintError):
    """The ruleset could not be read, parsed or validated."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{message} ({path})"
        super().__init__(message)


class TransportError(WAFPrintError):
    """A probe could not be completed (connection, DNS, protocol)."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)


class ProbeTimeoutError(TransportError):
    """A probe exceeded its deadline."""
