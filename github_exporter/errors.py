"""
Exceptions for the GitHub exporter.

Collectors raise these instead of logging; the scheduler decides whether a
failure is fatal.
"""

from __future__ import annotations


class ExporterError(Exception):
    """Base exception for all exporter errors."""
    pass


class FetchError(ExporterError):
    """A remote call failed (network, auth, rate limit or server error)."""
    pass


class FetchTimeoutError(FetchError):
    """A remote call did not finish before the refresh deadline."""
    pass


class DecodeError(ExporterError):
    """A response did not match the expected schema."""
    pass


class ConfigurationError(ExporterError):
    """Exception raised when there's an error in configuration."""
    pass


class CollectorError(ExporterError):
    """An error raised by one collector task, labelled with its origin."""

    def __init__(self, label: str, cause: BaseException):
        super().__init__(f"{label}: {cause}")
        self.label = label
        self.cause = cause
