"""
Exception hierarchy for the translation sync pipeline.

Fatal conditions (missing source cache, broken destination file) are raised
as subclasses of SyncError so the entry point can report them uniformly.
Expected, non-fatal conditions such as unresolved destination keys are not
exceptions; they are collected in the run report instead.
"""

from __future__ import annotations

from typing import Any


class SyncError(Exception):
    """Base exception for all sync pipeline errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary of additional error context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SourceCacheError(SyncError):
    """A cached API dataset is missing or cannot be parsed.

    Raised before any destination file is touched.
    """


class SourceFetchError(SyncError):
    """Refreshing the API cache failed."""


class DestinationFileError(SyncError):
    """A destination translation file cannot be read or parsed."""

    def __init__(self, message: str, path: str, details: dict[str, Any] | None = None):
        super().__init__(message, details)
        self.path = path


class OverrideConfigError(SyncError):
    """The bundled manual-override tables are malformed."""
