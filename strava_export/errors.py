"""Central error types used across the application."""

from __future__ import annotations


class ExportError(RuntimeError):
    """Base error for a failed KML or bikelog export."""


class SinkError(ExportError):
    """Raised when the output destination cannot be opened or written."""


class PayloadError(ExportError):
    """Raised when a captured Strava payload file has an unexpected shape."""


__all__ = [
    "ExportError",
    "SinkError",
    "PayloadError",
]
