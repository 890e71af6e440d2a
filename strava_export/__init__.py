"""Strava activity export: KML tracks and bikelog forms."""

from .main import main
from .models import Activity, DaySummaryRecord, KmlOptions, SegmentRecord
from .errors import ExportError, PayloadError, SinkError

__all__ = [
    "main",
    "Activity",
    "DaySummaryRecord",
    "KmlOptions",
    "SegmentRecord",
    "ExportError",
    "PayloadError",
    "SinkError",
]
