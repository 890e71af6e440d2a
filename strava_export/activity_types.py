"""Utilities for classifying Strava activity types."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence

from .models import Activity

__all__ = ["ActivityFilter", "normalize_activity_type", "is_ride", "has_track_data"]

RIDE_TYPE = "ride"

# Indoor types never carry a meaningful GPS track.
_NO_TRACK_TYPES = re.compile(r"^(Workout|Yoga|Weight Training)$", re.IGNORECASE)


def normalize_activity_type(value: Any) -> str | None:
    """Return a lowercase activity type string or ``None`` when missing.

    The Strava API can return either ``type`` or ``sport_type`` values, often
    with inconsistent casing. Normalising once keeps comparisons cheap and
    deterministic.
    """

    if value is None:
        return None
    normalized = str(value).strip().lower()
    return normalized or None


def is_ride(activity: Activity) -> bool:
    """Return ``True`` only for plain ``Ride`` activities.

    Only rides occupy bike slots on the bikelog form; e-bike rides, hikes and
    walks are reported in the day's notes instead.
    """

    return normalize_activity_type(activity.type) == RIDE_TYPE


def has_track_data(activity: Activity) -> bool:
    """Return ``True`` when the activity can be drawn as a KML line string."""

    if not isinstance(activity.type, str) or _NO_TRACK_TYPES.match(activity.type):
        return False
    return len(activity.coordinates) > 0


@dataclass
class ActivityFilter:
    """Commute and type based selection applied before export."""

    commute_only: bool = False
    non_commute_only: bool = False
    include: Sequence[str] | None = None
    exclude: Sequence[str] | None = None

    def accepts(self, activity: Activity) -> bool:
        if self.commute_only and not activity.commute:
            return False
        if self.non_commute_only and activity.commute:
            return False
        kind = normalize_activity_type(activity.type)
        if self.exclude and kind in {normalize_activity_type(t) for t in self.exclude}:
            return False
        if self.include and kind not in {normalize_activity_type(t) for t in self.include}:
            return False
        return True

    def apply(self, activities: Iterable[Activity]) -> List[Activity]:
        return [a for a in activities if self.accepts(a)]
