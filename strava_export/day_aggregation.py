"""Per-day bikelog aggregation.

Pure transformation: folds a flat list of activities into one
:class:`DaySummaryRecord` per calendar day, keyed by julian day. Rides on a
recognised bike fill at most two bike slots per day (the printable form has
two); every activity contributes text to the day's notes.
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Dict, List, Sequence

from .activity_types import is_ride
from .bike_classifier import BikeClassifier
from .config import BIKELOG_MAX_SLOTS
from .models import Activity, BikeEventSlot, DaySummaryRecord
from .utils import format_hm, format_ms, format_number, js_round, round_to

LOGGER = logging.getLogger(__name__)

DayRecords = Dict[int, DaySummaryRecord]

# date(1970, 1, 1).toordinal() + _JD_OFFSET == 2440588
_JD_OFFSET = 1721425


def julian_day(day: date) -> int:
    """Return the julian day number for a calendar date."""

    return day.toordinal() + _JD_OFFSET


def _ride_note(activity: Activity) -> str:
    lines: List[str] = [
        f"Ascend {js_round(activity.total_elevation_gain or 0)}m, "
        f"time {format_hm(activity.moving_time)} ({format_hm(activity.elapsed_time)})"
    ]
    if activity.commute:
        lines.append(f"Commute: {activity.name}")
    else:
        lines.append(activity.name)
    if activity.description:
        lines.append(activity.description)
    if activity.segment_efforts:
        efforts = []
        up = "Up"
        for effort in activity.segment_efforts:
            efforts.append(f"{up} {effort.name} [{format_ms(effort.moving_time)}]")
            up = "up"
        lines.append(", ".join(efforts))
    return "\n".join(lines) + "\n"


def _other_note(activity: Activity) -> str:
    distance = round_to((activity.distance or 0) / 1000, 100)
    note = (
        f"{activity.type}: {format_number(distance)}km {activity.name}, "
        f"moving time {format_hm(activity.moving_time)}"
    )
    if activity.description:
        note += "\n" + activity.description
    return note


class DayAggregator:
    def __init__(self, classifier: BikeClassifier | None = None):
        self.classifier = classifier or BikeClassifier()
        self._log = LOGGER

    def bike_slot(self, activity: Activity) -> BikeEventSlot | None:
        """Return the candidate bike slot for a ride, or ``None``."""

        gear = activity.gear
        if gear is None or BikeClassifier.is_moto(gear.name):
            return None
        code = self.classifier.classify(gear.name)
        if code is None:
            self._log.debug("Bike %r is uncategorized; no slot for %s", gear.name, activity)
            return None
        return BikeEventSlot(
            distance=js_round((activity.distance or 0) / 10) / 100,
            bike=code,
            elevation=js_round(activity.total_elevation_gain or 0),
            time=js_round((activity.moving_time or 0) / 36) / 100,
        )

    def _place_slot(self, entry: DaySummaryRecord, candidate: BikeEventSlot) -> None:
        if len(entry.events) < BIKELOG_MAX_SLOTS:
            entry.events.append(candidate)
            return
        # Scan last-to-first and merge into the first slot on the same bike.
        for idx in range(len(entry.events) - 1, -1, -1):
            slot = entry.events[idx]
            if slot.bike == candidate.bike:
                slot.distance = round(slot.distance + candidate.distance, 2)
                return
        self._log.warning(
            "Dropping %s km on bike %s for julian day %s: both bike slots taken",
            format_number(candidate.distance),
            candidate.bike,
            entry.jd,
        )

    def aggregate(self, activities: Sequence[Activity]) -> DayRecords:
        """Return day records keyed by julian day.

        Iteration order of the returned mapping is not meaningful; use
        :func:`sorted_days` when enumerating for output.
        """

        result: DayRecords = {}
        for activity in activities:
            local_day = activity.start_date_local.date()
            jd = julian_day(local_day)
            entry = result.get(jd)
            if entry is None:
                entry = DaySummaryRecord(jd=jd, date=local_day)
                result[jd] = entry
            if activity.extras.get("wt"):
                entry.weight = activity.extras["wt"]
            if is_ride(activity):
                note = _ride_note(activity)
                entry.note0 = entry.note0 + note if entry.note0 else note
                candidate = self.bike_slot(activity)
                if candidate is not None:
                    self._place_slot(entry, candidate)
            else:
                note = _other_note(activity)
                entry.note0 = entry.note0 + "\n" + note if entry.note0 else note
        return result


def sorted_days(records: DayRecords) -> List[DaySummaryRecord]:
    return [records[jd] for jd in sorted(records)]


__all__ = ["DayAggregator", "DayRecords", "julian_day", "sorted_days"]
