"""Adapters from captured Strava API payloads to the export models.

The REST client that fetches these payloads lives outside this package; it
stores the JSON responses on disk and the CLI feeds them through the
functions below. Expected shapes follow the Strava v3 API: activity
summaries / detailed activities, ``latlng`` streams (or encoded ``map``
polylines), starred segments and the athlete profile with its ``bikes``.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from polyline import decode as polyline_decode

from .errors import PayloadError
from .markup_writer import PathInput
from .models import Activity, Equipment, LatLon, SegmentEffort, SegmentRecord

LOGGER = logging.getLogger(__name__)

Payload = Mapping[str, Any]
BikeRegistry = Dict[str, Equipment]

# ``key=value`` lines in an activity description carry extra fields (e.g. ``wt=72kg``).
_DESCRIPTION_FIELD = re.compile(r"^([^\s=]+)\s*=\s*(.*)$")


def load_json(path: PathInput) -> Any:
    filepath = Path(path)
    with filepath.open("r", encoding="utf-8") as handle:
        try:
            return json.load(handle)
        except json.JSONDecodeError as exc:
            raise PayloadError(f"Invalid JSON in {filepath}: {exc}") from exc


def parse_strava_datetime(value: Any, *, local: bool = False) -> datetime:
    """Parse Strava's ISO timestamps.

    ``start_date_local`` carries a misleading ``Z`` suffix; with ``local=True``
    the offset is dropped and a naive wall-clock datetime is returned.
    """

    if not isinstance(value, str) or not value:
        raise PayloadError(f"Missing or invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise PayloadError(f"Invalid timestamp: {value!r}") from exc
    if local:
        return parsed.replace(tzinfo=None)
    return parsed


def decode_polyline(encoded: str | None) -> List[LatLon]:
    """Decode an encoded polyline string into a list of (lat, lon) tuples."""

    if not encoded:
        return []
    try:
        decoded = polyline_decode(encoded)
    except (ValueError, TypeError, IndexError) as exc:
        raise PayloadError("Unable to decode polyline") from exc
    return [(float(lat), float(lon)) for lat, lon in decoded]


def _coordinates(payload: Payload) -> List[LatLon]:
    latlng = payload.get("latlng")
    if isinstance(latlng, Mapping):
        latlng = latlng.get("data")
    if isinstance(latlng, list) and latlng:
        return [(float(lat), float(lon)) for lat, lon in latlng]
    map_data = payload.get("map")
    if isinstance(map_data, Mapping):
        return decode_polyline(map_data.get("polyline") or map_data.get("summary_polyline"))
    return []


def _lap_starts(payload: Payload) -> List[int]:
    starts: List[int] = []
    for lap in payload.get("laps") or []:
        index = lap.get("start_index") if isinstance(lap, Mapping) else None
        if isinstance(index, int) and not isinstance(index, bool):
            starts.append(index)
    return starts


def split_description(text: str | None) -> Tuple[Optional[str], Dict[str, str]]:
    """Separate ``key=value`` lines from the free-text description."""

    if not text:
        return None, {}
    fields: Dict[str, str] = {}
    lines: List[str] = []
    for line in re.split(r"\r?\n", text):
        match = _DESCRIPTION_FIELD.match(line)
        if match:
            fields[match.group(1)] = match.group(2)
        else:
            lines.append(line)
    description = "\n".join(lines) if lines else None
    return description, fields


def _efforts(
    payload: Payload,
    starred: Optional[set[str]],
    aliases: Mapping[str, str],
) -> List[SegmentEffort]:
    efforts: List[SegmentEffort] = []
    for effort in payload.get("segment_efforts") or []:
        name = str(effort.get("name", "")).strip()
        if starred is not None and name not in starred:
            continue
        name = aliases.get(name, name)
        segment = effort.get("segment") or {}
        efforts.append(
            SegmentEffort(
                name=name,
                moving_time=int(effort.get("moving_time") or 0),
                elapsed_time=int(effort.get("elapsed_time") or 0),
                segment_id=segment.get("id"),
            )
        )
    return efforts


def activity_from_payload(
    payload: Payload,
    *,
    starred_segments: Iterable[str] | None = None,
    aliases: Mapping[str, str] | None = None,
) -> Activity:
    """Build an :class:`Activity` from an activity (summary or detailed) payload.

    When ``starred_segments`` is given only efforts on those segment names are
    kept; ``aliases`` renames efforts for display.
    """

    try:
        activity_id = int(payload["id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise PayloadError(f"Activity payload without id: {payload!r:.80}") from exc
    description, extras = split_description(payload.get("description"))
    starred = {str(n).strip() for n in starred_segments} if starred_segments is not None else None
    return Activity(
        id=activity_id,
        name=str(payload.get("name") or ""),
        type=str(payload.get("type") or payload.get("sport_type") or ""),
        start_date=parse_strava_datetime(payload.get("start_date")),
        start_date_local=parse_strava_datetime(
            payload.get("start_date_local") or payload.get("start_date"), local=True
        ),
        moving_time=int(payload.get("moving_time") or 0),
        elapsed_time=int(payload.get("elapsed_time") or 0),
        distance=float(payload.get("distance") or 0.0),
        total_elevation_gain=float(payload.get("total_elevation_gain") or 0.0),
        commute=bool(payload.get("commute", False)),
        description=description,
        gear_id=payload.get("gear_id"),
        segment_efforts=_efforts(payload, starred, aliases or {}),
        coordinates=_coordinates(payload),
        lap_start_indices=_lap_starts(payload),
        average_temp=payload.get("average_temp"),
        device_name=payload.get("device_name"),
        extras=extras,
    )


def segment_from_payload(payload: Payload) -> SegmentRecord:
    try:
        segment_id = int(payload["id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise PayloadError(f"Segment payload without id: {payload!r:.80}") from exc
    return SegmentRecord(
        id=segment_id,
        name=str(payload.get("name") or ""),
        elapsed_time=payload.get("elapsed_time"),
        moving_time=payload.get("moving_time"),
        distance=payload.get("distance"),
        elevation_high=payload.get("elevation_high"),
        elevation_low=payload.get("elevation_low"),
        average_grade=payload.get("average_grade"),
        country=payload.get("country") or None,
        state=payload.get("state") or None,
        coordinates=_coordinates(payload),
    )


def bikes_from_athlete(athlete: Payload) -> BikeRegistry:
    """Return ``{gear_id: Equipment}`` from an athlete profile payload."""

    registry: BikeRegistry = {}
    for bike in athlete.get("bikes") or []:
        gear_id = bike.get("id")
        name = bike.get("name")
        if gear_id and name:
            registry[str(gear_id)] = Equipment(id=str(gear_id), name=str(name))
    return registry


def resolve_gear(activities: Sequence[Activity], bikes: BikeRegistry) -> int:
    """Attach equipment to each activity; return how many were resolved."""

    resolved = 0
    for activity in activities:
        activity.gear = bikes.get(activity.gear_id) if activity.gear_id else None
        if activity.gear is not None:
            resolved += 1
        elif activity.gear_id:
            LOGGER.debug("Unknown gear %s on %s", activity.gear_id, activity)
    return resolved


def load_activities(path: PathInput, **kwargs: Any) -> List[Activity]:
    data = load_json(path)
    if not isinstance(data, list):
        raise PayloadError(f"Expected a list of activities in {path}")
    return [activity_from_payload(item, **kwargs) for item in data]


def load_segments(path: PathInput) -> List[SegmentRecord]:
    data = load_json(path)
    if not isinstance(data, list):
        raise PayloadError(f"Expected a list of segments in {path}")
    return [segment_from_payload(item) for item in data]


__all__ = [
    "activity_from_payload",
    "bikes_from_athlete",
    "decode_polyline",
    "load_activities",
    "load_json",
    "load_segments",
    "parse_strava_datetime",
    "resolve_gear",
    "segment_from_payload",
    "split_description",
]
