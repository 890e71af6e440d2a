"""KML export of activity tracks and starred segments.

Output is streamed through a :class:`MarkupWriter`: the header, each activity
placemark, the segment folders and the footer are flushed in that order so the
writer's buffer never holds more than one activity track at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .activity_types import has_track_data
from .bike_classifier import BikeClassifier
from .errors import SinkError
from .line_styles import COMMUTE_STYLE, MOTO_STYLE, SEGMENT_STYLE, StyleRegistry
from .markup_writer import MarkupWriter, PathInput, Sink, open_sink
from .models import Activity, KmlOptions, LatLon, SegmentRecord
from .regions import UNKNOWN_COUNTRY, group_regions
from .utils import (
    escape_html,
    field_capitalize,
    format_hms,
    format_number,
    get_distance_string,
    get_elevation_string,
    get_temperature_string,
)

LOGGER = logging.getLogger(__name__)

KML_NAMESPACES = (
    'xmlns="http://www.opengis.net/kml/2.2" '
    'xmlns:gx="http://www.google.com/kml/ext/2.2" '
    'xmlns:kml="http://www.opengis.net/kml/2.2" '
    'xmlns:atom="http://www.w3.org/2005/Atom"'
)
DOCUMENT_NAME = "Strava Activities"
STYLE_PREFIX = "StravaLineStyle"
LAP_STYLE = "LapMarker"
LAP_ICON = "http://maps.google.com/mapfiles/kml/shapes/placemark_circle.png"
FOLDER_INDENT = 2

Formatter = Callable[[Activity, bool], Optional[str]]


@dataclass(slots=True)
class Placemark:
    placemark_id: str
    name: str
    style_name: str
    coordinates: Sequence[LatLon]
    description: str | None = None


def _segments_html(activity: Activity, _imperial: bool) -> str | None:
    if not activity.segment_efforts:
        return None
    items = ["<b>Segments:</b><br><ul>"]
    for effort in activity.segment_efforts:
        name = escape_html(effort.name)
        items.append(f"<li><b>{name}:</b> {format_hms(effort.elapsed_time)}</li>")
    items.append("</ul>")
    return "\n".join(items)


# (label, formatter) in output order; a ``None`` label emits the value as-is.
ACTIVITY_DESCRIPTION_FIELDS: Tuple[Tuple[Optional[str], Formatter], ...] = (
    ("distance", lambda a, imp: get_distance_string(a.distance, imp) if a.distance else None),
    (
        "elevation_gain",
        lambda a, imp: get_elevation_string(a.total_elevation_gain, imp)
        if a.total_elevation_gain
        else None,
    ),
    ("moving_time", lambda a, _imp: format_hms(a.moving_time) if a.moving_time else None),
    ("elapsed_time", lambda a, _imp: format_hms(a.elapsed_time) if a.elapsed_time else None),
    (
        "average_temp",
        lambda a, imp: get_temperature_string(a.average_temp, imp)
        if isinstance(a.average_temp, (int, float))
        else None,
    ),
    ("device_name", lambda a, _imp: a.device_name or None),
    (None, _segments_html),
    (
        "description",
        lambda a, _imp: a.description.replace("\n", "<br>") if a.description else None,
    ),
)

SEGMENT_DESCRIPTION_FIELDS: Tuple[Tuple[str, Callable[[SegmentRecord, bool], Optional[str]]], ...] = (
    ("distance", lambda s, imp: get_distance_string(s.distance, imp) if s.distance else None),
    (
        "average_grade",
        lambda s, _imp: f"{format_number(s.average_grade)}%"
        if s.average_grade is not None
        else None,
    ),
    (
        "elevation_high",
        lambda s, imp: get_elevation_string(s.elevation_high, imp)
        if s.elevation_high is not None
        else None,
    ),
    (
        "elevation_low",
        lambda s, imp: get_elevation_string(s.elevation_low, imp)
        if s.elevation_low is not None
        else None,
    ),
    ("elapsed_time", lambda s, _imp: format_hms(s.elapsed_time) if s.elapsed_time else None),
)


def _cdata(parts: List[str]) -> str:
    text = "<br>\n".join(parts).replace("]]>", "]]]]><![CDATA[>")
    return f"<![CDATA[{text}]]>"


class KmlExporter:
    def __init__(self, opts: KmlOptions | None = None) -> None:
        self.opts = opts or KmlOptions()
        self.styles = StyleRegistry(self.opts.line_styles)
        self.track_index = 0
        self.writer: MarkupWriter | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def export(
        self,
        sink: Sink,
        activities: Sequence[Activity] | None = None,
        segments: Sequence[SegmentRecord] | None = None,
    ) -> None:
        """Write the complete KML document to ``sink`` and close it."""

        self.track_index = 0
        self.writer = MarkupWriter(sink)
        try:
            self._header()
            if self.opts.activities:
                self._add_activities(activities or [])
            if self.opts.segments:
                self._add_segments(segments or [])
            self._footer()
        except SinkError:
            raise
        except OSError as exc:
            raise SinkError(f"Stream error {exc}") from exc
        finally:
            sink.close()

    # ------------------------------------------------------------------
    # Document structure
    # ------------------------------------------------------------------
    def _w(self) -> MarkupWriter:
        if self.writer is None:  # pragma: no cover - export() sets it
            raise RuntimeError("KmlExporter.export() has not been called")
        return self.writer

    def _header(self) -> None:
        w = self._w()
        w.writeln(0, '<?xml version="1.0" encoding="UTF-8"?>')
        w.writeln(0, f"<kml {KML_NAMESPACES}>")
        w.writeln(1, "<Document>")
        w.writeln(2, f"<name>{DOCUMENT_NAME}</name>")
        w.writeln(2, "<open>1</open>")
        for style in self.styles:
            w.writeln(2, f'<Style id="{STYLE_PREFIX}{escape_html(style.name)}">')
            w.writeln(
                3,
                f"<LineStyle><color>{style.color}</color><width>{style.width}</width></LineStyle>",
            )
            w.writeln(3, f"<PolyStyle><color>{style.color}</color></PolyStyle>")
            w.writeln(2, "</Style>")
        if self.opts.laps:
            self._lap_marker_style()
        w.flush()

    def _lap_marker_style(self) -> None:
        w = self._w()
        w.writeln(2, f'<Style id="{LAP_STYLE}">')
        w.writeln(3, "<IconStyle>")
        w.writeln(4, "<scale>0.6</scale>")
        w.writeln(4, f"<Icon><href>{LAP_ICON}</href></Icon>")
        w.writeln(3, "</IconStyle>")
        # Label only shows when the marker is clicked.
        w.writeln(3, "<LabelStyle><scale>0</scale></LabelStyle>")
        w.writeln(2, "</Style>")

    def _footer(self) -> None:
        w = self._w()
        w.writeln(1, "</Document>")
        w.writeln(0, "</kml>")
        w.flush()

    def _date_string(self) -> str:
        return ", ".join(str(r) for r in self.opts.dates)

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------
    def _add_activities(self, activities: Sequence[Activity]) -> None:
        if not activities:
            return
        w = self._w()
        dates = self._date_string()
        title = "Activities" + (" " + dates if dates else "")
        w.writeln(FOLDER_INDENT, f"<Folder><name>{escape_html(title)}</name><open>1</open>")
        for activity in activities:
            if has_track_data(activity):
                self.output_activity(FOLDER_INDENT + 1, activity)
            else:
                LOGGER.debug("No track data for %s; skipping placemark", activity)
            w.flush()
        w.writeln(FOLDER_INDENT, "</Folder>")
        w.flush()

    def style_for(self, activity: Activity) -> str:
        """Moto beats commute beats type; anything else uses ``Default``."""

        gear_name = activity.gear.name if activity.gear else None
        if BikeClassifier.is_moto(gear_name):
            return MOTO_STYLE
        if activity.commute and self.styles.has(COMMUTE_STYLE):
            return COMMUTE_STYLE
        if self.styles.has(activity.type):
            return activity.type
        return self.styles.lookup(None).name

    def output_activity(self, indent: int, activity: Activity) -> None:
        self.track_index += 1
        self._placemark(
            indent,
            Placemark(
                placemark_id=f"StravaTrack{self.track_index}",
                name=f"{activity.start_date_local.date().isoformat()} - {escape_html(activity.name)}",
                style_name=self.style_for(activity),
                coordinates=activity.coordinates,
                description=self.describe_activity(activity),
            ),
        )
        if self.opts.laps:
            self.output_lap_markers(indent, activity)

    def output_lap_markers(self, indent: int, activity: Activity) -> None:
        """Emit a ``Lap N`` point at the start of each lap.

        Needs at least two laps; a start index outside the track is skipped.
        """

        laps = activity.lap_start_indices
        coords = activity.coordinates
        if len(laps) < 2 or not coords:
            return
        w = self._w()
        for number, start in enumerate(laps, start=1):
            if not 0 <= start < len(coords):
                LOGGER.debug("Lap %d of %s starts off the track; skipped", number, activity)
                continue
            lat, lon = coords[start]
            self.track_index += 1
            w.writeln(indent, f'<Placemark id="{LAP_STYLE}{self.track_index}">')
            w.writeln(indent + 1, f"<name>Lap {number}</name>")
            w.writeln(indent + 1, "<visibility>1</visibility>")
            w.writeln(indent + 1, f"<styleUrl>#{LAP_STYLE}</styleUrl>")
            w.writeln(indent + 1, "<Point>")
            w.writeln(
                indent + 2,
                f"<coordinates>{format_number(lon)},{format_number(lat)},0</coordinates>",
            )
            w.writeln(indent + 1, "</Point>")
            w.writeln(indent, "</Placemark>")

    def describe_activity(self, activity: Activity) -> str | None:
        if not self.opts.more:
            return None
        parts: List[str] = []
        for label, formatter in ACTIVITY_DESCRIPTION_FIELDS:
            value = formatter(activity, self.opts.imperial)
            if not value:
                continue
            if label is None:
                parts.append(value)
            else:
                parts.append(f"<b>{field_capitalize(label)}:</b> {value}")
        return _cdata(parts) if parts else None

    # ------------------------------------------------------------------
    # Segments
    # ------------------------------------------------------------------
    def _add_segments(self, segments: Sequence[SegmentRecord]) -> None:
        if not segments:
            return
        ordered = sorted(segments, key=lambda s: s.name or "")
        if self.opts.segments_flat_folder:
            self.output_segments(FOLDER_INDENT, ordered)
        else:
            regions = group_regions(segments)
            for country, states in regions.items():
                for state in sorted(states):
                    self.output_segments(FOLDER_INDENT, ordered, country, state)
                # Stateless segments of the country get their own folder.
                if any(self._in_region(s, country, None) for s in segments):
                    self.output_segments(FOLDER_INDENT, ordered, country)
        self._w().flush()

    def output_segments(
        self,
        indent: int,
        segments: Sequence[SegmentRecord],
        country: str | None = None,
        state: str | None = None,
    ) -> None:
        w = self._w()
        title = "Segments"
        if country and state:
            title += f" for {state}, {country}"
        elif country:
            title += f" for {country}"
        dates = self._date_string()
        w.writeln(indent, f"<Folder><name>{escape_html(title)}</name><open>1</open>")
        w.writeln(indent + 1, f"<description>Efforts for {escape_html(dates)}</description>")
        for segment in segments:
            if country is None or self._in_region(segment, country, state):
                self.output_segment(indent + 2, segment)
        w.writeln(indent, "</Folder>")

    @staticmethod
    def _in_region(segment: SegmentRecord, country: str, state: str | None) -> bool:
        if (segment.country or UNKNOWN_COUNTRY) != country:
            return False
        if state is None:
            return not segment.state
        return segment.state == state

    def output_segment(self, indent: int, segment: SegmentRecord) -> None:
        self.track_index += 1
        self._placemark(
            indent,
            Placemark(
                placemark_id=f"StravaSegment{self.track_index}",
                name=escape_html(segment.name),
                style_name=SEGMENT_STYLE,
                coordinates=segment.coordinates,
                description=self.describe_segment(segment),
            ),
        )

    def describe_segment(self, segment: SegmentRecord) -> str | None:
        if not self.opts.more:
            return None
        parts = []
        for label, formatter in SEGMENT_DESCRIPTION_FIELDS:
            value = formatter(segment, self.opts.imperial)
            if value:
                parts.append(f"<b>{field_capitalize(label)}:</b> {value}")
        return _cdata(parts) if parts else None

    # ------------------------------------------------------------------
    # Placemark
    # ------------------------------------------------------------------
    def _placemark(self, indent: int, params: Placemark) -> None:
        w = self._w()
        w.writeln(indent, f'<Placemark id="{params.placemark_id}">')
        w.writeln(indent + 1, f"<name>{params.name}</name>")
        if params.description:
            w.writeln(indent + 1, f"<description>{params.description}</description>")
        w.writeln(indent + 1, "<visibility>1</visibility>")
        w.writeln(indent + 1, f"<styleUrl>#{STYLE_PREFIX}{escape_html(params.style_name)}</styleUrl>")
        w.writeln(indent + 1, "<LineString>")
        w.writeln(indent + 2, "<tessellate>1</tessellate>")
        if params.coordinates:
            w.writeln(indent + 2, "<coordinates>")
            # KML wants lon,lat,alt; inputs are lat/lon pairs.
            for lat, lon in params.coordinates:
                w.write("", f"{format_number(lon)},{format_number(lat)},0 ")
            w.writeln("", "")
            w.writeln(indent + 2, "</coordinates>")
        w.writeln(indent + 1, "</LineString>")
        w.writeln(indent, "</Placemark>")


def write_kml(
    path: PathInput,
    activities: Sequence[Activity] | None,
    segments: Sequence[SegmentRecord] | None,
    opts: KmlOptions | None = None,
) -> int:
    """Export to ``path`` and return the number of bytes written."""

    sink = open_sink(path)
    KmlExporter(opts).export(sink, activities, segments)
    LOGGER.info("Wrote %s (%d bytes)", sink.name, sink.bytes_written)
    return sink.bytes_written


__all__ = [
    "ACTIVITY_DESCRIPTION_FIELDS",
    "KmlExporter",
    "Placemark",
    "write_kml",
]
