"""Command line entry point.

Reads Strava API payloads captured to disk and writes the requested outputs::

    python -m strava_export --activities acts.json --athlete athlete.json \
        --bikes bikes.json --kml --bikelog --xlsx bikelog.xlsx
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Sequence

from .activity_types import ActivityFilter
from .bike_classifier import BikeClassifier
from .bikelog_exporter import write_bikelog
from .bikelog_workbook import write_bikelog_workbook
from .config import BIKELOG_FILE, IMPERIAL_UNITS, KML_FILE, LOG_LEVEL
from .day_aggregation import DayAggregator
from .errors import ExportError, PayloadError
from .kml_exporter import write_kml
from .models import Activity, DateRange, KmlOptions, SegmentRecord
from .payloads import (
    bikes_from_athlete,
    load_activities,
    load_json,
    load_segments,
    resolve_gear,
)

LOGGER = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else LOG_LEVEL,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _date_range(value: str) -> DateRange:
    after, sep, before = value.partition(":")
    if not sep or not after or not before:
        raise argparse.ArgumentTypeError(
            f"Date range must look like AFTER:BEFORE, got {value!r}"
        )
    return DateRange(after=after, before=before)


def _load_mapping(path: str) -> Dict[str, Any]:
    data = load_json(path)
    if not isinstance(data, dict):
        raise PayloadError(f"Expected a JSON object in {path}")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="strava_export",
        description="Export captured Strava activities to KML and bikelog files.",
    )
    inputs = parser.add_argument_group("inputs")
    inputs.add_argument("--activities", help="JSON list of activity payloads")
    inputs.add_argument("--segments", help="JSON list of starred segment payloads")
    inputs.add_argument("--athlete", help="Athlete profile JSON (provides bikes)")
    inputs.add_argument("--bikes", help='JSON list of {"name": CODE, "pattern": TEXT}')
    inputs.add_argument("--line-styles", help="JSON mapping of KML line style overrides")
    inputs.add_argument("--aliases", help="JSON mapping of segment name aliases")

    outputs = parser.add_argument_group("outputs")
    outputs.add_argument("--kml", nargs="?", const=KML_FILE, help="Write a KML file")
    outputs.add_argument(
        "--bikelog", nargs="?", const=BIKELOG_FILE, help="Write a bikelog XFDF file"
    )
    outputs.add_argument("--xlsx", help="Write the bikelog as an Excel workbook")

    kml = parser.add_argument_group("kml options")
    kml.add_argument("--more", action="store_true", help="Add rich descriptions")
    kml.add_argument(
        "--imperial", action="store_true", default=IMPERIAL_UNITS, help="Use imperial units"
    )
    kml.add_argument("--flat-folder", action="store_true", help="One flat segment folder")
    kml.add_argument("--laps", action="store_true", help="Mark lap starts on activity tracks")
    kml.add_argument("--no-activities", action="store_true", help="Omit activity tracks")
    kml.add_argument("--no-segments", action="store_true", help="Omit segments")
    kml.add_argument(
        "--date-range",
        action="append",
        type=_date_range,
        default=[],
        metavar="AFTER:BEFORE",
        help="Date range shown in folder names (repeatable)",
    )

    filters = parser.add_argument_group("activity filters")
    commute = filters.add_mutually_exclusive_group()
    commute.add_argument("--commute-only", action="store_true")
    commute.add_argument("--no-commute", action="store_true")
    filters.add_argument("--type", action="append", dest="include_types")
    filters.add_argument("--exclude-type", action="append", dest="exclude_types")

    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _load_inputs(args: argparse.Namespace) -> tuple[List[Activity], List[SegmentRecord]]:
    segments: List[SegmentRecord] = []
    if args.segments:
        segments = load_segments(args.segments)
        LOGGER.info("Loaded %d starred segments", len(segments))
    aliases = _load_mapping(args.aliases) if args.aliases else {}

    activities: List[Activity] = []
    if args.activities:
        starred = [s.name for s in segments] if args.segments else None
        activities = load_activities(
            args.activities, starred_segments=starred, aliases=aliases
        )
        LOGGER.info("Loaded %d activities", len(activities))
    if args.athlete:
        bikes = bikes_from_athlete(load_json(args.athlete))
        resolved = resolve_gear(activities, bikes)
        LOGGER.info("Resolved bikes for %d of %d activities", resolved, len(activities))

    activity_filter = ActivityFilter(
        commute_only=args.commute_only,
        non_commute_only=args.no_commute,
        include=args.include_types,
        exclude=args.exclude_types,
    )
    return activity_filter.apply(activities), segments


def run(args: argparse.Namespace) -> None:
    activities, segments = _load_inputs(args)
    classifier = (
        BikeClassifier.from_config(load_json(args.bikes)) if args.bikes else BikeClassifier()
    )

    if args.kml:
        opts = KmlOptions(
            activities=not args.no_activities,
            segments=not args.no_segments,
            more=args.more,
            imperial=args.imperial,
            segments_flat_folder=args.flat_folder,
            laps=args.laps,
            dates=list(args.date_range),
            line_styles=_load_mapping(args.line_styles) if args.line_styles else {},
        )
        write_kml(args.kml, activities, segments, opts)
    if args.bikelog:
        write_bikelog(args.bikelog, activities, classifier)
    if args.xlsx:
        records = DayAggregator(classifier).aggregate(activities)
        write_bikelog_workbook(args.xlsx, records)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    if not (args.kml or args.bikelog or args.xlsx):
        parser.error("nothing to do: pass --kml, --bikelog and/or --xlsx")
    try:
        run(args)
    except (ExportError, FileNotFoundError) as exc:
        LOGGER.error("Export failed: %s", exc)
        return 1
    return 0
