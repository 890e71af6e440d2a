"""Bikelog XFDF export.

Writes the per-day records built by :mod:`day_aggregation` as an XFDF field
document that Acrobat can import into the printable bikelog form::

    <fields xmlns:xfdf="http://ns.adobe.com/xfdf-transition/">
      <day>
        <group xfdf:original="2459946">
          <group xfdf:original="0">
            <bike>S1</bike><dist>8</dist><el>500</el><t>1</t>
          </group>
          <note0>...</note0>
        </group>
      </day>
    </fields>
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Mapping, Sequence

from .bike_classifier import BikeClassifier
from .config import BIKELOG_MAX_SLOTS, XFDF_NAMESPACE
from .day_aggregation import DayAggregator, sorted_days
from .errors import SinkError
from .markup_writer import MarkupWriter, PathInput, Sink, open_sink
from .models import Activity, DaySummaryRecord
from .utils import format_number

LOGGER = logging.getLogger(__name__)

ET.register_namespace("xfdf", XFDF_NAMESPACE)
_ORIGINAL = f"{{{XFDF_NAMESPACE}}}original"


def _sub(parent: ET.Element, tag: str, text: str) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = text
    return element


def build_document(days: Sequence[DaySummaryRecord]) -> ET.Element:
    """Return the ``<fields>`` root for ``days`` in the order given."""

    root = ET.Element("fields")
    day_el = ET.SubElement(root, "day")
    for record in days:
        item = ET.SubElement(day_el, "group", {_ORIGINAL: str(record.jd)})
        for idx, event in enumerate(record.events[:BIKELOG_MAX_SLOTS]):
            group = ET.SubElement(item, "group", {_ORIGINAL: str(idx)})
            _sub(group, "bike", event.bike)
            _sub(group, "dist", format_number(event.distance))
            _sub(group, "el", str(event.elevation))
            _sub(group, "t", format_number(event.time))
        if record.note0:
            _sub(item, "note0", record.note0)
        if record.note1:
            _sub(item, "note1", record.note1)
        if record.weight:
            _sub(item, "wt", re.sub(r"[^\d.]", "", record.weight))
    return root


class BikelogExporter:
    def export(self, sink: Sink, day_records: Mapping[int, DaySummaryRecord]) -> None:
        """Write every day record, ascending by julian day, then close ``sink``."""

        days = sorted_days(dict(day_records))
        root = build_document(days)
        ET.indent(root, space="  ")
        writer = MarkupWriter(sink)
        try:
            writer.writeln(0, '<?xml version="1.0" encoding="UTF-8"?>')
            writer.writeln(0, ET.tostring(root, encoding="unicode"))
            writer.flush()
        except SinkError:
            raise
        except OSError as exc:
            raise SinkError(f"Stream error {exc}") from exc
        finally:
            sink.close()
        LOGGER.info("Wrote bikelog for %d days", len(days))


def write_bikelog(
    path: PathInput,
    activities: Sequence[Activity],
    classifier: BikeClassifier | None = None,
) -> int:
    """Aggregate ``activities`` and export the bikelog to ``path``."""

    records = DayAggregator(classifier).aggregate(activities)
    sink = open_sink(path)
    BikelogExporter().export(sink, records)
    LOGGER.info("Wrote %s (%d bytes)", sink.name, sink.bytes_written)
    return sink.bytes_written


__all__ = ["BikelogExporter", "build_document", "write_bikelog"]
