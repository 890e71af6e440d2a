"""Group starred segments by country and state for KML folder output."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Set

from .models import SegmentRecord

LOGGER = logging.getLogger(__name__)

RegionTree = Dict[str, Set[str]]

# Bucket for segments without a country.
UNKNOWN_COUNTRY = ""


def group_regions(segments: Iterable[SegmentRecord]) -> RegionTree:
    """Return ``{country: {state, ...}}`` in first-seen country order.

    Country and state must already be present on each record; nothing is
    geocoded here. A country is listed even when none of its segments has a
    state.
    """

    regions: RegionTree = {}
    for segment in segments:
        states = regions.setdefault(segment.country or UNKNOWN_COUNTRY, set())
        if segment.state:
            states.add(segment.state)
    LOGGER.info(
        "Segments found in the following regions: %s",
        {country: sorted(states) for country, states in regions.items()},
    )
    return regions
