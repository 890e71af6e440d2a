"""Global pytest fixtures & helpers.

Adds project root to path and provides factory helpers for activities and
segments so aggregation and export tests stay short.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime
from typing import List
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from strava_export.models import Activity, Equipment, SegmentEffort, SegmentRecord


# --- Factory helpers -------------------------------------------------
_NEXT_ID = [1000]


def make_activity(
    name="Morning Ride",
    type="Ride",
    start="2024-03-02T09:00:00",
    distance=8000.0,
    elevation=500.0,
    moving=3600,
    elapsed=3700,
    bike=None,
    commute=False,
    description=None,
    efforts=None,
    coordinates=None,
    **extra,
):
    _NEXT_ID[0] += 1
    local = datetime.fromisoformat(start)
    gear = Equipment(id=f"b-{bike}", name=bike) if bike else None
    return Activity(
        id=_NEXT_ID[0],
        name=name,
        type=type,
        start_date=local,
        start_date_local=local,
        moving_time=moving,
        elapsed_time=elapsed,
        distance=distance,
        total_elevation_gain=elevation,
        commute=commute,
        description=description,
        gear_id=gear.id if gear else None,
        gear=gear,
        segment_efforts=[SegmentEffort(name=n, moving_time=t, elapsed_time=t) for n, t in (efforts or [])],
        coordinates=list(coordinates or []),
        **extra,
    )


def make_segment(name, country=None, state=None, coordinates=None, **extra):
    _NEXT_ID[0] += 1
    return SegmentRecord(
        id=_NEXT_ID[0],
        name=name,
        country=country,
        state=state,
        coordinates=list(coordinates or [(37.0, -122.0), (37.1, -122.1)]),
        **extra,
    )


class RecordingSink:
    """Sink that reports backpressure after ``capacity`` chars until drained."""

    def __init__(self, capacity: int = 1_000_000) -> None:
        self.capacity = capacity
        self.pending = 0
        self.accepted: List[str] = []
        self.drains = 0
        self.closed = False

    def write(self, data: str) -> bool:
        self.accepted.append(data)
        self.pending += len(data)
        return self.pending < self.capacity

    def drain(self) -> None:
        self.drains += 1
        self.pending = 0

    def close(self) -> None:
        self.closed = True

    @property
    def text(self) -> str:
        return "".join(self.accepted)


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def track():
    return [(37.7749, -122.4194), (37.7750, -122.4195)]


@pytest.fixture
def regional_segments():
    return [
        make_segment("Old La Honda", country="United States", state="California"),
        make_segment("Alpe d'Huez", country="France", state="Isère"),
        make_segment("Kings Mountain", country="United States", state="California"),
        make_segment("Mount Hamilton", country="United States", state="California"),
        make_segment("Mystery Climb"),
    ]
