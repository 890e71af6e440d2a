from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

LatLon = Tuple[float, float]


@dataclass(frozen=True)
class Equipment:
    id: str
    name: str


@dataclass
class SegmentEffort:
    name: str
    moving_time: int
    elapsed_time: int
    segment_id: int | None = None


@dataclass
class Activity:
    id: int
    name: str
    type: str
    start_date: datetime
    start_date_local: datetime
    moving_time: int
    elapsed_time: int
    distance: float
    total_elevation_gain: float
    commute: bool = False
    description: str | None = None
    gear_id: str | None = None
    # Resolved once from the athlete bike registry before aggregation/export.
    gear: Optional[Equipment] = None
    segment_efforts: List[SegmentEffort] = field(default_factory=list)
    coordinates: List[LatLon] = field(default_factory=list)
    # Index into ``coordinates`` where each lap starts.
    lap_start_indices: List[int] = field(default_factory=list)
    average_temp: float | None = None
    device_name: str | None = None
    # key=value lines lifted out of the description (e.g. wt=72kg)
    extras: Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        km = round(self.distance / 100) / 10
        return f"{self.start_date_local.date()}, {self.type} {km} km, {self.name}"


@dataclass
class SegmentRecord:
    id: int
    name: str
    elapsed_time: int | None = None
    moving_time: int | None = None
    distance: float | None = None
    elevation_high: float | None = None
    elevation_low: float | None = None
    average_grade: float | None = None
    country: str | None = None
    state: str | None = None
    coordinates: List[LatLon] = field(default_factory=list)


@dataclass
class BikeEventSlot:
    distance: float  # km, 2 decimals
    bike: str
    elevation: int  # metres
    time: float  # moving hours, 2 decimals


@dataclass
class DaySummaryRecord:
    jd: int
    date: date
    events: List[BikeEventSlot] = field(default_factory=list)
    note0: str | None = None
    note1: str | None = None
    weight: str | None = None


@dataclass(frozen=True)
class LineStyle:
    name: str
    color: str  # AABBGGRR
    width: int


@dataclass(frozen=True)
class BikeRule:
    pattern: str
    code: str


@dataclass(frozen=True)
class DateRange:
    after: str
    before: str

    def __str__(self) -> str:
        return f"{self.after} to {self.before}"


@dataclass
class KmlOptions:
    activities: bool = True
    segments: bool = True
    more: bool = False
    imperial: bool = False
    segments_flat_folder: bool = False
    laps: bool = False
    dates: List[DateRange] = field(default_factory=list)
    line_styles: dict = field(default_factory=dict)
