"""Data models for GPS samples, sessions and violation summaries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Final


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A single GPS sample from a fishing session.

    Attributes:
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
        timestamp: Naive wall-clock datetime. No timezone conversion is applied;
            values are taken as already being in the authority's local time.
    """

    latitude: float
    longitude: float
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class ParseReport:
    """Outcome of parsing one raw location record.

    Attributes:
        points: Usable samples in input order (not sorted).
        samples_total: Number of non-blank samples found in the record.
        samples_dropped: Samples excluded because a field could not be parsed.
        is_empty_input: True for None / empty / whitespace-only records.
        failed: True if the record as a whole could not be read.
    """

    points: tuple[GeoPoint, ...]
    samples_total: int
    samples_dropped: int
    is_empty_input: bool = False
    failed: bool = False

    @property
    def samples_parsed(self) -> int:
        return len(self.points)


@dataclass(frozen=True, slots=True)
class SessionViolation:
    """Violation durations for a single session.

    Minutes are rounded to one decimal (half-up). The unrounded seconds are kept
    so that fleet totals can be summed first and rounded once.
    """

    outside_border_minutes: float
    restricted_zone_minutes: float
    total_points: int
    outside_border_seconds: float = 0.0
    restricted_zone_seconds: float = 0.0


@dataclass(frozen=True, slots=True)
class FleetViolation:
    """Violation totals across all sessions of one fisherman."""

    total_outside_minutes: float
    total_restricted_minutes: float
    session_count: int


@dataclass(slots=True)
class ViolationDiagnostics:
    """Data-quality counters collected while computing violations.

    Owned by the caller and passed in explicitly; the computation itself keeps no
    state between calls.
    """

    sessions: int = 0
    samples_dropped: int = 0
    failed_inputs: int = 0
    zero_duration_segments: int = 0
    capped_segments: int = 0

    @property
    def has_issues(self) -> bool:
        return bool(
            self.samples_dropped or self.failed_inputs or self.zero_duration_segments or self.capped_segments
        )


class PointStatus(str, Enum):
    """Classification of a single point, used for marker colouring."""

    INSIDE = "inside"
    OUTSIDE_BORDER = "outside_border"
    RESTRICTED = "restricted"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def color(self) -> str:
        return _STATUS_COLORS[self]


_STATUS_LABELS: Final[dict[PointStatus, str]] = {
    PointStatus.INSIDE: "Inside Border",
    PointStatus.OUTSIDE_BORDER: "Outside Border",
    PointStatus.RESTRICTED: "In Restricted Zone",
}

_STATUS_COLORS: Final[dict[PointStatus, str]] = {
    PointStatus.INSIDE: "#4caf50",
    PointStatus.OUTSIDE_BORDER: "#e67e22",
    PointStatus.RESTRICTED: "#d63031",
}


class ViolationLevel(str, Enum):
    """Per-fisherman indicator derived from combined violation minutes."""

    NO_DATA = "no_data"
    CLEAN = "clean"
    WARNING = "warning"
    SEVERE = "severe"

    @property
    def label(self) -> str:
        return _LEVEL_LABELS[self]

    @property
    def color(self) -> str:
        return _LEVEL_COLORS[self]


_LEVEL_LABELS: Final[dict[ViolationLevel, str]] = {
    ViolationLevel.NO_DATA: "No Data",
    ViolationLevel.CLEAN: "Clean",
    ViolationLevel.WARNING: "Warning",
    ViolationLevel.SEVERE: "Severe",
}

_LEVEL_COLORS: Final[dict[ViolationLevel, str]] = {
    ViolationLevel.NO_DATA: "gray",
    ViolationLevel.CLEAN: "green",
    ViolationLevel.WARNING: "orange",
    ViolationLevel.SEVERE: "red",
}

# Combined outside + restricted minutes strictly above this are severe.
SEVERE_VIOLATION_MINUTES: Final[float] = 30.0


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """A fishing session as exported by the session store.

    Note:
        start_time/end_time are only used for duration display; violation
        accounting works from location_data alone.
    """

    session_id: str
    user_id: str
    location_data: str | None
    start_time: datetime | None = None
    end_time: datetime | None = None
    fisherman_name: str = ""

    @property
    def duration_seconds(self) -> float:
        """Session duration in seconds (0.0 if start or end is unknown)."""

        if self.start_time is None or self.end_time is None:
            return 0.0
        return max(0.0, (self.end_time - self.start_time).total_seconds())


DEFAULT_INTERVAL_M: Final[float] = 100.0
# 10_000 steps at 100 m covers a 1000 km segment.
DEFAULT_MAX_STEPS: Final[int] = 10_000
SAMPLE_SEPARATOR: Final[str] = ";"
FIELD_SEPARATOR: Final[str] = ","
