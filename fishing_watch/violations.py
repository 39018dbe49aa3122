"""Border and restricted-zone violation accounting."""

from __future__ import annotations

import csv
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Iterable, Sequence

from fishing_watch.geo import interpolate_segment, segment_steps
from fishing_watch.location_io import parse_track
from fishing_watch.models import (
    DEFAULT_INTERVAL_M,
    DEFAULT_MAX_STEPS,
    SEVERE_VIOLATION_MINUTES,
    FleetViolation,
    SessionRecord,
    SessionViolation,
    ViolationDiagnostics,
    ViolationLevel,
)
from fishing_watch.session_io import group_by_fisherman
from fishing_watch.timeutils import format_hhmmss
from fishing_watch.zones import DEFAULT_BOUNDARIES, BoundaryConfig

logger = logging.getLogger(__name__)


def round_half_up(value: float, ndigits: int = 1) -> float:
    """Round to ndigits decimals with half-up semantics (0.05 -> 0.1).

    Uses the shortest repr of the float so that values like 2.675 are treated as
    written rather than as their binary approximation.
    """

    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def compute_violation_times(
    raw_location_data: str | None,
    boundaries: BoundaryConfig = DEFAULT_BOUNDARIES,
    *,
    interval_m: float = DEFAULT_INTERVAL_M,
    max_steps: int | None = DEFAULT_MAX_STEPS,
    diagnostics: ViolationDiagnostics | None = None,
) -> SessionViolation:
    """Compute time spent outside the border and inside restricted zones.

    Each segment between consecutive samples (sorted by timestamp) is
    interpolated at interval_m spacing. The segment's elapsed time is then split
    in proportion to the share of sub-points outside the border, and separately
    the share inside any restricted zone. A sub-point may count for both.

    Samples sharing a timestamp form zero-duration segments; they contribute
    nothing and are logged and counted in diagnostics.

    Args:
        raw_location_data: Session location_data string.
        boundaries: Border and restricted zones to test against.
        interval_m: Interpolation spacing in meters.
        max_steps: Cap on interpolation steps per segment (None = unbounded).
        diagnostics: Optional counters updated in place.

    Returns:
        SessionViolation with minutes rounded to 1 decimal.
    """

    report = parse_track(raw_location_data)
    if diagnostics is not None:
        diagnostics.sessions += 1
        diagnostics.samples_dropped += report.samples_dropped
        diagnostics.failed_inputs += int(report.failed)

    total_points = report.samples_parsed
    if total_points < 2:
        return SessionViolation(
            outside_border_minutes=0.0,
            restricted_zone_minutes=0.0,
            total_points=total_points,
        )

    pts = sorted(report.points, key=lambda p: p.timestamp)

    outside_s = 0.0
    restricted_s = 0.0
    zero_segments = 0
    for cur, nxt in zip(pts, pts[1:]):
        dt_s = (nxt.timestamp - cur.timestamp).total_seconds()
        if dt_s <= 0:
            zero_segments += 1
            continue

        if diagnostics is not None and max_steps is not None:
            if segment_steps(cur, nxt, interval_m, None) > max_steps:
                diagnostics.capped_segments += 1

        sub_points = interpolate_segment(cur, nxt, interval_m, max_steps)
        outside_n = 0
        restricted_n = 0
        for lat, lng in sub_points:
            if boundaries.is_outside_border(lat, lng):
                outside_n += 1
            if boundaries.is_in_restricted_zone(lat, lng):
                restricted_n += 1

        n = len(sub_points)
        outside_s += (outside_n / n) * dt_s
        restricted_s += (restricted_n / n) * dt_s

    if zero_segments:
        logger.warning("%s 段相邻采样点时间戳相同，按0秒计", zero_segments)
        if diagnostics is not None:
            diagnostics.zero_duration_segments += zero_segments

    return SessionViolation(
        outside_border_minutes=round_half_up(outside_s / 60.0),
        restricted_zone_minutes=round_half_up(restricted_s / 60.0),
        total_points=total_points,
        outside_border_seconds=outside_s,
        restricted_zone_seconds=restricted_s,
    )


def _location_data(session: Any) -> Any:
    if session is None or isinstance(session, str):
        return session
    if isinstance(session, Mapping):
        return session.get("location_data")
    return getattr(session, "location_data", session)


def aggregate(
    sessions: Iterable[Any],
    boundaries: BoundaryConfig = DEFAULT_BOUNDARIES,
    *,
    interval_m: float = DEFAULT_INTERVAL_M,
    max_steps: int | None = DEFAULT_MAX_STEPS,
    diagnostics: ViolationDiagnostics | None = None,
) -> FleetViolation:
    """Sum violation times over a fisherman's sessions.

    Seconds are summed unrounded and converted/rounded once at the end.

    Args:
        sessions: Raw location strings, SessionRecord objects, or mappings
            with a "location_data" key.
        boundaries: Border and restricted zones.

    Returns:
        FleetViolation; session_count includes sessions without violations.
    """

    outside_s = 0.0
    restricted_s = 0.0
    count = 0
    for session in sessions:
        v = compute_violation_times(
            _location_data(session),
            boundaries,
            interval_m=interval_m,
            max_steps=max_steps,
            diagnostics=diagnostics,
        )
        outside_s += v.outside_border_seconds
        restricted_s += v.restricted_zone_seconds
        count += 1
    return FleetViolation(
        total_outside_minutes=round_half_up(outside_s / 60.0),
        total_restricted_minutes=round_half_up(restricted_s / 60.0),
        session_count=count,
    )


def aggregate_by_fisherman(
    records: Iterable[SessionRecord],
    boundaries: BoundaryConfig = DEFAULT_BOUNDARIES,
    *,
    interval_m: float = DEFAULT_INTERVAL_M,
    max_steps: int | None = DEFAULT_MAX_STEPS,
    diagnostics: ViolationDiagnostics | None = None,
) -> dict[str, FleetViolation]:
    """Per-fisherman totals keyed by user_id (first-seen order)."""

    grouped = group_by_fisherman(records)
    return {
        user_id: aggregate(
            sessions,
            boundaries,
            interval_m=interval_m,
            max_steps=max_steps,
            diagnostics=diagnostics,
        )
        for user_id, sessions in grouped.items()
    }


def violation_level(total: FleetViolation | None) -> ViolationLevel:
    """Indicator level for one fisherman's totals.

    No sessions gives NO_DATA. Otherwise the combined outside + restricted
    minutes decide: 0 is CLEAN, above 0 is WARNING and above
    SEVERE_VIOLATION_MINUTES is SEVERE.
    """

    if total is None or total.session_count == 0:
        return ViolationLevel.NO_DATA
    combined = round_half_up(total.total_outside_minutes + total.total_restricted_minutes)
    if combined > SEVERE_VIOLATION_MINUTES:
        return ViolationLevel.SEVERE
    if combined > 0:
        return ViolationLevel.WARNING
    return ViolationLevel.CLEAN


@dataclass(frozen=True, slots=True)
class SessionViolationRow:
    """A session with its computed violation times."""

    record: SessionRecord
    violation: SessionViolation


def compute_session_rows(
    records: Sequence[SessionRecord],
    boundaries: BoundaryConfig = DEFAULT_BOUNDARIES,
    *,
    interval_m: float = DEFAULT_INTERVAL_M,
    max_steps: int | None = DEFAULT_MAX_STEPS,
    diagnostics: ViolationDiagnostics | None = None,
) -> list[SessionViolationRow]:
    return [
        SessionViolationRow(
            record=r,
            violation=compute_violation_times(
                r.location_data,
                boundaries,
                interval_m=interval_m,
                max_steps=max_steps,
                diagnostics=diagnostics,
            ),
        )
        for r in records
    ]


def write_session_violations_csv(rows: Sequence[SessionViolationRow], out_path: str | Path) -> None:
    """Write per-session violation times to CSV."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(
            f,
            fieldnames=[
                "session_id",
                "user_id",
                "fisherman_name",
                "start_time",
                "end_time",
                "duration_hhmmss",
                "total_points",
                "outside_border_minutes",
                "restricted_zone_minutes",
            ],
        )
        w.writeheader()
        for row in rows:
            r = row.record
            w.writerow(
                {
                    "session_id": r.session_id,
                    "user_id": r.user_id,
                    "fisherman_name": r.fisherman_name,
                    "start_time": r.start_time.isoformat(sep=" ") if r.start_time else "",
                    "end_time": r.end_time.isoformat(sep=" ") if r.end_time else "",
                    "duration_hhmmss": format_hhmmss(r.duration_seconds),
                    "total_points": row.violation.total_points,
                    "outside_border_minutes": f"{row.violation.outside_border_minutes:.1f}",
                    "restricted_zone_minutes": f"{row.violation.restricted_zone_minutes:.1f}",
                }
            )
