"""Inspect a session track and export per-point classification."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Sequence

from fishing_watch.models import GeoPoint, ParseReport, PointStatus
from fishing_watch.timeutils import DeltaStats, delta_stats
from fishing_watch.zones import DEFAULT_BOUNDARIES, BoundaryConfig


@dataclass(frozen=True, slots=True)
class TrackInspection:
    """High-level track inspection result."""

    samples_total: int
    samples_parsed: int
    samples_dropped: int
    start_time: datetime | None
    end_time: datetime | None
    delta: DeltaStats | None
    min_lat: float | None
    max_lat: float | None
    min_lng: float | None
    max_lng: float | None
    duplicate_timestamps: int

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()


def inspect_track(report: ParseReport) -> TrackInspection:
    """Inspect an already-parsed track."""

    points = report.points
    if not points:
        return TrackInspection(
            samples_total=report.samples_total,
            samples_parsed=0,
            samples_dropped=report.samples_dropped,
            start_time=None,
            end_time=None,
            delta=None,
            min_lat=None,
            max_lat=None,
            min_lng=None,
            max_lng=None,
            duplicate_timestamps=0,
        )

    times = sorted(p.timestamp for p in points)
    dupe = 0
    for i in range(1, len(times)):
        if times[i] == times[i - 1]:
            dupe += 1

    lats = [p.latitude for p in points]
    lngs = [p.longitude for p in points]
    return TrackInspection(
        samples_total=report.samples_total,
        samples_parsed=report.samples_parsed,
        samples_dropped=report.samples_dropped,
        start_time=times[0],
        end_time=times[-1],
        delta=delta_stats(times),
        min_lat=min(lats),
        max_lat=max(lats),
        min_lng=min(lngs),
        max_lng=max(lngs),
        duplicate_timestamps=dupe,
    )


def classify_track(
    points: Iterable[GeoPoint],
    boundaries: BoundaryConfig = DEFAULT_BOUNDARIES,
) -> list[tuple[GeoPoint, PointStatus]]:
    """Classify each recorded point (not the interpolated sub-points)."""

    return [(p, boundaries.classify(p.latitude, p.longitude)) for p in points]


def status_counts(classified: Sequence[tuple[GeoPoint, PointStatus]]) -> dict[PointStatus, int]:
    counts = {s: 0 for s in PointStatus}
    for _, status in classified:
        counts[status] += 1
    return counts


def export_points_csv(
    classified: Iterable[tuple[GeoPoint, PointStatus]],
    out_path: str | Path,
) -> None:
    """Export classified points to CSV.

    Output columns:
        - point: 1-based index in recorded order
        - timestamp, latitude, longitude
        - status, color: classification and marker colour for map rendering
    """

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(
            f,
            fieldnames=["point", "timestamp", "latitude", "longitude", "status", "color"],
        )
        w.writeheader()
        for i, (pt, status) in enumerate(classified, start=1):
            w.writerow(
                {
                    "point": i,
                    "timestamp": pt.timestamp.isoformat(sep=" "),
                    "latitude": f"{pt.latitude:.6f}",
                    "longitude": f"{pt.longitude:.6f}",
                    "status": status.value,
                    "color": status.color,
                }
            )
