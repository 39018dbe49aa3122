"""Parsing of raw session location records.

A record is a string of samples separated by ";", each sample being
"latitude,longitude,timestamp", e.g.::

    9.2811,79.3125,2024-01-01T06:00:00;9.2790,79.3301,2024-01-01T06:05:00
"""

from __future__ import annotations

import logging
import math

from fishing_watch.models import FIELD_SEPARATOR, SAMPLE_SEPARATOR, GeoPoint, ParseReport
from fishing_watch.timeutils import parse_timestamp

logger = logging.getLogger(__name__)

_EMPTY = ParseReport(points=(), samples_total=0, samples_dropped=0, is_empty_input=True)


def _parse_coord(value: str, limit: float) -> float:
    v = float(value.strip())
    if not math.isfinite(v):
        raise ValueError(f"non-finite coordinate: {value!r}")
    if abs(v) > limit:
        raise ValueError(f"coordinate out of range [-{limit:g}, {limit:g}]: {value!r}")
    return v


def parse_sample(sample: str) -> GeoPoint:
    """Parse one "lat,lng,timestamp" sample.

    Raises:
        ValueError: If a field is missing or cannot be parsed.
    """

    fields = sample.split(FIELD_SEPARATOR)
    if len(fields) < 3:
        raise ValueError(f"expected lat,lng,timestamp, got {sample!r}")
    return GeoPoint(
        latitude=_parse_coord(fields[0], 90.0),
        longitude=_parse_coord(fields[1], 180.0),
        timestamp=parse_timestamp(fields[2]),
    )


def parse_track(raw: str | None) -> ParseReport:
    """Decode a raw location record into GPS samples.

    Best effort: this never raises. Samples that cannot be parsed are dropped and
    counted; a record that cannot be read at all yields an empty report with
    failed=True.

    Args:
        raw: The session's location_data string (may be None).

    Returns:
        ParseReport with points in input order.
    """

    if raw is None:
        return _EMPTY
    try:
        if not raw.strip():
            return _EMPTY
        samples = [s for s in raw.split(SAMPLE_SEPARATOR) if s.strip()]
    except (AttributeError, TypeError):
        logger.exception("位置数据无法解析（类型=%s），按空轨迹处理", type(raw).__name__)
        return ParseReport(points=(), samples_total=0, samples_dropped=0, failed=True)

    points: list[GeoPoint] = []
    for sample in samples:
        try:
            points.append(parse_sample(sample))
        except ValueError:
            # 某些采样点可能损坏，直接跳过
            continue

    dropped = len(samples) - len(points)
    if dropped > 0:
        logger.warning("位置数据中有 %s/%s 个采样点解析失败已跳过", dropped, len(samples))
    return ParseReport(points=tuple(points), samples_total=len(samples), samples_dropped=dropped)
