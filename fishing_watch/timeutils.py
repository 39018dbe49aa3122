"""Time parsing and formatting utilities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable


def parse_timestamp(text: str) -> datetime:
    """Parse a sample timestamp into a naive wall-clock datetime.

    Supported formats:
      - "YYYY-MM-DD HH:MM:SS"
      - "YYYY-MM-DDTHH:MM:SS" (optionally with fractional seconds)
      - either of the above with an offset ("+05:30", "Z")

    No timezone conversion is applied: an offset, if present, is dropped and the
    wall-clock reading kept as-is.

    Raises:
        ValueError: If cannot parse.
    """

    s = text.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1]
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as exc:
        raise ValueError(f"无法解析时间：{text!r}。建议格式：2024-01-01T09:30:00") from exc
    return dt.replace(tzinfo=None)


def parse_optional_timestamp(text: str | None) -> datetime | None:
    """Like parse_timestamp but maps empty text and parse failures to None."""

    if text is None or not text.strip():
        return None
    try:
        return parse_timestamp(text)
    except ValueError:
        return None


def format_hhmmss(seconds: float) -> str:
    s = int(round(max(0.0, seconds)))
    h = s // 3600
    m = (s % 3600) // 60
    sec = s % 60
    return f"{h:02d}:{m:02d}:{sec:02d}"


@dataclass(frozen=True, slots=True)
class DeltaStats:
    """Sampling interval stats (seconds)."""

    count: int
    min_s: float
    median_s: float
    p95_s: float
    max_s: float


def delta_stats(times_sorted: Iterable[datetime]) -> DeltaStats | None:
    """Compute basic sampling-interval statistics.

    Args:
        times_sorted: Timestamps sorted ascending.

    Returns:
        DeltaStats or None if less than 2 points.
    """

    ts = list(times_sorted)
    if len(ts) < 2:
        return None
    deltas = [(ts[i] - ts[i - 1]).total_seconds() for i in range(1, len(ts)) if ts[i] >= ts[i - 1]]
    if not deltas:
        return None
    deltas.sort()
    n = len(deltas)
    median = deltas[n // 2] if n % 2 == 1 else 0.5 * (deltas[n // 2 - 1] + deltas[n // 2])
    p95 = deltas[int(0.95 * (n - 1))]
    return DeltaStats(
        count=n,
        min_s=deltas[0],
        median_s=median,
        p95_s=p95,
        max_s=deltas[-1],
    )
