"""CSV input utilities for the fishing-session export."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from fishing_watch.models import SessionRecord
from fishing_watch.timeutils import parse_optional_timestamp

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "user_id", "location_data")


@dataclass(frozen=True, slots=True)
class SessionCsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]


def _record_from_row(row: dict[str, str]) -> SessionRecord:
    session_id = (row["id"] or "").strip()
    user_id = (row["user_id"] or "").strip()
    if not session_id or not user_id:
        raise ValueError("missing id/user_id")
    return SessionRecord(
        session_id=session_id,
        user_id=user_id,
        location_data=row["location_data"] or None,
        start_time=parse_optional_timestamp(row.get("start_time")),
        end_time=parse_optional_timestamp(row.get("end_time")),
        fisherman_name=(row.get("fisherman_name") or "").strip(),
    )


def iter_sessions(csv_path: str | Path) -> Iterator[SessionRecord]:
    """Yield SessionRecord objects from a sessions export.

    Args:
        csv_path: Path to the exported CSV.

    Yields:
        Sessions parsed successfully.

    Notes:
        Expected columns:
          - id, user_id: session and fisherman identifiers (required)
          - location_data: raw "lat,lng,timestamp;..." record (required)
          - start_time, end_time, fisherman_name: optional, display only

    Raises:
        KeyError: If a required column is missing.
    """

    p = Path(csv_path)
    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            return
        _check_fields(reader.fieldnames)

        for row in reader:
            try:
                yield _record_from_row(row)
            except (ValueError, TypeError):
                continue


def _check_fields(fieldnames: Sequence[str]) -> None:
    missing = [name for name in REQUIRED_FIELDS if name not in fieldnames]
    if missing:
        raise KeyError(f"CSV缺少必要字段：{missing}. 实际字段：{list(fieldnames)}")


def load_sessions(csv_path: str | Path) -> tuple[list[SessionRecord], SessionCsvSummary]:
    """Load all sessions into memory.

    Args:
        csv_path: Path to the exported CSV.

    Returns:
        (records, summary)

    Raises:
        KeyError: If a required column is missing.
    """

    p = Path(csv_path)
    rows_total = 0
    parsed: list[SessionRecord] = []
    fieldnames: Sequence[str] = ()

    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames = reader.fieldnames or ()
        if fieldnames:
            _check_fields(fieldnames)
        for row in reader:
            rows_total += 1
            try:
                parsed.append(_record_from_row(row))
            except (ValueError, TypeError):
                continue

    summary = SessionCsvSummary(
        rows_total=rows_total,
        rows_parsed=len(parsed),
        rows_skipped=rows_total - len(parsed),
        fieldnames=fieldnames,
    )
    if summary.rows_skipped > 0:
        logger.warning("CSV中有 %s 行会话记录解析失败已跳过", summary.rows_skipped)
    return parsed, summary


def group_by_fisherman(records: Iterable[SessionRecord]) -> dict[str, list[SessionRecord]]:
    """Group sessions by user_id, keeping file order."""

    out: dict[str, list[SessionRecord]] = {}
    for r in records:
        out.setdefault(r.user_id, []).append(r)
    return out


def recent_sessions(records: Sequence[SessionRecord], n: int) -> list[SessionRecord]:
    """The n most recent sessions by start_time; sessions without one come last."""

    dated = sorted((r for r in records if r.start_time is not None), key=lambda r: r.start_time, reverse=True)
    undated = [r for r in records if r.start_time is None]
    return (dated + undated)[: max(0, n)]


def find_session(records: Iterable[SessionRecord], session_id: str) -> SessionRecord | None:
    for r in records:
        if r.session_id == session_id:
            return r
    return None


def write_sessions_csv(records: Iterable[SessionRecord], out_path: str | Path) -> None:
    """Write sessions in the export format (used by the sample generator)."""

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(
            f,
            fieldnames=["id", "user_id", "fisherman_name", "start_time", "end_time", "location_data"],
        )
        w.writeheader()
        for r in records:
            w.writerow(
                {
                    "id": r.session_id,
                    "user_id": r.user_id,
                    "fisherman_name": r.fisherman_name,
                    "start_time": r.start_time.isoformat() if r.start_time else "",
                    "end_time": r.end_time.isoformat() if r.end_time else "",
                    "location_data": r.location_data or "",
                }
            )
