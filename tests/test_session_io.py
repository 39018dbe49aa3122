"""Tests for the session export loader."""

import csv
from datetime import datetime

import pytest

from fishing_watch.models import SessionRecord
from fishing_watch.session_io import (
    find_session,
    group_by_fisherman,
    iter_sessions,
    load_sessions,
    recent_sessions,
    write_sessions_csv,
)

RAW = "10.0,80.0,2024-01-01T00:00:00;10.0,80.0,2024-01-01T00:10:00"


def _write(path, rows, fieldnames=("id", "user_id", "fisherman_name", "start_time", "end_time", "location_data")):
    with path.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=list(fieldnames))
        w.writeheader()
        w.writerows(rows)
    return path


class TestLoadSessions:
    def test_load(self, tmp_path):
        path = _write(
            tmp_path / "sessions.csv",
            [
                {
                    "id": "s1",
                    "user_id": "u1",
                    "fisherman_name": "Ravi",
                    "start_time": "2024-01-01T00:00:00",
                    "end_time": "2024-01-01T02:00:00",
                    "location_data": RAW,
                },
                {"id": "s2", "user_id": "u2", "fisherman_name": "", "start_time": "", "end_time": "", "location_data": ""},
            ],
        )
        records, summary = load_sessions(path)
        assert summary.rows_total == 2
        assert summary.rows_parsed == 2
        assert summary.rows_skipped == 0

        s1, s2 = records
        assert s1.location_data == RAW
        assert s1.fisherman_name == "Ravi"
        assert s1.start_time == datetime(2024, 1, 1, 0, 0)
        assert s1.duration_seconds == 7200.0
        assert s2.location_data is None
        assert s2.start_time is None
        assert s2.duration_seconds == 0.0

    def test_rows_without_ids_are_skipped(self, tmp_path, caplog):
        path = _write(
            tmp_path / "sessions.csv",
            [
                {"id": "", "user_id": "u1", "location_data": RAW},
                {"id": "s2", "user_id": "u1", "location_data": RAW},
            ],
            fieldnames=("id", "user_id", "location_data"),
        )
        records, summary = load_sessions(path)
        assert [r.session_id for r in records] == ["s2"]
        assert summary.rows_skipped == 1
        assert caplog.records

    def test_missing_column(self, tmp_path):
        path = _write(tmp_path / "sessions.csv", [{"id": "s1", "user_id": "u1"}], fieldnames=("id", "user_id"))
        with pytest.raises(KeyError):
            load_sessions(path)
        with pytest.raises(KeyError):
            list(iter_sessions(path))

    def test_iter_matches_load(self, tmp_path):
        path = _write(
            tmp_path / "sessions.csv",
            [{"id": "s1", "user_id": "u1", "location_data": RAW}],
            fieldnames=("id", "user_id", "location_data"),
        )
        records, _ = load_sessions(path)
        assert list(iter_sessions(path)) == records

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        records, summary = load_sessions(path)
        assert records == []
        assert summary.rows_total == 0
        assert list(iter_sessions(path)) == []


def test_write_then_load(tmp_path):
    records = [
        SessionRecord(
            session_id="s1",
            user_id="u1",
            location_data=RAW,
            start_time=datetime(2024, 1, 1, 5, 0),
            end_time=datetime(2024, 1, 1, 9, 30),
            fisherman_name="Ravi",
        )
    ]
    path = tmp_path / "sessions.csv"
    write_sessions_csv(records, path)
    loaded, _ = load_sessions(path)
    assert loaded == records


def test_group_and_find():
    records = [
        SessionRecord(session_id="a", user_id="u2", location_data=None),
        SessionRecord(session_id="b", user_id="u1", location_data=None),
        SessionRecord(session_id="c", user_id="u2", location_data=None),
    ]
    grouped = group_by_fisherman(records)
    assert list(grouped) == ["u2", "u1"]
    assert [r.session_id for r in grouped["u2"]] == ["a", "c"]
    assert find_session(records, "b") is records[1]
    assert find_session(records, "zzz") is None


def test_recent_sessions_newest_first():
    records = [
        SessionRecord(session_id="old", user_id="u1", location_data=None, start_time=datetime(2024, 1, 1, 6, 0)),
        SessionRecord(session_id="undated", user_id="u1", location_data=None),
        SessionRecord(session_id="new", user_id="u1", location_data=None, start_time=datetime(2024, 3, 1, 6, 0)),
        SessionRecord(session_id="mid", user_id="u1", location_data=None, start_time=datetime(2024, 2, 1, 6, 0)),
    ]
    assert [r.session_id for r in recent_sessions(records, 10)] == ["new", "mid", "old", "undated"]
    assert [r.session_id for r in recent_sessions(records, 2)] == ["new", "mid"]
    assert recent_sessions(records, 0) == []
    assert [r.session_id for r in records] == ["old", "undated", "new", "mid"]
