"""Tests for violation accounting and fleet aggregation."""

import csv
import logging
from datetime import datetime

import pytest

from fishing_watch.models import FleetViolation, SessionRecord, ViolationDiagnostics, ViolationLevel
from fishing_watch.violations import (
    aggregate,
    aggregate_by_fisherman,
    compute_session_rows,
    compute_violation_times,
    round_half_up,
    violation_level,
    write_session_violations_csv,
)
from fishing_watch.zones import make_boundaries

BORDER = [(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0)]
# Disjoint from the border interior
OFFSHORE_ZONE = [(30.0, 30.0), (30.0, 40.0), (40.0, 40.0), (40.0, 30.0)]

BOUNDARIES = make_boundaries(BORDER, [OFFSHORE_ZONE])

ANTIPODAL = (
    "66.16849958870057,-92.19208432063249,2024-01-01T00:00:00;"
    "-66.16849958870057,87.80791564440838,2024-01-01T01:00:00"
)


def _raw(*samples):
    return ";".join(f"{lat},{lng},{ts}" for lat, lng, ts in samples)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value, expected",
        [(0.05, 0.1), (0.15, 0.2), (0.25, 0.3), (1.04, 1.0), (10.08, 10.1), (0.0, 0.0)],
    )
    def test_one_decimal(self, value, expected):
        assert round_half_up(value) == expected

    def test_two_decimals(self):
        assert round_half_up(2.675, 2) == 2.68


class TestComputeViolationTimes:
    def test_stationary_outside_border(self):
        raw = "10.0,80.0,2024-01-01T00:00:00;10.0,80.0,2024-01-01T00:10:00"
        v = compute_violation_times(raw, BOUNDARIES)
        assert v.outside_border_minutes == 10.0
        assert v.restricted_zone_minutes == 0.0
        assert v.total_points == 2

    def test_single_point(self):
        v = compute_violation_times("10.0,80.0,2024-01-01T00:00:00", BOUNDARIES)
        assert v.outside_border_minutes == 0.0
        assert v.restricted_zone_minutes == 0.0
        assert v.total_points == 1

    def test_malformed_sample_leaves_one_point(self):
        raw = "abc,def,2024-01-01T00:00:00;10.0,80.0,2024-01-01T00:10:00"
        v = compute_violation_times(raw, BOUNDARIES)
        assert v.total_points == 1
        assert v.outside_border_minutes == 0.0
        assert v.restricted_zone_minutes == 0.0

    @pytest.mark.parametrize("raw", [None, "", "garbage"])
    def test_no_usable_points(self, raw):
        v = compute_violation_times(raw, BOUNDARIES)
        assert (v.outside_border_minutes, v.restricted_zone_minutes, v.total_points) == (0.0, 0.0, 0)

    def test_inside_border_no_violation(self):
        raw = _raw((5.0, 5.0, "2024-01-01T00:00:00"), (5.01, 5.01, "2024-01-01T01:00:00"))
        v = compute_violation_times(raw, BOUNDARIES)
        assert v.outside_border_minutes == 0.0
        assert v.restricted_zone_minutes == 0.0

    def test_fully_outside_equals_elapsed(self):
        raw = _raw(
            (35.0, 35.0, "2024-01-01T00:00:00"),
            (35.0, 35.05, "2024-01-01T00:07:00"),
            (35.1, 35.05, "2024-01-01T00:20:00"),
        )
        v = compute_violation_times(raw, BOUNDARIES)
        assert v.outside_border_minutes == 20.0
        # the offshore zone lies outside the border, so a point counts for both
        assert v.restricted_zone_minutes == 20.0

    def test_segment_crossing_border_is_apportioned(self):
        # Half of the segment lies beyond lng=10
        raw = _raw((5.0, 9.5, "2024-01-01T00:00:00"), (5.0, 10.5, "2024-01-01T01:00:00"))
        v = compute_violation_times(raw, BOUNDARIES)
        assert v.outside_border_minutes == pytest.approx(30.0, abs=0.1)
        assert v.restricted_zone_minutes == 0.0

    def test_restricted_not_above_outside_for_offshore_zones(self):
        raw = _raw(
            (5.0, 5.0, "2024-01-01T00:00:00"),
            (9.9, 9.9, "2024-01-01T02:00:00"),
            (31.0, 31.0, "2024-01-01T12:00:00"),
            (35.0, 35.0, "2024-01-01T14:00:00"),
        )
        v = compute_violation_times(raw, BOUNDARIES)
        assert v.restricted_zone_minutes > 0.0
        assert v.restricted_zone_minutes <= v.outside_border_minutes

    def test_unsorted_input_is_sorted_by_timestamp(self):
        samples = [
            (5.0, 9.5, "2024-01-01T00:00:00"),
            (5.0, 10.5, "2024-01-01T01:00:00"),
            (5.0, 11.0, "2024-01-01T01:30:00"),
        ]
        in_order = compute_violation_times(_raw(*samples), BOUNDARIES)
        shuffled = compute_violation_times(_raw(samples[2], samples[0], samples[1]), BOUNDARIES)
        assert shuffled == in_order

    def test_idempotent(self):
        raw = _raw(
            (5.0, 9.5, "2024-01-01T00:00:00"),
            (5.0, 10.5, "2024-01-01T01:00:00"),
            (35.0, 35.0, "2024-01-01T09:00:00"),
        )
        assert compute_violation_times(raw, BOUNDARIES) == compute_violation_times(raw, BOUNDARIES)

    def test_half_up_rounding_of_minutes(self):
        # 9 s = 0.15 min
        raw = "10.0,80.0,2024-01-01T00:00:00;10.0,80.0,2024-01-01T00:00:09"
        v = compute_violation_times(raw, BOUNDARIES)
        assert v.outside_border_minutes == 0.2
        assert v.outside_border_seconds == 9.0

    def test_duplicate_timestamps_are_zero_duration(self, caplog):
        raw = _raw(
            (10.0, 80.0, "2024-01-01T00:00:00"),
            (11.0, 81.0, "2024-01-01T00:00:00"),
            (10.0, 80.0, "2024-01-01T00:10:00"),
        )
        diag = ViolationDiagnostics()
        with caplog.at_level(logging.WARNING, logger="fishing_watch.violations"):
            v = compute_violation_times(raw, BOUNDARIES, diagnostics=diag)
        assert v.outside_border_minutes == 10.0
        assert v.total_points == 3
        assert diag.zero_duration_segments == 1
        assert caplog.records
        assert diag.has_issues

    def test_minutes_never_negative(self):
        raw = _raw(
            (10.0, 80.0, "2024-01-01T00:10:00"),
            (10.0, 80.0, "2024-01-01T00:00:00"),
            (10.0, 80.0, "2024-01-01T00:05:00"),
        )
        v = compute_violation_times(raw, BOUNDARIES)
        assert v.outside_border_minutes == 10.0
        assert v.restricted_zone_minutes >= 0.0

    def test_capped_segment_counted(self):
        raw = _raw((5.0, 5.0, "2024-01-01T00:00:00"), (35.0, 35.0, "2024-01-01T10:00:00"))
        diag = ViolationDiagnostics()
        v = compute_violation_times(raw, BOUNDARIES, max_steps=50, diagnostics=diag)
        assert diag.capped_segments == 1
        assert 0.0 < v.outside_border_minutes <= 600.0

    def test_coarser_interval(self):
        raw = _raw((5.0, 9.5, "2024-01-01T00:00:00"), (5.0, 10.5, "2024-01-01T01:00:00"))
        v = compute_violation_times(raw, BOUNDARIES, interval_m=10_000.0)
        assert v.outside_border_minutes == pytest.approx(30.0, abs=3.0)

    def test_near_antipodal_segment(self):
        diag = ViolationDiagnostics()
        v = compute_violation_times(ANTIPODAL, diagnostics=diag)
        assert v.total_points == 2
        assert v.outside_border_minutes == 60.0
        assert v.restricted_zone_minutes == 0.0
        assert diag.capped_segments == 1


class TestAggregate:
    def test_sum_then_round(self):
        # 302.4 s = 5.04 min per session: round-then-sum would give 10.0
        raw = "10.0,80.0,2024-01-01T00:00:00;10.0,80.0,2024-01-01T00:05:02.400"
        single = compute_violation_times(raw, BOUNDARIES)
        assert single.outside_border_minutes == 5.0

        total = aggregate([raw, raw], BOUNDARIES)
        assert total.total_outside_minutes == 10.1
        assert total.total_restricted_minutes == 0.0
        assert total.session_count == 2

    def test_mixed_session_inputs(self):
        raw = "10.0,80.0,2024-01-01T00:00:00;10.0,80.0,2024-01-01T00:10:00"
        record = SessionRecord(session_id="s1", user_id="u1", location_data=raw)
        total = aggregate([raw, None, record, {"location_data": raw}], BOUNDARIES)
        assert total.session_count == 4
        assert total.total_outside_minutes == 30.0

    def test_empty(self):
        total = aggregate([], BOUNDARIES)
        assert (total.total_outside_minutes, total.total_restricted_minutes, total.session_count) == (0.0, 0.0, 0)

    def test_diagnostics_collected(self):
        raw = "x,y,z;10.0,80.0,2024-01-01T00:00:00;10.0,80.0,2024-01-01T00:10:00"
        diag = ViolationDiagnostics()
        total = aggregate([raw, 42], BOUNDARIES, diagnostics=diag)
        assert total.session_count == 2
        assert diag.sessions == 2
        assert diag.samples_dropped == 1
        assert diag.failed_inputs == 1
        assert diag.has_issues

    def test_by_fisherman(self):
        raw = "10.0,80.0,2024-01-01T00:00:00;10.0,80.0,2024-01-01T00:10:00"
        records = [
            SessionRecord(session_id="a", user_id="u2", location_data=raw),
            SessionRecord(session_id="b", user_id="u1", location_data=None),
            SessionRecord(session_id="c", user_id="u2", location_data=raw),
        ]
        totals = aggregate_by_fisherman(records, BOUNDARIES)
        assert list(totals) == ["u2", "u1"]
        assert totals["u2"].total_outside_minutes == 20.0
        assert totals["u2"].session_count == 2
        assert totals["u1"].session_count == 1
        assert totals["u1"].total_outside_minutes == 0.0

    def test_near_antipodal_session(self):
        total = aggregate([ANTIPODAL])
        assert total.session_count == 1
        assert total.total_outside_minutes == 60.0


class TestViolationLevel:
    @pytest.mark.parametrize(
        "outside, restricted, expected",
        [
            (0.0, 0.0, ViolationLevel.CLEAN),
            (0.1, 0.0, ViolationLevel.WARNING),
            (10.0, 0.0, ViolationLevel.WARNING),
            (10.1, 0.0, ViolationLevel.WARNING),
            (30.0, 0.0, ViolationLevel.WARNING),
            (20.0, 10.0, ViolationLevel.WARNING),
            (29.9, 0.1, ViolationLevel.WARNING),
            (30.1, 0.0, ViolationLevel.SEVERE),
            (0.0, 45.0, ViolationLevel.SEVERE),
        ],
    )
    def test_thresholds_on_combined_minutes(self, outside, restricted, expected):
        total = FleetViolation(total_outside_minutes=outside, total_restricted_minutes=restricted, session_count=3)
        assert violation_level(total) is expected

    def test_no_sessions(self):
        assert violation_level(None) is ViolationLevel.NO_DATA
        assert violation_level(aggregate([], BOUNDARIES)) is ViolationLevel.NO_DATA

    def test_sessions_without_points_are_clean(self):
        assert violation_level(aggregate([None], BOUNDARIES)) is ViolationLevel.CLEAN

    def test_display_attributes(self):
        assert ViolationLevel.NO_DATA.label == "No Data"
        assert ViolationLevel.CLEAN.color == "green"
        assert ViolationLevel.WARNING.color == "orange"
        assert ViolationLevel.SEVERE.color == "red"


def test_write_session_violations_csv(tmp_path):
    raw = "10.0,80.0,2024-01-01T00:00:00;10.0,80.0,2024-01-01T00:10:00"
    records = [
        SessionRecord(
            session_id="s1",
            user_id="u1",
            location_data=raw,
            start_time=datetime(2024, 1, 1, 0, 0),
            end_time=datetime(2024, 1, 1, 1, 30),
            fisherman_name="Ravi",
        )
    ]
    out = tmp_path / "violations.csv"
    write_session_violations_csv(compute_session_rows(records, BOUNDARIES), out)

    with out.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    assert rows[0]["session_id"] == "s1"
    assert rows[0]["duration_hhmmss"] == "01:30:00"
    assert rows[0]["outside_border_minutes"] == "10.0"
    assert rows[0]["restricted_zone_minutes"] == "0.0"
