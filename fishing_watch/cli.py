"""Command-line interface for fishing_watch.

Run:
    python -m fishing_watch fleet-violations --sessions sessions.csv
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict

from fishing_watch.inspect import classify_track, export_points_csv, inspect_track, status_counts
from fishing_watch.location_io import parse_track
from fishing_watch.models import DEFAULT_INTERVAL_M, DEFAULT_MAX_STEPS, SessionRecord, ViolationDiagnostics
from fishing_watch.session_io import find_session, group_by_fisherman, load_sessions
from fishing_watch.timeutils import format_hhmmss
from fishing_watch.violations import (
    aggregate,
    compute_session_rows,
    compute_violation_times,
    violation_level,
    write_session_violations_csv,
)
from fishing_watch.zones import DEFAULT_BOUNDARIES, BoundaryConfig, load_boundaries


def _boundaries(args: argparse.Namespace) -> BoundaryConfig:
    if args.boundaries:
        return load_boundaries(args.boundaries)
    return DEFAULT_BOUNDARIES


def _load_session(args: argparse.Namespace) -> SessionRecord | None:
    records, _ = load_sessions(args.sessions)
    record = find_session(records, args.session_id)
    if record is None:
        print(f"找不到会话：{args.session_id!r}", file=sys.stderr)
    return record


def _print_diagnostics(diag: ViolationDiagnostics) -> None:
    if not diag.has_issues:
        return
    print(
        f"数据质量：dropped_samples={diag.samples_dropped}, failed_inputs={diag.failed_inputs}, "
        f"zero_duration_segments={diag.zero_duration_segments}, capped_segments={diag.capped_segments}",
        file=sys.stderr,
    )


def _cmd_inspect(args: argparse.Namespace) -> int:
    record = _load_session(args)
    if record is None:
        return 1
    report = parse_track(record.location_data)
    res = inspect_track(report)
    violation = compute_violation_times(
        record.location_data,
        _boundaries(args),
        interval_m=args.interval_m,
        max_steps=args.max_steps,
    )

    print("### 会话")
    print(f"id={record.session_id}, user_id={record.user_id}, name={record.fisherman_name}")
    print()

    print("### 采样点")
    print(f"total={res.samples_total}, parsed={res.samples_parsed}, dropped={res.samples_dropped}")
    print()

    if res.start_time is not None and res.end_time is not None:
        print("### 时间范围（本地时间，未做时区换算）")
        print(
            f"start={res.start_time.isoformat(sep=' ')}, end={res.end_time.isoformat(sep=' ')}, "
            f"elapsed={format_hhmmss(res.elapsed_seconds)}"
        )
        print()

    if res.delta is not None:
        print("### 采样间隔（秒）")
        print(
            f"count={res.delta.count}, min={res.delta.min_s:.3f}, median={res.delta.median_s:.3f}, "
            f"p95={res.delta.p95_s:.3f}, max={res.delta.max_s:.3f}"
        )
        print()

    print("### 经纬度范围（粗略）")
    print(f"lat=[{res.min_lat}, {res.max_lat}], lng=[{res.min_lng}, {res.max_lng}]")
    print()

    print("### 重复时间戳")
    print(res.duplicate_timestamps)
    print()

    print("### 越界统计（分钟）")
    print(
        f"outside_border={violation.outside_border_minutes:.1f}, "
        f"restricted_zone={violation.restricted_zone_minutes:.1f}, points={violation.total_points}"
    )

    if args.json:
        payload = asdict(res) | {"violation": asdict(violation)}
        print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))
    return 0


def _cmd_session_violations(args: argparse.Namespace) -> int:
    records, summary = load_sessions(args.sessions)
    diag = ViolationDiagnostics()
    rows = compute_session_rows(
        records,
        _boundaries(args),
        interval_m=args.interval_m,
        max_steps=args.max_steps,
        diagnostics=diag,
    )
    print(f"会话：total_rows={summary.rows_total}, parsed={summary.rows_parsed}, skipped={summary.rows_skipped}")
    for row in rows:
        v = row.violation
        print(
            f"{row.record.session_id}\tuser={row.record.user_id}\tpoints={v.total_points}\t"
            f"outside={v.outside_border_minutes:.1f}min\trestricted={v.restricted_zone_minutes:.1f}min"
        )
    _print_diagnostics(diag)
    if args.out:
        write_session_violations_csv(rows, args.out)
        print(f"已导出：{args.out}")
    return 0


def _cmd_fleet_violations(args: argparse.Namespace) -> int:
    records, _ = load_sessions(args.sessions)
    boundaries = _boundaries(args)
    diag = ViolationDiagnostics()

    out: list[dict[str, object]] = []
    for user_id, sessions in group_by_fisherman(records).items():
        total = aggregate(
            sessions,
            boundaries,
            interval_m=args.interval_m,
            max_steps=args.max_steps,
            diagnostics=diag,
        )
        name = next((s.fisherman_name for s in sessions if s.fisherman_name), "")
        level = violation_level(total)
        out.append({"user_id": user_id, "fisherman_name": name, "level": level.value} | asdict(total))

    if args.json:
        print(json.dumps(out, ensure_ascii=False, indent=2))
    else:
        for item in out:
            print(
                f"{item['user_id']}\t{item['fisherman_name']}\tsessions={item['session_count']}\t"
                f"outside={item['total_outside_minutes']:.1f}min\t"
                f"restricted={item['total_restricted_minutes']:.1f}min\tlevel={item['level']}"
            )
    _print_diagnostics(diag)
    return 0


def _cmd_export_points(args: argparse.Namespace) -> int:
    record = _load_session(args)
    if record is None:
        return 1
    report = parse_track(record.location_data)
    classified = classify_track(report.points, _boundaries(args))
    export_points_csv(classified, args.out)
    counts = status_counts(classified)
    print(", ".join(f"{s.value}={n}" for s, n in counts.items()))
    print(f"已导出：{args.out}")
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--sessions", type=str, default="sessions.csv", help="会话导出CSV路径")
    p.add_argument("--boundaries", type=str, default=None, help="边界/禁渔区JSON配置（默认内置印度海上边界）")
    p.add_argument(
        "--interval-m",
        type=float,
        default=DEFAULT_INTERVAL_M,
        help="相邻采样点之间的插值间隔（米）",
    )
    p.add_argument(
        "--max-steps",
        type=int,
        default=DEFAULT_MAX_STEPS,
        help="单段最多插值步数（防止异常长航段拖慢计算）",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="fishing_watch")
    p.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_ins = sub.add_parser("inspect", help="分析单个会话轨迹的时间范围/采样间隔/越界时长")
    _add_common(p_ins)
    p_ins.add_argument("--session-id", type=str, required=True, help="会话ID")
    p_ins.add_argument("--json", action="store_true", help="额外输出JSON（便于后处理）")
    p_ins.set_defaults(func=_cmd_inspect)

    p_sv = sub.add_parser("session-violations", help="逐会话统计越界/禁渔区时长")
    _add_common(p_sv)
    p_sv.add_argument("--out", type=str, default=None, help="输出CSV路径（可选）")
    p_sv.set_defaults(func=_cmd_session_violations)

    p_fv = sub.add_parser("fleet-violations", help="按渔民汇总越界/禁渔区时长")
    _add_common(p_fv)
    p_fv.add_argument("--json", action="store_true", help="以JSON输出")
    p_fv.set_defaults(func=_cmd_fleet_violations)

    p_ep = sub.add_parser("export-points", help="导出会话采样点及其分类（地图着色用）")
    _add_common(p_ep)
    p_ep.add_argument("--session-id", type=str, required=True, help="会话ID")
    p_ep.add_argument("--out", type=str, default="points.csv", help="输出CSV路径")
    p_ep.set_defaults(func=_cmd_export_points)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
