from __future__ import annotations

from pathlib import Path

import streamlit as st

from fishing_watch.inspect import classify_track, inspect_track, status_counts
from fishing_watch.location_io import parse_track
from fishing_watch.models import DEFAULT_INTERVAL_M, PointStatus, SessionRecord, ViolationDiagnostics
from fishing_watch.session_io import group_by_fisherman, load_sessions, recent_sessions
from fishing_watch.timeutils import format_hhmmss
from fishing_watch.violations import aggregate, compute_violation_times, violation_level
from fishing_watch.zones import DEFAULT_BOUNDARIES, BoundaryConfig, load_boundaries


@st.cache_data(show_spinner=False)
def _load_sessions(sessions_csv: str, mtime: float) -> list[SessionRecord]:
    _ = mtime  # part of cache key so updated files reload automatically
    records, _ = load_sessions(sessions_csv)
    return records


@st.cache_data(show_spinner=False)
def _load_boundaries(path: str, mtime: float) -> BoundaryConfig:
    _ = mtime
    return load_boundaries(path)


def _session_label(index: int, r: SessionRecord) -> str:
    start = r.start_time.strftime("%Y-%m-%d %H:%M") if r.start_time else "未知时间"
    return f"Session {index + 1} - {start} ({round(r.duration_seconds / 60)}min)"


def main() -> None:
    st.set_page_config(page_title="渔民越界时长统计", layout="wide")
    st.title("渔民出海会话：越界 / 禁渔区时长统计")

    with st.sidebar:
        st.subheader("数据")
        sessions_csv = st.text_input("sessions.csv 路径", value="sessions.csv")
        boundaries_json = st.text_input("边界配置 JSON（留空=内置印度海上边界）", value="")

        with st.expander("高级参数（通常不用改）", expanded=False):
            interval_m = st.number_input("插值间隔 interval_m（米）", value=DEFAULT_INTERVAL_M, min_value=1.0, step=10.0)
            recent_n = st.number_input("每位渔民显示最近会话数", value=10, min_value=1, step=1)

    p = Path(sessions_csv)
    if not p.exists():
        st.error(f"找不到文件：{sessions_csv!r}。可先运行 scripts/generate_sample_sessions_csv.py 生成示例数据。")
        return

    boundaries = DEFAULT_BOUNDARIES
    if boundaries_json.strip():
        bp = Path(boundaries_json)
        if not bp.exists():
            st.error(f"找不到边界配置：{boundaries_json!r}")
            return
        try:
            boundaries = _load_boundaries(boundaries_json, bp.stat().st_mtime)
        except ValueError as exc:
            st.exception(exc)
            return

    try:
        records = _load_sessions(sessions_csv, p.stat().st_mtime)
    except (KeyError, ValueError) as exc:
        st.exception(exc)
        return

    by_fisherman = group_by_fisherman(records)
    if not by_fisherman:
        st.warning("没有可用的会话记录。")
        return

    diag = ViolationDiagnostics()
    rows: list[dict[str, object]] = []
    for user_id, sessions in by_fisherman.items():
        total = aggregate(sessions, boundaries, interval_m=float(interval_m), diagnostics=diag)
        name = next((s.fisherman_name for s in sessions if s.fisherman_name), "")
        level = violation_level(total)
        rows.append(
            {
                "user_id": user_id,
                "fisherman_name": name,
                "sessions": total.session_count,
                "outside_border_min": total.total_outside_minutes,
                "restricted_zone_min": total.total_restricted_minutes,
                "level": level.label,
            }
        )
    rows.sort(key=lambda r: float(r["outside_border_min"]) + float(r["restricted_zone_min"]), reverse=True)

    st.subheader("按渔民汇总")
    c1, c2, c3 = st.columns(3)
    c1.metric("渔民数", str(len(by_fisherman)))
    c2.metric("会话数", str(len(records)))
    c3.metric("有越界记录的渔民", str(sum(1 for r in rows if float(r["outside_border_min"]) > 0)))
    st.dataframe(rows, use_container_width=True, height=320)
    if diag.has_issues:
        st.caption(
            f"数据质量：跳过采样点={diag.samples_dropped}，无法解析的会话={diag.failed_inputs}，"
            f"零时长段={diag.zero_duration_segments}，插值截断段={diag.capped_segments}"
        )

    st.subheader("会话详情")
    labels = {r["user_id"]: f"{r['fisherman_name'] or r['user_id']} ({r['level']})" for r in rows}
    user_id = st.selectbox("渔民", options=list(labels), format_func=lambda k: labels[k])
    sessions = recent_sessions(by_fisherman[user_id], int(recent_n))
    idx = st.selectbox("会话", options=list(range(len(sessions))), format_func=lambda i: _session_label(i, sessions[i]))
    session = sessions[idx]

    report = parse_track(session.location_data)
    violation = compute_violation_times(session.location_data, boundaries, interval_m=float(interval_m))
    res = inspect_track(report)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("采样点", str(violation.total_points))
    c2.metric("越界时长（分钟）", f"{violation.outside_border_minutes:.1f}")
    c3.metric("禁渔区时长（分钟）", f"{violation.restricted_zone_minutes:.1f}")
    c4.metric("轨迹跨度", format_hhmmss(res.elapsed_seconds))
    if report.samples_dropped:
        st.warning(f"该会话有 {report.samples_dropped} 个采样点无法解析，已跳过。")

    classified = classify_track(report.points, boundaries)
    if classified:
        counts = status_counts(classified)
        st.caption(" / ".join(f"{s.label}: {counts[s]}" for s in PointStatus))
        st.map(
            [
                {"latitude": pt.latitude, "longitude": pt.longitude, "color": status.color}
                for pt, status in classified
            ],
            latitude="latitude",
            longitude="longitude",
            color="color",
            size=40,
        )
        with st.expander("采样点明细", expanded=False):
            st.dataframe(
                [
                    {
                        "point": i,
                        "timestamp": pt.timestamp.isoformat(sep=" "),
                        "latitude": round(pt.latitude, 6),
                        "longitude": round(pt.longitude, 6),
                        "status": status.label,
                    }
                    for i, (pt, status) in enumerate(classified, start=1)
                ],
                use_container_width=True,
                height=360,
            )
    else:
        st.info("该会话没有可用的GPS采样点。")

    st.caption(
        f"说明：相邻采样点之间按约 {interval_m:g} 米插值，按插值点中越界/禁渔区的比例分摊该段时长；时间按记录原值（本地时间）计算，不做时区换算。"
    )


if __name__ == "__main__":
    main()
