from __future__ import annotations

import argparse
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from fishing_watch.models import SessionRecord
from fishing_watch.session_io import write_sessions_csv


@dataclass(frozen=True, slots=True)
class Harbour:
    name: str
    lat: float
    lng: float


def generate_track(
    *,
    rng: random.Random,
    harbour: Harbour,
    start: datetime,
    points: int,
    heading: tuple[float, float],
) -> tuple[str, datetime]:
    """Generate a fake "lat,lng,timestamp;..." record drifting away from a harbour and back."""

    cur = start
    lat, lng = harbour.lat, harbour.lng
    samples: list[str] = []
    half = points // 2
    for i in range(points):
        sign = 1.0 if i < half else -1.0
        lat += sign * heading[0] + rng.uniform(-0.002, 0.002)
        lng += sign * heading[1] + rng.uniform(-0.002, 0.002)
        samples.append(f"{lat:.6f},{lng:.6f},{cur.isoformat()}")
        # GPS every 2-6 minutes, occasionally a longer gap
        if rng.random() < 0.05:
            cur = cur + timedelta(minutes=rng.uniform(15, 40))
        else:
            cur = cur + timedelta(seconds=rng.uniform(120, 360))

    # The upload order is not guaranteed
    if rng.random() < 0.3:
        rng.shuffle(samples)
    # Occasionally a corrupt sample
    if rng.random() < 0.2:
        samples.insert(rng.randrange(len(samples) + 1), f"nan,abc,{start.isoformat()}")
    return ";".join(samples), cur


def generate_sessions(*, fishermen: int, sessions_per: int, seed: int, start: datetime) -> list[SessionRecord]:
    rng = random.Random(seed)
    harbours = [
        Harbour("rameswaram", 9.2876, 79.3129),
        Harbour("thoothukudi", 8.7642, 78.1348),
        Harbour("nagapattinam", 10.7672, 79.8449),
    ]
    out: list[SessionRecord] = []
    for f in range(fishermen):
        harbour = rng.choice(harbours)
        # Some fishermen head east towards the border, others stay coastal
        heading = (rng.uniform(-0.004, 0.004), rng.uniform(0.004, 0.012) if f % 2 == 0 else rng.uniform(-0.004, 0.002))
        day = start
        for s in range(sessions_per):
            day = day + timedelta(days=rng.randint(1, 3))
            begin = day.replace(hour=rng.randint(3, 6), minute=rng.randint(0, 59))
            data, end = generate_track(rng=rng, harbour=harbour, start=begin, points=rng.randint(30, 90), heading=heading)
            out.append(
                SessionRecord(
                    session_id=f"s{f + 1:02d}-{s + 1:02d}",
                    user_id=f"u{f + 1:02d}",
                    fisherman_name=f"Fisherman {f + 1}",
                    start_time=begin,
                    end_time=end,
                    location_data=data,
                )
            )
    return out


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake sessions.csv for demo/testing (privacy-safe).")
    p.add_argument("--out", type=str, default="sample_data/sessions.csv", help="Output CSV path")
    p.add_argument("--fishermen", type=int, default=6, help="Number of fishermen")
    p.add_argument("--sessions-per", type=int, default=5, help="Sessions per fisherman")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument("--start", type=str, default="2024-01-01 00:00:00", help="Start date (local time)")
    args = p.parse_args()

    records = generate_sessions(
        fishermen=args.fishermen,
        sessions_per=args.sessions_per,
        seed=args.seed,
        start=datetime.fromisoformat(args.start),
    )
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    write_sessions_csv(records, out_path)

    print(f"Generated: {out_path} (sessions={len(records)}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
