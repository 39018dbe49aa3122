"""Maritime border and restricted-zone configuration."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Sequence

from fishing_watch.geo import LatLng, point_in_polygon
from fishing_watch.models import PointStatus


@dataclass(frozen=True, slots=True)
class Zone:
    """A named closed ring of (lat, lng) vertices."""

    name: str
    vertices: tuple[LatLng, ...]

    def contains(self, lat: float, lng: float) -> bool:
        return point_in_polygon((lat, lng), self.vertices)


@dataclass(frozen=True, slots=True)
class BoundaryConfig:
    """Border polygon plus restricted fishing zones.

    Passed explicitly to every computation; instances are immutable and safe to
    share between threads.
    """

    border: Zone
    restricted_zones: tuple[Zone, ...] = field(default_factory=tuple)

    def is_outside_border(self, lat: float, lng: float) -> bool:
        return not self.border.contains(lat, lng)

    def is_in_restricted_zone(self, lat: float, lng: float) -> bool:
        return any(zone.contains(lat, lng) for zone in self.restricted_zones)

    def classify(self, lat: float, lng: float) -> PointStatus:
        """Single status for display; a restricted zone takes precedence."""

        if self.is_in_restricted_zone(lat, lng):
            return PointStatus.RESTRICTED
        if self.is_outside_border(lat, lng):
            return PointStatus.OUTSIDE_BORDER
        return PointStatus.INSIDE


def make_boundaries(
    border: Sequence[Sequence[float]],
    restricted_zones: Sequence[Sequence[Sequence[float]]] = (),
) -> BoundaryConfig:
    """Build a BoundaryConfig from plain vertex lists."""

    return BoundaryConfig(
        border=Zone("border", _vertices(border, "border")),
        restricted_zones=tuple(
            Zone(f"restricted_{i + 1}", _vertices(v, f"restricted_{i + 1}"))
            for i, v in enumerate(restricted_zones)
        ),
    )


def _vertices(raw: Any, name: str) -> tuple[LatLng, ...]:
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"区域 {name!r} 的顶点必须是 [[lat, lng], ...] 列表")
    out: list[LatLng] = []
    for i, v in enumerate(raw):
        try:
            lat, lng = float(v[0]), float(v[1])
        except (TypeError, ValueError, IndexError, KeyError) as exc:
            raise ValueError(f"区域 {name!r} 第 {i} 个顶点无效：{v!r}") from exc
        if not (math.isfinite(lat) and math.isfinite(lng)):
            raise ValueError(f"区域 {name!r} 第 {i} 个顶点不是有限数值：{v!r}")
        out.append((lat, lng))
    return tuple(out)


def boundaries_from_dict(data: dict[str, Any]) -> BoundaryConfig:
    """Build a BoundaryConfig from the JSON structure.

    Expected shape::

        {
          "border": [[lat, lng], ...],
          "restricted_zones": [{"name": "...", "vertices": [[lat, lng], ...]}, ...]
        }

    A restricted zone may also be given as a bare vertex list.

    Raises:
        ValueError: If the structure is invalid.
    """

    if not isinstance(data, dict) or "border" not in data:
        raise ValueError("边界配置缺少 'border' 字段")
    zones: list[Zone] = []
    for i, item in enumerate(data.get("restricted_zones") or []):
        default_name = f"restricted_{i + 1}"
        if isinstance(item, dict):
            name = str(item.get("name") or default_name)
            zones.append(Zone(name, _vertices(item.get("vertices"), name)))
        else:
            zones.append(Zone(default_name, _vertices(item, default_name)))
    return BoundaryConfig(border=Zone("border", _vertices(data["border"], "border")), restricted_zones=tuple(zones))


def load_boundaries(path: str | Path) -> BoundaryConfig:
    """Load a BoundaryConfig from a JSON file.

    Raises:
        ValueError: If the file is not valid JSON or the structure is invalid.
    """

    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"边界配置文件不是有效JSON：{p}") from exc
    return boundaries_from_dict(data)


def boundaries_to_dict(config: BoundaryConfig) -> dict[str, Any]:
    """Inverse of boundaries_from_dict (for writing a template file)."""

    return {
        "border": [list(v) for v in config.border.vertices],
        "restricted_zones": [
            {"name": z.name, "vertices": [list(v) for v in z.vertices]} for z in config.restricted_zones
        ],
    }


# Indian maritime border (approximate), as used by the authority dashboard.
INDIAN_BORDER: Final[tuple[LatLng, ...]] = (
    (9.959844, 79.826441), (9.800999, 79.563088), (9.904257, 79.718950),
    (9.589087, 79.407226), (9.1, 79.32), (9.0, 79.31),
    (8.88, 79.29), (8.67, 79.18), (8.62, 79.13),
    (8.53, 79.04), (8.37, 78.92), (8.2, 78.92),
    (7.58, 78.75), (7.35, 78.64), (7.21, 78.38),
    (6.52, 78.12), (5.89, 77.85), (5.0, 77.18),
    (8.0, 73.0), (20.0, 68.0), (22.0, 68.0),
    (23.98, 68.48), (21.79, 89.09), (21.19, 88.58),
    (20.44, 89.02), (20.12, 89.06), (11.43, 83.37),
    (11.16, 82.41), (11.27, 81.93), (11.05, 81.93),
    (10.69, 81.04), (10.55, 80.77), (10.08, 80.09),
    (10.05, 80.05), (10.05, 80.03),
)

PALK_BAY_RESTRICTED: Final[tuple[LatLng, ...]] = (
    (9.40, 78.50), (9.30, 79.00), (8.80, 79.80),
    (8.50, 80.30), (8.00, 79.60), (8.10, 78.90),
    (8.50, 78.50), (9.00, 78.00),
)

DEFAULT_BOUNDARIES: Final[BoundaryConfig] = BoundaryConfig(
    border=Zone("indian_border", INDIAN_BORDER),
    restricted_zones=(Zone("palk_bay", PALK_BAY_RESTRICTED),),
)
