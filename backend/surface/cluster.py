from __future__ import annotations

import math
from typing import Any

from geo.mercator import lnglat_to_world_px, world_px_to_lnglat


def cluster_features(
    features: list[dict[str, Any]],
    *,
    zoom: float,
    radius: int,
    max_zoom: int,
) -> list[dict[str, Any]]:
    """
    Cluster GeoJSON point features on a pixel grid at the camera's integer zoom.

    - cell size = `radius` pixels in world-pixel space
    - above `max_zoom` every point is returned unclustered
    - a cell with one point yields that point; 2+ points yield a cluster feature at
      the cell centroid with `point_count` / `point_count_abbreviated`
    """
    z = int(math.floor(float(zoom)))
    if z > int(max_zoom):
        return list(features)

    cell = float(max(1, int(radius)))
    # (cell_x, cell_y) -> (count, sum_x, sum_y, first feature)
    buckets: dict[tuple[int, int], tuple[int, float, float, dict[str, Any]]] = {}
    for f in features:
        coords = ((f.get("geometry") or {}).get("coordinates")) or []
        if len(coords) < 2:
            continue
        x, y = lnglat_to_world_px(float(coords[0]), float(coords[1]), z)
        key = (int(x // cell), int(y // cell))
        count, sx, sy, first = buckets.get(key, (0, 0.0, 0.0, f))
        buckets[key] = (count + 1, sx + x, sy + y, first)

    out: list[dict[str, Any]] = []
    for cluster_id, (count, sx, sy, first) in enumerate(buckets.values()):
        if count == 1:
            out.append(first)
            continue
        lng, lat = world_px_to_lnglat(sx / count, sy / count, z)
        out.append(
            {
                "type": "Feature",
                "id": cluster_id,
                "geometry": {"type": "Point", "coordinates": [lng, lat]},
                "properties": {
                    "cluster": True,
                    "cluster_id": cluster_id,
                    "point_count": count,
                    "point_count_abbreviated": abbreviate_count(count),
                },
            }
        )

    # Larger clusters first.
    out.sort(key=lambda f: (f.get("properties") or {}).get("point_count", 1), reverse=True)
    return out


def abbreviate_count(count: int) -> str:
    if count >= 10_000:
        return f"{int(count / 1000 + 0.5)}k"
    if count >= 1_000:
        return f"{int(count / 100 + 0.5) / 10:g}k"
    return str(count)
