from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from markers.types import MapMarkerData


def load_markers(path: Path) -> list[MapMarkerData]:
    """
    Load markers from either:
    - a GeoJSON FeatureCollection of Points (properties carry id/severity/status)
    - a plain JSON list of marker objects
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        return _from_features(data.get("features") or [])
    if isinstance(data, list):
        return [MapMarkerData.from_dict(d) for d in data if d]
    raise ValueError(f"Unsupported marker file root: {path}")


def _from_features(features: list[Any]) -> list[MapMarkerData]:
    out: list[MapMarkerData] = []
    for i, feature in enumerate(features):
        geom = (feature or {}).get("geometry") or {}
        props = (feature or {}).get("properties") or {}
        coords = geom.get("coordinates")
        if geom.get("type") != "Point" or not coords or len(coords) < 2:
            continue
        lng, lat = float(coords[0]), float(coords[1])
        out.append(
            MapMarkerData.from_dict(
                {
                    **props,
                    "id": (feature or {}).get("id") or props.get("id") or f"marker-{i}",
                    "latitude": lat,
                    "longitude": lng,
                }
            )
        )
    return out
