from __future__ import annotations

from typing import Any, Iterable

from markers.types import HeatmapPoint, MapMarkerData, ReportStatus


def marker_feature(m: MapMarkerData) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            # GeoJSON order: [lng, lat]
            "coordinates": [m.longitude, m.latitude],
        },
        "properties": {
            "id": m.id,
            "severity": m.severity,
            "isPending": m.is_pending,
            "isResolved": m.is_resolved,
        },
    }


def build_feature_collection(markers: Iterable[MapMarkerData]) -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [marker_feature(m) for m in markers],
    }


def filter_by_status(
    markers: Iterable[MapMarkerData], statuses: set[ReportStatus] | None
) -> list[MapMarkerData]:
    """
    Keep markers whose status is visible. `None` means no filter.
    """
    if statuses is None:
        return list(markers)
    return [m for m in markers if m.status in statuses]


def build_heatmap_collection(points: Iterable[HeatmapPoint]) -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [p.longitude, p.latitude]},
                "properties": {"weight": p.weight},
            }
            for p in points
        ],
    }
