from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ReportStatus(str, Enum):
    reported = "reported"
    pending = "pending"
    resolved = "resolved"

    @classmethod
    def parse(cls, value: Any) -> "ReportStatus":
        if isinstance(value, ReportStatus):
            return value
        raw = str(value or "").strip().lower()
        try:
            return cls(raw)
        except ValueError:
            raise ValueError(f"Unknown report status: {value!r}") from None


@dataclass(frozen=True)
class MapMarkerData:
    """
    One report projected onto the map.

    Owned by the data layer; the map code only reads it and turns it into features.
    """

    id: str
    latitude: float
    longitude: float
    severity: int
    is_pending: bool
    status: ReportStatus = ReportStatus.pending

    @property
    def is_resolved(self) -> bool:
        return self.status == ReportStatus.resolved

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MapMarkerData":
        # Accept both the app's camelCase payloads and snake_case DB rows.
        is_pending = data.get("isPending", data.get("is_pending", False))
        return cls(
            id=str(data["id"]),
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            severity=int(data.get("severity") or 0),
            is_pending=bool(is_pending),
            status=ReportStatus.parse(data.get("status") or ReportStatus.pending),
        )


def heatmap_weight(severity: int) -> float:
    """
    Heat contribution of one report (0..1). Higher severity burns hotter.
    """
    if severity >= 3:
        return 1.0
    if severity == 2:
        return 0.6
    return 0.3


@dataclass(frozen=True)
class HeatmapPoint:
    id: str
    latitude: float
    longitude: float
    weight: float

    @classmethod
    def from_marker(cls, m: MapMarkerData) -> "HeatmapPoint":
        return cls(
            id=m.id,
            latitude=m.latitude,
            longitude=m.longitude,
            weight=heatmap_weight(m.severity),
        )
