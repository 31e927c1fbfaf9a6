from __future__ import annotations

from pydantic import BaseModel, Field


class ClusterSettings(BaseModel):
    # Tuned for hundreds-to-low-thousands of points per viewport; clusters dissolve
    # before users try to tap individual neighbouring markers.
    radius: int = Field(default=50, ge=1)
    maxZoom: int = Field(default=14, ge=0, le=24)


class TapSettings(BaseModel):
    zoomStep: float = Field(default=2.0, gt=0.0)
    maxZoom: float = Field(default=20.0, ge=0.0, le=24.0)
    flyDurationMs: int = Field(default=500, ge=0)


class ViewportSettings(BaseModel):
    buffer: float = Field(default=0.3, ge=0.0)
    unchangedThreshold: float = Field(default=0.001, gt=0.0)
    overlapThreshold: float = Field(default=0.8, gt=0.0, le=1.0)
    nearGlobalThreshold: float = Field(default=0.7, gt=0.0, le=1.0)


class PinStyle(BaseModel):
    width: int = Field(default=48, ge=8)
    height: int = Field(default=64, ge=8)
    reportedColor: str = "#EF4444"
    recoveredColor: str = "#10B981"
    pendingColor: str = "#FF9F1C"
    iconSize: float = Field(default=0.8, gt=0.0)


class ClusterStyle(BaseModel):
    color: str = "#1E3A8A"
    glowOpacity: float = Field(default=0.3, ge=0.0, le=1.0)
    glowRadius: float = 32.0
    radius: float = 24.0
    strokeWidth: float = 3.0
    strokeColor: str = "#FFFFFF"
    textSize: float = 13.0
    textColor: str = "#FFFFFF"


class HeatmapStyle(BaseModel):
    maxZoom: float = Field(default=15.0, ge=0.0, le=24.0)
    opacity: float = Field(default=0.8, ge=0.0, le=1.0)


class MapSettings(BaseModel):
    """
    Map sync/render policy. Values are defaults, not load-bearing constants: tweak them
    in YAML (or point REPORTMAP_SETTINGS_PATH at another file).
    """

    cluster: ClusterSettings = Field(default_factory=ClusterSettings)
    tap: TapSettings = Field(default_factory=TapSettings)
    viewport: ViewportSettings = Field(default_factory=ViewportSettings)
    pins: PinStyle = Field(default_factory=PinStyle)
    clusterStyle: ClusterStyle = Field(default_factory=ClusterStyle)
    heatmap: HeatmapStyle = Field(default_factory=HeatmapStyle)
