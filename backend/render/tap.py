from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from render.layers import CLUSTER_LAYER_ID, MARKER_LAYER_ID
from settings.registry import get_settings
from settings.types import MapSettings
from surface.types import CameraOptions, LngLat, MapSurface, ScreenPoint

logger = logging.getLogger(__name__)

TapKind = Literal["cluster", "marker", "none"]


@dataclass(frozen=True)
class TapResult:
    kind: TapKind
    marker_id: str | None = None
    # Camera target when a cluster was expanded.
    center: LngLat | None = None
    zoom: float | None = None


class MapTapHandler:
    """
    Resolves a tap into a cluster expansion or a marker id.

    Read-only towards layers/sources, so it needs no coordination with the renderer.
    Query errors are logged and count as "no hit".
    """

    def __init__(self, surface: MapSurface, *, settings: MapSettings | None = None):
        self._surface = surface
        self._settings = settings or get_settings()

    async def handle_tap(self, point: ScreenPoint) -> TapResult:
        cluster = await self._expand_cluster_at(point)
        if cluster is not None:
            return cluster
        marker_id = await self.query_marker_at_point(point)
        if marker_id is not None:
            return TapResult(kind="marker", marker_id=marker_id)
        return TapResult(kind="none")

    async def handle_cluster_tap(self, point: ScreenPoint) -> bool:
        """
        Zoom into the cluster under `point`. Returns True if a cluster was hit.
        """
        return await self._expand_cluster_at(point) is not None

    async def query_marker_at_point(self, point: ScreenPoint) -> str | None:
        try:
            features = await self._surface.query_rendered_features(point, [MARKER_LAYER_ID])
        except Exception as e:
            logger.warning("Error querying marker at %s: %s", point, e)
            return None

        if not features:
            return None
        props = _properties(features[0])
        if props is None or props.get("id") is None:
            return None
        return str(props["id"])

    async def _expand_cluster_at(self, point: ScreenPoint) -> TapResult | None:
        tap = self._settings.tap
        try:
            features = await self._surface.query_rendered_features(point, [CLUSTER_LAYER_ID])
            if not features:
                return None

            coords = _coordinates(features[0])
            if coords is None:
                return None
            lng, lat = coords

            camera = await self._surface.get_camera_state()
            new_zoom = max(0.0, min(float(tap.maxZoom), float(camera.zoom) + float(tap.zoomStep)))
            center = LngLat(lng=lng, lat=lat)

            await self._surface.fly_to(
                CameraOptions(center=center, zoom=new_zoom),
                duration_ms=int(tap.flyDurationMs),
            )
        except Exception as e:
            logger.warning("Error handling cluster tap at %s: %s", point, e)
            return None

        logger.info("Zoomed into cluster at %s, %s (zoom: %s)", lat, lng, new_zoom)
        return TapResult(kind="cluster", center=center, zoom=new_zoom)


def _coordinates(feature: dict[str, Any]) -> tuple[float, float] | None:
    geometry = (feature or {}).get("geometry")
    if not isinstance(geometry, dict):
        return None
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    try:
        return float(coords[0]), float(coords[1])
    except (TypeError, ValueError):
        return None


def _properties(feature: dict[str, Any]) -> dict[str, Any] | None:
    props = (feature or {}).get("properties")
    if not isinstance(props, dict):
        return None
    return props
