from __future__ import annotations

import asyncio
import json
import math
from typing import Any

from geo.mercator import bounds_for_camera, lnglat_to_screen
from geo.viewport import ViewportBounds
from surface.cluster import cluster_features
from surface.expressions import evaluate, matches_filter
from surface.types import (
    CameraOptions,
    CameraState,
    LayerNotFoundError,
    LngLat,
    ScreenPoint,
    SourceNotFoundError,
    StyleImage,
    SurfaceError,
)

DEFAULT_STYLE_URI = "mapbox://styles/mapbox/light-v11"


class StyleSurface:
    """
    In-process map surface backed by a style document (version 8 sources/layers/images).

    It behaves like a real renderer where the marker code cares:
    - duplicate source/layer ids are rejected
    - a source still referenced by a layer cannot be removed
    - clustering sources are clustered at the camera's integer zoom
    - rendered-feature queries are pixel hit tests against the current camera

    `to_style_json()` is what the HTTP layer hands to a client-side map.
    """

    def __init__(
        self,
        *,
        camera: CameraState | None = None,
        width: int = 390,
        height: int = 844,
        style_uri: str = DEFAULT_STYLE_URI,
        latency_s: float = 0.0,
        hit_tolerance_px: float = 24.0,
    ):
        self.camera = camera or CameraState(center=LngLat(lng=0.0, lat=0.0), zoom=2.0)
        self.width = int(width)
        self.height = int(height)
        self.style_uri = style_uri
        self.latency_s = float(latency_s)
        self.hit_tolerance_px = float(hit_tolerance_px)

        self.sources: dict[str, dict[str, Any]] = {}
        self.layers: list[dict[str, Any]] = []
        self.images: dict[str, StyleImage] = {}
        self.last_transition: tuple[CameraOptions, int] | None = None

    # -- style lifecycle -------------------------------------------------

    def set_style(self, style_uri: str) -> None:
        """
        Replace the style wholesale. Sources, layers and images are style-scoped and go too.
        """
        self.style_uri = style_uri
        self.sources = {}
        self.layers = []
        self.images = {}

    def set_viewport(self, *, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)

    def jump_to(self, camera: CameraState) -> None:
        self.camera = camera

    def layer_ids(self) -> list[str]:
        return [str(l["id"]) for l in self.layers]

    def get_layer(self, layer_id: str) -> dict[str, Any] | None:
        for layer in self.layers:
            if layer["id"] == layer_id:
                return layer
        return None

    # -- MapSurface ------------------------------------------------------

    async def add_source(self, source_id: str, spec: dict[str, Any]) -> None:
        await self._suspend()
        if source_id in self.sources:
            raise SurfaceError(f"source already exists: {source_id}")
        src = dict(spec)
        if isinstance(src.get("data"), str):
            src["data"] = json.loads(src["data"])
        self.sources[source_id] = src

    async def remove_source(self, source_id: str) -> None:
        await self._suspend()
        if source_id not in self.sources:
            raise SourceNotFoundError(source_id)
        users = [l["id"] for l in self.layers if l.get("source") == source_id]
        if users:
            raise SurfaceError(f"source {source_id} is in use by layers: {', '.join(users)}")
        del self.sources[source_id]

    async def add_layer(self, layer: dict[str, Any]) -> None:
        await self._suspend()
        layer_id = str(layer.get("id") or "")
        if not layer_id:
            raise SurfaceError("layer is missing an id")
        if self.get_layer(layer_id) is not None:
            raise SurfaceError(f"layer already exists: {layer_id}")
        source_id = layer.get("source")
        if source_id is not None and source_id not in self.sources:
            raise SurfaceError(f"layer {layer_id} references missing source: {source_id}")
        self.layers.append(
            {
                **layer,
                "layout": dict(layer.get("layout") or {}),
                "paint": dict(layer.get("paint") or {}),
            }
        )

    async def remove_layer(self, layer_id: str) -> None:
        await self._suspend()
        layer = self.get_layer(layer_id)
        if layer is None:
            raise LayerNotFoundError(layer_id)
        self.layers.remove(layer)

    async def set_layer_property(self, layer_id: str, name: str, value: Any) -> None:
        await self._suspend()
        layer = self.get_layer(layer_id)
        if layer is None:
            raise LayerNotFoundError(layer_id)
        bucket = "paint" if name in layer["paint"] or _is_paint_property(name) else "layout"
        layer[bucket][name] = value

    async def add_image(self, image_id: str, image: StyleImage) -> None:
        await self._suspend()
        self.images[image_id] = image

    async def query_rendered_features(
        self, point: ScreenPoint, layer_ids: list[str]
    ) -> list[dict[str, Any]]:
        await self._suspend()
        wanted = set(layer_ids)
        hits: list[tuple[float, int, dict[str, Any]]] = []
        # Top-most layer first, like a real renderer.
        for order, layer in enumerate(reversed(self.layers)):
            if layer["id"] not in wanted:
                continue
            tolerance = self._hit_radius(layer)
            for f in self.rendered_features(layer["id"]):
                lng, lat = f["geometry"]["coordinates"][:2]
                sx, sy = lnglat_to_screen(
                    lng,
                    lat,
                    center_lng=self.camera.center.lng,
                    center_lat=self.camera.center.lat,
                    zoom=self.camera.zoom,
                    width=self.width,
                    height=self.height,
                )
                d = math.hypot(sx - point.x, sy - point.y)
                if d <= tolerance:
                    hits.append((d, order, {**f, "layer": layer["id"]}))
        hits.sort(key=lambda h: (h[1], h[0]))
        return [h[2] for h in hits]

    async def get_camera_state(self) -> CameraState:
        await self._suspend()
        return self.camera

    async def coordinate_bounds_for_camera(self, camera: CameraState) -> ViewportBounds:
        await self._suspend()
        return bounds_for_camera(
            camera.center.lng,
            camera.center.lat,
            camera.zoom,
            width=self.width,
            height=self.height,
        )

    async def fly_to(self, options: CameraOptions, *, duration_ms: int) -> None:
        await self._suspend()
        # No animation in-process: land on the target immediately.
        self.camera = CameraState(
            center=options.center or self.camera.center,
            zoom=self.camera.zoom if options.zoom is None else float(options.zoom),
            bearing=self.camera.bearing,
            pitch=self.camera.pitch,
        )
        self.last_transition = (options, int(duration_ms))

    # -- rendering -------------------------------------------------------

    def rendered_features(self, layer_id: str) -> list[dict[str, Any]]:
        """
        Features a layer draws at the current camera (clustered + filtered).
        """
        layer = self.get_layer(layer_id)
        if layer is None:
            raise LayerNotFoundError(layer_id)
        src = self.sources.get(str(layer.get("source")))
        if src is None:
            return []
        features = list(((src.get("data") or {}).get("features")) or [])
        if src.get("cluster"):
            features = cluster_features(
                features,
                zoom=self.camera.zoom,
                radius=int(src.get("clusterRadius", 50)),
                max_zoom=int(src.get("clusterMaxZoom", 14)),
            )
        flt = layer.get("filter")
        return [f for f in features if matches_filter(flt, f.get("properties") or {})]

    def resolve_layout(self, layer_id: str, name: str, feature: dict[str, Any]) -> Any:
        layer = self.get_layer(layer_id)
        if layer is None:
            raise LayerNotFoundError(layer_id)
        return evaluate(layer["layout"].get(name), feature.get("properties") or {})

    def to_style_json(self) -> dict[str, Any]:
        return {
            "version": 8,
            "name": self.style_uri,
            "center": [self.camera.center.lng, self.camera.center.lat],
            "zoom": self.camera.zoom,
            "sources": {k: dict(v) for k, v in self.sources.items()},
            "layers": [dict(l) for l in self.layers],
            "images": sorted(self.images.keys()),
        }

    def _hit_radius(self, layer: dict[str, Any]) -> float:
        r = layer["paint"].get("circle-radius")
        if isinstance(r, (int, float)):
            return float(r)
        return self.hit_tolerance_px

    async def _suspend(self) -> None:
        # Every surface call is a suspension point, even with zero latency.
        await asyncio.sleep(self.latency_s)


def _is_paint_property(name: str) -> bool:
    return name.split("-", 1)[0] in {"circle", "fill", "line", "heatmap", "raster"} or name in {
        "text-color",
        "text-opacity",
        "icon-opacity",
        "icon-color",
    }
