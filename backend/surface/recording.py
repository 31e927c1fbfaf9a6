from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from geo.viewport import ViewportBounds
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


@dataclass
class RecordingSurface:
    """
    Map surface test double.

    - records every call as (method, args) in `calls`
    - keeps just enough state (sources, layer order, images) to assert on
    - `fail_on={"add_layer:clusters"}` or `{"add_source"}` injects a SurfaceError
    - `query_results[layer_id]` scripts what a hit test on that layer returns
    - `delay_s` makes every call actually suspend, to expose interleavings
    """

    camera: CameraState = field(
        default_factory=lambda: CameraState(center=LngLat(lng=0.0, lat=0.0), zoom=10.0)
    )
    bounds: ViewportBounds = field(
        default_factory=lambda: ViewportBounds(min_lat=-1.0, max_lat=1.0, min_lng=-1.0, max_lng=1.0)
    )
    delay_s: float = 0.0
    fail_on: set[str] = field(default_factory=set)
    query_results: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    sources: dict[str, dict[str, Any]] = field(default_factory=dict)
    layers: list[str] = field(default_factory=list)
    layer_properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    images: dict[str, StyleImage] = field(default_factory=dict)

    def method_names(self) -> list[str]:
        return [name for name, _args in self.calls]

    async def _enter(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        await asyncio.sleep(self.delay_s)
        target = f"{name}:{args[0]}" if args and isinstance(args[0], str) else None
        if name in self.fail_on or (target is not None and target in self.fail_on):
            raise SurfaceError(f"injected failure: {target or name}")

    async def add_source(self, source_id: str, spec: dict[str, Any]) -> None:
        await self._enter("add_source", source_id, spec)
        if source_id in self.sources:
            raise SurfaceError(f"source already exists: {source_id}")
        self.sources[source_id] = spec

    async def remove_source(self, source_id: str) -> None:
        await self._enter("remove_source", source_id)
        if source_id not in self.sources:
            raise SourceNotFoundError(source_id)
        del self.sources[source_id]

    async def add_layer(self, layer: dict[str, Any]) -> None:
        layer_id = str(layer["id"])
        await self._enter("add_layer", layer_id, layer)
        if layer_id in self.layers:
            raise SurfaceError(f"layer already exists: {layer_id}")
        self.layers.append(layer_id)
        self.layer_properties[layer_id] = dict(layer.get("layout") or {})

    async def remove_layer(self, layer_id: str) -> None:
        await self._enter("remove_layer", layer_id)
        if layer_id not in self.layers:
            raise LayerNotFoundError(layer_id)
        self.layers.remove(layer_id)
        self.layer_properties.pop(layer_id, None)

    async def set_layer_property(self, layer_id: str, name: str, value: Any) -> None:
        await self._enter("set_layer_property", layer_id, name, value)
        if layer_id not in self.layers:
            raise LayerNotFoundError(layer_id)
        self.layer_properties[layer_id][name] = value

    async def add_image(self, image_id: str, image: StyleImage) -> None:
        await self._enter("add_image", image_id, image)
        self.images[image_id] = image

    async def query_rendered_features(
        self, point: ScreenPoint, layer_ids: list[str]
    ) -> list[dict[str, Any]]:
        await self._enter("query_rendered_features", point, tuple(layer_ids))
        out: list[dict[str, Any]] = []
        for layer_id in layer_ids:
            if f"query_rendered_features:{layer_id}" in self.fail_on:
                raise SurfaceError(f"injected query failure: {layer_id}")
            out.extend(self.query_results.get(layer_id, []))
        return out

    async def get_camera_state(self) -> CameraState:
        await self._enter("get_camera_state")
        return self.camera

    async def coordinate_bounds_for_camera(self, camera: CameraState) -> ViewportBounds:
        await self._enter("coordinate_bounds_for_camera", camera)
        return self.bounds

    async def fly_to(self, options: CameraOptions, *, duration_ms: int) -> None:
        await self._enter("fly_to", options, duration_ms)
        self.camera = CameraState(
            center=options.center or self.camera.center,
            zoom=self.camera.zoom if options.zoom is None else float(options.zoom),
        )
