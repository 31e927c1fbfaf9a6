from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from geo.viewport import ViewportBounds


@dataclass(frozen=True)
class LngLat:
    lng: float
    lat: float


@dataclass(frozen=True)
class ScreenPoint:
    x: float
    y: float


@dataclass(frozen=True)
class CameraState:
    center: LngLat
    zoom: float
    bearing: float = 0.0
    pitch: float = 0.0


@dataclass(frozen=True)
class CameraOptions:
    center: LngLat | None = None
    zoom: float | None = None


@dataclass(frozen=True)
class StyleImage:
    """
    Raster icon registered on a style (RGBA PNG bytes).
    """

    width: int
    height: int
    data: bytes
    scale: float = 1.0
    sdf: bool = False


class SurfaceError(Exception):
    """
    A map surface operation was rejected.
    """


class NotFoundError(SurfaceError):
    def __init__(self, kind: str, object_id: str):
        super().__init__(f"{kind} not found: {object_id}")
        self.kind = kind
        self.object_id = object_id


class LayerNotFoundError(NotFoundError):
    def __init__(self, layer_id: str):
        super().__init__("layer", layer_id)


class SourceNotFoundError(NotFoundError):
    def __init__(self, source_id: str):
        super().__init__("source", source_id)


class MapSurface(Protocol):
    """
    The narrow slice of a map renderer the viewport/marker code drives.

    Every call is async (may suspend) and may fail independently.

    - StyleSurface: in-process style document + clustering + hit testing
    - RecordingSurface: test double that records calls
    """

    async def add_source(self, source_id: str, spec: dict[str, Any]) -> None: ...

    async def remove_source(self, source_id: str) -> None: ...

    async def add_layer(self, layer: dict[str, Any]) -> None: ...

    async def remove_layer(self, layer_id: str) -> None: ...

    async def set_layer_property(self, layer_id: str, name: str, value: Any) -> None: ...

    async def add_image(self, image_id: str, image: StyleImage) -> None: ...

    async def query_rendered_features(
        self, point: ScreenPoint, layer_ids: list[str]
    ) -> list[dict[str, Any]]: ...

    async def get_camera_state(self) -> CameraState: ...

    async def coordinate_bounds_for_camera(self, camera: CameraState) -> ViewportBounds: ...

    async def fly_to(self, options: CameraOptions, *, duration_ms: int) -> None: ...
