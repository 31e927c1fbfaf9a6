from __future__ import annotations

from functools import lru_cache

from pyproj import Transformer

from geo.viewport import ViewportBounds

# Vector-tile maps use 512px tiles, so world size at zoom z is 512 * 2^z pixels.
TILE_SIZE = 512.0

MAX_MERCATOR_LAT = 85.05112878
_HALF_WORLD_M = 20037508.342789244


@lru_cache(maxsize=1)
def transformer_4326_to_3857() -> Transformer:
    return Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)


@lru_cache(maxsize=1)
def transformer_3857_to_4326() -> Transformer:
    return Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)


def world_size(zoom: float) -> float:
    return TILE_SIZE * (2.0 ** float(zoom))


def lnglat_to_world_px(lng: float, lat: float, zoom: float) -> tuple[float, float]:
    """
    Project lng/lat to world pixel coordinates (origin top-left) at `zoom`.
    """
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, float(lat)))
    x_m, y_m = transformer_4326_to_3857().transform(float(lng), lat)
    size = world_size(zoom)
    x = (x_m + _HALF_WORLD_M) / (2.0 * _HALF_WORLD_M) * size
    y = (_HALF_WORLD_M - y_m) / (2.0 * _HALF_WORLD_M) * size
    return float(x), float(y)


def world_px_to_lnglat(x: float, y: float, zoom: float) -> tuple[float, float]:
    size = world_size(zoom)
    x_m = float(x) / size * (2.0 * _HALF_WORLD_M) - _HALF_WORLD_M
    y_m = _HALF_WORLD_M - float(y) / size * (2.0 * _HALF_WORLD_M)
    lng, lat = transformer_3857_to_4326().transform(x_m, y_m)
    return float(lng), float(lat)


def bounds_for_camera(
    center_lng: float,
    center_lat: float,
    zoom: float,
    *,
    width: int,
    height: int,
) -> ViewportBounds:
    """
    Visible lat/lng rectangle for a north-up camera (bearing/pitch ignored).

    Clamped to one world copy; no antimeridian wraparound.
    """
    cx, cy = lnglat_to_world_px(center_lng, center_lat, zoom)
    size = world_size(zoom)
    half_w = max(0, int(width)) / 2.0
    half_h = max(0, int(height)) / 2.0

    left = max(0.0, cx - half_w)
    right = min(size, cx + half_w)
    top = max(0.0, cy - half_h)
    bottom = min(size, cy + half_h)

    min_lng, max_lat = world_px_to_lnglat(left, top, zoom)
    max_lng, min_lat = world_px_to_lnglat(right, bottom, zoom)
    return ViewportBounds(
        min_lat=min_lat, max_lat=max_lat, min_lng=min_lng, max_lng=max_lng
    ).normalized()


def lnglat_to_screen(
    lng: float,
    lat: float,
    *,
    center_lng: float,
    center_lat: float,
    zoom: float,
    width: int,
    height: int,
) -> tuple[float, float]:
    cx, cy = lnglat_to_world_px(center_lng, center_lat, zoom)
    px, py = lnglat_to_world_px(lng, lat, zoom)
    return px - cx + width / 2.0, py - cy + height / 2.0


def screen_to_lnglat(
    x: float,
    y: float,
    *,
    center_lng: float,
    center_lat: float,
    zoom: float,
    width: int,
    height: int,
) -> tuple[float, float]:
    cx, cy = lnglat_to_world_px(center_lng, center_lat, zoom)
    return world_px_to_lnglat(cx + x - width / 2.0, cy + y - height / 2.0, zoom)
