from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from shapely.geometry import Point, Polygon
from shapely.geometry import box as shapely_box
from shapely.strtree import STRtree

from geo.viewport import ViewportBounds
from markers.types import MapMarkerData


@dataclass
class MarkerIndex:
    """
    STRtree over marker points for repeated viewport queries.

    Geometries are in EPSG:4326 (x=lng, y=lat); bbox selection is all we need here.
    """

    tree: STRtree
    points: list[Point]
    markers: list[MapMarkerData]

    _query_cache: dict[tuple[float, float, float, float], list[MapMarkerData]] = field(
        default_factory=dict, repr=False
    )

    def query(self, bounds: ViewportBounds, *, decimals: int = 4) -> list[MapMarkerData]:
        """
        Markers inside `bounds` (edges inclusive), in input order.
        """
        key = bounds.rounded_key(decimals)
        cached = self._query_cache.get(key)
        if cached is not None:
            return cached

        if not self.markers:
            return []

        b = bounds.normalized()
        # Envelope query first, then an exact inclusive check (handles zero-area bounds).
        idx = sorted(_to_int_list(self.tree.query(_bounds_polygon(b))))
        out = [
            self.markers[i]
            for i in idx
            if b.min_lat <= self.markers[i].latitude <= b.max_lat
            and b.min_lng <= self.markers[i].longitude <= b.max_lng
        ]

        bounded_cache_put(self._query_cache, key, out, max_items=64)
        return out

    def __len__(self) -> int:
        return len(self.markers)


def build_marker_index(markers: Iterable[MapMarkerData]) -> MarkerIndex:
    items = list(markers)
    points = [Point(m.longitude, m.latitude) for m in items]
    return MarkerIndex(tree=STRtree(points), points=points, markers=items)


def _bounds_polygon(b: ViewportBounds) -> Polygon:
    return shapely_box(b.min_lng, b.min_lat, b.max_lng, b.max_lat)


def _to_int_list(arr) -> list[int]:
    # Shapely STRtree returns numpy.ndarray of indices.
    try:
        return [int(x) for x in arr.tolist()]
    except AttributeError:
        return [int(x) for x in arr]


def bounded_cache_put(cache: dict, key, value, *, max_items: int) -> None:
    cache[key] = value
    # Simple bounded cache: remove oldest inserted key when we exceed size.
    if len(cache) > max_items:
        oldest = next(iter(cache.keys()))
        if oldest != key:
            cache.pop(oldest, None)
