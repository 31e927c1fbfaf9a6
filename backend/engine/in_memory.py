from __future__ import annotations

from typing import Iterable

from engine.types import FetchRequest, MarkerEngine
from geo.index import build_marker_index
from markers.types import MapMarkerData


class InMemoryEngine(MarkerEngine):
    """
    Holds markers in memory with an STRtree-backed index, sliced by bounds per request.
    """

    def __init__(self, markers: Iterable[MapMarkerData] = ()):
        self._index = build_marker_index(markers)

    def replace(self, markers: Iterable[MapMarkerData]) -> None:
        self._index = build_marker_index(markers)

    def fetch(self, request: FetchRequest) -> list[MapMarkerData]:
        return self._index.query(request.bounds)

    def __len__(self) -> int:
        return len(self._index)
