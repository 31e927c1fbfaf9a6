from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from geo.viewport import ViewportBounds
from markers.types import MapMarkerData


@dataclass(frozen=True)
class FetchRequest:
    """
    One viewport fetch: buffered bounds + integer camera zoom.
    """

    bounds: ViewportBounds
    zoom: int


class MarkerEngine(Protocol):
    """
    Data engine interface: markers inside a bounds.

    - InMemoryEngine: slices preloaded markers via STRtree
    - DuckDBEngine: queries a `reports` table by bbox
    """

    def fetch(self, request: FetchRequest) -> list[MapMarkerData]: ...
