from __future__ import annotations

from dataclasses import dataclass

DEFAULT_BUFFER = 0.3


@dataclass(frozen=True)
class ViewportBounds:
    """
    WGS84 rectangle in lat/lng degrees.

    Convention used throughout this repo:
    - minLat, maxLat, minLng, maxLng (latitude first)
    - GeoJSON payloads are the opposite: [lng, lat]

    No antimeridian handling: min_lng <= max_lng within a single world copy.
    """

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @property
    def lat_range(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def lng_range(self) -> float:
        return self.max_lng - self.min_lng

    def area(self) -> float:
        # deg^2; only used for ratios, never as a physical area.
        return self.lat_range * self.lng_range

    def with_buffer(self, fraction: float = DEFAULT_BUFFER) -> "ViewportBounds":
        """
        Expand by `fraction * range` on each side of each axis.

        Buffering is relative to the *current* range, so two calls with f1, f2 are not
        the same as one call with f1 + f2. Buffer the raw viewport exactly once.
        """
        f = float(fraction)
        if f < 0:
            raise ValueError(f"buffer fraction must be >= 0, got {fraction!r}")
        lat_buffer = self.lat_range * f
        lng_buffer = self.lng_range * f
        return ViewportBounds(
            min_lat=self.min_lat - lat_buffer,
            max_lat=self.max_lat + lat_buffer,
            min_lng=self.min_lng - lng_buffer,
            max_lng=self.max_lng + lng_buffer,
        )

    def normalized(self) -> "ViewportBounds":
        return ViewportBounds(
            min_lat=min(self.min_lat, self.max_lat),
            max_lat=max(self.min_lat, self.max_lat),
            min_lng=min(self.min_lng, self.max_lng),
            max_lng=max(self.min_lng, self.max_lng),
        )

    def contains(self, other: "ViewportBounds") -> bool:
        return (
            self.min_lat <= other.min_lat
            and self.max_lat >= other.max_lat
            and self.min_lng <= other.min_lng
            and self.max_lng >= other.max_lng
        )

    def rounded_key(self, decimals: int = 4) -> tuple[float, float, float, float]:
        """
        A stable, hashable key for caching bounds-derived computations.

        decimals=4 is ~11m-ish in latitude, which is good enough for interactive caching.
        """
        b = self.normalized()
        return (
            round(b.min_lat, decimals),
            round(b.max_lat, decimals),
            round(b.min_lng, decimals),
            round(b.max_lng, decimals),
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "minLat": self.min_lat,
            "maxLat": self.max_lat,
            "minLng": self.min_lng,
            "maxLng": self.max_lng,
        }

    @classmethod
    def from_dict(cls, data: dict[str, float]) -> "ViewportBounds":
        return cls(
            min_lat=float(data["minLat"]),
            max_lat=float(data["maxLat"]),
            min_lng=float(data["minLng"]),
            max_lng=float(data["maxLng"]),
        )
