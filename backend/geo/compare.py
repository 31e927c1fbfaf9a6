from __future__ import annotations

from geo.viewport import ViewportBounds

# ~111m at the equator.
UNCHANGED_THRESHOLD = 0.001
OVERLAP_THRESHOLD = 0.8
NEAR_GLOBAL_THRESHOLD = 0.7

_WORLD_AREA = 180.0 * 360.0


def is_viewport_unchanged(
    current: ViewportBounds,
    last: ViewportBounds | None,
    current_zoom: float,
    last_zoom: float | None,
    *,
    threshold: float = UNCHANGED_THRESHOLD,
) -> bool:
    """
    True when the viewport moved less than `threshold` degrees on every edge and the
    integer zoom is the same, i.e. a refetch can be skipped.

    Absolute degrees rather than pixels, so the result does not depend on screen density.
    """
    if last is None or last_zoom is None:
        return False
    return (
        abs(current.min_lat - last.min_lat) < threshold
        and abs(current.max_lat - last.max_lat) < threshold
        and abs(current.min_lng - last.min_lng) < threshold
        and abs(current.max_lng - last.max_lng) < threshold
        and int(current_zoom) == int(last_zoom)
    )


def overlap_ratio(current: ViewportBounds, fetched: ViewportBounds) -> float:
    """
    Fraction of `current` covered by `fetched` (0..1). Zero-area `current` yields 0.
    """
    current_area = current.area()
    if current_area <= 0:
        return 0.0

    overlap_min_lat = _clamp(current.min_lat, fetched.min_lat, fetched.max_lat)
    overlap_max_lat = _clamp(current.max_lat, fetched.min_lat, fetched.max_lat)
    overlap_min_lng = _clamp(current.min_lng, fetched.min_lng, fetched.max_lng)
    overlap_max_lng = _clamp(current.max_lng, fetched.min_lng, fetched.max_lng)

    height = max(0.0, overlap_max_lat - overlap_min_lat)
    width = max(0.0, overlap_max_lng - overlap_min_lng)
    return (height * width) / current_area


def is_outside_fetched_bounds(
    current: ViewportBounds,
    fetched: ViewportBounds | None,
    *,
    threshold: float = OVERLAP_THRESHOLD,
    near_global_threshold: float = NEAR_GLOBAL_THRESHOLD,
) -> bool:
    """
    True when less than `threshold` of the current viewport was covered by the last fetch.

    Drives the "search this area" prompt only; it never triggers a fetch itself.
    Area ratio rather than edge distance: a diagonal pan moves every edge while the
    overlap can stay high.
    """
    if fetched is None:
        return False

    current_area = current.area()
    if current_area <= 0:
        return False

    # A world-wide fetch (max zoom-out search) covers every later viewport, which would
    # hide the prompt forever after zooming back in.
    fetched_area = fetched.area()
    if fetched_area > _WORLD_AREA * near_global_threshold and current_area < fetched_area * 0.5:
        return True

    return overlap_ratio(current, fetched) < threshold


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))
