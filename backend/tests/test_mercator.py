from __future__ import annotations

import pytest

from geo.mercator import (
    MAX_MERCATOR_LAT,
    bounds_for_camera,
    lnglat_to_screen,
    lnglat_to_world_px,
    screen_to_lnglat,
    world_px_to_lnglat,
)


def test_world_px_origin_and_center():
    assert lnglat_to_world_px(0.0, 0.0, 0) == pytest.approx((256.0, 256.0))
    lng, lat = world_px_to_lnglat(0.0, 0.0, 0)
    assert lng == pytest.approx(-180.0)
    assert lat == pytest.approx(MAX_MERCATOR_LAT, abs=1e-6)


def test_world_px_round_trip_prague():
    x, y = lnglat_to_world_px(14.4378, 50.0755, 12)
    lng, lat = world_px_to_lnglat(x, y, 12)
    assert lng == pytest.approx(14.4378, abs=1e-9)
    assert lat == pytest.approx(50.0755, abs=1e-9)


def test_bounds_for_full_world_viewport():
    b = bounds_for_camera(0.0, 0.0, 0, width=512, height=512)
    assert b.min_lng == pytest.approx(-180.0)
    assert b.max_lng == pytest.approx(180.0)
    assert b.min_lat == pytest.approx(-MAX_MERCATOR_LAT, abs=1e-6)
    assert b.max_lat == pytest.approx(MAX_MERCATOR_LAT, abs=1e-6)


def test_bounds_are_centered_on_camera():
    b = bounds_for_camera(14.4378, 50.0755, 12, width=800, height=600)
    assert b.min_lng < 14.4378 < b.max_lng
    assert b.min_lat < 50.0755 < b.max_lat
    # 800px at zoom 12 with 512px tiles.
    assert b.lng_range == pytest.approx(800 / (512 * 2**12) * 360.0)


def test_screen_center_maps_to_camera_center():
    kw = dict(center_lng=14.4378, center_lat=50.0755, zoom=12, width=800, height=600)
    assert lnglat_to_screen(14.4378, 50.0755, **kw) == pytest.approx((400.0, 300.0))
    lng, lat = screen_to_lnglat(400.0, 300.0, **kw)
    assert lng == pytest.approx(14.4378)
    assert lat == pytest.approx(50.0755)
