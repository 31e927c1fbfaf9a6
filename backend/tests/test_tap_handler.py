from __future__ import annotations

import asyncio

from render.layers import CLUSTER_LAYER_ID, MARKER_LAYER_ID
from render.tap import MapTapHandler
from settings.types import MapSettings
from surface.recording import RecordingSurface
from surface.types import CameraOptions, CameraState, LngLat, ScreenPoint

TAP = ScreenPoint(x=100.0, y=200.0)


def _cluster_feature(lng: float, lat: float, count: int = 12) -> dict:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lng, lat]},
        "properties": {"cluster": True, "point_count": count},
    }


def _marker_feature(marker_id: str) -> dict:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [14.4, 50.0]},
        "properties": {"id": marker_id, "severity": 3},
    }


def _handler(surface: RecordingSurface) -> MapTapHandler:
    return MapTapHandler(surface, settings=MapSettings())


def test_cluster_tap_flies_to_cluster_two_levels_closer():
    surface = RecordingSurface(
        camera=CameraState(center=LngLat(lng=0.0, lat=0.0), zoom=10.0),
        query_results={CLUSTER_LAYER_ID: [_cluster_feature(14.42, 50.08)]},
    )
    result = asyncio.run(_handler(surface).handle_tap(TAP))

    assert result.kind == "cluster"
    assert result.zoom == 12.0
    assert result.center == LngLat(lng=14.42, lat=50.08)

    fly = [args for name, args in surface.calls if name == "fly_to"]
    assert fly == [(CameraOptions(center=LngLat(lng=14.42, lat=50.08), zoom=12.0), 500)]
    assert surface.camera.zoom == 12.0
    # The marker layer is not consulted once a cluster was hit.
    queried = [args[1] for name, args in surface.calls if name == "query_rendered_features"]
    assert queried == [(CLUSTER_LAYER_ID,)]


def test_cluster_tap_zoom_is_capped():
    surface = RecordingSurface(
        camera=CameraState(center=LngLat(lng=0.0, lat=0.0), zoom=19.0),
        query_results={CLUSTER_LAYER_ID: [_cluster_feature(1.0, 2.0)]},
    )
    assert asyncio.run(_handler(surface).handle_cluster_tap(TAP)) is True
    assert surface.camera.zoom == 20.0


def test_tap_on_marker_returns_its_id():
    surface = RecordingSurface(query_results={MARKER_LAYER_ID: [_marker_feature("report-42")]})
    result = asyncio.run(_handler(surface).handle_tap(TAP))

    assert result.kind == "marker"
    assert result.marker_id == "report-42"
    assert "fly_to" not in surface.method_names()


def test_tap_on_empty_map_is_a_miss():
    surface = RecordingSurface()
    handler = _handler(surface)

    result = asyncio.run(handler.handle_tap(TAP))
    assert result.kind == "none"
    assert result.marker_id is None
    assert asyncio.run(handler.handle_cluster_tap(TAP)) is False
    assert asyncio.run(handler.query_marker_at_point(TAP)) is None


def test_cluster_query_error_counts_as_no_cluster():
    surface = RecordingSurface(
        fail_on={f"query_rendered_features:{CLUSTER_LAYER_ID}"},
        query_results={MARKER_LAYER_ID: [_marker_feature("r1")]},
    )
    result = asyncio.run(_handler(surface).handle_tap(TAP))
    assert result.kind == "marker"
    assert result.marker_id == "r1"


def test_marker_query_error_counts_as_no_marker():
    surface = RecordingSurface(fail_on={f"query_rendered_features:{MARKER_LAYER_ID}"})
    assert asyncio.run(_handler(surface).query_marker_at_point(TAP)) is None


def test_cluster_without_geometry_is_ignored():
    surface = RecordingSurface(
        query_results={CLUSTER_LAYER_ID: [{"type": "Feature", "properties": {"point_count": 3}}]}
    )
    assert asyncio.run(_handler(surface).handle_cluster_tap(TAP)) is False
    assert "fly_to" not in surface.method_names()


def test_marker_without_id_is_ignored():
    surface = RecordingSurface(
        query_results={MARKER_LAYER_ID: [{"type": "Feature", "properties": {"severity": 1}}]}
    )
    assert asyncio.run(_handler(surface).query_marker_at_point(TAP)) is None


def test_custom_tap_settings_are_honoured():
    settings = MapSettings.model_validate({"tap": {"zoomStep": 3, "maxZoom": 18, "flyDurationMs": 250}})
    surface = RecordingSurface(
        camera=CameraState(center=LngLat(lng=0.0, lat=0.0), zoom=14.0),
        query_results={CLUSTER_LAYER_ID: [_cluster_feature(1.0, 2.0)]},
    )
    asyncio.run(MapTapHandler(surface, settings=settings).handle_tap(TAP))
    fly = [args for name, args in surface.calls if name == "fly_to"]
    assert fly == [(CameraOptions(center=LngLat(lng=1.0, lat=2.0), zoom=17.0), 250)]
