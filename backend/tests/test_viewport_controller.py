from __future__ import annotations

import asyncio

import pytest

from engine.in_memory import InMemoryEngine
from engine.types import FetchRequest
from geo.viewport import ViewportBounds
from markers.types import MapMarkerData, ReportStatus
from render.layers import PIN_PENDING, PIN_RECOVERED, PIN_REPORTED, SOURCE_ID
from render.renderer import MarkerRenderer
from render.tap import MapTapHandler
from settings.types import MapSettings, PinStyle
from surface.recording import RecordingSurface
from surface.types import CameraState, LngLat, StyleImage
from viewport.controller import FetchState, ViewportController

VIEW = ViewportBounds(min_lat=0.0, max_lat=10.0, min_lng=0.0, max_lng=10.0)


def _fake_pins(style: PinStyle) -> dict[str, StyleImage]:
    img = StyleImage(width=style.width, height=style.height, data=b"png")
    return {PIN_REPORTED: img, PIN_RECOVERED: img, PIN_PENDING: img}


def _m(mid: str, lat: float, lng: float, status: ReportStatus = ReportStatus.reported) -> MapMarkerData:
    return MapMarkerData(
        id=mid,
        latitude=lat,
        longitude=lng,
        severity=1,
        is_pending=status == ReportStatus.pending,
        status=status,
    )


MARKERS = [
    _m("in", 5.0, 5.0),
    _m("buffer", -2.0, 12.0, ReportStatus.resolved),
    _m("out", 40.0, 40.0),
]


class FailingEngine:
    def __init__(self):
        self.calls = 0

    def fetch(self, request: FetchRequest) -> list[MapMarkerData]:
        self.calls += 1
        raise RuntimeError("backend unavailable")


class CountingEngine(InMemoryEngine):
    def __init__(self, markers):
        super().__init__(markers)
        self.requests: list[FetchRequest] = []

    def fetch(self, request: FetchRequest) -> list[MapMarkerData]:
        self.requests.append(request)
        return super().fetch(request)


def _controller(engine=None, surface: RecordingSurface | None = None) -> ViewportController:
    surface = surface or RecordingSurface(
        camera=CameraState(center=LngLat(lng=5.0, lat=5.0), zoom=10.4), bounds=VIEW
    )
    settings = MapSettings()
    return ViewportController(
        surface=surface,
        renderer=MarkerRenderer(surface, settings=settings, pin_factory=_fake_pins),
        tap_handler=MapTapHandler(surface, settings=settings),
        engine=engine if engine is not None else CountingEngine(MARKERS),
        settings=settings,
    )


def _rendered_ids(surface: RecordingSurface) -> list[str]:
    return [f["properties"]["id"] for f in surface.sources[SOURCE_ID]["data"]["features"]]


def test_first_load_fetches_buffered_bounds_and_renders():
    c = _controller()
    result = asyncio.run(c.load_viewport_markers())

    assert result.status == "loaded"
    assert result.zoom == 10
    assert result.bounds == VIEW.with_buffer(0.3)
    assert result.bounds.min_lat == pytest.approx(-3.0)
    assert result.marker_count == 2
    assert result.rendered is True

    assert c.engine.requests == [FetchRequest(bounds=result.bounds, zoom=10)]
    assert c.fetch_state == FetchState(last_fetched_bounds=result.bounds, last_zoom=10)
    assert _rendered_ids(c.surface) == ["in", "buffer"]


def test_unchanged_viewport_skips_fetch_and_render():
    c = _controller()

    async def scenario():
        await c.load_viewport_markers()
        renders = c.surface.method_names().count("add_source")
        second = await c.load_viewport_markers()
        return renders, second

    renders, second = asyncio.run(scenario())
    assert second.status == "skipped"
    assert len(c.engine.requests) == 1
    assert c.surface.method_names().count("add_source") == renders


def test_force_load_bypasses_unchanged_check():
    c = _controller()

    async def scenario():
        await c.load_viewport_markers()
        return await c.load_viewport_markers(force=True)

    assert asyncio.run(scenario()).status == "loaded"
    assert len(c.engine.requests) == 2


def test_zoom_level_change_triggers_refetch():
    c = _controller()

    async def scenario():
        await c.load_viewport_markers()
        c.surface.camera = CameraState(center=LngLat(lng=5.0, lat=5.0), zoom=11.0)
        return await c.load_viewport_markers()

    assert asyncio.run(scenario()).status == "loaded"
    assert [r.zoom for r in c.engine.requests] == [10, 11]


def test_failed_fetch_keeps_previous_fetch_state():
    engine = FailingEngine()
    c = _controller(engine=engine)

    result = asyncio.run(c.load_viewport_markers())
    assert result.status == "failed"
    assert "backend unavailable" in (result.error or "")
    assert c.fetch_state == FetchState()
    assert "add_source" not in c.surface.method_names()

    # Nothing was recorded, so the same viewport is retried.
    asyncio.run(c.load_viewport_markers())
    assert engine.calls == 2


def test_search_area_prompt_after_panning_away():
    c = _controller()

    async def scenario():
        assert await c.on_camera_changed() is False  # nothing fetched yet
        await c.load_viewport_markers()

        c.surface.bounds = ViewportBounds(min_lat=1.0, max_lat=11.0, min_lng=1.0, max_lng=11.0)
        assert await c.on_camera_changed() is False

        c.surface.bounds = ViewportBounds(min_lat=20.0, max_lat=30.0, min_lng=20.0, max_lng=30.0)
        assert await c.on_camera_changed() is True
        assert c.show_search_area is True

        result = await c.search_this_area()
        assert result.status == "loaded"
        assert c.show_search_area is False

    asyncio.run(scenario())
    assert c.fetch_state.last_fetched_bounds == ViewportBounds(
        min_lat=20.0, max_lat=30.0, min_lng=20.0, max_lng=30.0
    ).with_buffer(0.3)


def test_failed_search_keeps_prompt_visible():
    c = _controller(engine=FailingEngine())
    c.show_search_area = True
    result = asyncio.run(c.search_this_area())
    assert result.status == "failed"
    assert c.show_search_area is True


def test_style_change_reprovisions_pins_and_rerenders():
    c = _controller()

    async def scenario():
        await c.load_viewport_markers()
        return await c.on_style_changed()

    assert asyncio.run(scenario()) is True
    assert c.surface.method_names().count("add_image") == 6
    assert _rendered_ids(c.surface) == ["in", "buffer"]


def test_status_filter_limits_rendered_markers():
    c = _controller()

    async def scenario():
        await c.load_viewport_markers()
        return await c.set_visible_statuses({ReportStatus.resolved})

    assert asyncio.run(scenario()) is True
    assert _rendered_ids(c.surface) == ["buffer"]
    # Filtering does not touch what was fetched.
    assert [m.id for m in c.markers] == ["in", "buffer"]


def test_status_filter_hiding_everything_clears_the_map():
    c = _controller()

    async def scenario():
        await c.load_viewport_markers()
        return await c.set_visible_statuses(set())

    assert asyncio.run(scenario()) is True
    assert c.surface.sources == {}
    assert c.surface.layers == []


@pytest.mark.parametrize("buffer", [0.0, 0.5])
def test_buffer_comes_from_settings(buffer):
    surface = RecordingSurface(bounds=VIEW)
    settings = MapSettings.model_validate({"viewport": {"buffer": buffer}})
    c = ViewportController(
        surface=surface,
        renderer=MarkerRenderer(surface, settings=settings, pin_factory=_fake_pins),
        tap_handler=MapTapHandler(surface, settings=settings),
        engine=InMemoryEngine(MARKERS),
        settings=settings,
    )
    result = asyncio.run(c.load_viewport_markers())
    assert result.bounds == VIEW.with_buffer(buffer)


def _controller_on(surface: RecordingSurface, engine) -> ViewportController:
    settings = MapSettings()
    return ViewportController(
        surface=surface,
        renderer=MarkerRenderer(surface, settings=settings, pin_factory=_fake_pins),
        tap_handler=MapTapHandler(surface, settings=settings),
        engine=engine,
        settings=settings,
    )


def test_fetch_landing_mid_render_is_rendered_when_that_render_finishes():
    surface = RecordingSurface(
        camera=CameraState(center=LngLat(lng=5.0, lat=5.0), zoom=10.0), bounds=VIEW, delay_s=0.01
    )
    engine = InMemoryEngine([_m("old", 5.0, 5.0)])
    c = _controller_on(surface, engine)

    async def scenario():
        await c.load_viewport_markers()
        engine.replace([_m("new", 5.0, 5.0)])

        restyle = asyncio.create_task(c.on_style_changed())
        await asyncio.sleep(0)
        assert c.renderer.is_rendering is True

        forced = await c.load_viewport_markers(force=True)
        assert forced.status == "loaded"
        assert forced.rendered is False
        assert c.needs_render is True

        # Same viewport again while the restyle is still drawing.
        again = await c.load_viewport_markers()
        assert again.status == "skipped"

        assert await restyle is True

    asyncio.run(scenario())
    assert [m.id for m in c.markers] == ["new"]
    assert _rendered_ids(surface) == ["new"]
    assert c.needs_render is False
    assert c.renderer.is_rendering is False


def test_unchanged_viewport_retries_a_failed_render():
    surface = RecordingSurface(bounds=VIEW, fail_on={"add_source"})
    c = _controller_on(surface, InMemoryEngine(MARKERS))

    first = asyncio.run(c.load_viewport_markers())
    assert first.status == "loaded"
    assert first.rendered is False
    assert c.needs_render is True

    surface.fail_on.clear()
    second = asyncio.run(c.load_viewport_markers())
    assert second.status == "skipped"
    assert second.rendered is True
    assert c.needs_render is False
    assert _rendered_ids(surface) == ["in", "buffer"]

    # Nothing pending any more: a further unchanged event does not touch the map.
    calls = len(surface.calls)
    third = asyncio.run(c.load_viewport_markers())
    assert third.status == "skipped"
    assert third.rendered is False
    assert [name for name, _ in surface.calls[calls:]] == ["get_camera_state", "coordinate_bounds_for_camera"]
