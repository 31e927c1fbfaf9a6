from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from engine.types import FetchRequest, MarkerEngine
from geo.compare import is_outside_fetched_bounds, is_viewport_unchanged
from geo.viewport import ViewportBounds
from markers.geojson import filter_by_status
from markers.types import HeatmapPoint, MapMarkerData, ReportStatus
from render.heatmap import HeatmapRenderer
from render.renderer import MarkerRenderer
from render.tap import MapTapHandler, TapResult
from settings.registry import get_settings
from settings.types import MapSettings
from surface.types import MapSurface, ScreenPoint

logger = logging.getLogger(__name__)

LoadStatus = Literal["loaded", "skipped", "failed"]

DEFAULT_VISIBLE_STATUSES = frozenset(
    {ReportStatus.reported, ReportStatus.pending, ReportStatus.resolved}
)


@dataclass
class FetchState:
    """
    What the last *successful* fetch covered. Buffered bounds, integer zoom.
    """

    last_fetched_bounds: ViewportBounds | None = None
    last_zoom: int | None = None


@dataclass(frozen=True)
class LoadResult:
    status: LoadStatus
    bounds: ViewportBounds | None = None
    zoom: int | None = None
    marker_count: int = 0
    rendered: bool = False
    error: str | None = None


@dataclass
class ViewportController:
    """
    Camera events in, fetch/render decisions out.

    Events are expected serially from one screen; the renderer's mutex covers the
    awaited gaps inside a render.
    """

    surface: MapSurface
    renderer: MarkerRenderer
    tap_handler: MapTapHandler
    engine: MarkerEngine
    settings: MapSettings = field(default_factory=get_settings)

    fetch_state: FetchState = field(default_factory=FetchState)
    show_search_area: bool = False
    markers: list[MapMarkerData] = field(default_factory=list)
    visible_statuses: frozenset[ReportStatus] = DEFAULT_VISIBLE_STATUSES
    heatmap: HeatmapRenderer | None = None
    heatmap_visible: bool = False
    heatmap_points: list[HeatmapPoint] | None = None
    # Fetched data not yet on the map (render dropped or failed).
    needs_render: bool = False

    async def read_viewport(self) -> tuple[ViewportBounds, int]:
        """
        Raw (unbuffered) visible bounds + integer zoom.
        """
        camera = await self.surface.get_camera_state()
        bounds = await self.surface.coordinate_bounds_for_camera(camera)
        return bounds, int(camera.zoom)

    async def load_viewport_markers(self, *, force: bool = False) -> LoadResult:
        vp = self.settings.viewport
        raw, zoom = await self.read_viewport()
        # Buffer exactly once, from the raw viewport.
        bounds = raw.with_buffer(vp.buffer)

        if not force and is_viewport_unchanged(
            bounds,
            self.fetch_state.last_fetched_bounds,
            zoom,
            self.fetch_state.last_zoom,
            threshold=vp.unchangedThreshold,
        ):
            logger.debug("Viewport unchanged, skipping fetch")
            rendered = False
            if self.needs_render:
                # Data is current but the map is not.
                rendered = await self.render_current()
            return LoadResult(
                status="skipped",
                bounds=bounds,
                zoom=zoom,
                marker_count=len(self.markers),
                rendered=rendered,
            )

        try:
            markers = self.engine.fetch(FetchRequest(bounds=bounds, zoom=zoom))
        except Exception as e:
            logger.exception("Error loading viewport markers")
            return LoadResult(status="failed", bounds=bounds, zoom=zoom, error=str(e))

        self.fetch_state = FetchState(last_fetched_bounds=bounds, last_zoom=zoom)
        self.markers = list(markers)
        self.show_search_area = False
        logger.info("Fetched %d markers for %s at zoom %d", len(self.markers), bounds, zoom)

        rendered = await self.render_current()
        return LoadResult(
            status="loaded",
            bounds=bounds,
            zoom=zoom,
            marker_count=len(self.markers),
            rendered=rendered,
        )

    async def on_camera_changed(self) -> bool:
        """
        Update and return whether the "search this area" prompt should show.
        """
        vp = self.settings.viewport
        raw, _zoom = await self.read_viewport()
        self.show_search_area = is_outside_fetched_bounds(
            raw,
            self.fetch_state.last_fetched_bounds,
            threshold=vp.overlapThreshold,
            near_global_threshold=vp.nearGlobalThreshold,
        )
        return self.show_search_area

    async def search_this_area(self) -> LoadResult:
        self.show_search_area = False
        result = await self.load_viewport_markers(force=True)
        if result.status == "failed":
            # Let the user retry.
            self.show_search_area = True
        return result

    async def on_style_changed(self) -> bool:
        """
        The surface's style was replaced: pin images are gone, and so are our layers.
        """
        self.renderer.reset_pin_images()
        rendered = await self.render_current()
        if self.heatmap_visible:
            await self.toggle_heatmap(True, self.heatmap_points)
        return rendered

    async def set_visible_statuses(self, statuses: set[ReportStatus]) -> bool:
        self.visible_statuses = frozenset(statuses)
        return await self.render_current()

    async def render_current(self) -> bool:
        """
        Put the current markers on the map.

        If another render holds the renderer, this one is dropped but remembered: the
        caller that owns the in-flight render re-renders once it finishes, and a failed
        render is retried by the next viewport event even when the viewport is unchanged.
        """
        self.needs_render = True
        if self.renderer.is_rendering:
            logger.debug("Render in flight, marker update deferred")
            return False

        rendered = False
        while self.needs_render:
            self.needs_render = False
            rendered = await self.renderer.render_markers(
                filter_by_status(self.markers, set(self.visible_statuses))
            )
        if not rendered:
            self.needs_render = True
        return rendered

    async def toggle_heatmap(
        self, visible: bool, points: list[HeatmapPoint] | None = None
    ) -> bool:
        """
        Show or hide the heatmap. Without explicit `points`, the current markers are used
        (weight from severity).
        """
        if self.heatmap is None:
            return False
        self.heatmap_visible = bool(visible)
        self.heatmap_points = list(points) if points is not None else None
        if points is None:
            points = [HeatmapPoint.from_marker(m) for m in self.markers]
        return await self.heatmap.toggle_heatmap(visible, points)

    async def on_tap(self, point: ScreenPoint) -> TapResult:
        return await self.tap_handler.handle_tap(point)
