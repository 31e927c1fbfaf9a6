from __future__ import annotations

import logging
from typing import Sequence

from markers.geojson import build_heatmap_collection
from markers.types import HeatmapPoint
from render.layers import (
    HEATMAP_LAYER_ID,
    HEATMAP_SOURCE_ID,
    heatmap_layer,
    heatmap_source_spec,
)
from render.state import RenderState
from settings.registry import get_settings
from settings.types import MapSettings
from surface.types import MapSurface, NotFoundError

logger = logging.getLogger(__name__)


class HeatmapRenderer:
    """
    Owns the heatmap source/layer pair on one map surface.

    Same drop-if-busy policy as the marker renderer, with its own mutex: the two never
    touch each other's ids.
    """

    def __init__(self, surface: MapSurface, *, settings: MapSettings | None = None):
        self._surface = surface
        self._settings = settings or get_settings()
        self.state = RenderState()

    @property
    def is_rendering(self) -> bool:
        return self.state.is_rendering

    @property
    def is_visible(self) -> bool:
        return HEATMAP_LAYER_ID in self.state.installed_layers

    async def toggle_heatmap(self, visible: bool, points: Sequence[HeatmapPoint]) -> bool:
        """
        Show `points` as a heatmap (replacing any previous one) or hide it.

        Returns False when skipped (busy) or failed; failures are logged.
        """
        if not self.state.try_begin():
            logger.debug("Already rendering heatmap, skipping")
            return False

        try:
            await self._hide()
            if not visible:
                logger.info("Heatmap hidden")
                return True
            if not points:
                logger.warning("No heatmap points to display")
                return True

            sample = ", ".join(
                f"({p.latitude:.2f}, {p.longitude:.2f}, w={p.weight})" for p in points[:3]
            )
            logger.debug("Sample heatmap points: %s", sample)

            fc = build_heatmap_collection(points)
            await self._surface.add_source(HEATMAP_SOURCE_ID, heatmap_source_spec(fc))
            self.state.installed_source = HEATMAP_SOURCE_ID
            await self._surface.add_layer(heatmap_layer(self._settings.heatmap))
            self.state.layer_installed(HEATMAP_LAYER_ID)

            logger.info("Heatmap shown with %d points", len(points))
            return True
        except Exception:
            logger.exception("Error toggling heatmap")
            return False
        finally:
            self.state.finish()

    async def _hide(self) -> None:
        try:
            await self._surface.remove_layer(HEATMAP_LAYER_ID)
        except NotFoundError:
            pass
        self.state.layer_removed(HEATMAP_LAYER_ID)

        try:
            await self._surface.remove_source(HEATMAP_SOURCE_ID)
        except NotFoundError:
            pass
        self.state.installed_source = None
